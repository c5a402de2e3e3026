"""
PKM Review Platform: WSGI and Flask-Migrate entry point.

Usage:
    flask --app wsgi run
    flask --app wsgi db migrate -m "description"
    flask --app wsgi db upgrade
"""

from app import create_app

app = create_app()
