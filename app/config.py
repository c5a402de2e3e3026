"""
Configuration objects for create_app.

APP_ENV picks one of ``config``: development (SQLite file unless
DATABASE_URL is set), testing (in-memory SQLite), production (DATABASE_URL
and SECRET_KEY required).
"""

import os
import secrets

_ROOT = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))


def _database_url(default=None):
    url = os.getenv("DATABASE_URL", "")
    if not url:
        return default
    # SQLAlchemy only accepts the postgresql:// scheme
    return url.replace("postgres://", "postgresql://", 1)


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", secrets.token_hex(32))
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")  # falls back to SECRET_KEY
    JWT_ACCESS_EXPIRES = int(os.getenv("JWT_ACCESS_EXPIRES", "900"))
    DEBUG = False
    TESTING = False

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Review cycle
    MIN_TEAM_MEMBERS = int(os.getenv("MIN_TEAM_MEMBERS", "3"))
    MAX_PROPOSAL_FILE_SIZE = int(os.getenv("MAX_PROPOSAL_FILE_SIZE", str(10 * 1024 * 1024)))
    ALLOWED_PROPOSAL_MIME_TYPES = ("application/pdf",)
    MAX_SUBSTANSI_BOBOT_TOTAL = 100
    SKIPPED_SCORE = 4  # unlabelled middle of the 1-7 scale


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = _database_url(
        f"sqlite:///{os.path.join(_ROOT, 'instance', 'pkm_review_dev.db')}"
    )


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key"
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ENGINE_OPTIONS = {}
    RATELIMIT_ENABLED = False


class ProductionConfig(Config):
    SQLALCHEMY_DATABASE_URI = _database_url()
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")

    def __init__(self):
        if not self.SQLALCHEMY_DATABASE_URI:
            raise RuntimeError("DATABASE_URL environment variable is required in production")
        if not os.getenv("SECRET_KEY"):
            raise RuntimeError("SECRET_KEY environment variable must be set in production")


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
