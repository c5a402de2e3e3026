"""
PKM Review Platform
Blueprint registry. Each module owns one URL area under /api/v1.
"""
