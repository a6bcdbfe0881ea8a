"""
Environment-driven configuration for the site backend.

Values come from the process environment so the same build runs locally,
under test, and behind the production proxy.
"""

import os


def _split_origins(raw):
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


class Config:
    """Base configuration shared by every environment."""

    ENV_NAME = "production"
    DEBUG = False
    TESTING = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Request bodies: 10 attachments of 10MB plus form fields
    MAX_CONTENT_LENGTH = 110 * 1024 * 1024
    MAX_ATTACHMENTS = 10
    MAX_ATTACHMENT_BYTES = 10 * 1024 * 1024

    # SMTP relay
    SMTP_HOST = os.environ.get("SMTP_HOST", "smtp-relay.brevo.com")
    SMTP_PORT = int(os.environ.get("SMTP_PORT", "587"))
    SMTP_USER = os.environ.get("SMTP_USER", "")
    SMTP_PASS = os.environ.get("SMTP_PASS", "")
    SMTP_TIMEOUT = float(os.environ.get("SMTP_TIMEOUT", "30"))
    SMTP_FROM_EMAIL = os.environ.get("SMTP_FROM_EMAIL", "relations@opessocius.support")
    SMTP_FROM_NAME = os.environ.get("SMTP_FROM_NAME", "Opessocius")

    # Document store
    DOCUMENT_DB_PATH = os.environ.get("DOCUMENT_DB_PATH", "opessocius.db")

    # Static marketing pages, served only when configured
    STATIC_SITE_DIR = os.environ.get("STATIC_SITE_DIR")

    # CORS / transport
    CORS_ORIGINS = _split_origins(os.environ.get("ALLOWED_ORIGINS", "https://opessocius.support"))
    FORCE_HTTPS = True

    # Content Security Policy allow-list
    CSP_POLICY = {
        "default-src": ["'self'"],
        "script-src": [
            "'self'",
            "'unsafe-inline'",
            "https://www.gstatic.com",
            "https://*.firebaseapp.com",
            "https://*.firebasestorage.app",
            "https://buy.stripe.com",
        ],
        "style-src": ["'self'", "'unsafe-inline'"],
        "img-src": ["'self'", "data:", "https:", "blob:"],
        "font-src": ["'self'", "data:", "https:"],
        "connect-src": [
            "'self'",
            "https://*.firebaseapp.com",
            "https://*.firebasestorage.app",
            "https://*.googleapis.com",
            "wss://*.firebaseio.com",
            "wss://*.firebaseapp.com",
        ],
        "frame-src": ["'self'", "https://buy.stripe.com"],
        "object-src": ["'none'"],
    }

    PERMISSIONS_POLICY = {
        "geolocation": "()",
        "microphone": "()",
        "camera": "()",
        "payment": '(self "https://buy.stripe.com")',
        "usb": "()",
        "magnetometer": "()",
        "gyroscope": "()",
        "accelerometer": "()",
    }


class ProductionConfig(Config):
    pass


class DevelopmentConfig(Config):
    ENV_NAME = "development"
    DEBUG = True
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")
    CORS_ORIGINS = "*"
    FORCE_HTTPS = False


class TestingConfig(Config):
    ENV_NAME = "testing"
    TESTING = True
    CORS_ORIGINS = "*"
    FORCE_HTTPS = False
    DOCUMENT_DB_PATH = ":memory:"
    SMTP_USER = ""
    SMTP_PASS = ""


CONFIGS = {
    "production": ProductionConfig,
    "development": DevelopmentConfig,
    "testing": TestingConfig,
}


def get_config(name=None):
    """Pick a config class by name, falling back to FLASK_ENV then production."""
    name = name or os.environ.get("FLASK_ENV", "production")
    return CONFIGS.get(name, ProductionConfig)
