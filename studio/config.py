"""
Studio Management System
Configuration classes, selected by ``create_app(config_name)`` or APP_ENV.

Environment variables:
    DATABASE_URL        PostgreSQL in deployed environments (required in production)
    SECRET_KEY          required in production
    TEST_DATABASE_URL   optional override for the test suite
    REDIS_URL           rate-limit storage, memory:// when unset
    CORS_ORIGINS        comma-separated allow-list, "*" outside production
    LOG_LEVEL           DEBUG / INFO / ...
    LOG_FORMAT          "json" or "readable"
    SLOW_REQUEST_MS     request duration logged as slow
"""

import os
import secrets

_ROOT = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))


def _database_url(default=None):
    # SQLAlchemy 2.0 no longer accepts the postgres:// scheme
    raw = os.getenv("DATABASE_URL", "")
    if not raw:
        return default
    return raw.replace("postgres://", "postgresql://", 1)


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", secrets.token_hex(32))
    DEBUG = False
    TESTING = False

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True, "pool_recycle": 300}

    RATELIMIT_STORAGE_URI = os.getenv("REDIS_URL", "memory://")
    WRITE_RATE_LIMIT = "60/minute"
    READ_RATE_LIMIT = "200/minute"

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    LOG_LEVEL = os.getenv("LOG_LEVEL")
    LOG_FORMAT = os.getenv("LOG_FORMAT", "json")
    SLOW_REQUEST_MS = int(os.getenv("SLOW_REQUEST_MS", "1000"))


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = _database_url(
        f"sqlite:///{os.path.join(_ROOT, 'instance', 'studio_dev.db')}"
    )
    LOG_FORMAT = os.getenv("LOG_FORMAT", "readable")


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ENGINE_OPTIONS = {}
    RATELIMIT_ENABLED = False
    LOG_FORMAT = "readable"


class ProductionConfig(Config):
    SQLALCHEMY_DATABASE_URI = _database_url()
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_recycle": 300,
        "pool_timeout": 20,
    }

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
