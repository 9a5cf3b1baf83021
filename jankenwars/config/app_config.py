"""
Configuration Management Module

Centralized configuration management following the 12-factor app methodology.
All configuration is loaded from environment variables with sensible defaults.
"""

import os
from dotenv import load_dotenv

# Load environment variables from config.env next to this module
load_dotenv(os.path.join(os.path.dirname(os.path.abspath(__file__)), 'config.env'))


class Config:
    """Base configuration class with all settings."""

    # Flask Settings
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
    TESTING = False
    MAX_CONTENT_LENGTH = int(os.getenv('MAX_CONTENT_LENGTH', 100 * 1024))

    # Server Settings
    HOST = os.getenv('HOST', '0.0.0.0')
    PORT = int(os.getenv('PORT', 5000))
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')

    # Session Token Settings
    SESSION_TOKEN_SECRET = os.getenv('SESSION_TOKEN_SECRET', SECRET_KEY)
    SESSION_TOKEN_TTL_SECONDS = int(os.getenv('SESSION_TOKEN_TTL_SECONDS', 24 * 60 * 60))

    # Room Lifecycle Settings
    ROOM_EMPTY_GRACE_SECONDS = int(os.getenv('ROOM_EMPTY_GRACE_SECONDS', 300))
    ROOM_MAX_LIFETIME_SECONDS = int(os.getenv('ROOM_MAX_LIFETIME_SECONDS', 6 * 60 * 60))
    CLEANUP_INTERVAL_SECONDS = int(os.getenv('CLEANUP_INTERVAL_SECONDS', 60))
    MATCHMAKING_QUEUE_LIMIT = int(os.getenv('MATCHMAKING_QUEUE_LIMIT', 100))

    # HTTP Rate Limiting
    RATE_LIMIT_MAX_REQUESTS = int(os.getenv('RATE_LIMIT_MAX_REQUESTS', 100))
    RATE_LIMIT_WINDOW_SECONDS = int(os.getenv('RATE_LIMIT_WINDOW_SECONDS', 60))

    # Logging Settings
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_DIR = os.getenv('LOG_DIR', 'logs')
    LOG_TO_FILE = os.getenv('LOG_TO_FILE', 'True').lower() == 'true'


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    DEBUG = True
    LOG_TO_FILE = False
    SESSION_TOKEN_SECRET = 'testing-session-secret'


# Configuration mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config(name=None):
    """Resolve a configuration class by name (falls back to JANKENWARS_ENV)."""
    name = name or os.getenv('JANKENWARS_ENV', 'default')
    return config.get(name, config['default'])
