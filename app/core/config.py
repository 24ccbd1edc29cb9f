# app/core/config.py

import logging
import os


def _env_int(name: str, default: int) -> int:
    """Reads an integer setting, falling back to the default on bad input."""
    raw = os.getenv(name)
    if raw is None or raw == '':
        return default
    try:
        return int(raw)
    except ValueError:
        logging.warning(f"Invalid integer for {name}={raw!r}, using default {default}")
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == '':
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Settings shared by every environment."""
    # Signs the bearer tokens accepted by the admin (reconcile) endpoints.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')

    FIREBASE_PROJECT_ID = os.getenv('FIREBASE_PROJECT_ID')
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')
    # The mobile clients write to the named database, not "(default)".
    FIRESTORE_DATABASE_ID = os.getenv('FIRESTORE_DATABASE_ID', 'kissangram')

    # Fan-out: Firestore rejects batches above 500 writes.
    FEED_BATCH_SIZE = _env_int('FEED_BATCH_SIZE', 500)
    FEED_MAX_CONCURRENT_COMMITS = _env_int('FEED_MAX_CONCURRENT_COMMITS', 1)

    PUSH_ENABLED = _env_bool('PUSH_ENABLED', True)

    # Processed-event markers make counter updates apply once per event id.
    EVENT_DEDUP_ENABLED = _env_bool('EVENT_DEDUP_ENABLED', True)
    PROCESSED_EVENTS_COLLECTION = os.getenv('PROCESSED_EVENTS_COLLECTION', 'processedEvents')
    PROCESSED_EVENT_TTL_DAYS = _env_int('PROCESSED_EVENT_TTL_DAYS', 7)

    COUNT_HARD_DELETED_COMMENTS = _env_bool('COUNT_HARD_DELETED_COMMENTS', True)

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    REQUIRE_CREDENTIALS_FILE = True


class DevelopmentConfig(Config):
    """Local development against the dev Firebase project."""
    DEBUG = True
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH', Config.FIREBASE_CREDENTIALS_PATH)


class TestingConfig(Config):
    """Test runs. The test suite injects an in-memory store instead of Firestore."""
    TESTING = True
    DEBUG = False
    FIREBASE_CREDENTIALS_PATH = os.getenv('TEST_FIREBASE_CREDENTIALS_PATH')
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'test-secret-key-with-at-least-32-bytes')
    FEED_BATCH_SIZE = 500
    FEED_MAX_CONCURRENT_COMMITS = 1
    PUSH_ENABLED = True
    EVENT_DEDUP_ENABLED = True
    COUNT_HARD_DELETED_COMMENTS = True


class ProductionConfig(Config):
    """Cloud Run deployment. Without a key file, Application Default Credentials are used."""
    DEBUG = False
    REQUIRE_CREDENTIALS_FILE = False


# create_app picks the class matching FLASK_ENV.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
