import os

# Storage configuration
STORAGE_BACKEND = os.getenv("CAMPUSHUB_STORAGE_BACKEND", "sql")
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./campushub.db")
KEY_PREFIX = os.getenv("CAMPUSHUB_KEY_PREFIX", "")

# Redis configuration
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# "inline" writes through the gateway, "celery" defers to save_snapshot_task
SNAPSHOT_WRITER = os.getenv("CAMPUSHUB_SNAPSHOT_WRITER", "inline")

LOG_LEVEL = os.getenv("CAMPUSHUB_LOG_LEVEL", "INFO")


def get_redis_url():
    return REDIS_URL


def get_database_url():
    return DATABASE_URL
