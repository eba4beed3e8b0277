# llamaio/config/settings.py
# Runtime configuration for the API, read from the environment / .env file

import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    """Application settings"""

    # Database
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./llamaio.db")
    DATABASE_SSLMODE = os.getenv("DATABASE_SSLMODE")  # e.g. "require" on Render

    # HTTP
    CORS_ORIGINS = _split_csv(os.getenv("CORS_ORIGINS", "http://localhost:3000"))

    # Listing defaults
    TASKS_DEFAULT_LIMIT = int(os.getenv("TASKS_DEFAULT_LIMIT", 100))

    # Reference reconciler (0 = never scheduled, still available on demand)
    RECONCILE_INTERVAL_MINUTES = int(os.getenv("RECONCILE_INTERVAL_MINUTES", 0))

    # Launcher (start_server.py)
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", 8000))
    RELOAD = os.getenv("RELOAD", "true").lower() == "true"

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
