# teamtasks/settings.py
"""Environment-driven settings for the teamtasks service."""

import os
from pathlib import Path

STORAGE_MEMORY = "memory"
STORAGE_DATABASE = "database"
STORAGE_BACKENDS = (STORAGE_MEMORY, STORAGE_DATABASE)

STORAGE_BACKEND = os.getenv("TASKS_STORAGE", STORAGE_DATABASE).strip().lower()

DB_PATH = Path(__file__).parent / "data.db"
DATABASE_URL = os.getenv("TASKS_DATABASE_URL", f"sqlite:///{DB_PATH}")

# Zone used for "today"/"overdue" day boundaries and for naive due dates.
TIMEZONE = os.getenv("TASKS_TIMEZONE", "UTC")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://localhost:5173",
    ).split(",")
    if origin.strip()
]
