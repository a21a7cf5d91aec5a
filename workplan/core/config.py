from os import getenv
from pathlib import Path

class Settings:
    DATABASE_URL = getenv("DATABASE_URL", "sqlite:///./data/workplans.db")
    LOG_LEVEL = getenv("LOG_LEVEL", "INFO")

    # Colonnes du tableau
    COLUMNS = [c.strip() for c in getenv("COLUMNS", "future-plans,planned,in-progress,completed,archives").split(",") if c.strip()]
    DEFAULT_COLUMN = getenv("DEFAULT_COLUMN", "in-progress")
    ARCHIVE_COLUMN = getenv("ARCHIVE_COLUMN", "archives")
    RESTORE_COLUMN = getenv("RESTORE_COLUMN", "completed")

    # Client
    API_URL = getenv("WORKPLAN_API_URL", "http://localhost:3000/api")
    REQUEST_TIMEOUT = float(getenv("REQUEST_TIMEOUT", "10"))
    SYNC_INTERVAL = int(getenv("SYNC_INTERVAL", "30"))  # secondes, 0 = désactivé
    PREFS_PATH = Path(getenv("WORKPLAN_PREFS_PATH", str(Path.home() / ".config" / "workplan" / "preferences.json")))

settings = Settings()
