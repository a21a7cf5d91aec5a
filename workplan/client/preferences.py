"""
Client-local preferences: sync interval and column visibility.

Read once at startup, written back on every change.
"""
import json
import logging
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, PrivateAttr, ValidationError

from workplan.core.config import settings

logger = logging.getLogger(__name__)


class ClientPreferences(BaseModel):
    sync_interval: int = Field(default_factory=lambda: settings.SYNC_INTERVAL, ge=0)  # secondes, 0 = off
    hidden_columns: List[str] = Field(default_factory=list)

    _path: Optional[Path] = PrivateAttr(default=None)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "ClientPreferences":
        path = Path(path or settings.PREFS_PATH)
        prefs = cls()
        if path.exists():
            try:
                prefs = cls.model_validate(json.loads(path.read_text(encoding="utf-8")))
            except (OSError, json.JSONDecodeError, ValidationError) as e:
                logger.warning(f"Ignoring unreadable preferences {path}: {e}")
        prefs._path = path
        return prefs

    def save(self) -> None:
        path = self._path or Path(settings.PREFS_PATH)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")

    def is_visible(self, column_id: str) -> bool:
        return column_id not in self.hidden_columns

    def set_column_visible(self, column_id: str, visible: bool) -> None:
        if visible:
            self.hidden_columns = [c for c in self.hidden_columns if c != column_id]
        elif column_id not in self.hidden_columns:
            self.hidden_columns = self.hidden_columns + [column_id]
        self.save()

    def set_sync_interval(self, seconds: int) -> None:
        if seconds < 0:
            raise ValueError("Sync interval cannot be negative")
        self.sync_interval = seconds
        self.save()
