import os
from datetime import tzinfo
from functools import lru_cache
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo


class Settings:
    def __init__(
        self,
        database_url: str,
        storage_key: str,
        app_name: str,
        timezone: str,
    ) -> None:
        self.database_url = database_url
        self.storage_key = storage_key
        self.app_name = app_name
        self.timezone = timezone

    @property
    def tz(self) -> Optional[tzinfo]:
        # Empty means the system clock's local calendar.
        if not self.timezone:
            return None
        return ZoneInfo(self.timezone)


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("BOOKKEEPING_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    database_url = os.getenv("BOOKKEEPING_DATABASE_URL")
    if not database_url:
        default_db = _ensure_data_dir() / "bookkeeping.db"
        database_url = f"sqlite:///{default_db}"
    storage_key = os.getenv("BOOKKEEPING_STORAGE_KEY", "simple_bookkeeping_data_v1")
    app_name = os.getenv("BOOKKEEPING_APP_NAME", "simple-bookkeeping")
    timezone = os.getenv("BOOKKEEPING_TIMEZONE", "")
    return Settings(
        database_url=database_url,
        storage_key=storage_key,
        app_name=app_name,
        timezone=timezone,
    )
