from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")


@dataclass(frozen=True)
class AppConfig:
    session_secret: str = os.getenv("SESSION_SECRET", "lunch-squad-secret-change-in-production")
    store_backend: str = os.getenv("LUNCH_STORE", "memory")
    supabase_url: str = os.getenv("SUPABASE_URL", "")
    supabase_key: str = os.getenv("SUPABASE_KEY", "")
    store_timeout: float = float(os.getenv("STORE_TIMEOUT", "10"))
    admin_password: str = os.getenv("ADMIN_PASSWORD", "")
    timezone: str = os.getenv("LUNCH_TIMEZONE", "UTC")
    seed_demo_data: bool = os.getenv("LUNCH_SEED", "1") == "1"

    def today(self) -> date:
        """The current day key in the configured timezone."""
        return datetime.now(ZoneInfo(self.timezone)).date()


DEFAULT_APP_CONFIG = AppConfig()
