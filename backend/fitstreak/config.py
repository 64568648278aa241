import os
from dataclasses import dataclass, field
from functools import lru_cache
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

DEFAULT_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
]


@dataclass(frozen=True)
class Settings:
    supabase_url: str = ""
    supabase_service_key: str = ""
    timezone: str = "UTC"
    streak_lookback: int = 30      # most recent activities fed to the streak engine
    streak_max_retries: int = 3
    auth_mode: str = "bearer"      # 'bearer' | 'dev'
    dev_user_id: str = "dev-user"
    allowed_origins: list[str] = field(default_factory=lambda: list(DEFAULT_ORIGINS))
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @classmethod
    def from_env(cls, env=None) -> "Settings":
        env = os.environ if env is None else env
        origins = env.get("FITSTREAK_ALLOWED_ORIGINS", "")
        return cls(
            supabase_url=env.get("SUPABASE_URL", ""),
            supabase_service_key=env.get("SUPABASE_SERVICE_KEY", ""),
            timezone=env.get("FITSTREAK_TIMEZONE", "UTC"),
            streak_lookback=int(env.get("FITSTREAK_STREAK_LOOKBACK", 30)),
            streak_max_retries=int(env.get("FITSTREAK_STREAK_MAX_RETRIES", 3)),
            auth_mode=env.get("FITSTREAK_AUTH_MODE", "bearer").lower(),
            dev_user_id=env.get("FITSTREAK_DEV_USER_ID", "dev-user"),
            allowed_origins=[o.strip() for o in origins.split(",") if o.strip()] or list(DEFAULT_ORIGINS),
            gemini_api_key=env.get("GEMINI_API_KEY", ""),
            gemini_model=env.get("GEMINI_MODEL", "gemini-2.0-flash"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv()
    return Settings.from_env()
