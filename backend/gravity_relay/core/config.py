import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel


class Settings(BaseModel):
    app_env: str = "development"
    log_level: str = "info"
    host: str = "0.0.0.0"
    port: int = 10000
    reaper_interval_s: float = 60.0
    room_idle_timeout_s: float = 10 * 60.0


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        return default


@lru_cache
def get_settings() -> Settings:
    # Load .env if present (noop if already loaded)
    load_dotenv()
    defaults = Settings()
    return Settings(
        app_env=os.getenv("APP_ENV", defaults.app_env),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level),
        host=os.getenv("HOST", defaults.host),
        port=_env_number("PORT", defaults.port, int),
        reaper_interval_s=_env_number("REAPER_INTERVAL_S", defaults.reaper_interval_s, float),
        room_idle_timeout_s=_env_number("ROOM_IDLE_TIMEOUT_S", defaults.room_idle_timeout_s, float),
    )
