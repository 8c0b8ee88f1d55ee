import os
from dataclasses import dataclass

from dotenv import load_dotenv


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    bot_token: str = ""
    frontend_url: str = ""
    jwt_secret: str = ""  # reserved for real token signing, not used yet
    webhook_secret: str = ""
    kv_path: str = ""
    telegram_api_url: str = "https://api.telegram.org"
    host: str = "0.0.0.0"
    port: int = 8787
    debug: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            bot_token=os.getenv("BOT_TOKEN", ""),
            frontend_url=os.getenv("FRONTEND_URL", ""),
            jwt_secret=os.getenv("JWT_SECRET", ""),
            webhook_secret=os.getenv("WEBHOOK_SECRET", ""),
            kv_path=os.getenv("KV_PATH", ""),
            telegram_api_url=os.getenv("TELEGRAM_API_URL", "https://api.telegram.org").rstrip("/"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_env_int("PORT", 8787),
            debug=_env_bool("DEBUG", False),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
