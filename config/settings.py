import os
import logging
from dotenv import load_dotenv
from pydantic import BaseModel

logger = logging.getLogger(__name__)

load_dotenv()

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")
TRUTHY = ("1", "true", "yes", "on")
FALSY = ("0", "false", "no", "off")
FLAGS = ("SIGNALING_STRICT_MODE", "END_CALL_ON_CREATOR_LEAVE")


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in TRUTHY


class SignalingSettings(BaseModel):
    strict_mode: bool = False
    end_call_on_creator_leave: bool = True


def get_signaling_settings() -> SignalingSettings:
    """Read signaling behaviour flags from the environment"""
    return SignalingSettings(
        strict_mode=_env_flag("SIGNALING_STRICT_MODE", False),
        end_call_on_creator_leave=_env_flag("END_CALL_ON_CREATOR_LEAVE", True),
    )


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()


def get_allowed_origins():
    """Get allowed CORS origins; everything is allowed unless ALLOWED_ORIGINS is set"""
    env_origins = os.getenv("ALLOWED_ORIGINS", "").split(",")
    env_origins = [origin.strip() for origin in env_origins if origin.strip()]
    return env_origins or ["*"]


def is_production() -> bool:
    return os.getenv("ENVIRONMENT", "development") == "production"


def validate_environment():
    """Validate environment variables that would otherwise fail late"""
    port = os.getenv("PORT", "10000")
    if not port.isdigit():
        raise RuntimeError(f"PORT must be an integer, got {port!r}")
    if get_log_level() not in LOG_LEVELS:
        raise RuntimeError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {get_log_level()!r}")
    for name in FLAGS:
        value = os.getenv(name, "").strip().lower()
        if value and value not in TRUTHY + FALSY:
            raise RuntimeError(f"{name} must be a boolean (true/false), got {os.getenv(name)!r}")
