"""Configuration for routechain pipelines."""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# ============================================================================
# Defaults
# ============================================================================

DEFAULT_VALIDATION_STATUS = 400
DEFAULT_ERROR_MESSAGE = "Something went wrong."
DEFAULT_VALIDATION_MESSAGE = "Invalid request"
DEFAULT_LOG_LEVEL = "INFO"


def get_int(env_var: str, default: int) -> int:
    """Get an integer from environment or return default."""
    try:
        return int(os.getenv(env_var, default))
    except ValueError:
        logger.warning(f"Invalid {env_var}, using default {default}")
        return default


def get_list(env_var: str) -> List[str]:
    """Read a comma-separated list from the environment, dropping blanks."""
    raw = os.getenv(env_var, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


# ============================================================================
# Settings
# ============================================================================

@dataclass(frozen=True)
class Settings:
    """Runtime settings for validation stages, the dispatcher and auth."""

    validation_status_code: int = DEFAULT_VALIDATION_STATUS
    error_message: str = DEFAULT_ERROR_MESSAGE
    validation_message: str = DEFAULT_VALIDATION_MESSAGE
    api_keys: List[str] = field(default_factory=list)
    log_level: str = DEFAULT_LOG_LEVEL


def get_settings() -> Settings:
    """
    Build settings from the current environment.

    Read on every call so that per-process overrides (and monkeypatched
    test environments) are picked up without a reload.
    """
    return Settings(
        validation_status_code=get_int("PIPELINE_VALIDATION_STATUS", DEFAULT_VALIDATION_STATUS),
        error_message=os.getenv("PIPELINE_ERROR_MESSAGE", DEFAULT_ERROR_MESSAGE),
        validation_message=os.getenv("PIPELINE_VALIDATION_MESSAGE", DEFAULT_VALIDATION_MESSAGE),
        api_keys=get_list("API_KEYS"),
        log_level=os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
    )


def configure_logging(level: Optional[str] = None) -> None:
    """Apply LOG_LEVEL (or an explicit level) to the root logger."""
    level = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
