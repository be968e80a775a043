"""Client-visible payloads for halted and failed requests."""

from typing import Any, Dict, List

from .config import get_settings


def validation_error(issues: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Body for a request that failed schema validation."""
    return {
        "message": get_settings().validation_message,
        "issues": issues,
    }


def unexpected_error() -> Dict[str, Any]:
    """Generic body for any failure whose detail must stay server-side."""
    return {"message": get_settings().error_message}
