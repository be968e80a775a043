"""API key stage for routes that require authentication."""

import secrets
from typing import Any, Iterable, List, Mapping, Optional

from ...config import get_settings
from ..base import Stage
from ..context import Continue, Halt

API_KEY = "api_key"


# ============================================================================
# Security Utilities
# ============================================================================

def constant_time_compare(val1: str, val2: str) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks.

    Args:
        val1: First string to compare
        val2: Second string to compare

    Returns:
        True if strings are equal, False otherwise
    """
    return secrets.compare_digest(val1.encode(), val2.encode())


def validate_api_key(api_key: str, valid_keys: Iterable[str]) -> bool:
    """
    Validate an API key against a list of valid keys.

    An empty key list rejects every request.
    """
    for valid_key in valid_keys:
        if constant_time_compare(api_key, valid_key):
            return True
    return False


# ============================================================================
# Stage
# ============================================================================

class APIKeyStage(Stage):
    """
    Check the API key header and publish the key as ``context["api_key"]``.

    Halts with 401 when the header is missing or the key is not accepted.
    Keys default to the API_KEYS environment variable, read per request.
    """

    def __init__(self, header: str = "X-API-Key", valid_keys: Optional[List[str]] = None):
        self.header = header
        self.valid_keys = valid_keys

    @property
    def name(self) -> str:
        return "APIKeyStage"

    async def execute(self, context: Mapping[str, Any], request: Any, response: Any):
        api_key = request.headers.get(self.header)

        if not api_key:
            response.set_header("WWW-Authenticate", "ApiKey")
            return Halt(401, {"message": f"Missing API key. Please provide {self.header} header."})

        valid_keys = self.valid_keys if self.valid_keys is not None else get_settings().api_keys
        if not validate_api_key(api_key, valid_keys):
            response.set_header("WWW-Authenticate", "ApiKey")
            return Halt(401, {"message": "Invalid API key"})

        return Continue({API_KEY: api_key})


def api_key_stage(header: str = "X-API-Key", valid_keys: Optional[List[str]] = None) -> APIKeyStage:
    return APIKeyStage(header, valid_keys)
