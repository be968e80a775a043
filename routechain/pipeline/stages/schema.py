"""Stage that validates one request attribute against a schema."""

import logging
from typing import Any, Mapping, Optional

from ...config import get_settings
from ...responses import unexpected_error, validation_error
from ...validation import as_schema, is_validation_error, normalize_issues
from ..base import Stage
from ..context import Continue, Halt

logger = logging.getLogger(__name__)

BODY = "body"
QUERY = "query"
PARAMS = "params"


class SchemaStage(Stage):
    """
    Validate ``request.<attribute>`` and publish the parsed value as ``context[attribute]``.

    Structured validation failures halt with the configured status code
    (400 unless overridden) and the list of issues. Any other exception
    raised while parsing halts with a generic 500; the detail is logged,
    never sent.
    """

    def __init__(self, attribute: str, schema: Any, status_code: Optional[int] = None):
        self.attribute = attribute
        self.schema = as_schema(schema)
        self.status_code = status_code

    @property
    def name(self) -> str:
        return f"SchemaStage({self.attribute})"

    async def execute(self, context: Mapping[str, Any], request: Any, response: Any):
        try:
            value = getattr(request, self.attribute)
            parsed = self.schema.parse(value)
        except Exception as e:
            if is_validation_error(e):
                issues = normalize_issues(e)
                status_code = self.status_code or get_settings().validation_status_code
                logger.info(f"Validation of {self.attribute} failed with {len(issues)} issue(s)")
                return Halt(status_code, validation_error(issues))

            logger.error(f"Unexpected error validating {self.attribute}: {e}", exc_info=True)
            return Halt(500, unexpected_error())

        return Continue({self.attribute: parsed})


def schema_stage(attribute: str, schema: Any, status_code: Optional[int] = None) -> SchemaStage:
    """Build a validation stage for the named request attribute."""
    return SchemaStage(attribute, schema, status_code)
