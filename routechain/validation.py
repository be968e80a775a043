"""Schema validation adapter.

Stages validate request attributes through any object exposing
``parse(value) -> value`` that raises a structured error on bad input.
Pydantic models and plain type annotations are adapted through
``pydantic.TypeAdapter``; custom schemas raise ``SchemaValidationError``.
"""

from typing import Any, Dict, List, Protocol, Sequence, Union, runtime_checkable

from pydantic import BaseModel, Field, TypeAdapter, ValidationError


class Issue(BaseModel):
    """One validation problem, addressed by its location inside the input."""

    path: List[Union[str, int]] = Field(default_factory=list)
    message: str
    code: str = "invalid"


class SchemaValidationError(Exception):
    """Structured validation failure raised by custom schemas."""

    def __init__(self, issues: Sequence[Union[Issue, Dict[str, Any]]]):
        self.issues = [
            issue if isinstance(issue, Issue) else Issue.model_validate(issue)
            for issue in issues
        ]
        super().__init__("; ".join(issue.message for issue in self.issues) or "Validation failed")


@runtime_checkable
class Schema(Protocol):
    def parse(self, value: Any) -> Any:
        ...


class PydanticSchema:
    """Schema backed by a pydantic model class or any type pydantic can validate."""

    def __init__(self, target: Any):
        self.target = target
        self._adapter = TypeAdapter(target)

    def parse(self, value: Any) -> Any:
        return self._adapter.validate_python(value)

    def __repr__(self) -> str:
        return f"PydanticSchema({getattr(self.target, '__name__', self.target)!r})"


def as_schema(obj: Any) -> Schema:
    """Use objects with a ``parse`` method directly; wrap anything else with pydantic."""
    if callable(getattr(obj, "parse", None)):
        return obj
    return PydanticSchema(obj)


def is_validation_error(exc: BaseException) -> bool:
    return isinstance(exc, (ValidationError, SchemaValidationError))


def normalize_issues(exc: BaseException) -> List[Dict[str, Any]]:
    """
    Convert a structured validation error into an ordered list of issue dicts.

    Args:
        exc: pydantic ValidationError or SchemaValidationError

    Returns:
        List of {"path", "message", "code"} dicts in the order reported

    Raises:
        TypeError: If exc is not a structured validation error
    """
    if isinstance(exc, SchemaValidationError):
        return [issue.model_dump() for issue in exc.issues]

    if isinstance(exc, ValidationError):
        return [
            Issue(
                path=list(error.get("loc", ())),
                message=error.get("msg", ""),
                code=error.get("type", "invalid"),
            ).model_dump()
            for error in exc.errors(include_url=False)
        ]

    raise TypeError(f"Not a validation error: {type(exc).__name__}")
