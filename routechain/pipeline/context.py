"""Per-request context and the result shapes stages hand back to the executor."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from ..errors import MalformedStageResultError

# Control field used by stages that return plain mappings instead of
# Continue/Halt instances.
NEXT = "next"
STATUS_CODE = "status_code"
DATA = "data"

Context = Dict[str, Any]


def _is_status(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def empty_context() -> Context:
    """Fresh context for a single request."""
    return {}


def merge_context(context: Mapping[str, Any], fragment: Mapping[str, Any]) -> Context:
    """
    Return a new context with the fragment shallow-merged on top.

    Later fragments win on key collision. Neither input is mutated.
    """
    merged = dict(context)
    merged.update(fragment)
    return merged


def readonly(context: Mapping[str, Any]) -> Mapping[str, Any]:
    """Read-only view handed to stages so they return fragments instead of mutating."""
    return MappingProxyType(dict(context))


@dataclass(frozen=True)
class Continue:
    """Stage succeeded; its fragment is merged into the running context."""

    fragment: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.fragment, Mapping):
            raise MalformedStageResultError(result=self.fragment)
        fragment = dict(self.fragment)
        if NEXT in fragment:
            if fragment[NEXT] is not True:
                raise MalformedStageResultError(result=self.fragment)
            del fragment[NEXT]
        object.__setattr__(self, "fragment", fragment)

    @property
    def next(self) -> bool:
        return True


@dataclass(frozen=True)
class Halt:
    """Stage stopped the pipeline; status and body become the HTTP response."""

    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not _is_status(self.status_code) or not isinstance(self.body, Mapping):
            raise MalformedStageResultError(result=self)

    @property
    def next(self) -> bool:
        return False


@dataclass(frozen=True)
class FinalResult:
    """What a finalware returns: the status code and the payload sent as ``data``."""

    status_code: int
    data: Any = None

    def __post_init__(self):
        if not _is_status(self.status_code):
            raise MalformedStageResultError(result=self)


def to_stage_result(result: Any, stage_name: str = ""):
    """
    Normalize a stage's return value into Continue or Halt.

    Accepts Continue/Halt instances or mappings carrying a boolean ``next``
    key (``status_code`` is then required when ``next`` is False).

    Raises:
        MalformedStageResultError: If the result fits neither shape.
    """
    if isinstance(result, (Continue, Halt)):
        return result

    if not isinstance(result, Mapping):
        raise MalformedStageResultError(stage_name, result)

    flag = result.get(NEXT)
    if not isinstance(flag, bool):
        raise MalformedStageResultError(stage_name, result)

    rest = {key: value for key, value in result.items() if key != NEXT}
    if flag:
        return Continue(rest)

    status_code = rest.pop(STATUS_CODE, None)
    if not _is_status(status_code):
        raise MalformedStageResultError(stage_name, result)
    return Halt(status_code, rest)


def to_final_result(result: Any, stage_name: str = "") -> FinalResult:
    """Normalize a finalware's return value into a FinalResult."""
    if isinstance(result, FinalResult):
        return result

    if isinstance(result, Mapping) and _is_status(result.get(STATUS_CODE)) and DATA in result:
        return FinalResult(result[STATUS_CODE], result[DATA])

    raise MalformedStageResultError(stage_name, result)


def describe(result: Optional[Any]) -> str:
    """Short label for logging a stage outcome."""
    if isinstance(result, Halt):
        return f"halt({result.status_code})"
    if isinstance(result, Continue):
        return f"continue({', '.join(sorted(result.fragment)) or '-'})"
    return repr(result)
