import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, Tuple, Union

from .context import (
    Context,
    Continue,
    Halt,
    describe,
    empty_context,
    merge_context,
    readonly,
    to_stage_result,
)

logger = logging.getLogger(__name__)

StageResult = Union[Continue, Halt]
StageCallable = Callable[[Mapping[str, Any], Any, Any], Awaitable[Any]]


class Stage(ABC):
    """Base class for class-based stages. Must be async and return a fragment, never mutate the context."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def execute(self, context: Mapping[str, Any], request: Any, response: Any) -> StageResult:
        """
        Execute stage logic and return Continue(fragment) or Halt(status, body).

        NEVER mutate the input context. Return the keys to add instead.
        """
        pass

    async def __call__(self, context: Mapping[str, Any], request: Any, response: Any) -> StageResult:
        return await self.execute(context, request, response)


def stage_name(stage: Any) -> str:
    """Best-effort human readable name for logs and repr."""
    name = getattr(stage, "name", None)
    if isinstance(name, str):
        return name
    return getattr(stage, "__qualname__", type(stage).__name__)


async def run_stages(
    stages: Iterable[Any],
    context: Optional[Mapping[str, Any]],
    request: Any,
    response: Any,
) -> StageResult:
    """
    Run stages strictly in order against one request.

    Each Continue fragment is merged into the running context (later keys
    win). The first Halt is returned unchanged and no later stage runs.
    When every stage continues the merged context comes back as a Continue,
    so the outcome is shaped exactly like a single stage's result.

    Raises:
        MalformedStageResultError: If a stage breaks the result contract.
    """
    current: Context = merge_context(empty_context(), context or {})
    for stage in stages:
        name = stage_name(stage)
        logger.debug(f"Running stage {name}")
        result = to_stage_result(await stage(readonly(current), request, response), name)
        if isinstance(result, Halt):
            logger.info(f"Stage {name} halted pipeline with status {result.status_code}")
            return result
        logger.debug(f"Stage {name} -> {describe(result)}")
        current = merge_context(current, result.fragment)
    return Continue(current)


class Link:
    """Chain of stages compiled into one reusable stage. Immutable - the stage tuple is frozen at build time."""

    def __init__(self, stages: Iterable[Any] = (), name: Optional[str] = None):
        self.stages: Tuple[Any, ...] = tuple(stages)
        self._name = name

    @property
    def name(self) -> str:
        if self._name:
            return self._name
        return f"Link[{', '.join(stage_name(s) for s in self.stages)}]"

    async def __call__(self, context: Mapping[str, Any], request: Any, response: Any) -> StageResult:
        return await run_stages(self.stages, context, request, response)

    def __len__(self) -> int:
        return len(self.stages)

    def __bool__(self) -> bool:
        return True

    def __repr__(self) -> str:
        stage_names = [stage_name(s) for s in self.stages]
        return f"Link(stages={stage_names})"
