"""Pipeline-first architecture for request handling.

This module provides a pipeline abstraction where:
- Each stage is an async callable returning Continue(fragment) or Halt(status, body)
- Stages run strictly in order; the first Halt stops the run
- Fragments are shallow-merged into a per-request context (last write wins)
- A list of stages can be compiled into a Link and reused as a single stage
"""

from .base import Link, Stage, StageResult, run_stages, stage_name
from .context import Context, Continue, FinalResult, Halt, merge_context

__all__ = [
    "Context",
    "Continue",
    "FinalResult",
    "Halt",
    "Link",
    "Stage",
    "StageResult",
    "merge_context",
    "run_stages",
    "stage_name",
]
