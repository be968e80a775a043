"""Fluent, immutable builder for FastAPI request pipelines.

    from routechain import create_pipeline, Continue, Halt, FinalResult

    pipeline = create_pipeline(app)
    pipeline.query_schema(Page).path("/items").get(list_items).build()
"""

from .pipeline import Context, Continue, FinalResult, Halt, Link, Stage, run_stages
from .pipeline.builder import Endpoint, HttpVerb, PipelineBuilder, create_pipeline
from .dispatcher import RouteDispatcher
from .errors import (
    ConfigurationError,
    MalformedStageResultError,
    MissingFinalMiddlewareError,
    ResponseAlreadySentError,
    RouteChainError,
)
from .server import FastAPIServer, HostServer, PipelineRequest, PipelineResponse
from .validation import Issue, PydanticSchema, SchemaValidationError

__all__ = [
    "ConfigurationError",
    "Context",
    "Continue",
    "Endpoint",
    "FastAPIServer",
    "FinalResult",
    "Halt",
    "HostServer",
    "HttpVerb",
    "Issue",
    "Link",
    "MalformedStageResultError",
    "MissingFinalMiddlewareError",
    "PipelineBuilder",
    "PipelineRequest",
    "PipelineResponse",
    "PydanticSchema",
    "ResponseAlreadySentError",
    "RouteChainError",
    "RouteDispatcher",
    "SchemaValidationError",
    "Stage",
    "create_pipeline",
    "run_stages",
]
