"""Immutable fluent builder for request pipelines."""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional, Tuple

from ..dispatcher import RouteDispatcher
from ..errors import ConfigurationError
from ..server import as_host_server
from .base import Link, stage_name
from .stages.schema import BODY, PARAMS, QUERY, schema_stage

logger = logging.getLogger(__name__)


class HttpVerb(str, Enum):
    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"


@dataclass(frozen=True)
class Endpoint:
    """Handle for a registered route."""

    method: HttpVerb
    path: str
    handler: RouteDispatcher
    registration: Any = None


@dataclass(frozen=True)
class PipelineBuilder:
    """
    Append-only pipeline configuration.

    Every method returns a new builder and leaves ``self`` untouched, so a
    partially configured builder (e.g. one that already checks auth) can be
    reused as a template for any number of routes.

    Example:
        pipeline = create_pipeline(app)
        authed = pipeline.chain(require_auth)
        authed.body_schema(NewItem).path("/items").post(create_item).build()
        authed.path("/items/{item_id}").delete(delete_item).build()
    """

    server: Any
    stages: Tuple[Any, ...] = field(default_factory=tuple)
    finalware: Optional[Any] = None
    method: Optional[HttpVerb] = None
    route_path: Optional[str] = None

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _with_stage(self, stage: Any) -> "PipelineBuilder":
        if not callable(stage):
            raise ConfigurationError(f"Middleware must be an async callable, got {type(stage).__name__}")
        return replace(self, stages=self.stages + (stage,))

    def middleware(self, stage: Any) -> "PipelineBuilder":
        """Append a raw stage: async (context, request, response) -> Continue | Halt."""
        return self._with_stage(stage)

    def chain(self, link: Any) -> "PipelineBuilder":
        """Append a link from build_link() as one opaque stage."""
        return self._with_stage(link)

    def schema(self, attribute: str, schema: Any, status_code: Optional[int] = None) -> "PipelineBuilder":
        """Validate request.<attribute> and publish the parsed value under the same name."""
        return self._with_stage(schema_stage(attribute, schema, status_code))

    def body_schema(self, schema: Any) -> "PipelineBuilder":
        return self.schema(BODY, schema)

    def query_schema(self, schema: Any) -> "PipelineBuilder":
        return self.schema(QUERY, schema)

    def params_schema(self, schema: Any) -> "PipelineBuilder":
        return self.schema(PARAMS, schema)

    # ------------------------------------------------------------------
    # Route
    # ------------------------------------------------------------------

    def path(self, path: str) -> "PipelineBuilder":
        return replace(self, route_path=path)

    def _with_finalware(self, method: HttpVerb, finalware: Any) -> "PipelineBuilder":
        if not callable(finalware):
            raise ConfigurationError(f"Finalware must be an async callable, got {type(finalware).__name__}")
        return replace(self, method=method, finalware=finalware)

    def get(self, finalware: Any) -> "PipelineBuilder":
        return self._with_finalware(HttpVerb.GET, finalware)

    def post(self, finalware: Any) -> "PipelineBuilder":
        return self._with_finalware(HttpVerb.POST, finalware)

    def put(self, finalware: Any) -> "PipelineBuilder":
        return self._with_finalware(HttpVerb.PUT, finalware)

    def patch(self, finalware: Any) -> "PipelineBuilder":
        return self._with_finalware(HttpVerb.PATCH, finalware)

    def delete(self, finalware: Any) -> "PipelineBuilder":
        return self._with_finalware(HttpVerb.DELETE, finalware)

    @property
    def is_complete(self) -> bool:
        return bool(self.route_path) and self.method is not None and self.finalware is not None

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build_link(self, name: Optional[str] = None) -> Link:
        """Compile the stages (no finalware, no registration) into a reusable stage."""
        return Link(self.stages, name=name)

    def build(self) -> Endpoint:
        """
        Register the pipeline with the host server.

        Raises:
            ConfigurationError: If the path, verb or finalware is missing
        """
        if not self.route_path:
            raise ConfigurationError("path is required")
        if self.method is None or self.finalware is None:
            raise ConfigurationError(
                "A verb and finalware are required: end the chain with get/post/put/patch/delete"
            )

        route = f"{self.method.value.upper()} {self.route_path}"
        handler = RouteDispatcher(self.stages, self.finalware, route=route)
        registration = self.server.register(self.method.value, self.route_path, handler)
        logger.debug(f"Built {route} with {len(self.stages)} stage(s)")
        return Endpoint(self.method, self.route_path, handler, registration)

    def __len__(self) -> int:
        return len(self.stages)

    def __bool__(self) -> bool:
        return True

    def __repr__(self) -> str:
        stage_names = [stage_name(s) for s in self.stages]
        method = self.method.value if self.method else None
        return f"PipelineBuilder(method={method}, path={self.route_path}, stages={stage_names})"


def create_pipeline(server: Any) -> PipelineBuilder:
    """Start an empty pipeline for a FastAPI app, APIRouter or any HostServer."""
    return PipelineBuilder(server=as_host_server(server))
