"""Host server interface and its FastAPI implementation.

A pipeline only needs three things from the web framework:
- a way to register ``handler(request, response)`` for a verb and path
- a request exposing named attributes (body, query, params, headers...)
- a response handle with ``set_status(code).send(body)``

``FastAPIServer`` provides them on top of a FastAPI app or APIRouter.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, runtime_checkable

from fastapi import APIRouter, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from .errors import ConfigurationError, ResponseAlreadySentError

logger = logging.getLogger(__name__)

Handler = Callable[["PipelineRequest", "PipelineResponse"], Awaitable[None]]


# ============================================================================
# Request / Response handles
# ============================================================================

class PipelineRequest:
    """Framework-neutral view of one incoming request."""

    def __init__(
        self,
        body: Any = None,
        query: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        cookies: Optional[Dict[str, str]] = None,
        method: str = "GET",
        path: str = "/",
        raw: Any = None,
    ):
        self.body = body
        self.query = query or {}
        self.params = params or {}
        self.headers = headers or {}
        self.cookies = cookies or {}
        self.method = method
        self.path = path
        self.raw = raw

    @classmethod
    async def from_starlette(cls, request: Request) -> "PipelineRequest":
        """Read the body once and snapshot everything stages may ask for."""
        return cls(
            body=parse_body(await request.body()),
            query=parse_query(request.query_params.multi_items()),
            params=dict(request.path_params),
            headers=request.headers,
            cookies=dict(request.cookies),
            method=request.method,
            path=request.url.path,
            raw=request,
        )

    def __repr__(self) -> str:
        return f"PipelineRequest({self.method} {self.path})"


def parse_body(raw: bytes) -> Any:
    """JSON-decode a request body; empty is None, non-JSON stays as text."""
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return raw.decode("utf-8", errors="replace")


def parse_query(items: List[tuple]) -> Dict[str, Any]:
    """Collapse query items into a dict; repeated keys become lists."""
    query: Dict[str, Any] = {}
    for key, value in items:
        if key not in query:
            query[key] = value
        elif isinstance(query[key], list):
            query[key].append(value)
        else:
            query[key] = [query[key], value]
    return query


class PipelineResponse:
    """Response handle. Sends at most once; a second send raises."""

    def __init__(self):
        self.status_code = 200
        self.body: Any = None
        self.headers: Dict[str, str] = {}
        self.cookies: List[Dict[str, Any]] = []
        self.sent = False

    def set_status(self, code: int) -> "PipelineResponse":
        self.status_code = code
        return self

    def set_header(self, name: str, value: str) -> "PipelineResponse":
        self.headers[name] = value
        return self

    def set_cookie(self, key: str, value: str = "", **kwargs: Any) -> "PipelineResponse":
        self.cookies.append({"key": key, "value": value, **kwargs})
        return self

    def send(self, body: Any = None) -> None:
        if self.sent:
            raise ResponseAlreadySentError(
                f"Response already sent with status {self.status_code}"
            )
        self.body = body
        self.sent = True

    def to_starlette(self) -> JSONResponse:
        response = JSONResponse(
            content=jsonable_encoder(self.body),
            status_code=self.status_code,
            headers=self.headers,
        )
        for cookie in self.cookies:
            response.set_cookie(**cookie)
        return response


# ============================================================================
# Host servers
# ============================================================================

@runtime_checkable
class HostServer(Protocol):
    def register(self, method: str, path: str, handler: Handler) -> Any:
        ...


class FastAPIServer:
    """Registers pipeline handlers as FastAPI routes."""

    def __init__(self, app: Any):
        self.app = app

    def register(self, method: str, path: str, handler: Handler) -> Callable[[Request], Awaitable[JSONResponse]]:
        async def endpoint(request: Request) -> JSONResponse:
            pipeline_request = await PipelineRequest.from_starlette(request)
            pipeline_response = PipelineResponse()
            await handler(pipeline_request, pipeline_response)
            return pipeline_response.to_starlette()

        route_name = f"{method.lower()}_{path.strip('/').replace('/', '_') or 'root'}"
        endpoint.__name__ = route_name
        self.app.add_api_route(path, endpoint, methods=[method.upper()], name=route_name)
        logger.info(f"Registered route {method.upper()} {path}")
        return endpoint


def as_host_server(server: Any) -> HostServer:
    """Accept a HostServer as-is, or wrap a FastAPI app / APIRouter."""
    if isinstance(server, (FastAPI, APIRouter)):
        return FastAPIServer(server)
    if callable(getattr(server, "register", None)):
        return server
    raise ConfigurationError(
        f"Unsupported server {type(server).__name__}: expected a FastAPI app, APIRouter or an object with register()"
    )
