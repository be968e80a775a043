"""Turns a compiled pipeline into a host-server request handler."""

import logging
from typing import Any, Iterable, Optional

from fastapi.encoders import jsonable_encoder

from .errors import MissingFinalMiddlewareError
from .pipeline.base import run_stages, stage_name
from .pipeline.context import Halt, empty_context, readonly, to_final_result
from .responses import unexpected_error

logger = logging.getLogger(__name__)


class RouteDispatcher:
    """
    Request handler for one route: stages, then finalware, then exactly one response.

    Per request:
        Start -> stages -> Halt -> send halt status/body
                        -> Continue -> finalware -> send {"data": ...}
        any exception -> log -> 500 with a generic body

    The finalware receives the merged context only, without a ``next``
    marker: reaching the finalware already means every stage continued.
    A finalware for GET /items?page=2 behind query_schema sees
    {"query": {"page": 2}}.

    The stage tuple is captured at construction, so later builder values
    never change a registered route.
    """

    def __init__(self, stages: Iterable[Any], finalware: Optional[Any], route: str = ""):
        self.stages = tuple(stages)
        self.finalware = finalware
        self.route = route

    async def __call__(self, request: Any, response: Any) -> None:
        try:
            status_code, body = await self._run(request, response)
            body = jsonable_encoder(body)
        except Exception as e:
            logger.error(f"Unhandled error in pipeline {self.route}: {e}", exc_info=True)
            status_code, body = 500, unexpected_error()

        if response.sent:
            logger.warning(f"Response for {self.route} already sent by a stage, dropping {status_code}")
            return
        response.set_status(status_code).send(body)

    async def _run(self, request: Any, response: Any):
        result = await run_stages(self.stages, empty_context(), request, response)

        if isinstance(result, Halt):
            return result.status_code, result.body

        if self.finalware is None:
            raise MissingFinalMiddlewareError()

        name = stage_name(self.finalware)
        final = to_final_result(
            await self.finalware(readonly(result.fragment), request, response), name
        )
        return final.status_code, {"data": final.data}

    def __repr__(self) -> str:
        return f"RouteDispatcher({self.route}, stages={[stage_name(s) for s in self.stages]})"
