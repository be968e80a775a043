"""Test the route dispatcher: one response per request on every path.

Scenarios:
- All stages continue -> finalware response
- A stage halts -> halt payload, nothing after it runs
- Any stage or the finalware raises -> generic 500
- Malformed results and missing finalware -> generic 500
- A stage that already sent a response is not answered twice
"""

import logging
from datetime import date

import pytest

from routechain.dispatcher import RouteDispatcher
from routechain.errors import ResponseAlreadySentError
from routechain.pipeline.context import Continue, FinalResult, Halt
from routechain.server import PipelineResponse
from tests.fixtures.test_helpers import (
    RecordingStage,
    continue_with,
    final_with,
    halt_with,
    make_request,
    raising,
)

GENERIC_500 = {"message": "Something went wrong."}


async def dispatch(stages, finalware, request=None):
    response = PipelineResponse()
    await RouteDispatcher(stages, finalware, route="GET /test")(request or make_request(), response)
    return response


class TestHappyPath:
    """Test suite for pipelines that reach the finalware."""

    @pytest.mark.asyncio
    async def test_finalware_receives_merged_context(self):
        final = final_with(201, {"id": 7})
        response = await dispatch(
            [continue_with("a", user="alice", role="user"), continue_with("b", role="admin")],
            final,
        )

        assert final.seen == [{"user": "alice", "role": "admin"}]
        assert response.sent
        assert response.status_code == 201
        assert response.body == {"data": {"id": 7}}

    @pytest.mark.asyncio
    async def test_no_stages(self):
        final = final_with(200, "pong")
        response = await dispatch([], final)
        assert final.seen == [{}]
        assert response.body == {"data": "pong"}

    @pytest.mark.asyncio
    async def test_finalware_mapping_result(self):
        async def final(context, request, response):
            return {"status_code": 202, "data": ["queued"]}

        response = await dispatch([], final)
        assert response.status_code == 202
        assert response.body == {"data": ["queued"]}

    @pytest.mark.asyncio
    async def test_stage_side_effects_reach_response(self):
        async def set_cookie(context, request, response):
            response.set_cookie("session", "abc")
            return Continue({})

        response = await dispatch([set_cookie], final_with(200, None))
        assert response.cookies == [{"key": "session", "value": "abc"}]
        assert response.status_code == 200


class TestHalt:
    """Test suite for halted pipelines."""

    @pytest.mark.asyncio
    async def test_halt_payload_sent_exactly(self):
        final = final_with(200, None)
        after = continue_with("after")
        body = {"message": "Forbidden", "reason": "role"}

        response = await dispatch([continue_with("a"), halt_with("guard", 403, body), after], final)

        assert response.status_code == 403
        assert response.body == body
        assert after.calls == 0
        assert final.calls == 0

    @pytest.mark.asyncio
    async def test_halt_from_mapping_strips_control_fields(self):
        async def guard(context, request, response):
            return {"next": False, "status_code": 429, "message": "Slow down"}

        response = await dispatch([guard], final_with(200, None))
        assert response.status_code == 429
        assert response.body == {"message": "Slow down"}


class TestFailures:
    """Test suite for failures converted into 500 responses."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("position", [0, 1, 2])
    async def test_stage_exception_at_any_position(self, position):
        stages = [continue_with("a"), continue_with("b"), continue_with("c")]
        stages[position] = raising(RuntimeError("connection refused: 10.0.0.5"))

        response = await dispatch(stages, final_with(200, None))

        assert response.status_code == 500
        assert response.body == GENERIC_500

    @pytest.mark.asyncio
    async def test_finalware_exception(self):
        response = await dispatch([continue_with("a")], raising(ValueError("boom")))
        assert response.status_code == 500
        assert response.body == GENERIC_500

    @pytest.mark.asyncio
    async def test_malformed_stage_result(self):
        final = final_with(200, None)
        response = await dispatch([RecordingStage("broken", None)], final)
        assert response.status_code == 500
        assert final.calls == 0

    @pytest.mark.asyncio
    async def test_malformed_final_result(self):
        response = await dispatch([], RecordingStage("final", {"data": 1}))
        assert response.status_code == 500
        assert response.body == GENERIC_500

    @pytest.mark.asyncio
    async def test_halt_with_string_status_is_logged_500(self, caplog):
        async def guard(context, request, response):
            return Halt("403", {"message": "no"})

        with caplog.at_level(logging.ERROR, logger="routechain.dispatcher"):
            response = await dispatch([guard], final_with(200, None))

        assert response.status_code == 500
        assert response.body == GENERIC_500
        assert "GET /test" in caplog.text

    @pytest.mark.asyncio
    async def test_final_result_with_string_status_is_500(self):
        async def final(context, request, response):
            return FinalResult("200", {"id": 1})

        response = await dispatch([], final)
        assert response.status_code == 500
        assert response.body == GENERIC_500

    @pytest.mark.asyncio
    async def test_body_is_json_encoded_before_send(self):
        async def final(context, request, response):
            return FinalResult(200, {"due": date(2024, 1, 2)})

        response = await dispatch([], final)
        assert response.body == {"data": {"due": "2024-01-02"}}

    @pytest.mark.asyncio
    async def test_missing_finalware(self):
        response = await dispatch([continue_with("a")], None)
        assert response.status_code == 500
        assert response.body == GENERIC_500

    @pytest.mark.asyncio
    async def test_missing_finalware_irrelevant_when_halted(self):
        response = await dispatch([halt_with("guard", 401, {"message": "no"})], None)
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_failure_is_logged_with_detail(self, caplog):
        with caplog.at_level(logging.ERROR, logger="routechain.dispatcher"):
            await dispatch([raising(RuntimeError("connection refused: 10.0.0.5"))], final_with(200, None))

        assert "connection refused: 10.0.0.5" in caplog.text
        assert "GET /test" in caplog.text

    @pytest.mark.asyncio
    async def test_custom_error_message(self, monkeypatch):
        monkeypatch.setenv("PIPELINE_ERROR_MESSAGE", "Internal error")
        response = await dispatch([raising(RuntimeError("x"))], final_with(200, None))
        assert response.body == {"message": "Internal error"}


class TestSingleResponse:
    """Test suite for the at-most-once response guarantee."""

    @pytest.mark.asyncio
    async def test_stage_that_sent_is_not_answered_again(self):
        async def early_reply(context, request, response):
            response.set_status(304).send(None)
            return Continue({})

        final = final_with(200, "fresh")
        response = await dispatch([early_reply], final)

        assert response.status_code == 304
        assert response.body is None

    def test_second_send_raises(self):
        response = PipelineResponse()
        response.set_status(200).send({"ok": True})
        with pytest.raises(ResponseAlreadySentError):
            response.send({"ok": False})
        assert response.body == {"ok": True}
