"""Tests for the OpenAI coach adapter."""

import asyncio
import json

import httpx
import pytest
from openai import APIConnectionError

from nutri_coach.adapters.openai_coach_client import OpenAICoachClient
from nutri_coach.services.coach import (
    CoachBackendError,
    CoachResponseError,
    ImagePart,
    TextPart,
    TurnRequest,
)


class _FakeResponses:
    def __init__(self, output_text: str = "", error: Exception | None = None) -> None:
        self.output_text = output_text
        self.error = error
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        if self.error is not None:
            raise self.error
        return type("Resp", (), {"output_text": self.output_text})()


class _FakeOpenAI:
    def __init__(self, responses: _FakeResponses) -> None:
        self.responses = responses


def _request() -> TurnRequest:
    return TurnRequest(
        system_instruction="You are a coach.",
        parts=[ImagePart(data="ZmFrZQ=="), TextPart(text="what is this?")],
    )


def test_generate_builds_structured_request() -> None:
    responses = _FakeResponses(output_text=json.dumps({"reply": "hi"}))
    client = OpenAICoachClient(client=_FakeOpenAI(responses))

    result = asyncio.run(client.generate(model="m", store=False, request=_request()))

    assert result == {"reply": "hi"}
    payload = responses.last_payload
    assert payload["instructions"] == "You are a coach."
    assert payload["temperature"] == 0.7
    assert payload["store"] is False
    assert payload["input"][0]["content"] == [
        {"type": "input_image", "image_url": "data:image/jpeg;base64,ZmFrZQ=="},
        {"type": "input_text", "text": "what is this?"},
    ]
    text_format = payload["text"]["format"]
    assert text_format["type"] == "json_schema"
    assert text_format["strict"] is True
    assert "sentiment" in text_format["schema"]["required"]


def test_generate_rejects_empty_output() -> None:
    client = OpenAICoachClient(client=_FakeOpenAI(_FakeResponses(output_text="")))

    with pytest.raises(CoachBackendError):
        asyncio.run(client.generate(model="m", store=False, request=_request()))


def test_generate_rejects_invalid_json() -> None:
    client = OpenAICoachClient(client=_FakeOpenAI(_FakeResponses(output_text="{oops")))

    with pytest.raises(CoachResponseError):
        asyncio.run(client.generate(model="m", store=False, request=_request()))


def test_generate_rejects_non_object_json() -> None:
    client = OpenAICoachClient(client=_FakeOpenAI(_FakeResponses(output_text="[1]")))

    with pytest.raises(CoachResponseError):
        asyncio.run(client.generate(model="m", store=False, request=_request()))


def test_generate_propagates_connection_errors() -> None:
    error = APIConnectionError(request=httpx.Request("POST", "https://api.test"))
    client = OpenAICoachClient(client=_FakeOpenAI(_FakeResponses(error=error)))

    with pytest.raises(APIConnectionError):
        asyncio.run(client.generate(model="m", store=False, request=_request()))


def test_create_disables_retries() -> None:
    client = OpenAICoachClient.create("key", timeout_seconds=12.0)

    assert client.client.max_retries == 0
    asyncio.run(client.close())
