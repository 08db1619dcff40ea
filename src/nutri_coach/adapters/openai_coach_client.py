"""OpenAI Responses API client for coaching turns."""

import json
from dataclasses import dataclass

import httpx
from openai import APIConnectionError, APIError, APITimeoutError, AsyncOpenAI

from nutri_coach.services.coach import (
    CoachBackendError,
    CoachClient,
    CoachResponseError,
    ImagePart,
    TextPart,
    TurnRequest,
)


@dataclass
class OpenAICoachClient(CoachClient):
    """Coach client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str, timeout_seconds: float) -> "OpenAICoachClient":
        """Create an OpenAI coach client with retries disabled."""
        return cls(
            client=AsyncOpenAI(
                api_key=api_key,
                timeout=httpx.Timeout(timeout_seconds, connect=10.0),
                max_retries=0,
            )
        )

    async def generate(
        self, *, model: str, store: bool, request: TurnRequest
    ) -> dict[str, object]:
        """Call OpenAI Responses API with structured outputs."""
        request_payload: dict[str, object] = {
            "model": model,
            "instructions": request.system_instruction,
            "input": [
                {
                    "role": "user",
                    "content": [_content_part(part) for part in request.parts],
                }
            ],
            "temperature": request.temperature,
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": "coach_turn",
                    "strict": True,
                    "schema": request.schema,
                }
            },
            "store": store,
        }

        try:
            response = await self.client.responses.create(**request_payload)
        except APITimeoutError as exc:
            raise TimeoutError("OpenAI request timed out") from exc
        except APIConnectionError:
            raise
        except APIError as exc:
            raise CoachBackendError(str(exc)) from exc
        output_text = response.output_text
        if not output_text:
            raise CoachBackendError("OpenAI returned an empty response")
        try:
            payload = json.loads(output_text)
        except json.JSONDecodeError as exc:
            raise CoachResponseError("OpenAI returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise CoachResponseError("OpenAI returned a non-object JSON value")
        return payload

    async def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        await self.client.close()


def _content_part(part: TextPart | ImagePart) -> dict[str, str]:
    if isinstance(part, ImagePart):
        return {"type": "input_image", "image_url": part.data_url}
    return {"type": "input_text", "text": part.text}
