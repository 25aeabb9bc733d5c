"""OpenAI Responses API client for meal analysis."""

from collections.abc import Callable
from dataclasses import dataclass

import httpx
import openai
from openai import AsyncOpenAI

from calorie_logger.errors import ConfigurationError, NetworkError
from calorie_logger.services.analysis import AnalysisClient


@dataclass
class OpenAIAnalysisClient(AnalysisClient):
    """Analysis client backed by the OpenAI Responses API."""

    client_factory: Callable[[str], AsyncOpenAI]
    http_client: httpx.AsyncClient | None = None

    @classmethod
    def create(cls, timeout_seconds: float) -> "OpenAIAnalysisClient":
        """Create a client sharing one httpx session across credentials."""
        http_client = httpx.AsyncClient(timeout=timeout_seconds)

        def factory(api_key: str) -> AsyncOpenAI:
            return AsyncOpenAI(
                api_key=api_key,
                http_client=http_client,
                timeout=timeout_seconds,
                max_retries=0,
            )

        return cls(client_factory=factory, http_client=http_client)

    async def generate(  # noqa: PLR0913
        self,
        *,
        credential: str,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        instructions: str | None = None,
        image_data_url: str | None = None,
        schema: dict[str, object] | None = None,
    ) -> str:
        """Call the Responses API, optionally with structured output."""
        content: list[dict[str, object]] = []
        if image_data_url:
            content.append({"type": "input_image", "image_url": image_data_url})
        content.append({"type": "input_text", "text": prompt})
        request_payload: dict[str, object] = {
            "model": model,
            "input": [{"role": "user", "content": content}],
            "store": store,
        }
        if instructions:
            request_payload["instructions"] = instructions
        if schema is not None:
            request_payload["text"] = {
                "format": {
                    "type": "json_schema",
                    "name": "food_entries",
                    "strict": True,
                    "schema": schema,
                }
            }
        if reasoning_effort:
            request_payload["reasoning"] = {"effort": reasoning_effort}

        client = self.client_factory(credential)
        try:
            response = await client.responses.create(**request_payload)
        except openai.AuthenticationError as exc:
            raise ConfigurationError("The API key was rejected.") from exc
        except openai.APIConnectionError as exc:
            raise NetworkError(
                "Could not reach the AI service. Check your connection and try again."
            ) from exc
        except openai.APIStatusError as exc:
            raise NetworkError(
                f"The AI service returned an error ({exc.status_code})."
            ) from exc
        return response.output_text or ""

    async def close(self) -> None:
        """Close the shared HTTP session."""
        if self.http_client is not None:
            await self.http_client.aclose()
