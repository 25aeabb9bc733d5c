"""Tests for the meal analysis service."""

import asyncio
import json

import pytest

from calorie_logger.errors import (
    AnalysisInProgressError,
    ConfigurationError,
    UpstreamFormatError,
)
from calorie_logger.services.analysis import (
    ANALYSIS_SCHEMA,
    SYSTEM_INSTRUCTION,
    AnalysisService,
    feedback_prompt,
    parse_entries,
)
from tests.conftest import FakeAnalysisClient, make_entry


def _service(client: FakeAnalysisClient) -> AnalysisService:
    return AnalysisService(
        client=client, model="gpt-5.2", reasoning_effort="low", store=False
    )


def test_analyze_text_returns_entries() -> None:
    client = FakeAnalysisClient()

    entries = asyncio.run(_service(client).analyze_text("an apple", "sk-test"))

    assert entries == [make_entry()]
    call = client.calls[0]
    assert call["credential"] == "sk-test"
    assert call["prompt"] == "an apple"
    assert call["instructions"] == SYSTEM_INSTRUCTION
    assert call["schema"] == ANALYSIS_SCHEMA
    assert call["image_data_url"] is None


def test_analyze_text_requires_credential() -> None:
    client = FakeAnalysisClient()

    with pytest.raises(ConfigurationError):
        asyncio.run(_service(client).analyze_text("an apple", None))

    assert client.calls == []


def test_analyze_text_rejects_non_json() -> None:
    client = FakeAnalysisClient(payload="not json")

    with pytest.raises(UpstreamFormatError, match="invalid format"):
        asyncio.run(_service(client).analyze_text("an apple", "sk-test"))


def test_analyze_image_sends_data_url_and_prompt() -> None:
    client = FakeAnalysisClient()

    asyncio.run(
        _service(client).analyze_image(
            b"\x89PNG\r\n\x1a\nrest", "image/png", "sk-test", "lunch"
        )
    )

    call = client.calls[0]
    assert call["prompt"] == "lunch"
    assert str(call["image_data_url"]).startswith("data:image/png;base64,")


def test_analyze_image_invalid_format_message() -> None:
    client = FakeAnalysisClient(payload="{}")

    with pytest.raises(UpstreamFormatError, match="analyze the image"):
        asyncio.run(_service(client).analyze_image(b"img", None, "sk-test"))


def test_second_analysis_is_rejected_while_first_in_flight() -> None:
    class SlowClient(FakeAnalysisClient):
        async def generate(self, **kwargs):  # type: ignore[no-untyped-def]
            await asyncio.sleep(0.01)
            return await super().generate(**kwargs)

    service = _service(SlowClient())

    async def run_both():
        return await asyncio.gather(
            service.analyze_text("first", "sk-test"),
            service.analyze_text("second", "sk-test"),
            return_exceptions=True,
        )

    first, second = asyncio.run(run_both())

    assert first == [make_entry()]
    assert isinstance(second, AnalysisInProgressError)
    assert not service.in_flight


def test_in_flight_flag_clears_after_failure() -> None:
    service = _service(FakeAnalysisClient(error=RuntimeError("boom")))

    with pytest.raises(RuntimeError):
        asyncio.run(service.analyze_text("an apple", "sk-test"))

    assert not service.in_flight


def test_get_feedback_returns_trimmed_text() -> None:
    client = FakeAnalysisClient()

    feedback = asyncio.run(_service(client).get_feedback([make_entry()], "sk-test"))

    assert feedback == "Great choice, apples are a good source of fiber."
    assert client.calls[0]["schema"] is None
    assert "1 medium of Apple (95 kcal)" in str(client.calls[0]["prompt"])


def test_feedback_prompt_lists_every_entry() -> None:
    prompt = feedback_prompt([make_entry(), make_entry("Tea", calories=2)])

    assert "1 medium of Apple (95 kcal), 1 medium of Tea (2 kcal)" in prompt


def test_parse_entries_accepts_bare_array() -> None:
    raw = json.dumps(
        [
            {
                "foodItem": "Egg",
                "quantity": "2",
                "calories": 140,
                "protein": 12,
                "carbs": 1,
                "fats": 10,
                "healthRating": 7,
            }
        ]
    )

    entries = parse_entries(raw)

    assert entries[0].food_item == "Egg"
    assert entries[0].image is None


def test_parse_entries_strips_code_fences() -> None:
    raw = '```json\n{"entries": []}\n```'

    assert parse_entries(raw) == []


@pytest.mark.parametrize(
    "raw",
    [
        "",
        '{"items": []}',
        '{"entries": [{"foodItem": "Egg"}]}',
        json.dumps(
            [
                {
                    "foodItem": "Egg",
                    "quantity": "2",
                    "calories": 140,
                    "protein": 12,
                    "carbs": 1,
                    "fats": 10,
                    "healthRating": 11,
                }
            ]
        ),
    ],
)
def test_parse_entries_rejects_schema_mismatch(raw: str) -> None:
    with pytest.raises(UpstreamFormatError):
        parse_entries(raw)
