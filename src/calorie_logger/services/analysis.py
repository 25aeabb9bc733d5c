"""Meal analysis via a generative model with structured output."""

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Protocol

import pydantic
from pydantic import TypeAdapter

from calorie_logger.domain.entries import FoodEntry
from calorie_logger.errors import (
    AnalysisInProgressError,
    ConfigurationError,
    UpstreamFormatError,
)
from calorie_logger.services.images import to_data_url

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are a nutritional expert AI. Your task is to analyze a user's description "
    "or image of a meal and return a structured JSON object containing a list of "
    "food items with their nutritional information. Be as accurate as possible. "
    "If a quantity isn't specified, make a reasonable estimate based on common "
    "portion sizes. Your response MUST conform to the provided JSON schema."
)

DEFAULT_IMAGE_PROMPT = "Analyze this meal."

TEXT_FORMAT_ERROR = (
    "Could not analyze the food entry. The model returned an invalid format."
)
IMAGE_FORMAT_ERROR = "Could not analyze the image. The model returned an invalid format."

FOOD_ENTRY_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "foodItem": {"type": "string", "description": "Name of the food item."},
        "quantity": {
            "type": "string",
            "description": 'Quantity of the food item (e.g., "1 slice", "100g").',
        },
        "calories": {
            "type": "integer",
            "minimum": 0,
            "description": "Estimated calories for the item.",
        },
        "protein": {
            "type": "integer",
            "minimum": 0,
            "description": "Estimated protein in grams.",
        },
        "carbs": {
            "type": "integer",
            "minimum": 0,
            "description": "Estimated carbohydrates in grams.",
        },
        "fats": {
            "type": "integer",
            "minimum": 0,
            "description": "Estimated fat in grams.",
        },
        "healthRating": {
            "type": "integer",
            "minimum": 1,
            "maximum": 10,
            "description": (
                "A health rating from 1 (unhealthy) to 10 (very healthy), "
                "considering processing, sugar, and nutrients."
            ),
        },
    },
    "required": [
        "foodItem",
        "quantity",
        "calories",
        "protein",
        "carbs",
        "fats",
        "healthRating",
    ],
    "additionalProperties": False,
}

# Strict structured output needs an object root, so the entry array is wrapped.
ANALYSIS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {"entries": {"type": "array", "items": FOOD_ENTRY_SCHEMA}},
    "required": ["entries"],
    "additionalProperties": False,
}

_ENTRIES_ADAPTER: TypeAdapter[list[FoodEntry]] = TypeAdapter(list[FoodEntry])


class AnalysisClient(Protocol):
    """Interface for generative model calls."""

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
        """Return the raw text produced by the model."""


@dataclass
class AnalysisService:
    """Turns meal descriptions and photos into food entries."""

    client: AnalysisClient
    model: str
    reasoning_effort: str | None
    store: bool
    _in_flight: bool = field(default=False, init=False, repr=False)

    async def analyze_text(self, text: str, credential: str | None) -> list[FoodEntry]:
        """Analyze a free-text meal description."""
        api_key = _require_credential(credential)
        with self._single_flight():
            raw = await self.client.generate(
                credential=api_key,
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                prompt=text,
                instructions=SYSTEM_INSTRUCTION,
                schema=ANALYSIS_SCHEMA,
            )
        return parse_entries(raw, TEXT_FORMAT_ERROR)

    async def analyze_image(
        self,
        image_bytes: bytes,
        mime_type: str | None,
        credential: str | None,
        prompt: str = DEFAULT_IMAGE_PROMPT,
    ) -> list[FoodEntry]:
        """Analyze a meal photo with an accompanying prompt."""
        api_key = _require_credential(credential)
        with self._single_flight():
            raw = await self.client.generate(
                credential=api_key,
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                prompt=prompt or DEFAULT_IMAGE_PROMPT,
                instructions=SYSTEM_INSTRUCTION,
                image_data_url=to_data_url(image_bytes, mime_type),
                schema=ANALYSIS_SCHEMA,
            )
        return parse_entries(raw, IMAGE_FORMAT_ERROR)

    async def get_feedback(
        self, entries: list[FoodEntry], credential: str | None
    ) -> str:
        """Ask the model for one sentence of feedback on a meal."""
        api_key = _require_credential(credential)
        raw = await self.client.generate(
            credential=api_key,
            model=self.model,
            reasoning_effort=self.reasoning_effort,
            store=self.store,
            prompt=feedback_prompt(entries),
        )
        feedback = raw.strip()
        if not feedback:
            raise UpstreamFormatError("The model returned no feedback.")
        return feedback

    @property
    def in_flight(self) -> bool:
        """Return True while an analysis request is running."""
        return self._in_flight

    @contextmanager
    def _single_flight(self) -> Iterator[None]:
        if self._in_flight:
            raise AnalysisInProgressError(
                "A meal is already being analyzed. Please wait for it to finish."
            )
        self._in_flight = True
        try:
            yield
        finally:
            self._in_flight = False


def feedback_prompt(entries: list[FoodEntry]) -> str:
    """Build the feedback request for a logged meal."""
    meal_details = ", ".join(
        f"{entry.quantity} of {entry.food_item} ({entry.calories} kcal)"
        for entry in entries
    )
    return (
        f"I just ate the following meal: {meal_details}. Give me one brief, "
        "actionable, and encouraging piece of nutritional feedback in a single "
        "sentence. For example, mention if it's a good source of protein, high in "
        "sugar, or suggest a simple improvement for next time."
    )


def parse_entries(raw: str, error_message: str = TEXT_FORMAT_ERROR) -> list[FoodEntry]:
    """Decode model output into food entries.

    Accepts either ``{"entries": [...]}`` or a bare JSON array.
    """
    text = (raw or "").strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[-1].rsplit("```", 1)[0].strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("Failed to parse model response: %r", raw)
        raise UpstreamFormatError(error_message) from exc
    if isinstance(data, dict) and "entries" in data:
        data = data["entries"]
    if not isinstance(data, list):
        logger.warning("Model response is not a list of entries: %r", raw)
        raise UpstreamFormatError(error_message)
    try:
        entries = _ENTRIES_ADAPTER.validate_python(data)
    except pydantic.ValidationError as exc:
        logger.warning("Model response failed schema validation: %s", exc)
        raise UpstreamFormatError(error_message) from exc
    return [entry.model_copy(update={"image": None}) for entry in entries]


def _require_credential(credential: str | None) -> str:
    if not credential:
        raise ConfigurationError("API Key is not configured.")
    return credential
