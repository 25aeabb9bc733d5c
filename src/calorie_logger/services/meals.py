"""Meal logging workflow: analyze, stamp, store, then ask for feedback."""

import logging
from dataclasses import dataclass
from datetime import date

from calorie_logger.domain.entries import FoodEntry
from calorie_logger.errors import ConfigurationError, ValidationError
from calorie_logger.services.analysis import AnalysisService
from calorie_logger.services.food_log import FoodLogService
from calorie_logger.services.images import make_preview
from calorie_logger.services.notifications import NotificationQueue

logger = logging.getLogger(__name__)

IMAGE_ONLY_PROMPT = "Analyze the meal in this image."


@dataclass
class MealLoggingService:
    """Service that logs meals from text or photos."""

    analysis_service: AnalysisService
    food_log_service: FoodLogService
    notifications: NotificationQueue
    fallback_api_key: str | None = None
    preview_max_side: int = 256

    def resolve_credential(self) -> str | None:
        """Return the stored API key, falling back to the configured one."""
        return self.food_log_service.get_api_key() or self.fallback_api_key

    async def log_meal(
        self,
        text: str | None,
        image_bytes: bytes | None,
        mime_type: str | None,
        day: date,
    ) -> list[FoodEntry]:
        """Analyze a meal and append the recognized entries to ``day``."""
        description = (text or "").strip()
        if not description and not image_bytes:
            raise ValidationError("Please enter a description or upload an image.")
        credential = self.resolve_credential()
        if not credential:
            raise ConfigurationError("Please set your API key in the settings.")

        if image_bytes:
            entries = await self.analysis_service.analyze_image(
                image_bytes,
                mime_type,
                credential,
                description or IMAGE_ONLY_PROMPT,
            )
            preview = make_preview(image_bytes, self.preview_max_side)
            entries = [entry.model_copy(update={"image": preview}) for entry in entries]
        else:
            entries = await self.analysis_service.analyze_text(description, credential)

        if not entries:
            raise ValidationError(
                "Could not identify any food items. Please try again with a "
                "clearer description or image."
            )
        self.food_log_service.add_entries(entries, day)
        logger.info("Logged %d food entries for %s", len(entries), day.isoformat())
        return entries

    async def request_feedback(self, entries: list[FoodEntry]) -> str | None:
        """Fetch feedback for logged entries and queue it as a notification."""
        try:
            feedback = await self.analysis_service.get_feedback(
                entries, self.resolve_credential()
            )
        except Exception:
            logger.exception("Could not get feedback")
            return None
        self.notifications.push(feedback, "info")
        return feedback
