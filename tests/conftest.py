"""Shared test fixtures."""

import json
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from calorie_logger.config import Settings
from calorie_logger.containers import AppContainer
from calorie_logger.domain.entries import FoodEntry
from calorie_logger.services.analysis import AnalysisClient, AnalysisService
from calorie_logger.services.food_log import FoodLogService
from calorie_logger.services.meals import MealLoggingService
from calorie_logger.services.notifications import NotificationQueue
from calorie_logger.services.stats import StatsService
from calorie_logger.services.store import AppStateRepository, KeyValueStore


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """In-memory key-value store for tests."""

    values: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def remove(self, key: str) -> None:
        self.values.pop(key, None)


@dataclass
class FakeAnalysisClient(AnalysisClient):
    """Fake model client returning canned text and recording calls."""

    payload: str = field(
        default_factory=lambda: json.dumps(
            {
                "entries": [
                    {
                        "foodItem": "Apple",
                        "quantity": "1 medium",
                        "calories": 95,
                        "protein": 0,
                        "carbs": 25,
                        "fats": 0,
                        "healthRating": 9,
                    }
                ]
            }
        )
    )
    feedback: str = "  Great choice, apples are a good source of fiber.  "
    error: Exception | None = None
    feedback_error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

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
        self.calls.append(
            {
                "credential": credential,
                "model": model,
                "prompt": prompt,
                "instructions": instructions,
                "image_data_url": image_data_url,
                "schema": schema,
            }
        )
        if schema is None:
            if self.feedback_error is not None:
                raise self.feedback_error
            return self.feedback
        if self.error is not None:
            raise self.error
        return self.payload


def make_entry(  # noqa: PLR0913
    food_item: str = "Apple",
    calories: int = 95,
    protein: int = 0,
    carbs: int = 25,
    fats: int = 0,
    health_rating: int = 9,
    quantity: str = "1 medium",
) -> FoodEntry:
    """Build a food entry with sensible defaults."""
    return FoodEntry(
        food_item=food_item,
        quantity=quantity,
        calories=calories,
        protein=protein,
        carbs=carbs,
        fats=fats,
        health_rating=health_rating,
    )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        openai_api_key=None,
        storage_backend="file",
        storage_path=str(tmp_path / "store.json"),
        environment="test",
    )


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def repository(store: InMemoryKeyValueStore) -> AppStateRepository:
    return AppStateRepository(store)


@pytest.fixture
def food_log_service(repository: AppStateRepository) -> FoodLogService:
    return FoodLogService(repository)


@pytest.fixture
def analysis_client() -> FakeAnalysisClient:
    return FakeAnalysisClient()


@pytest.fixture
def analysis_service(analysis_client: FakeAnalysisClient) -> AnalysisService:
    return AnalysisService(
        client=analysis_client,
        model="gpt-5.2",
        reasoning_effort="low",
        store=False,
    )


@pytest.fixture
def notifications() -> NotificationQueue:
    return NotificationQueue()


@pytest.fixture
def meal_logging_service(
    analysis_service: AnalysisService,
    food_log_service: FoodLogService,
    notifications: NotificationQueue,
) -> MealLoggingService:
    return MealLoggingService(
        analysis_service=analysis_service,
        food_log_service=food_log_service,
        notifications=notifications,
    )


@pytest.fixture
def container(
    settings: Settings,
    food_log_service: FoodLogService,
    analysis_service: AnalysisService,
    meal_logging_service: MealLoggingService,
    notifications: NotificationQueue,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        food_log_service=food_log_service,
        stats_service=StatsService(food_log_service),
        analysis_service=analysis_service,
        meal_logging_service=meal_logging_service,
        notifications=notifications,
        close_resources=close_resources,
    )
