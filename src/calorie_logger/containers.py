"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from calorie_logger.adapters.file_store import FileKeyValueStore
from calorie_logger.adapters.openai_analysis_client import OpenAIAnalysisClient
from calorie_logger.adapters.supabase_store import SupabaseKeyValueStore
from calorie_logger.config import Settings, parse_storage_backend
from calorie_logger.errors import ConfigurationError
from calorie_logger.services.analysis import AnalysisService
from calorie_logger.services.food_log import FoodLogService
from calorie_logger.services.meals import MealLoggingService
from calorie_logger.services.notifications import NotificationQueue
from calorie_logger.services.stats import StatsService
from calorie_logger.services.store import AppStateRepository, KeyValueStore


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    food_log_service: FoodLogService
    stats_service: StatsService
    analysis_service: AnalysisService
    meal_logging_service: MealLoggingService
    notifications: NotificationQueue
    close_resources: Callable[[], Awaitable[None]]


def build_store(settings: Settings) -> KeyValueStore:
    """Create the configured key-value store backend."""
    backend = parse_storage_backend(settings.storage_backend)
    if backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ConfigurationError(
                "SUPABASE_URL and SUPABASE_SERVICE_KEY are required for supabase storage."
            )
        return SupabaseKeyValueStore.create(
            settings.supabase_url,
            settings.supabase_service_key,
            settings.supabase_table,
        )
    return FileKeyValueStore.create(settings.storage_path)


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    repository = AppStateRepository(build_store(resolved_settings))
    food_log_service = FoodLogService(repository)
    stats_service = StatsService(food_log_service)
    openai_client = OpenAIAnalysisClient.create(
        resolved_settings.openai_timeout_seconds
    )
    analysis_service = AnalysisService(
        client=openai_client,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    notifications = NotificationQueue()
    meal_logging_service = MealLoggingService(
        analysis_service=analysis_service,
        food_log_service=food_log_service,
        notifications=notifications,
        fallback_api_key=resolved_settings.openai_api_key,
        preview_max_side=resolved_settings.preview_max_side,
    )

    async def close_resources() -> None:
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        food_log_service=food_log_service,
        stats_service=stats_service,
        analysis_service=analysis_service,
        meal_logging_service=meal_logging_service,
        notifications=notifications,
        close_resources=close_resources,
    )
