"""Tests for container wiring."""

import asyncio

import pytest

from calorie_logger.config import Settings, parse_storage_backend
from calorie_logger.containers import build_container
from calorie_logger.errors import ConfigurationError


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)
    assert container.meal_logging_service is not None
    assert container.food_log_service.get_food_log() == {}
    asyncio.run(container.close_resources())


def test_build_container_uses_file_store(settings) -> None:
    container = build_container(settings)
    container.food_log_service.toggle_theme()

    reopened = build_container(settings)

    assert reopened.food_log_service.get_theme() == "dark"
    asyncio.run(container.close_resources())
    asyncio.run(reopened.close_resources())


def test_supabase_backend_requires_credentials() -> None:
    settings = Settings(storage_backend="supabase", supabase_url=None, environment="test")

    with pytest.raises(ConfigurationError):
        build_container(settings)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, "file"), ("", "file"), ("Local", "file"), (" supabase ", "supabase")],
)
def test_parse_storage_backend(raw, expected) -> None:
    assert parse_storage_backend(raw) == expected


def test_parse_storage_backend_rejects_unknown() -> None:
    with pytest.raises(ValueError):
        parse_storage_backend("redis")
