"""Key-value persistence for application state."""

import json
import logging
from dataclasses import dataclass
from typing import Protocol, TypeVar

import pydantic
from pydantic import TypeAdapter

from calorie_logger.domain.entries import (
    FoodLog,
    ThemeMode,
    UserGoals,
    WeightLog,
)

logger = logging.getLogger(__name__)

FOOD_LOG_KEY = "foodLogs"
API_KEY_KEY = "api-key"
GOALS_KEY = "userGoals"
WEIGHT_LOG_KEY = "weightLogs"
THEME_KEY = "themeMode"

T = TypeVar("T")

_FOOD_LOG_ADAPTER: TypeAdapter[FoodLog] = TypeAdapter(FoodLog)
_WEIGHT_LOG_ADAPTER: TypeAdapter[WeightLog] = TypeAdapter(WeightLog)
_GOALS_ADAPTER: TypeAdapter[UserGoals] = TypeAdapter(UserGoals)
_THEME_ADAPTER: TypeAdapter[ThemeMode] = TypeAdapter(ThemeMode)
_API_KEY_ADAPTER: TypeAdapter[str | None] = TypeAdapter(str | None)


class KeyValueStore(Protocol):
    """String key-value store interface."""

    def get(self, key: str) -> str | None:
        """Return the stored text for a key, if any."""

    def set(self, key: str, value: str) -> None:
        """Store text under a key."""

    def remove(self, key: str) -> None:
        """Delete a key if present."""


def read_json(store: KeyValueStore, key: str, default: object) -> object:
    """Return the decoded JSON value for a key, or the default."""
    raw = store.get(key)
    if raw is None:
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring unreadable value stored under %r", key)
        return default


def write_json(store: KeyValueStore, key: str, value: object) -> None:
    """Encode a value as JSON and store it."""
    store.set(key, json.dumps(value))


@dataclass
class AppStateRepository:
    """Typed load/save access to each persisted state key."""

    store: KeyValueStore

    def load_food_log(self) -> FoodLog:
        """Return the stored food log."""
        return self._load(FOOD_LOG_KEY, _FOOD_LOG_ADAPTER, {})

    def save_food_log(self, log: FoodLog) -> None:
        """Persist the food log."""
        self._save(FOOD_LOG_KEY, _FOOD_LOG_ADAPTER, log)

    def load_weight_log(self) -> WeightLog:
        """Return the stored weight log."""
        return self._load(WEIGHT_LOG_KEY, _WEIGHT_LOG_ADAPTER, {})

    def save_weight_log(self, log: WeightLog) -> None:
        """Persist the weight log."""
        self._save(WEIGHT_LOG_KEY, _WEIGHT_LOG_ADAPTER, log)

    def load_goals(self) -> UserGoals:
        """Return stored goals or the defaults."""
        return self._load(GOALS_KEY, _GOALS_ADAPTER, UserGoals())

    def save_goals(self, goals: UserGoals) -> None:
        """Persist user goals."""
        self._save(GOALS_KEY, _GOALS_ADAPTER, goals)

    def load_api_key(self) -> str | None:
        """Return the stored API credential."""
        return self._load(API_KEY_KEY, _API_KEY_ADAPTER, None)

    def save_api_key(self, api_key: str | None) -> None:
        """Persist the API credential, removing it when empty."""
        if not api_key:
            self.store.remove(API_KEY_KEY)
            return
        self._save(API_KEY_KEY, _API_KEY_ADAPTER, api_key)

    def load_theme(self) -> ThemeMode:
        """Return the stored theme preference."""
        return self._load(THEME_KEY, _THEME_ADAPTER, "light")

    def save_theme(self, mode: ThemeMode) -> None:
        """Persist the theme preference."""
        self._save(THEME_KEY, _THEME_ADAPTER, mode)

    def _load(self, key: str, adapter: TypeAdapter[T], default: T) -> T:
        data = read_json(self.store, key, None)
        if data is None:
            return default
        try:
            return adapter.validate_python(data)
        except pydantic.ValidationError:
            logger.warning("Ignoring invalid value stored under %r", key)
            return default

    def _save(self, key: str, adapter: TypeAdapter[T], value: T) -> None:
        write_json(
            self.store, key, adapter.dump_python(value, mode="json", by_alias=True)
        )
