"""Food and weight log mutations and application state access."""

import logging
import math
from dataclasses import dataclass
from datetime import date

from calorie_logger.domain.entries import (
    NUMERIC_FIELDS,
    FoodEntry,
    FoodLog,
    ThemeMode,
    UserGoals,
    WeightEntry,
    WeightLog,
    day_key,
    resolve_entry_field,
)
from calorie_logger.errors import EntryNotFoundError, ValidationError
from calorie_logger.services.store import AppStateRepository

logger = logging.getLogger(__name__)


def append_entry(log: FoodLog, day: str, entry: FoodEntry) -> FoodLog:
    """Return a log with the entry appended to the day's sequence."""
    updated = dict(log)
    updated[day] = [*log.get(day, []), entry]
    return updated


def replace_entry(log: FoodLog, day: str, index: int, entry: FoodEntry) -> FoodLog:
    """Return a log with the entry at ``index`` replaced."""
    entries = _require_entries(log, day, index)
    updated = dict(log)
    updated[day] = [*entries[:index], entry, *entries[index + 1 :]]
    return updated


def remove_entry(log: FoodLog, day: str, index: int) -> FoodLog:
    """Return a log without the entry at ``index``.

    The day key is dropped once its last entry is removed.
    """
    entries = _require_entries(log, day, index)
    remaining = [*entries[:index], *entries[index + 1 :]]
    updated = dict(log)
    if remaining:
        updated[day] = remaining
    else:
        del updated[day]
    return updated


def upsert_weight(log: WeightLog, day: str, weight: float) -> WeightLog:
    """Return a weight log with the day's measurement set."""
    updated = dict(log)
    updated[day] = WeightEntry(weight=weight)
    return updated


def _require_entries(log: FoodLog, day: str, index: int) -> list[FoodEntry]:
    entries = log.get(day)
    if entries is None:
        raise EntryNotFoundError(f"No entries logged on {day}")
    if index < 0 or index >= len(entries):
        raise EntryNotFoundError(f"No entry #{index} on {day}")
    return entries


@dataclass
class FoodLogService:
    """Application state: every mutation is saved immediately."""

    repository: AppStateRepository

    def get_food_log(self) -> FoodLog:
        """Return the full food log."""
        return self.repository.load_food_log()

    def get_entries(self, day: date) -> list[FoodEntry]:
        """Return entries recorded on a day."""
        return self.repository.load_food_log().get(day_key(day), [])

    def add_entry(self, entry: FoodEntry, day: date) -> FoodLog:
        """Append an entry to a day."""
        log = append_entry(self.repository.load_food_log(), day_key(day), entry)
        self.repository.save_food_log(log)
        return log

    def add_entries(self, entries: list[FoodEntry], day: date) -> FoodLog:
        """Append several entries to a day in order."""
        log = self.repository.load_food_log()
        for entry in entries:
            log = append_entry(log, day_key(day), entry)
        self.repository.save_food_log(log)
        return log

    def update_entry(self, day: str, index: int, entry: FoodEntry) -> FoodLog:
        """Replace an existing entry."""
        log = replace_entry(self.repository.load_food_log(), day, index, entry)
        self.repository.save_food_log(log)
        return log

    def update_field(
        self, day: str, index: int, field: str, raw_value: str | int | float
    ) -> FoodEntry:
        """Edit a single field of an entry, coercing numeric input."""
        attribute = resolve_entry_field(field)
        log = self.repository.load_food_log()
        current = _require_entries(log, day, index)[index]
        value = _coerce_field(attribute, raw_value)
        data = current.model_dump()
        data[attribute] = value
        try:
            updated = FoodEntry.model_validate(data)
        except ValueError as exc:
            raise ValidationError(f"Invalid value for {field}: {raw_value!r}") from exc
        self.repository.save_food_log(replace_entry(log, day, index, updated))
        return updated

    def remove_entry(self, day: str, index: int) -> FoodLog:
        """Remove an entry by index."""
        log = remove_entry(self.repository.load_food_log(), day, index)
        self.repository.save_food_log(log)
        return log

    def copy_entries(
        self, selections: list[tuple[str, int]], target_day: date
    ) -> list[FoodEntry]:
        """Copy previously logged entries onto another day."""
        log = self.repository.load_food_log()
        copied = [
            _require_entries(log, day, index)[index] for day, index in selections
        ]
        for entry in copied:
            log = append_entry(log, day_key(target_day), entry)
        if copied:
            self.repository.save_food_log(log)
            logger.info("Copied %d entries to %s", len(copied), day_key(target_day))
        return copied

    def get_weight_log(self) -> WeightLog:
        """Return the weight log."""
        return self.repository.load_weight_log()

    def add_weight(self, weight: float, day: date) -> WeightLog:
        """Record the weight for a day, replacing any earlier value."""
        if not math.isfinite(weight) or weight <= 0:
            raise ValidationError("Weight must be a positive number.")
        log = upsert_weight(self.repository.load_weight_log(), day_key(day), weight)
        self.repository.save_weight_log(log)
        return log

    def get_goals(self) -> UserGoals:
        """Return the user's goals."""
        return self.repository.load_goals()

    def set_goals(self, goals: UserGoals) -> None:
        """Replace the user's goals."""
        self.repository.save_goals(goals)

    def get_api_key(self) -> str | None:
        """Return the stored API credential."""
        return self.repository.load_api_key()

    def set_api_key(self, api_key: str | None) -> None:
        """Store or clear the API credential."""
        self.repository.save_api_key(api_key.strip() if api_key else None)

    def get_theme(self) -> ThemeMode:
        """Return the theme preference."""
        return self.repository.load_theme()

    def toggle_theme(self) -> ThemeMode:
        """Switch between light and dark mode."""
        mode: ThemeMode = "dark" if self.repository.load_theme() == "light" else "light"
        self.repository.save_theme(mode)
        return mode


def _coerce_field(attribute: str, raw_value: str | int | float) -> object:
    if attribute not in NUMERIC_FIELDS:
        return str(raw_value)
    if isinstance(raw_value, bool):
        raise ValidationError("Invalid number format")
    if isinstance(raw_value, int):
        return raw_value
    try:
        number = float(raw_value)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Invalid number format") from exc
    if not number.is_integer():
        raise ValidationError("Invalid number format")
    return int(number)
