"""Domain models for log aggregation."""

from dataclasses import dataclass
from datetime import date
from enum import Enum

from calorie_logger.domain.entries import FoodEntry


@dataclass(frozen=True)
class HealthStatus:
    """Presentation data for an average health score."""

    key: str
    message: str
    color: str


class HealthBucket(Enum):
    """Classification of a day's average health rating."""

    BEST = HealthStatus("best", "Excellent!", "success.main")
    GOOD = HealthStatus("good", "Good!", "success.light")
    FAIR = HealthStatus("fair", "Could be better.", "warning.main")
    POOR = HealthStatus("poor", "Needs improvement.", "error.main")
    NO_DATA = HealthStatus("no_data", "No entries yet.", "grey.400")


@dataclass(frozen=True)
class DailyTotals:
    """Summed macros for a single day.

    ``avg_health_rating`` is ``None`` when the day has no entries.
    """

    day: date
    calories: int
    protein: int
    carbs: int
    fats: int
    avg_health_rating: float | None
    entry_count: int


@dataclass(frozen=True)
class WeeklyPoint:
    """Calorie total for one day of a week chart."""

    day: date
    label: str
    total_calories: int


@dataclass(frozen=True)
class CalendarCell:
    """Single day cell of a month calendar."""

    day: date
    total_calories: int
    avg_health_rating: float | None
    entry_count: int
    in_month: bool
    is_today: bool
    health_bucket: HealthBucket


@dataclass(frozen=True)
class FlatLogRow:
    """Flattened log entry for tabular display."""

    date: str
    entry: FoodEntry
    original_index: int


@dataclass(frozen=True)
class WeightPoint:
    """Weight measurement for a chart."""

    day: date
    label: str
    weight: float


@dataclass(frozen=True)
class DayLog:
    """Entries recorded on one day."""

    date: str
    entries: list[FoodEntry]
