"""Domain models for food and weight logs."""

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from calorie_logger.errors import ValidationError

DAY_FORMAT = "%Y-%m-%d"

ThemeMode = Literal["light", "dark"]


class FoodEntry(BaseModel):
    """Single recognized food item with its nutrition estimate."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    food_item: str = Field(alias="foodItem")
    quantity: str
    calories: int = Field(ge=0)
    protein: int = Field(ge=0)
    carbs: int = Field(ge=0)
    fats: int = Field(ge=0)
    health_rating: int = Field(alias="healthRating", ge=1, le=10)
    image: str | None = None


class UserGoals(BaseModel):
    """Daily calorie and macro targets."""

    calories: int = Field(default=2000, gt=0)
    protein: int = Field(default=150, gt=0)
    carbs: int = Field(default=250, gt=0)
    fats: int = Field(default=65, gt=0)


class WeightEntry(BaseModel):
    """Weight measurement for a single day."""

    weight: float = Field(gt=0, allow_inf_nan=False)


FoodLog = dict[str, list[FoodEntry]]
WeightLog = dict[str, WeightEntry]

# Wire names of the editable entry fields mapped to model attributes.
ENTRY_FIELDS: dict[str, str] = {
    "foodItem": "food_item",
    "quantity": "quantity",
    "calories": "calories",
    "protein": "protein",
    "carbs": "carbs",
    "fats": "fats",
    "healthRating": "health_rating",
}

NUMERIC_FIELDS = frozenset({"calories", "protein", "carbs", "fats", "health_rating"})


def resolve_entry_field(name: str) -> str:
    """Return the model attribute for a wire or attribute field name."""
    if name in ENTRY_FIELDS:
        return ENTRY_FIELDS[name]
    if name in ENTRY_FIELDS.values():
        return name
    raise ValidationError(f"Unknown food entry field: {name}")


def day_key(day: date) -> str:
    """Format a date as a log key."""
    return day.strftime(DAY_FORMAT)


def parse_day(key: str) -> date:
    """Parse a YYYY-MM-DD log key."""
    try:
        return date.fromisoformat(key)
    except ValueError as exc:
        raise ValidationError(f"Invalid date: {key!r}, expected YYYY-MM-DD") from exc
