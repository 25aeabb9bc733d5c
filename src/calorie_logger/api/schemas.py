"""Pydantic request models for the HTTP API."""

from datetime import date

from pydantic import BaseModel, Field

from calorie_logger.domain.entries import UserGoals


class AnalyzeMealRequest(BaseModel):
    """Meal description and/or base64 photo to analyze."""

    text: str | None = None
    image_base64: str | None = None
    mime_type: str | None = None
    day: date | None = None


class EntryRef(BaseModel):
    """Reference to a logged entry by date and position."""

    date: str
    index: int = Field(ge=0)


class CopyEntriesRequest(BaseModel):
    """Entries to copy onto a day (today by default)."""

    entries: list[EntryRef]
    day: date | None = None


class FieldUpdateRequest(BaseModel):
    """Single-cell edit from the log sheet."""

    field: str
    value: str | int | float


class WeightRequest(BaseModel):
    """Weight measurement for a day (today by default)."""

    weight: float = Field(gt=0, allow_inf_nan=False)
    day: date | None = None


class SettingsUpdateRequest(BaseModel):
    """Settings form payload; omitted fields are left unchanged."""

    api_key: str | None = None
    goals: UserGoals | None = None
