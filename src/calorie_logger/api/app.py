"""FastAPI application factory."""

import base64
import binascii
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date

from fastapi import BackgroundTasks, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from calorie_logger.api.schemas import (
    AnalyzeMealRequest,
    CopyEntriesRequest,
    FieldUpdateRequest,
    SettingsUpdateRequest,
    WeightRequest,
)
from calorie_logger.app_logging import configure_logging
from calorie_logger.containers import AppContainer
from calorie_logger.domain.entries import FoodEntry, UserGoals, day_key, parse_day
from calorie_logger.domain.stats import (
    CalendarCell,
    DailyTotals,
    DayLog,
    FlatLogRow,
    HealthBucket,
    WeeklyPoint,
)
from calorie_logger.errors import CalorieLoggerError, ValidationError
from calorie_logger.services.export import export_csv, export_filename
from calorie_logger.services.stats import DashboardSummary


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(CalorieLoggerError)
    async def handle_app_error(
        request: Request, exc: CalorieLoggerError
    ) -> JSONResponse:
        state_container: AppContainer = request.app.state.container
        if exc.http_status >= 500:  # noqa: PLR2004
            logger.warning("%s: %s", type(exc).__name__, exc.message)
        return JSONResponse(
            status_code=exc.http_status,
            content={"detail": _format_error(state_container, exc)},
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": _format_validation_errors(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/dashboard")
    async def dashboard(request: Request, day: date | None = None) -> dict[str, object]:
        """Return today's summary, goal progress and the weekly trend."""
        state_container: AppContainer = request.app.state.container
        summary = state_container.stats_service.get_dashboard(day or _today())
        return _format_dashboard(summary)

    @app.get("/calendar")
    async def calendar_view(
        request: Request, month: str | None = None
    ) -> dict[str, object]:
        """Return the calendar grid for a month (YYYY-MM)."""
        state_container: AppContainer = request.app.state.container
        today = _today()
        anchor = _parse_month(month) if month else today
        cells = state_container.stats_service.get_calendar(anchor, today)
        return {
            "month": f"{anchor:%Y-%m}",
            "title": f"{anchor:%B %Y}",
            "cells": [_format_cell(cell) for cell in cells],
        }

    @app.get("/days/{day}")
    async def day_detail(day: str, request: Request) -> dict[str, object]:
        """Return entries and totals for a day."""
        state_container: AppContainer = request.app.state.container
        totals, day_log = state_container.stats_service.get_day(parse_day(day))
        return {
            "totals": _format_totals(totals),
            "entries": [_format_entry(entry) for entry in day_log.entries],
        }

    @app.get("/log")
    async def log_sheet(
        request: Request, sort: str = "date", direction: str = "desc"
    ) -> dict[str, object]:
        """Return all entries flattened and sorted."""
        state_container: AppContainer = request.app.state.container
        rows = state_container.stats_service.get_sheet(sort, direction)
        return {"rows": [_format_row(row) for row in rows]}

    @app.get("/log/export")
    async def export_log(
        request: Request, sort: str = "date", direction: str = "desc"
    ) -> Response:
        """Download the sorted log as CSV."""
        state_container: AppContainer = request.app.state.container
        rows = state_container.stats_service.get_sheet(sort, direction)
        filename = export_filename(_today())
        return Response(
            content=export_csv(rows),
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.put("/log/{day}/{index}")
    async def replace_log_entry(
        day: str, index: int, entry: FoodEntry, request: Request
    ) -> dict[str, object]:
        """Replace an entry."""
        state_container: AppContainer = request.app.state.container
        state_container.food_log_service.update_entry(
            day_key(parse_day(day)), index, entry
        )
        return {"entry": _format_entry(entry)}

    @app.patch("/log/{day}/{index}")
    async def edit_log_field(
        day: str, index: int, payload: FieldUpdateRequest, request: Request
    ) -> dict[str, object]:
        """Edit one field of an entry."""
        state_container: AppContainer = request.app.state.container
        updated = state_container.food_log_service.update_field(
            day_key(parse_day(day)), index, payload.field, payload.value
        )
        return {"entry": _format_entry(updated)}

    @app.delete("/log/{day}/{index}")
    async def delete_log_entry(
        day: str, index: int, request: Request
    ) -> dict[str, str]:
        """Delete an entry."""
        state_container: AppContainer = request.app.state.container
        state_container.food_log_service.remove_entry(day_key(parse_day(day)), index)
        return {"status": "ok"}

    @app.post("/meals/analyze")
    async def analyze_meal(
        payload: AnalyzeMealRequest,
        background_tasks: BackgroundTasks,
        request: Request,
    ) -> dict[str, object]:
        """Analyze a meal, log the entries and queue feedback."""
        state_container: AppContainer = request.app.state.container
        day = payload.day or _today()
        entries = await state_container.meal_logging_service.log_meal(
            text=payload.text,
            image_bytes=_decode_image(payload.image_base64),
            mime_type=payload.mime_type,
            day=day,
        )
        background_tasks.add_task(
            state_container.meal_logging_service.request_feedback, entries
        )
        return {
            "date": day_key(day),
            "entries": [_format_entry(entry) for entry in entries],
        }

    @app.get("/meals/recent")
    async def recent_meals(request: Request) -> dict[str, object]:
        """Return entries from the last few days for copying."""
        state_container: AppContainer = request.app.state.container
        days = state_container.stats_service.get_recent_days(_today())
        return {"days": [_format_day_log(day_log) for day_log in days]}

    @app.post("/meals/copy")
    async def copy_meals(
        payload: CopyEntriesRequest, request: Request
    ) -> dict[str, object]:
        """Copy selected entries onto a day."""
        state_container: AppContainer = request.app.state.container
        copied = state_container.food_log_service.copy_entries(
            [(ref.date, ref.index) for ref in payload.entries],
            payload.day or _today(),
        )
        if copied:
            state_container.notifications.push(
                f"Successfully copied {len(copied)} meal(s) to today's log.",
                "success",
            )
        return {"copied": len(copied)}

    @app.get("/notifications")
    async def notifications(request: Request) -> dict[str, object]:
        """Return and clear pending notifications."""
        state_container: AppContainer = request.app.state.container
        return {
            "notifications": [
                {"message": item.message, "severity": item.severity}
                for item in state_container.notifications.drain()
            ]
        }

    @app.get("/settings")
    async def get_settings(request: Request) -> dict[str, object]:
        """Return goals, theme and whether an API key is set."""
        state_container: AppContainer = request.app.state.container
        return _format_settings(state_container)

    @app.put("/settings")
    async def update_settings(
        payload: SettingsUpdateRequest, request: Request
    ) -> dict[str, object]:
        """Save the API key and/or goals."""
        state_container: AppContainer = request.app.state.container
        if payload.api_key is not None:
            state_container.food_log_service.set_api_key(payload.api_key)
        if payload.goals is not None:
            state_container.food_log_service.set_goals(payload.goals)
        return _format_settings(state_container)

    @app.post("/settings/theme/toggle")
    async def toggle_theme(request: Request) -> dict[str, str]:
        """Switch between light and dark mode."""
        state_container: AppContainer = request.app.state.container
        return {"theme": state_container.food_log_service.toggle_theme()}

    @app.get("/weights")
    async def weights(request: Request) -> dict[str, object]:
        """Return the weight trend in date order."""
        state_container: AppContainer = request.app.state.container
        points = state_container.stats_service.get_weight_trend()
        return {
            "points": [
                {"date": day_key(point.day), "label": point.label, "weight": point.weight}
                for point in points
            ]
        }

    @app.post("/weights")
    async def add_weight(payload: WeightRequest, request: Request) -> dict[str, object]:
        """Record today's (or a given day's) weight."""
        state_container: AppContainer = request.app.state.container
        day = payload.day or _today()
        state_container.food_log_service.add_weight(payload.weight, day)
        return {"date": day_key(day), "weight": payload.weight}

    return app


def _today() -> date:
    return date.today()


def _parse_month(value: str) -> date:
    """Parse a YYYY-MM month into its first day."""
    try:
        year, month = (int(part) for part in value.split("-", maxsplit=1))
        return date(year, month, 1)
    except ValueError as exc:
        raise ValidationError(f"Invalid month: {value!r}, expected YYYY-MM") from exc


def _decode_image(image_base64: str | None) -> bytes | None:
    """Decode a base64 image, accepting data URLs."""
    if not image_base64:
        return None
    encoded = image_base64.split(",", 1)[1] if "," in image_base64 else image_base64
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("The uploaded image could not be decoded.") from exc


def _format_error(state_container: AppContainer, exc: CalorieLoggerError) -> str:
    """Return a user-facing message with local debug info."""
    cause = exc.__cause__
    if state_container.settings.environment == "local" and cause is not None:
        return f"{exc.message} (debug: {type(cause).__name__}: {cause})"
    return exc.message


def _format_validation_errors(exc: RequestValidationError) -> str:
    """Flatten request validation errors into one message."""
    messages = []
    for error in exc.errors():
        location = ".".join(
            str(part)
            for part in error.get("loc", ())
            if part not in {"body", "query", "path"}
        )
        message = error.get("msg", "Invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages) or "Invalid request."


def _format_entry(entry: FoodEntry) -> dict[str, object]:
    return entry.model_dump(mode="json", by_alias=True)


def _format_health(bucket: HealthBucket) -> dict[str, str]:
    status = bucket.value
    return {"bucket": status.key, "message": status.message, "color": status.color}


def _format_totals(totals: DailyTotals) -> dict[str, object]:
    return {
        "date": day_key(totals.day),
        "calories": totals.calories,
        "protein": totals.protein,
        "carbs": totals.carbs,
        "fats": totals.fats,
        "avgHealthRating": totals.avg_health_rating,
        "entryCount": totals.entry_count,
    }


def _format_goals(goals: UserGoals) -> dict[str, int]:
    return goals.model_dump()


def _format_week_point(point: WeeklyPoint) -> dict[str, object]:
    return {
        "date": day_key(point.day),
        "name": point.label,
        "calories": point.total_calories,
    }


def _format_dashboard(summary: DashboardSummary) -> dict[str, object]:
    return {
        "today": _format_totals(summary.today),
        "goals": _format_goals(summary.goals),
        "progress": {
            "calories": summary.calorie_progress,
            "protein": summary.protein_progress,
            "carbs": summary.carbs_progress,
            "fats": summary.fats_progress,
        },
        "health": _format_health(summary.health),
        "week": [_format_week_point(point) for point in summary.week],
    }


def _format_cell(cell: CalendarCell) -> dict[str, object]:
    return {
        "date": day_key(cell.day),
        "dayOfMonth": cell.day.day,
        "calories": cell.total_calories,
        "avgHealthRating": cell.avg_health_rating,
        "entryCount": cell.entry_count,
        "inMonth": cell.in_month,
        "isToday": cell.is_today,
        "health": _format_health(cell.health_bucket),
    }


def _format_row(row: FlatLogRow) -> dict[str, object]:
    return {
        "date": row.date,
        "originalIndex": row.original_index,
        **_format_entry(row.entry),
    }


def _format_day_log(day_log: DayLog) -> dict[str, object]:
    return {
        "date": day_log.date,
        "entries": [
            {"index": index, **_format_entry(entry)}
            for index, entry in enumerate(day_log.entries)
        ],
    }


def _format_settings(state_container: AppContainer) -> dict[str, object]:
    service = state_container.food_log_service
    api_key = service.get_api_key()
    return {
        "hasApiKey": bool(api_key or state_container.settings.openai_api_key),
        "apiKeyHint": _mask_key(api_key),
        "goals": _format_goals(service.get_goals()),
        "theme": service.get_theme(),
    }


def _mask_key(api_key: str | None) -> str | None:
    if not api_key:
        return None
    return f"...{api_key[-4:]}"
