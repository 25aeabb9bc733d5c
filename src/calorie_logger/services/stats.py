"""Aggregations over food and weight logs."""

import calendar
from dataclasses import dataclass
from datetime import date, timedelta

from calorie_logger.domain.entries import (
    ENTRY_FIELDS,
    FoodLog,
    UserGoals,
    WeightLog,
    day_key,
    parse_day,
)
from calorie_logger.domain.stats import (
    CalendarCell,
    DailyTotals,
    DayLog,
    FlatLogRow,
    HealthBucket,
    WeeklyPoint,
    WeightPoint,
)
from calorie_logger.errors import ValidationError
from calorie_logger.services.food_log import FoodLogService

DAYS_PER_WEEK = 7
RECENT_DAYS = 5
SORT_DIRECTIONS = frozenset({"asc", "desc"})
SORT_KEYS = frozenset({"date", *ENTRY_FIELDS})


@dataclass
class DashboardSummary:
    """Today's totals with goal progress and the current week's trend."""

    today: DailyTotals
    goals: UserGoals
    calorie_progress: float
    protein_progress: float
    carbs_progress: float
    fats_progress: float
    health: HealthBucket
    week: list[WeeklyPoint]


@dataclass
class StatsService:
    """Read-side views over the stored logs."""

    food_log_service: FoodLogService

    def get_dashboard(self, today: date) -> DashboardSummary:
        """Return the dashboard summary for a day."""
        log = self.food_log_service.get_food_log()
        goals = self.food_log_service.get_goals()
        totals = daily_totals(log, today)
        return DashboardSummary(
            today=totals,
            goals=goals,
            calorie_progress=goal_progress(totals.calories, goals.calories),
            protein_progress=goal_progress(totals.protein, goals.protein),
            carbs_progress=goal_progress(totals.carbs, goals.carbs),
            fats_progress=goal_progress(totals.fats, goals.fats),
            health=health_color_bucket(totals.avg_health_rating),
            week=weekly_series(log, start_of_week(today)),
        )

    def get_day(self, day: date) -> tuple[DailyTotals, DayLog]:
        """Return totals and entries for a single day."""
        log = self.food_log_service.get_food_log()
        key = day_key(day)
        return daily_totals(log, day), DayLog(date=key, entries=log.get(key, []))

    def get_calendar(self, month_anchor: date, today: date) -> list[CalendarCell]:
        """Return the calendar grid for a month."""
        return monthly_grid(self.food_log_service.get_food_log(), month_anchor, today)

    def get_sheet(self, sort_key: str, direction: str) -> list[FlatLogRow]:
        """Return all entries flattened and sorted."""
        return sorted_flat_view(
            self.food_log_service.get_food_log(), sort_key, direction
        )

    def get_weight_trend(self) -> list[WeightPoint]:
        """Return weight measurements in date order."""
        return weight_series(self.food_log_service.get_weight_log())

    def get_recent_days(self, today: date) -> list[DayLog]:
        """Return recent days that have entries, newest first."""
        return recent_days_with_logs(self.food_log_service.get_food_log(), today)


def daily_totals(log: FoodLog, day: date) -> DailyTotals:
    """Sum macros and average the health rating for one day."""
    entries = log.get(day_key(day), [])
    avg_rating = (
        sum(entry.health_rating for entry in entries) / len(entries)
        if entries
        else None
    )
    return DailyTotals(
        day=day,
        calories=sum(entry.calories for entry in entries),
        protein=sum(entry.protein for entry in entries),
        carbs=sum(entry.carbs for entry in entries),
        fats=sum(entry.fats for entry in entries),
        avg_health_rating=avg_rating,
        entry_count=len(entries),
    )


def start_of_week(day: date) -> date:
    """Return the Monday on or before a day."""
    return day - timedelta(days=day.weekday())


def weekly_series(log: FoodLog, week_start: date) -> list[WeeklyPoint]:
    """Return calorie totals for the seven days from ``week_start``."""
    points = []
    for offset in range(DAYS_PER_WEEK):
        day = week_start + timedelta(days=offset)
        entries = log.get(day_key(day), [])
        points.append(
            WeeklyPoint(
                day=day,
                label=day.strftime("%a"),
                total_calories=sum(entry.calories for entry in entries),
            )
        )
    return points


def monthly_grid(log: FoodLog, month_anchor: date, today: date) -> list[CalendarCell]:
    """Return Sunday-first calendar cells spanning the anchor's month."""
    month_start = month_anchor.replace(day=1)
    last_day = calendar.monthrange(month_start.year, month_start.month)[1]
    month_end = month_start.replace(day=last_day)
    grid_start = month_start - timedelta(days=(month_start.weekday() + 1) % 7)
    grid_end = month_end + timedelta(days=(5 - month_end.weekday()) % 7)

    cells = []
    day = grid_start
    while day <= grid_end:
        totals = daily_totals(log, day)
        cells.append(
            CalendarCell(
                day=day,
                total_calories=totals.calories,
                avg_health_rating=totals.avg_health_rating,
                entry_count=totals.entry_count,
                in_month=(day.year, day.month) == (month_start.year, month_start.month),
                is_today=day == today,
                health_bucket=health_color_bucket(totals.avg_health_rating),
            )
        )
        day += timedelta(days=1)
    return cells


def sorted_flat_view(
    log: FoodLog, sort_key: str = "date", direction: str = "desc"
) -> list[FlatLogRow]:
    """Flatten the log into rows sorted by a field, keeping ties in order."""
    if sort_key not in SORT_KEYS:
        raise ValidationError(f"Cannot sort by {sort_key!r}")
    if direction not in SORT_DIRECTIONS:
        raise ValidationError(f"Unknown sort direction {direction!r}")
    rows = [
        FlatLogRow(date=day, entry=entry, original_index=index)
        for day, entries in log.items()
        for index, entry in enumerate(entries)
    ]
    if sort_key == "date":
        return sorted(rows, key=lambda row: row.date, reverse=direction == "desc")
    attribute = ENTRY_FIELDS[sort_key]
    return sorted(
        rows,
        key=lambda row: getattr(row.entry, attribute),
        reverse=direction == "desc",
    )


def health_color_bucket(avg_score: float | None) -> HealthBucket:
    """Classify an average health rating."""
    if avg_score is None or avg_score <= 0:
        return HealthBucket.NO_DATA
    if avg_score >= 8:  # noqa: PLR2004
        return HealthBucket.BEST
    if avg_score >= 6:  # noqa: PLR2004
        return HealthBucket.GOOD
    if avg_score >= 4:  # noqa: PLR2004
        return HealthBucket.FAIR
    return HealthBucket.POOR


def goal_progress(value: float, goal: float) -> float:
    """Return progress toward a goal as a percentage capped at 100."""
    if goal <= 0:
        return 0.0
    return min(value / goal * 100, 100.0)


def weight_series(log: WeightLog) -> list[WeightPoint]:
    """Return weight points sorted by date."""
    points = []
    for key in sorted(log):
        day = parse_day(key)
        points.append(
            WeightPoint(day=day, label=f"{day:%b} {day.day}", weight=log[key].weight)
        )
    return points


def recent_days_with_logs(
    log: FoodLog, today: date, days: int = RECENT_DAYS
) -> list[DayLog]:
    """Return the last ``days`` days (including today) that have entries."""
    recent = []
    for offset in range(days):
        key = day_key(today - timedelta(days=offset))
        if log.get(key):
            recent.append(DayLog(date=key, entries=log[key]))
    return recent
