"""CSV export of the food log sheet."""

from datetime import date

from calorie_logger.domain.entries import day_key
from calorie_logger.domain.stats import FlatLogRow

CSV_HEADERS = [
    "Date",
    "Food Item",
    "Quantity",
    "Calories",
    "Protein (g)",
    "Carbs (g)",
    "Fats (g)",
    "Health Rating",
]


def export_csv(rows: list[FlatLogRow]) -> str:
    """Render rows as CSV text with a header line."""
    lines = [",".join(CSV_HEADERS)]
    for row in rows:
        entry = row.entry
        lines.append(
            ",".join(
                [
                    row.date,
                    _quote(entry.food_item),
                    _quote(entry.quantity),
                    str(entry.calories),
                    str(entry.protein),
                    str(entry.carbs),
                    str(entry.fats),
                    str(entry.health_rating),
                ]
            )
        )
    return "\n".join(lines)


def export_filename(today: date) -> str:
    """Return the download filename for an export made on ``today``."""
    return f"food_log_{day_key(today)}.csv"


def _quote(value: str) -> str:
    escaped = value.replace('"', '""')
    return f'"{escaped}"'
