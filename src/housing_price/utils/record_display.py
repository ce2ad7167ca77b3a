"""
Display helpers for housing records and prediction results.

Each record type has a statically declared table of (field, label, formatter)
entries. Rendering walks that table, so the output order and number
formatting are fixed and do not depend on runtime type inspection.
"""

from collections.abc import Callable
from typing import Any

from housing_price.components.model_predictor import PredictionResult
from housing_price.core.data_definitions import HousingRecord

FieldFormatter = Callable[[Any], str]


def format_text(value: Any) -> str:
    return str(value)


def format_decimal(value: Any) -> str:
    return f"{float(value):.2f}"


def format_money(value: Any) -> str:
    return f"{float(value):,.2f}"


HOUSING_RECORD_FIELDS: tuple[tuple[str, str, FieldFormatter], ...] = (
    ("ocean_proximity", "Ocean Proximity", format_text),
    ("longitude", "Longitude", format_decimal),
    ("latitude", "Latitude", format_decimal),
    ("housing_median_age", "Housing Median Age", format_decimal),
    ("total_rooms", "Total Rooms", format_decimal),
    ("total_bedrooms", "Total Bedrooms", format_decimal),
    ("population", "Population", format_decimal),
    ("households", "Households", format_decimal),
    ("median_income", "Median Income", format_decimal),
)

PREDICTION_FIELDS: tuple[tuple[str, str, FieldFormatter], ...] = (
    ("predicted_price", "Predicted Price", format_money),
    ("error", "Unavailable", format_text),
)


def _render(obj: Any, table: tuple[tuple[str, str, FieldFormatter], ...]) -> dict[str, str]:
    rendered: dict[str, str] = {}
    for name, label, formatter in table:
        value = getattr(obj, name)
        if value is not None:
            rendered[label] = formatter(value)
    return rendered


def describe_record(record: HousingRecord) -> dict[str, str]:
    """Label -> formatted value for every field of a housing record."""
    return _render(record, HOUSING_RECORD_FIELDS)


def describe_prediction(result: PredictionResult) -> dict[str, str]:
    """Label -> formatted value for the populated fields of a prediction."""
    return _render(result, PREDICTION_FIELDS)
