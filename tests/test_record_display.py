from housing_price.components.model_predictor import PredictionResult
from housing_price.core.data_definitions import FEATURE_COLUMNS, HousingRecord
from housing_price.utils.record_display import (
    HOUSING_RECORD_FIELDS,
    describe_prediction,
    describe_record,
)


def test_record_fields_follow_the_column_contract():
    assert tuple(name for name, _, _ in HOUSING_RECORD_FIELDS) == FEATURE_COLUMNS


def test_record_is_rendered_with_labels_in_order(sample_record):
    rendered = describe_record(HousingRecord(**sample_record))

    assert list(rendered)[:2] == ["Ocean Proximity", "Longitude"]
    assert rendered["Ocean Proximity"] == "NEAR BAY"
    assert rendered["Median Income"] == "8.33"


def test_prediction_renders_price_as_money():
    rendered = describe_prediction(PredictionResult(predicted_price=452600.456))

    assert rendered == {"Predicted Price": "452,600.46"}


def test_unavailable_prediction_renders_reason():
    rendered = describe_prediction(PredictionResult(error="Model unavailable"))

    assert rendered == {"Unavailable": "Model unavailable"}
