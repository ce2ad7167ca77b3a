import json

import pandas as pd
import pytest

from housing_price.components.model_persister import ModelPersister
from housing_price.components.model_predictor import PredictionService
from housing_price.core.exceptions import DataLoadError
from housing_price.pipeline.prediction_pipeline import PredictionPipeline


@pytest.fixture
def service(tmp_path, trained_model):
    path = ModelPersister().save(trained_model, tmp_path / "model.joblib")
    return PredictionService(path)


def test_single_json_record(service, sample_record):
    outcome = PredictionPipeline(service, input_json=json.dumps(sample_record)).run()

    assert len(outcome.results) == 1
    assert outcome.failed_count == 0
    assert outcome.results[0].predicted_price is not None


def test_json_list_keeps_order_and_isolates_failures(service, sample_record):
    records = [
        sample_record,
        {**sample_record, "ocean_proximity": "ISLAND"},
        {**sample_record, "median_income": 2.0},
    ]

    outcome = PredictionPipeline(service, input_json=json.dumps(records)).run()

    assert [r.is_available for r in outcome.results] == [True, False, True]
    assert outcome.failed_count == 1


def test_csv_file_drops_label_and_blank_cells(service, housing_frame, tmp_path):
    frame = housing_frame.head(3).copy()
    frame.loc[2, "population"] = None
    path = tmp_path / "batch.csv"
    frame.to_csv(path, index=False)

    outcome = PredictionPipeline(service, input_file=str(path)).run()

    assert all("median_house_value" not in record for record in outcome.records)
    assert outcome.records[2]["population"] is None
    assert [r.is_available for r in outcome.results] == [True, True, False]


def test_json_file_is_supported(service, sample_record, tmp_path):
    path = tmp_path / "batch.json"
    pd.DataFrame([sample_record, sample_record]).to_json(path, orient="records")

    outcome = PredictionPipeline(service, input_file=str(path)).run()

    assert outcome.failed_count == 0
    assert outcome.results[0].predicted_price == outcome.results[1].predicted_price


@pytest.mark.parametrize(
    "kwargs",
    [{"input_json": "{not json"}, {"input_file": "absent.csv"}, {"input_file": "x.txt"}],
)
def test_unreadable_input_is_a_data_load_error(service, kwargs):
    with pytest.raises(DataLoadError):
        PredictionPipeline(service, **kwargs).run()


def test_exactly_one_input_source_is_required(service):
    with pytest.raises(ValueError):
        PredictionPipeline(service)
    with pytest.raises(ValueError):
        PredictionPipeline(service, input_json="{}", input_file="batch.csv")
