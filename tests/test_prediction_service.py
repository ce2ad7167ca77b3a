import itertools
import threading
from types import SimpleNamespace

import pytest

from housing_price.components.model_persister import ModelPersister
from housing_price.components.model_predictor import PredictionService
from housing_price.core.exceptions import ModelLoadError


@pytest.fixture
def artifact(tmp_path, trained_model):
    return ModelPersister().save(trained_model, tmp_path / "model.joblib")


def test_missing_artifact_puts_service_in_degraded_mode(tmp_path, sample_record):
    service = PredictionService(tmp_path / "absent.joblib")

    result = service.predict(sample_record)

    assert not service.is_ready
    assert not result.is_available
    assert result.predicted_price is None
    assert "not found" in result.error


def test_prediction_matches_the_trained_model(artifact, trained_model, sample_record):
    service = PredictionService(artifact)

    result = service.predict(sample_record)

    assert service.is_ready
    assert result.is_available
    assert result.error is None
    assert result.predicted_price == pytest.approx(
        trained_model.predict_record(sample_record)
    )


def test_unknown_category_yields_unavailable_result(artifact, sample_record):
    result = PredictionService(artifact).predict(
        {**sample_record, "ocean_proximity": "ISLAND"}
    )

    assert not result.is_available
    assert "ISLAND" in result.error


@pytest.mark.parametrize(
    "change",
    [
        {"median_income": float("inf")},
        {"median_income": "lots"},
        {"unexpected": 1.0},
    ],
)
def test_invalid_record_yields_unavailable_result(artifact, sample_record, change):
    result = PredictionService(artifact).predict({**sample_record, **change})

    assert not result.is_available
    assert result.error.startswith("Invalid record")


def test_incomplete_record_yields_unavailable_result(artifact, sample_record):
    record = dict(sample_record)
    del record["households"]

    result = PredictionService(artifact).predict(record)

    assert not result.is_available


def test_reload_picks_up_a_newly_published_model(
    tmp_path, trained_model, sample_record
):
    path = tmp_path / "model.joblib"
    service = PredictionService(path)
    assert not service.is_ready

    ModelPersister().save(trained_model, path)

    assert service.reload() is True
    assert service.last_error is None
    assert service.predict(sample_record).is_available


def test_failed_reload_keeps_serving_previous_model(artifact, sample_record):
    service = PredictionService(artifact)
    before = service.predict(sample_record).predicted_price

    artifact.write_bytes(b"corrupted")

    assert service.reload() is False
    assert service.last_error is not None
    assert service.predict(sample_record).predicted_price == before


class AlternatingPersister:
    """Loader that hands out model A and model B in turn."""

    def __init__(self) -> None:
        self._models = itertools.cycle(
            [
                SimpleNamespace(predict_record=lambda record: 100.0),
                SimpleNamespace(predict_record=lambda record: 200.0),
            ]
        )
        self._lock = threading.Lock()

    def load(self, path):
        with self._lock:
            return next(self._models)


def test_predictions_during_reload_come_from_a_single_model(tmp_path, sample_record):
    service = PredictionService(tmp_path / "model.joblib", persister=AlternatingPersister())
    stop = threading.Event()
    seen: list[float | None] = []

    def predictor() -> None:
        while not stop.is_set():
            seen.append(service.predict(sample_record).predicted_price)

    workers = [threading.Thread(target=predictor) for _ in range(4)]
    for worker in workers:
        worker.start()
    for _ in range(200):
        service.reload()
    stop.set()
    for worker in workers:
        worker.join()

    assert seen
    assert set(seen) <= {100.0, 200.0}


def test_load_errors_are_not_raised_to_callers(tmp_path, sample_record):
    class FailingPersister:
        def load(self, path):
            raise ModelLoadError("storage offline")

    service = PredictionService(tmp_path / "model.joblib", persister=FailingPersister())

    result = service.predict(sample_record)

    assert result.error == "Model unavailable: storage offline"
