"""
Inference component for generating predictions.

This module provides the response schema and the PredictionService. The
service loads the persisted model once, keeps it in memory as an immutable
reference, and answers single-record requests. It never raises to callers:
a missing or corrupt artifact puts it in a degraded state where every
request returns an explicit "unavailable" result carrying the reason.
"""

import logging
import math
import threading
from collections.abc import Iterable, Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError

from housing_price.components.model_persister import ModelPersister
from housing_price.components.model_trainer import TrainedModel
from housing_price.core.data_definitions import HousingRecord
from housing_price.core.exceptions import ModelLoadError, UnknownCategoryError
from housing_price.core.version import __version__

logger = logging.getLogger(__name__)

# =============================================================================
# I/O SCHEMAS (The API Contract)
# =============================================================================


class PredictionResult(BaseModel):
    """
    Standardized response format for a single prediction.

    Exactly one of `predicted_price` and `error` is set.
    """

    model_config = ConfigDict(protected_namespaces=())

    predicted_price: float | None = None
    error: str | None = None
    service_version: str = __version__
    model_artifact: str | None = None

    @property
    def is_available(self) -> bool:
        return self.predicted_price is not None


# =============================================================================
# PREDICTION SERVICE
# =============================================================================


class PredictionService:
    """
    Thread-safe prediction facade over a persisted model.

    Concurrent `predict` calls read the active model reference once and run
    without locking. `reload` serializes with other reloads and swaps the
    reference only after a successful load, so in-flight predictions keep
    using the model they started with.
    """

    def __init__(self, model_path: Path, persister: ModelPersister | None = None) -> None:
        """
        Initialize the service and attempt the first load immediately.

        Args:
            model_path (Path): Artifact to serve.
            persister (ModelPersister | None): Injectable loader for testing.
        """
        self.model_path = Path(model_path)
        self.persister = persister or ModelPersister()

        self._active_model: TrainedModel | None = None
        self._last_error: str | None = None
        self._reload_lock = threading.Lock()

        self.reload()

    @property
    def is_ready(self) -> bool:
        return self._active_model is not None

    @property
    def last_error(self) -> str | None:
        """Reason of the most recent failed load, if any."""
        return self._last_error

    @property
    def active_model(self) -> TrainedModel | None:
        return self._active_model

    def reload(self) -> bool:
        """
        Re-attempt loading the artifact and swap it in on success.

        Returns:
            bool: True if a new model is now active, False if the load failed
                (the previous model, if any, stays active).
        """
        with self._reload_lock:
            try:
                model = self.persister.load(self.model_path)
            except ModelLoadError as e:
                self._last_error = str(e)
                if self._active_model is None:
                    logger.error("Prediction service degraded: %s", e)
                else:
                    logger.warning("Reload failed, keeping previous model: %s", e)
                return False

            self._active_model = model
            self._last_error = None
            logger.info("Prediction service now serving %s", self.model_path)
            return True

    def predict(self, record: HousingRecord | Mapping[str, object]) -> PredictionResult:
        """
        Predict the price of one property.

        Args:
            record: A HousingRecord or a mapping with the same fields.

        Returns:
            PredictionResult: The price, or an unavailable result with a reason.
        """
        model = self._active_model
        if model is None:
            return self._unavailable(f"Model unavailable: {self._last_error}")

        try:
            if not isinstance(record, HousingRecord):
                record = HousingRecord.model_validate(record)
            price = model.predict_record(record)
        except ValidationError as e:
            return self._unavailable(f"Invalid record: {e}")
        except UnknownCategoryError as e:
            return self._unavailable(str(e))
        except Exception as e:
            logger.error("Inference failed: %s", e, exc_info=True)
            return self._unavailable(f"Inference failed: {e}")

        if not math.isfinite(price):
            return self._unavailable("Model produced a non-finite prediction.")

        return PredictionResult(
            predicted_price=price, model_artifact=str(self.model_path)
        )

    def predict_many(
        self, records: Iterable[HousingRecord | Mapping[str, object]]
    ) -> list[PredictionResult]:
        return [self.predict(record) for record in records]

    def _unavailable(self, reason: str) -> PredictionResult:
        logger.debug("Prediction unavailable: %s", reason)
        return PredictionResult(error=reason, model_artifact=str(self.model_path))
