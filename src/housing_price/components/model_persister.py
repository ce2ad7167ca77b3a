"""
Model persistence component.

This module writes and reads the published model artifact: a single joblib
file holding the fitted estimator, the frozen feature encoder and a small
versioned header. Writes go to a temporary file in the destination directory
and are moved into place with an atomic rename, so an interrupted save never
leaves a half-written artifact behind.
"""

import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import joblib

from housing_price.components.feature_encoder import (
    ENCODER_SCHEMA_VERSION,
    FeatureEncoder,
)
from housing_price.components.model_evaluator import AggregateMetrics
from housing_price.components.model_trainer import TrainedModel
from housing_price.core.exceptions import ModelLoadError
from housing_price.core.version import __version__

logger = logging.getLogger(__name__)

ARTIFACT_FORMAT = "housing-price-model"
ARTIFACT_VERSION = 1

_REQUIRED_KEYS = {
    "format",
    "artifact_version",
    "encoder_schema_version",
    "model_name",
    "estimator",
    "encoder",
}


class ModelPersister:
    """Serialize and deserialize a TrainedModel plus the schema it expects."""

    def __init__(self, compress: int = 3) -> None:
        """
        Args:
            compress (int): joblib compression level (0-9).
        """
        self.compress = compress

    def save(
        self,
        model: TrainedModel,
        path: Path,
        metrics: AggregateMetrics | None = None,
    ) -> Path:
        """
        Atomically write the model artifact, replacing any previous one.

        Args:
            model (TrainedModel): The fitted model and its encoder.
            path (Path): Destination file.
            metrics (AggregateMetrics | None): Cross-validation summary stored
                alongside the model for diagnostics.

        Returns:
            Path: The path of the written artifact.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        payload: dict[str, Any] = {
            "format": ARTIFACT_FORMAT,
            "artifact_version": ARTIFACT_VERSION,
            "encoder_schema_version": model.encoder.schema_version_,
            "model_name": model.model_name,
            "estimator": model.estimator,
            "encoder": model.encoder,
            "encoder_schema": model.encoder.describe_schema(),
            "metrics": metrics.as_dict() if metrics is not None else None,
            "created_at": datetime.now(timezone.utc).isoformat(),
            "package_version": __version__,
        }

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                joblib.dump(payload, f, compress=self.compress)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

        logger.info("Model artifact written to %s (%s bytes)", path, path.stat().st_size)
        return path

    def load(self, path: Path) -> TrainedModel:
        """
        Read and validate a model artifact.

        Args:
            path (Path): Artifact file.

        Raises:
            ModelLoadError: If the file is absent, truncated, unreadable, or
                incompatible with the current encoder schema.

        Returns:
            TrainedModel: The restored model.
        """
        path = Path(path)
        if not path.is_file():
            raise ModelLoadError(f"Model artifact not found at path: {path}")

        try:
            payload = joblib.load(path)
        except Exception as e:
            raise ModelLoadError(
                f"Model artifact '{path}' is unreadable or truncated: {e}"
            ) from e

        model = self._restore(payload, path)
        logger.info(
            "Loaded model '%s' from %s (%s features)",
            model.model_name,
            path,
            model.n_features,
        )
        return model

    def _restore(self, payload: Any, path: Path) -> TrainedModel:
        """Check the artifact header and rebuild the TrainedModel."""
        if not isinstance(payload, dict) or payload.get("format") != ARTIFACT_FORMAT:
            raise ModelLoadError(f"'{path}' is not a {ARTIFACT_FORMAT} artifact.")

        missing = _REQUIRED_KEYS - payload.keys()
        if missing:
            raise ModelLoadError(f"Artifact '{path}' is missing fields: {sorted(missing)}")

        if payload["artifact_version"] != ARTIFACT_VERSION:
            raise ModelLoadError(
                f"Artifact '{path}' has version {payload['artifact_version']}, "
                f"expected {ARTIFACT_VERSION}."
            )

        if payload["encoder_schema_version"] != ENCODER_SCHEMA_VERSION:
            raise ModelLoadError(
                f"Artifact '{path}' was encoded with schema "
                f"v{payload['encoder_schema_version']}, current encoder is "
                f"v{ENCODER_SCHEMA_VERSION}. Retrain the model."
            )

        encoder = payload["encoder"]
        if not isinstance(encoder, FeatureEncoder) or not encoder.__sklearn_is_fitted__():
            raise ModelLoadError(f"Artifact '{path}' does not contain a frozen encoder.")

        estimator = payload["estimator"]
        if not hasattr(estimator, "predict"):
            raise ModelLoadError(f"Artifact '{path}' does not contain a fitted estimator.")

        n_features_in = getattr(estimator, "n_features_in_", None)
        if n_features_in is not None and n_features_in != encoder.n_features_out:
            raise ModelLoadError(
                f"Artifact '{path}' is inconsistent: estimator expects "
                f"{n_features_in} features, encoder produces {encoder.n_features_out}."
            )

        return TrainedModel(
            estimator=estimator, encoder=encoder, model_name=payload["model_name"]
        )
