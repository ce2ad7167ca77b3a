"""
MLflow run tracking component.

This module wraps the MLflow calls the training pipeline makes (run context,
params, metrics, tags, text artifacts). Tracking is optional and strictly
best-effort: when disabled every call is a no-op, and when enabled any
MLflow failure is logged as a warning instead of interrupting training.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import mlflow

from housing_price.core.config_definitions import MlflowConfig
from housing_price.core.exceptions import TelemetryError

logger = logging.getLogger(__name__)


class RunTracker:
    """Best-effort facade over the MLflow fluent API."""

    def __init__(self, config: MlflowConfig) -> None:
        self.config = config
        self._active = False

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    @contextmanager
    def start_run(self, run_name: str) -> Iterator[str | None]:
        """
        Open an MLflow run for the duration of the block.

        Yields:
            str | None: The MLflow run ID, or None when tracking is disabled
                or the tracking backend could not be reached.
        """
        if not self.enabled:
            yield None
            return

        active_run = None
        try:
            if self.config.tracking_uri:
                mlflow.set_tracking_uri(self.config.tracking_uri)
            mlflow.set_experiment(self.config.experiment_name)
            active_run = mlflow.start_run(run_name=run_name)
        except Exception as e:
            self._warn(TelemetryError(f"Could not start MLflow run: {e}"))

        if active_run is None:
            yield None
            return

        self._active = True
        try:
            with active_run:
                yield str(active_run.info.run_id)
        finally:
            self._active = False

    def log_params(self, params: dict[str, Any]) -> None:
        self._call("log_params", params)

    def log_metrics(self, metrics: dict[str, float]) -> None:
        self._call("log_metrics", metrics)

    def set_tag(self, key: str, value: Any) -> None:
        self._call("set_tag", key, value)

    def log_dict(self, payload: dict[str, Any], artifact_file: str) -> None:
        self._call("log_dict", payload, artifact_file)

    def log_text(self, text: str, artifact_file: str) -> None:
        self._call("log_text", text, artifact_file)

    def _call(self, method: str, *args: Any) -> None:
        if not self._active:
            return
        try:
            getattr(mlflow, method)(*args)
        except Exception as e:
            self._warn(TelemetryError(f"mlflow.{method} failed: {e}"))

    def _warn(self, e: TelemetryError) -> None:
        logger.warning("Telemetry failed (pipeline continuing): %s", e)
