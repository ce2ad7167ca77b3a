"""
Model evaluation component.

This module is responsible for calculating regression performance metrics
(MAE, MSE, RMSE, loss, R2). It acts as a standardized "ruler" to measure
model quality on every cross-validation fold, and provides the helpers that
average per-fold results into aggregate metrics.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Protocol

import numpy as np
from sklearn.metrics import (
    mean_absolute_error,
    mean_squared_error,
    r2_score,
    root_mean_squared_error,
)

logger = logging.getLogger(__name__)


class Regressor(Protocol):
    def predict(self, X: np.ndarray) -> np.ndarray: ...


@dataclass(frozen=True)
class EvaluationMetrics:
    """
    Metrics for one evaluated set (usually one held-out fold).

    All errors are non-negative; `r_squared` may be negative for a fit worse
    than the mean baseline. `loss_function` is the mean squared-error (L2)
    loss that the trainer minimises.
    """

    mean_absolute_error: float
    mean_squared_error: float
    root_mean_squared_error: float
    loss_function: float
    r_squared: float
    sample_count: int = 0

    def as_dict(self) -> dict[str, float]:
        return {k: float(v) for k, v in asdict(self).items() if k != "sample_count"}


@dataclass(frozen=True)
class AggregateMetrics:
    """Arithmetic mean of each metric across cross-validation folds."""

    mean_absolute_error: float
    mean_squared_error: float
    root_mean_squared_error: float
    loss_function: float
    r_squared: float
    folds: tuple[EvaluationMetrics, ...] = field(default_factory=tuple)

    @property
    def fold_count(self) -> int:
        return len(self.folds)

    @property
    def fold_sizes(self) -> tuple[int, ...]:
        return tuple(fold.sample_count for fold in self.folds)

    def as_dict(self) -> dict[str, float]:
        return {
            "mean_absolute_error": self.mean_absolute_error,
            "mean_squared_error": self.mean_squared_error,
            "root_mean_squared_error": self.root_mean_squared_error,
            "loss_function": self.loss_function,
            "r_squared": self.r_squared,
        }


def aggregate_metrics(fold_metrics: list[EvaluationMetrics]) -> AggregateMetrics:
    """
    Average every metric across folds.

    Args:
        fold_metrics: One EvaluationMetrics per fold.

    Raises:
        ValueError: If the list is empty.

    Returns:
        AggregateMetrics: The per-field arithmetic means plus the folds.
    """
    if not fold_metrics:
        raise ValueError("Cannot aggregate metrics of zero folds.")

    def _mean(name: str) -> float:
        return float(np.mean([getattr(fold, name) for fold in fold_metrics]))

    return AggregateMetrics(
        mean_absolute_error=_mean("mean_absolute_error"),
        mean_squared_error=_mean("mean_squared_error"),
        root_mean_squared_error=_mean("root_mean_squared_error"),
        loss_function=_mean("loss_function"),
        r_squared=_mean("r_squared"),
        folds=tuple(fold_metrics),
    )


def squared_error_loss(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Mean of the per-row L2 loss, the objective of the trainer."""
    residuals = np.asarray(y_true, dtype=np.float64) - np.asarray(y_pred, dtype=np.float64)
    return float(np.mean(residuals**2))


class ModelEvaluator:
    """
    Compute model performance metrics.

    This class decouples evaluation logic from training logic. It ensures
    that metrics are calculated consistently across all folds.
    """

    def evaluate(
        self,
        model: Regressor,
        X: np.ndarray,
        y: np.ndarray,
        set_name: str,
    ) -> EvaluationMetrics:
        """
        Run inference on the dataset and calculate all metrics.

        Args:
            model (Regressor): Any fitted object exposing `predict`.
            X (np.ndarray): Encoded features.
            y (np.ndarray): Ground truth targets.
            set_name (str): Identifier for logging (e.g., 'validation_fold_1').

        Raises:
            ValueError: If input data is empty, mismatched, or if the model
                produces NaNs/Infs.

        Returns:
            EvaluationMetrics: The calculated scores.
        """
        logger.info("--- Starting model evaluation on '%s' dataset ---", set_name)

        y = np.asarray(y, dtype=np.float64)
        if len(X) == 0 or len(y) == 0:
            raise ValueError(f"Evaluation data for '{set_name}' is empty.")

        if len(X) != len(y):
            raise ValueError(
                f"Feature and target for '{set_name}' have mismatched lengths."
            )

        predictions = np.asarray(model.predict(X), dtype=np.float64)

        # Safety Check: Exploding Gradients / Bad Math
        if not np.all(np.isfinite(predictions)):
            raise ValueError(
                f"Model produced NaNs or Infs on '{set_name}' set. "
                "Check input values or model hyperparameters."
            )

        metrics = EvaluationMetrics(
            mean_absolute_error=float(mean_absolute_error(y, predictions)),
            mean_squared_error=float(mean_squared_error(y, predictions)),
            root_mean_squared_error=float(root_mean_squared_error(y, predictions)),
            loss_function=squared_error_loss(y, predictions),
            r_squared=float(r2_score(y, predictions)),
            sample_count=len(y),
        )

        formatted_metrics = " | ".join(
            f"{k.upper()}: {v:.4f}" for k, v in metrics.as_dict().items()
        )
        logger.info("Metrics for '%s' set: %s", set_name, formatted_metrics)

        return metrics
