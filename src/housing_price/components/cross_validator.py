"""
K-Fold cross-validation component.

The full dataset is partitioned into `n_folds` disjoint folds. Each fold is
held out once while a fresh estimator is fitted on the remaining folds, and
the per-fold metrics are averaged. Since the production model is trained on
the same rows, the result is an in-sample estimate rather than a true
generalization test; it is still the only quality signal the publishing gate
relies on.
"""

import logging

import numpy as np
from sklearn.model_selection import KFold

from housing_price.components.model_evaluator import (
    AggregateMetrics,
    EvaluationMetrics,
    ModelEvaluator,
    aggregate_metrics,
)
from housing_price.components.model_trainer import ModelTrainer
from housing_price.core.config_definitions import ModelTrainerConfig
from housing_price.core.exceptions import TrainingError

logger = logging.getLogger(__name__)


class CrossValidator:
    """Train/evaluate repeatedly over K folds and aggregate the metrics."""

    def __init__(
        self,
        config: ModelTrainerConfig,
        model_trainer: ModelTrainer,
        model_evaluator: ModelEvaluator,
    ) -> None:
        """
        Args:
            config (ModelTrainerConfig): Fold count, shuffling and seed.
            model_trainer (ModelTrainer): Fits one fresh estimator per fold.
            model_evaluator (ModelEvaluator): Scores each held-out fold.
        """
        self.config = config
        self.trainer = model_trainer
        self.evaluator = model_evaluator

    def build_splitter(self) -> KFold:
        cv_config = self.config.cross_validation
        return KFold(
            n_splits=cv_config.n_folds,
            shuffle=cv_config.shuffle,
            random_state=self.config.random_state if cv_config.shuffle else None,
        )

    def cross_validate(self, X: np.ndarray, y: np.ndarray) -> AggregateMetrics:
        """
        Run K-Fold cross-validation on the encoded dataset.

        Args:
            X (np.ndarray): Encoded features.
            y (np.ndarray): Labels.

        Raises:
            TrainingError: If there are fewer rows than folds, inputs are
                misaligned, or a fold fails to train or evaluate.

        Returns:
            AggregateMetrics: Per-metric means plus every fold's metrics.
        """
        X = np.asarray(X, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        n_folds = self.config.cross_validation.n_folds

        if len(X) != len(y):
            raise TrainingError(
                f"Feature/label length mismatch: {len(X)} rows vs {len(y)} labels."
            )
        if len(X) < n_folds:
            raise TrainingError(
                f"Cross-validation needs at least {n_folds} rows, got {len(X)}."
            )

        logger.info(
            "Using KFold with %s splits (shuffle=%s)",
            n_folds,
            self.config.cross_validation.shuffle,
        )
        splitter = self.build_splitter()

        all_fold_metrics: list[EvaluationMetrics] = []
        for fold, (train_idx, val_idx) in enumerate(splitter.split(X)):
            logger.info("--- Starting CV Fold %s/%s ---", fold + 1, n_folds)

            estimator = self.trainer.fit_estimator(X[train_idx], y[train_idx])
            try:
                fold_metrics = self.evaluator.evaluate(
                    model=estimator,
                    X=X[val_idx],
                    y=y[val_idx],
                    set_name=f"validation_fold_{fold + 1}",
                )
            except ValueError as e:
                raise TrainingError(f"Evaluation of fold {fold + 1} failed: {e}") from e
            all_fold_metrics.append(fold_metrics)

        metrics = aggregate_metrics(all_fold_metrics)
        self._log_validation_summary(metrics)
        return metrics

    def _log_validation_summary(self, metrics: AggregateMetrics) -> None:
        """Log the gate metric statistics to the console for quick feedback."""
        r2_values = [fold.r_squared for fold in metrics.folds]
        logger.info(
            "CV Validation Summary: R2 = %.4f +/- %.4f over %s folds (sizes=%s)",
            metrics.r_squared,
            float(np.std(r2_values)),
            metrics.fold_count,
            list(metrics.fold_sizes),
        )
