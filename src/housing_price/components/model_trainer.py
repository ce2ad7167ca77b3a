"""
Model Training Component.

This module builds and fits the gradient-boosted tree regressor:
1. Constructing the estimator from the catalog and the frozen training configuration.
2. Guarding the input contract (non-empty, aligned, two-dimensional).
3. Fitting one model instance on the full encoded dataset.

Every call is a full retrain; there is no partial or incremental fitting.
"""

import logging
from dataclasses import dataclass
from typing import Any

import numpy as np
from sklearn.base import BaseEstimator

from housing_price.components.feature_encoder import FeatureEncoder
from housing_price.core.config_definitions import ModelTrainerConfig
from housing_price.core.data_definitions import HousingRecord
from housing_price.core.exceptions import TrainingError
from housing_price.models.catalog import get_model_class

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrainedModel:
    """
    A fitted estimator together with the frozen encoder it was fit against.

    Instances are treated as immutable: whoever holds one owns it, and a new
    training run produces a new instance instead of mutating an existing one.
    """

    estimator: Any
    encoder: FeatureEncoder
    model_name: str

    @property
    def n_features(self) -> int:
        return self.encoder.n_features_out

    def predict(self, X: np.ndarray) -> np.ndarray:
        """Predict prices for an already-encoded 2-D matrix."""
        return np.asarray(self.estimator.predict(X), dtype=np.float64)

    def predict_record(self, record: HousingRecord) -> float:
        """Encode one record with the frozen encoder and predict its price."""
        vector = self.encoder.encode(record)
        return float(self.predict(vector.reshape(1, -1))[0])


class ModelTrainer:
    """
    Component for building and fitting a gradient-boosted regressor.

    It doesn't know the specifics of the algorithm (it asks the Catalog);
    it knows how to configure one deterministically and fit it safely.
    """

    def __init__(self, config: ModelTrainerConfig) -> None:
        """
        Initialize the trainer with the training configuration.

        Args:
            config (ModelTrainerConfig): Algorithm choice, hyperparameters and seed.
        """
        self.config = config
        self.model_name = config.model_name
        self.model_params = config.model_params

    def build_estimator(self) -> BaseEstimator:
        """Construct a fresh, unfitted estimator from the configuration."""
        ModelClass = get_model_class(self.model_params.type)

        # Convert Pydantic model to dict, excluding the discriminator field
        model_params_dict = self.model_params.model_dump(exclude={"type"})
        model = ModelClass(**model_params_dict)

        # Inject the seed if the model supports it
        if "random_state" in model.get_params():
            model.set_params(random_state=self.config.random_state)
        return model

    def fit_estimator(self, X: np.ndarray, y: np.ndarray) -> BaseEstimator:
        """
        Fit a fresh estimator on encoded rows.

        Raises:
            TrainingError: If the input is empty, misaligned or fitting fails.
        """
        X, y = self._check_inputs(X, y)
        try:
            estimator = self.build_estimator()
            estimator.fit(X, y)
        except Exception as e:
            raise TrainingError(f"Model training failed: {e}") from e
        return estimator

    def fit(
        self, X: np.ndarray, y: np.ndarray, encoder: FeatureEncoder
    ) -> TrainedModel:
        """
        Fit the production model on the full encoded dataset.

        Args:
            X (np.ndarray): Encoded features, shape (n_rows, n_features).
            y (np.ndarray): Labels, shape (n_rows,).
            encoder (FeatureEncoder): The frozen encoder that produced X.

        Raises:
            TrainingError: If the input set is empty, lengths mismatch, the
                feature width disagrees with the encoder, or fitting fails.

        Returns:
            TrainedModel: The fitted estimator bundled with its encoder.
        """
        logger.info("Starting model training for %s", self.model_name)
        X_checked, _ = self._check_inputs(X, y)
        if X_checked.shape[1] != encoder.n_features_out:
            raise TrainingError(
                f"Encoded width {X_checked.shape[1]} does not match encoder "
                f"width {encoder.n_features_out}."
            )

        estimator = self.fit_estimator(X, y)
        logger.info(
            "Model training complete: %s rows, %s features.",
            X_checked.shape[0],
            X_checked.shape[1],
        )
        return TrainedModel(
            estimator=estimator, encoder=encoder, model_name=self.model_name
        )

    def _check_inputs(
        self, X: np.ndarray, y: np.ndarray
    ) -> tuple[np.ndarray, np.ndarray]:
        X = np.asarray(X, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)

        if X.size == 0 or y.size == 0:
            raise TrainingError("Training data is empty.")
        if X.ndim != 2:
            raise TrainingError(f"Features must be 2-dimensional, got shape {X.shape}.")
        if X.shape[0] != y.shape[0]:
            raise TrainingError(
                f"Feature/label length mismatch: {X.shape[0]} rows vs {y.shape[0]} labels."
            )
        return X, y
