from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from housing_price.components.cross_validator import CrossValidator
from housing_price.components.data_ingestion import DataIngestion
from housing_price.components.feature_encoder import FeatureEncoder
from housing_price.components.model_evaluator import ModelEvaluator
from housing_price.components.model_persister import ModelPersister
from housing_price.components.model_trainer import ModelTrainer
from housing_price.core.config_definitions import (
    CrossValidationConfig,
    DataIngestionConfig,
    LGBMParams,
    ModelTrainerConfig,
)
from housing_price.core.data_definitions import CSV_COLUMNS, TARGET_COLUMN
from housing_price.pipeline.training_pipeline import TrainingPipeline

CATEGORY_PREMIUM = {
    "<1H OCEAN": 60_000.0,
    "INLAND": 0.0,
    "NEAR BAY": 80_000.0,
    "NEAR OCEAN": 70_000.0,
}


def make_housing_frame(
    n_rows: int = 200,
    seed: int = 0,
    categories: tuple[str, ...] = tuple(CATEGORY_PREMIUM),
) -> pd.DataFrame:
    """Deterministic synthetic housing rows whose price is easy to learn."""
    rng = np.random.default_rng(seed)
    ocean = rng.choice(list(categories), size=n_rows)
    median_income = rng.uniform(1.0, 10.0, n_rows)
    households = rng.uniform(100.0, 1_000.0, n_rows)
    premium = np.array([CATEGORY_PREMIUM.get(c, 0.0) for c in ocean])

    df = pd.DataFrame(
        {
            "ocean_proximity": ocean,
            "longitude": rng.uniform(-124.0, -114.0, n_rows),
            "latitude": rng.uniform(32.0, 42.0, n_rows),
            "housing_median_age": rng.integers(1, 52, n_rows).astype(float),
            "total_rooms": households * rng.uniform(4.0, 6.0, n_rows),
            "total_bedrooms": households * rng.uniform(0.9, 1.2, n_rows),
            "population": households * rng.uniform(2.0, 4.0, n_rows),
            "households": households,
            "median_income": median_income,
            TARGET_COLUMN: 40_000.0
            + 30_000.0 * median_income
            + premium
            + rng.normal(0.0, 3_000.0, n_rows),
        }
    )
    return df[list(CSV_COLUMNS)]


@pytest.fixture
def housing_frame() -> pd.DataFrame:
    return make_housing_frame()


@pytest.fixture
def housing_csv(tmp_path: Path, housing_frame: pd.DataFrame) -> Path:
    path = tmp_path / "housing.csv"
    housing_frame.to_csv(path, index=False)
    return path


@pytest.fixture
def trainer_config() -> ModelTrainerConfig:
    return ModelTrainerConfig(
        model_name="LGBMRegressor",
        params={"LGBMRegressor": LGBMParams(n_estimators=60, min_child_samples=5)},
        random_state=1,
        cross_validation=CrossValidationConfig(n_folds=5),
        acceptance_threshold=0.7,
    )


@pytest.fixture
def sample_record() -> dict:
    return {
        "ocean_proximity": "NEAR BAY",
        "longitude": -122.23,
        "latitude": 37.88,
        "housing_median_age": 41.0,
        "total_rooms": 880.0,
        "total_bedrooms": 129.0,
        "population": 322.0,
        "households": 126.0,
        "median_income": 8.3252,
    }


@pytest.fixture
def fitted_encoder(housing_frame: pd.DataFrame) -> FeatureEncoder:
    return FeatureEncoder().fit(housing_frame)


@pytest.fixture
def encoded(housing_frame: pd.DataFrame, fitted_encoder: FeatureEncoder):
    X = fitted_encoder.transform(housing_frame)
    y = housing_frame[TARGET_COLUMN].to_numpy(dtype=float)
    return X, y


@pytest.fixture
def trained_model(trainer_config, encoded, fitted_encoder):
    X, y = encoded
    return ModelTrainer(trainer_config).fit(X, y, fitted_encoder)


@pytest.fixture
def make_pipeline(tmp_path: Path, trainer_config: ModelTrainerConfig):
    """Factory wiring a TrainingPipeline with real components by default."""

    def _make(
        csv_path: Path,
        artifact_path: Path | None = None,
        config: ModelTrainerConfig | None = None,
        **overrides,
    ) -> TrainingPipeline:
        config = config or trainer_config
        trainer = ModelTrainer(config)
        components = {
            "trainer_config": config,
            "artifact_path": artifact_path or tmp_path / "artifacts" / "model.joblib",
            "data_ingestion": DataIngestion(DataIngestionConfig(csv_path=csv_path)),
            "model_trainer": trainer,
            "cross_validator": CrossValidator(config, trainer, ModelEvaluator()),
            "model_persister": ModelPersister(),
        }
        components.update(overrides)
        return TrainingPipeline(**components)

    return _make
