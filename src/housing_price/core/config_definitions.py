"""
Pydantic schemas for `configs/config.yaml`.

Every block forbids unknown keys and the training block is frozen, so a
typo or a type mismatch stops the process at startup instead of silently
changing how a model is trained, accepted or served.
"""

from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from housing_price.core.data_definitions import TARGET_COLUMN

# =============================================================================
# 1. CONSTANTS & SHARED LEAVES (Foundations)
# =============================================================================


class ArtifactsConfig(BaseModel):
    """Where the published model artifact lives."""

    model_config = ConfigDict(extra="forbid")

    root_dir: Path = Field(description="Directory the model artifact is published to.")
    model_filename: str = Field(
        default="TrainedModel.joblib",
        description="File name of the published model artifact.",
    )

    @property
    def model_path(self) -> Path:
        return self.root_dir / self.model_filename


class MlflowConfig(BaseModel):
    """Configuration for MLflow run tracking."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = Field(
        default=False, description="Whether training runs are tracked in MLflow."
    )
    experiment_name: str = Field(
        default="housing_price", description="Name of the MLflow experiment."
    )
    tracking_uri: str | None = Field(
        default=None, description="Optional tracking server or store URI."
    )


# =============================================================================
# 2. HELPER & STRATEGY SCHEMAS (Branches)
# =============================================================================


# --- Model Parameter Schemas ---
class LGBMParams(BaseModel):
    """LightGBM regressor hyperparameters."""

    model_config = ConfigDict(extra="forbid", frozen=True)
    type: Literal["LGBMRegressor"] = "LGBMRegressor"
    n_estimators: int = Field(default=200, gt=0)
    learning_rate: float = Field(default=0.1, gt=0)
    num_leaves: int = Field(default=31, gt=1)
    max_depth: int = -1
    min_child_samples: int = Field(default=20, gt=0)
    subsample: float = Field(default=1.0, gt=0, le=1)
    colsample_bytree: float = Field(default=1.0, gt=0, le=1)
    objective: Literal["regression", "l2"] = "regression"
    deterministic: bool = True
    force_row_wise: bool = True
    verbose: int = -1


class XGBoostParams(BaseModel):
    """XGBoost regressor hyperparameters."""

    model_config = ConfigDict(extra="forbid", frozen=True)
    type: Literal["XGBRegressor"] = "XGBRegressor"
    n_estimators: int = Field(default=200, gt=0)
    learning_rate: float = Field(default=0.1, gt=0)
    max_depth: int = Field(default=6, gt=0)
    subsample: float = Field(default=1.0, gt=0, le=1)
    colsample_bytree: float = Field(default=1.0, gt=0, le=1)
    gamma: float = Field(default=0.0, ge=0)
    objective: Literal["reg:squarederror"] = "reg:squarederror"


ModelParams = Annotated[
    Union[LGBMParams, XGBoostParams],
    Field(discriminator="type"),
]


class CrossValidationConfig(BaseModel):
    """K-Fold settings for the accuracy estimate."""

    model_config = ConfigDict(extra="forbid", frozen=True)
    n_folds: int = Field(
        default=5, gt=1, description="Number of folds to use for cross-validation."
    )
    shuffle: bool = Field(
        default=True,
        description="Shuffle rows (seeded) before assigning them to folds.",
    )


# =============================================================================
# 3. DOMAIN CONFIGURATIONS (Trunks)
# =============================================================================
class GlobalsConfig(BaseModel):
    """Settings shared by training and prediction."""

    model_config = ConfigDict(extra="forbid")

    target_col: str = Field(
        default=TARGET_COLUMN, description="The name of the label column."
    )

    artifacts: ArtifactsConfig
    mlflow: MlflowConfig = Field(default_factory=MlflowConfig)

    @field_validator("target_col")
    def target_must_match_contract(cls, v: str) -> str:
        """
        Ensure the label column is the one the training-file contract defines.

        Raises:
            ValueError: If the configured target differs from the CSV contract.
        """
        if v != TARGET_COLUMN:
            raise ValueError(
                f"target_col must be '{TARGET_COLUMN}' to match the training file contract."
            )
        return v


class DataIngestionConfig(BaseModel):
    """Location of the training CSV."""

    model_config = ConfigDict(extra="forbid")

    type: Literal["csv"] = "csv"
    csv_path: Path


class FeatureEncoderConfig(BaseModel):
    """Configuration for turning raw records into feature vectors."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    unknown_category_policy: Literal["error", "zero_fill"] = Field(
        default="error",
        description=(
            "'error' raises UnknownCategoryError for unseen categories; "
            "'zero_fill' encodes them as an all-zero one-hot block."
        ),
    )


class ModelTrainerConfig(BaseModel):
    """
    Configuration for the entire model training stage.

    This is the immutable training configuration of one run: algorithm
    hyperparameters, seed, fold count and the acceptance threshold.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, protected_namespaces=())

    model_name: str = "LGBMRegressor"
    params: dict[str, ModelParams] = Field(
        default_factory=lambda: {"LGBMRegressor": LGBMParams()}
    )
    random_state: int = Field(
        default=1, description="Seed for the estimator and the fold shuffling."
    )
    cross_validation: CrossValidationConfig = Field(
        default_factory=CrossValidationConfig
    )
    acceptance_threshold: float = Field(
        default=0.7,
        description="Minimum average cross-validated R-squared required to publish.",
    )

    @model_validator(mode="after")
    def params_keys_name_their_type(self) -> "ModelTrainerConfig":
        """
        Each `params` entry must be keyed by the regressor it configures.

        Raises:
            ValueError: If a key (e.g. 'XGBRegressor') holds parameters of
                another type (e.g. 'LGBMRegressor').
        """
        mismatched = {
            key: params.type for key, params in self.params.items() if key != params.type
        }
        if mismatched:
            raise ValueError(
                "params keys must equal the 'type' of their block; "
                f"key does not match type for: {mismatched}"
            )
        return self

    @model_validator(mode="after")
    def check_model_has_params(self) -> "ModelTrainerConfig":
        """
        Verify that the selected model has a parameter block.

        Raises:
            ValueError: If `model_name` is not a key of `params`.
        """
        if self.model_name not in self.params:
            raise ValueError(
                f"No parameters defined for model '{self.model_name}' in config. "
                f"Available: {list(self.params.keys())}"
            )
        return self

    @property
    def model_params(self) -> LGBMParams | XGBoostParams:
        return self.params[self.model_name]


class PredictionConfig(BaseModel):
    """Which artifact the prediction service loads."""

    model_config = ConfigDict(extra="forbid")
    model_path: Path | None = Field(
        default=None,
        description="Artifact to serve. Defaults to the training artifact path.",
    )


# =============================================================================
# 4. THE ROOT SCHEMA
# =============================================================================
class ConfigSchema(BaseModel):
    """Top-level layout of the configuration file."""

    model_config = ConfigDict(extra="forbid")

    globals: GlobalsConfig
    data_ingestion: DataIngestionConfig
    feature_encoder: FeatureEncoderConfig = Field(default_factory=FeatureEncoderConfig)
    model_trainer: ModelTrainerConfig = Field(default_factory=ModelTrainerConfig)
    prediction: PredictionConfig = Field(default_factory=PredictionConfig)
