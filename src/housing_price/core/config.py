"""
Configuration loading.

Locates the YAML configuration file, parses it with PyYAML and validates it
against the pydantic schemas in `config_definitions.py`. Every failure is
surfaced as a ConfigurationError, so the CLI stops before any data is read
or any model is touched.
"""

import logging
import os
from collections.abc import Iterator
from pathlib import Path

import yaml
from pydantic import ValidationError

from housing_price.core.config_definitions import (
    ArtifactsConfig,
    ConfigSchema,
    DataIngestionConfig,
    FeatureEncoderConfig,
    MlflowConfig,
    ModelTrainerConfig,
)
from housing_price.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "CONFIG_PATH"
DEFAULT_CONFIG_FILENAME = "config.yaml"

# <root>/src/housing_price/core/config.py
PROJECT_ROOT = Path(__file__).resolve().parents[3]


def _candidate_paths(config_filename: str) -> Iterator[Path]:
    """Yield possible config locations, highest precedence first."""
    env_value = os.getenv(CONFIG_ENV_VAR)
    if env_value:
        yield Path(env_value)
    yield Path(config_filename)
    yield Path.cwd() / "configs" / config_filename
    yield PROJECT_ROOT / config_filename
    yield PROJECT_ROOT / "configs" / config_filename


def locate_config_file(config_filename: str = DEFAULT_CONFIG_FILENAME) -> Path:
    """
    Find the configuration file.

    Precedence: the `CONFIG_PATH` environment variable, `config_filename` as
    given (absolute or relative to the working directory), `configs/` under
    the working directory, then the project root and its `configs/`.

    Raises:
        FileNotFoundError: If no candidate exists.
    """
    env_value = os.getenv(CONFIG_ENV_VAR)
    if env_value and not Path(env_value).is_file():
        logger.warning("%s points to '%s', which does not exist.", CONFIG_ENV_VAR, env_value)

    checked: list[str] = []
    for candidate in _candidate_paths(config_filename):
        if candidate.is_file():
            logger.info("Using configuration file %s", candidate)
            return candidate
        checked.append(str(candidate))
    raise FileNotFoundError(f"No '{config_filename}' found. Checked: {checked}")


def parse_config(config_path: Path) -> ConfigSchema:
    """
    Parse and validate one YAML configuration file.

    Relative paths inside the file are kept as written and therefore resolve
    against the working directory of the process.

    Raises:
        yaml.YAMLError: If the document is not valid YAML.
        ValidationError: If the document does not match ConfigSchema.
    """
    with open(config_path, "r") as f:
        document = yaml.safe_load(f)
    return ConfigSchema.model_validate(document or {})


class ConfigurationManager:
    """Validated configuration with one accessor per block."""

    def __init__(self, config_filename: str = DEFAULT_CONFIG_FILENAME) -> None:
        """
        Args:
            config_filename (str): File name of, or path to, the configuration.

        Raises:
            ConfigurationError: If the file is missing, is not valid YAML, or
                violates the schema.
        """
        try:
            self.config_path = locate_config_file(config_filename)
            self.config = parse_config(self.config_path)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Configuration file not found: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Configuration '{config_filename}' contains invalid YAML: {e}"
            ) from e
        except ValidationError as e:
            raise ConfigurationError(
                f"Configuration '{config_filename}' failed validation: {e}"
            ) from e
        logger.info("Configuration loaded and validated from %s", self.config_path)

    def get_data_ingestion_config(self) -> DataIngestionConfig:
        return self.config.data_ingestion

    def get_feature_encoder_config(self) -> FeatureEncoderConfig:
        return self.config.feature_encoder

    def get_model_trainer_config(self) -> ModelTrainerConfig:
        return self.config.model_trainer

    def get_mlflow_config(self) -> MlflowConfig:
        return self.config.globals.mlflow

    def get_artifacts_config(self) -> ArtifactsConfig:
        return self.config.globals.artifacts

    def get_model_path(self) -> Path:
        """Artifact served by predictions: the explicit override, else the training output."""
        override = self.config.prediction.model_path
        return override if override is not None else self.get_artifacts_config().model_path
