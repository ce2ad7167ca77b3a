"""
Data ingestion component for the housing price pipeline.

This module provides the DataIngestion class, which is responsible for
reading raw training rows from the configured CSV file and enforcing the
data contract via Pandera schemas.
"""

import logging
from pathlib import Path

import pandas as pd
from pandera.errors import SchemaError, SchemaErrors

from housing_price.core.config_definitions import DataIngestionConfig
from housing_price.core.data_definitions import HousingSchema
from housing_price.core.exceptions import DataLoadError

logger = logging.getLogger(__name__)


class DataIngestion:
    """
    Handle the extraction and initial validation of raw housing data.

    This component acts as the physical 'Inlet' of the pipeline. It reads
    the training file and ensures the data matches the expected schema.
    An empty (header-only) file is returned as an empty frame; deciding
    whether it is usable is the trainer's job.
    """

    def __init__(self, config: DataIngestionConfig) -> None:
        """
        Initialize the DataIngestion component.

        Args:
            config (DataIngestionConfig): Validated configuration block
                containing 'csv_path'.
        """
        self.config = config

    @property
    def source_path(self) -> Path:
        return self.config.csv_path

    def get_data(self) -> pd.DataFrame:
        """
        Orchestrate the loading and validation of housing data.

        Raises:
            DataLoadError: If the file is missing or unreadable, or if the
                rows violate the Pandera schema (Data Contract).

        Returns:
            pd.DataFrame: The schema-validated housing dataset.
        """
        # ---------------------------------------------------------
        # 1. MECHANISM: Try to load the raw rows
        # ---------------------------------------------------------
        try:
            if self.config.type == "csv":
                df = self._load_from_csv(self.config.csv_path)
            else:
                raise ValueError(f"Unsupported data source type: {self.config.type}")
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as e:
            raise DataLoadError(
                f"Failed to load data from source '{self.config.csv_path}': {e}"
            ) from e

        if df.empty:
            logger.warning("Training file '%s' contains no rows.", self.config.csv_path)

        # ---------------------------------------------------------
        # 2. VALIDATION: Check Schema
        # ---------------------------------------------------------
        logger.info("Validating schema for %s rows...", len(df))
        try:
            df = HousingSchema.validate(df, lazy=True)
        except SchemaErrors as e:
            raise DataLoadError(
                f"Data contract violated by '{self.config.csv_path}':\n{e.failure_cases}"
            ) from e
        except SchemaError as e:
            raise DataLoadError(
                f"Data contract violated by '{self.config.csv_path}': {e}"
            ) from e
        logger.info("Schema validation passed.")
        return df.reset_index(drop=True)

    def _load_from_csv(self, csv_path: Path) -> pd.DataFrame:
        """
        Execute low-level CSV extraction logic.

        The file must carry a header row. Quoted fields are honoured and
        blank padding after separators is ignored.

        Args:
            csv_path (Path): The filesystem path to the .csv file.

        Raises:
            FileNotFoundError: If the file does not exist at the provided path.

        Returns:
            pd.DataFrame: The raw DataFrame containing all rows from the file.
        """
        if not csv_path.is_file():
            raise FileNotFoundError(f"Training file not found at path: {csv_path}")

        logger.info(
            "Reading training file %s (%s bytes)", csv_path, f"{csv_path.stat().st_size:,}"
        )
        return pd.read_csv(
            csv_path,
            sep=",",
            header=0,
            quotechar='"',
            skipinitialspace=True,
        )
