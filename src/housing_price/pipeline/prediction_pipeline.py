"""
Batch prediction.

This module implements batch inference on top of the PredictionService. It
reads request records from a JSON string or a CSV/JSON file, hands each one
to the service, and reports batch latency. Individual record failures are
carried inside each PredictionResult; only an unreadable input source
raises.
"""

import json
import logging
import math
import time
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from housing_price.components.model_predictor import PredictionResult, PredictionService
from housing_price.core.data_definitions import TARGET_COLUMN
from housing_price.core.exceptions import DataLoadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PredictionPipelineResult:
    """
    Inputs of one batch and their prediction results, index-aligned.

    Attributes:
        records (list[dict]): The input records, in order.
        results (list[PredictionResult]): One result per input record.
    """

    records: list[dict]
    results: list[PredictionResult]

    @property
    def failed_count(self) -> int:
        return sum(1 for result in self.results if not result.is_available)


class PredictionPipeline:
    """
    Orchestrates batch prediction for housing records.

    It loads input data, drops any label column, and delegates every record
    to the prediction service.
    """

    def __init__(
        self,
        prediction_service: PredictionService,
        input_json: str | None = None,
        input_file: str | None = None,
    ) -> None:
        """
        Configure the batch source; exactly one of the inputs must be given.

        Args:
            prediction_service (PredictionService): Service answering single requests.
            input_json (str | None, optional): JSON object or array of records.
            input_file (str | None, optional): Path to a CSV or JSON file of records.

        Raises:
            ValueError: If both or neither of input_json and input_file are provided.
        """
        if input_json and input_file:
            raise ValueError("Pass either input_json or input_file, not both.")
        if not input_json and not input_file:
            raise ValueError("One of input_json or input_file is required.")
        self.input_json = input_json
        self.input_file = input_file
        self.prediction_service = prediction_service

    def run(self) -> PredictionPipelineResult:
        """
        Load every input record and predict it.

        Raises:
            DataLoadError: If the input source cannot be read or parsed.

        Returns:
            PredictionPipelineResult: Inputs and their results.
        """
        start_time = time.time()

        logger.info("Loading prediction records...")
        records = self._load_records()

        logger.info("Predicting %s records...", len(records))
        results = self.prediction_service.predict_many(records)

        duration = time.time() - start_time
        per_record_latency = duration / len(records) if records else 0
        logger.info(
            "Batch Performance: %s rows in %.2fs (%.4fs/row)",
            len(records),
            duration,
            per_record_latency,
        )
        return PredictionPipelineResult(records=records, results=results)

    def _load_records(self) -> list[dict]:
        """
        Read the batch into plain dicts.

        Supports CSV and JSON file formats. If input_json is provided, it is
        parsed directly.

        Raises:
            DataLoadError: For any ingestion failure.

        Returns:
            list[dict]: One mapping per record, label column removed.
        """
        try:
            if self.input_file:
                input_path = Path(self.input_file)
                if not input_path.is_file():
                    raise FileNotFoundError(
                        f"Input file not found at path: '{input_path}'"
                    )

                if input_path.suffix.lower() == ".json":
                    df = pd.read_json(input_path)
                elif input_path.suffix.lower() == ".csv":
                    df = pd.read_csv(input_path, skipinitialspace=True)
                else:
                    raise ValueError(
                        f"Unsupported file format: {input_path.suffix}. Use .csv or .json."
                    )
            else:
                data = json.loads(self.input_json or "")
                df = pd.DataFrame(data if isinstance(data, list) else [data])

        except Exception as e:
            raise DataLoadError(f"Data Ingestion Failed: {e}") from e

        df = df.drop(columns=[TARGET_COLUMN], errors="ignore")
        return [
            {key: _none_if_nan(value) for key, value in row.items()}
            for row in df.to_dict(orient="records")
        ]


def _none_if_nan(value: object) -> object:
    if isinstance(value, float) and math.isnan(value):
        return None
    return value
