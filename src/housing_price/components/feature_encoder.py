"""
Feature encoding engine.

This module provides the FeatureEncoder, a Scikit-Learn compatible transformer
that turns raw housing records into fixed-length numeric feature vectors:
a one-hot block for `ocean_proximity` followed by the numeric fields in the
documented order. The category order is derived once from training data
(sorted labels) and frozen for reuse at inference time.
"""

import logging
import re
from collections.abc import Mapping
from typing import Literal

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.utils.validation import check_is_fitted

from housing_price.core.data_definitions import (
    CATEGORICAL_COLUMN,
    FEATURE_COLUMNS,
    NUMERIC_COLUMNS,
    HousingRecord,
)
from housing_price.core.exceptions import UnknownCategoryError

logger = logging.getLogger(__name__)

# Bump whenever the vector layout changes; persisted artifacts record it.
ENCODER_SCHEMA_VERSION = 1

UnknownCategoryPolicy = Literal["error", "zero_fill"]


def sanitize_feature_name(name: str) -> str:
    """Replace every non-alphanumeric character with an underscore."""
    return re.sub(r"[^a-zA-Z0-9_]", "_", str(name))


class FeatureEncoder(BaseEstimator, TransformerMixin):
    """
    One-hot + numeric encoder with a frozen category mapping.

    The encoder is fitted exactly once. Unknown categories at transform time
    either raise UnknownCategoryError (policy 'error', the default) or are
    encoded as an all-zero one-hot block (policy 'zero_fill').
    """

    def __init__(self, unknown_category_policy: UnknownCategoryPolicy = "error") -> None:
        """
        Args:
            unknown_category_policy: 'error' or 'zero_fill'.
        """
        super().__init__()
        self.unknown_category_policy = unknown_category_policy

    # -------------------------------------------------------------------------
    # Fitting (one-time freeze)
    # -------------------------------------------------------------------------

    def fit(self, X: pd.DataFrame, y: pd.Series | None = None) -> "FeatureEncoder":
        """
        Derive and freeze the category order from the training rows.

        Args:
            X (pd.DataFrame): Training rows; extra columns (e.g. the label) are ignored.
            y: Ignored. Exists for compatibility.

        Raises:
            RuntimeError: If the encoder has already been frozen.
            ValueError: If the policy is unknown or required columns are missing.

        Returns:
            self: The frozen encoder.
        """
        if self.__sklearn_is_fitted__():
            raise RuntimeError(
                "FeatureEncoder is already frozen; create a new instance to re-fit."
            )
        if self.unknown_category_policy not in ("error", "zero_fill"):
            raise ValueError(
                f"Unsupported unknown_category_policy: {self.unknown_category_policy!r}"
            )
        self._check_columns(X)

        categories = sorted(X[CATEGORICAL_COLUMN].astype(str).unique())
        self.categories_: tuple[str, ...] = tuple(categories)
        self.schema_version_ = ENCODER_SCHEMA_VERSION

        logger.info(
            "Froze %s categories for '%s': %s (unknown policy=%s)",
            len(self.categories_),
            CATEGORICAL_COLUMN,
            list(self.categories_),
            self.unknown_category_policy,
        )
        return self

    # -------------------------------------------------------------------------
    # Encoding
    # -------------------------------------------------------------------------

    def transform(self, X: pd.DataFrame) -> np.ndarray:
        """
        Encode a frame of records into a 2-D float matrix.

        Raises:
            UnknownCategoryError: If policy is 'error' and a category was not
                seen while freezing.
            ValueError: If required columns are missing.

        Returns:
            np.ndarray: Shape (n_rows, n_features_out).
        """
        check_is_fitted(self)
        self._check_columns(X)

        values = X[CATEGORICAL_COLUMN].astype(str)
        codes = pd.Categorical(values, categories=list(self.categories_)).codes

        unknown_mask = codes < 0
        if unknown_mask.any():
            first_unknown = values[unknown_mask].iloc[0]
            if self.unknown_category_policy == "error":
                raise UnknownCategoryError(
                    CATEGORICAL_COLUMN, first_unknown, self.categories_
                )
            logger.warning(
                "Zero-filling %s row(s) with unknown '%s' (e.g. %r).",
                int(unknown_mask.sum()),
                CATEGORICAL_COLUMN,
                first_unknown,
            )

        one_hot = np.zeros((len(X), len(self.categories_)), dtype=np.float64)
        known_rows = np.flatnonzero(~unknown_mask)
        one_hot[known_rows, codes[known_rows]] = 1.0

        numeric = X[list(NUMERIC_COLUMNS)].to_numpy(dtype=np.float64)
        return np.hstack([one_hot, numeric])

    def encode(self, record: HousingRecord | Mapping[str, object]) -> np.ndarray:
        """
        Encode a single record into a 1-D feature vector.

        Args:
            record: A validated HousingRecord or a mapping with the same fields.

        Returns:
            np.ndarray: Shape (n_features_out,).
        """
        if not isinstance(record, HousingRecord):
            record = HousingRecord.model_validate(record)
        frame = pd.DataFrame([record.model_dump()], columns=list(FEATURE_COLUMNS))
        return self.transform(frame)[0]

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    @property
    def n_features_out(self) -> int:
        check_is_fitted(self)
        return len(self.categories_) + len(NUMERIC_COLUMNS)

    def get_feature_names_out(
        self, input_features: list[str] | None = None
    ) -> list[str]:
        """Ordered, sanitized names of the encoded vector entries."""
        check_is_fitted(self)
        one_hot_names = [
            sanitize_feature_name(f"{CATEGORICAL_COLUMN}_{category}")
            for category in self.categories_
        ]
        return one_hot_names + list(NUMERIC_COLUMNS)

    def describe_schema(self) -> dict[str, object]:
        """Plain-data description of the frozen layout (for artifacts and telemetry)."""
        check_is_fitted(self)
        return {
            "schema_version": self.schema_version_,
            "categorical_column": CATEGORICAL_COLUMN,
            "categories": list(self.categories_),
            "numeric_columns": list(NUMERIC_COLUMNS),
            "unknown_category_policy": self.unknown_category_policy,
            "n_features_out": self.n_features_out,
        }

    def _check_columns(self, X: pd.DataFrame) -> None:
        if not isinstance(X, pd.DataFrame):
            raise TypeError(
                f"FeatureEncoder received {type(X)} but expects pd.DataFrame."
            )
        missing = [col for col in FEATURE_COLUMNS if col not in X.columns]
        if missing:
            raise ValueError(f"Missing required columns: {missing}")

    def __sklearn_is_fitted__(self) -> bool:
        return hasattr(self, "categories_")
