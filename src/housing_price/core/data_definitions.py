"""
Data schema definitions for the housing price pipeline.

This module leverages Pandera to enforce the training-file data contract and
Pydantic to validate single prediction requests, ensuring that all incoming
data adheres to the expected columns, order, types and finiteness before
entering the training or inference paths.
"""

import numpy as np
import pandas as pd
import pandera.pandas as pa
from pandera.typing import Series
from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# COLUMN CONTRACT
# =============================================================================

CATEGORICAL_COLUMN = "ocean_proximity"

# Fixed order of the numeric block inside an encoded feature vector.
NUMERIC_COLUMNS: tuple[str, ...] = (
    "longitude",
    "latitude",
    "housing_median_age",
    "total_rooms",
    "total_bedrooms",
    "population",
    "households",
    "median_income",
)

TARGET_COLUMN = "median_house_value"

FEATURE_COLUMNS: tuple[str, ...] = (CATEGORICAL_COLUMN, *NUMERIC_COLUMNS)
CSV_COLUMNS: tuple[str, ...] = (*FEATURE_COLUMNS, TARGET_COLUMN)

# Category domain of the public California housing dataset. The set accepted
# at inference time is whatever the encoder froze from the training rows.
OCEAN_PROXIMITY_CATEGORIES: tuple[str, ...] = (
    "<1H OCEAN",
    "INLAND",
    "ISLAND",
    "NEAR BAY",
    "NEAR OCEAN",
)


# =============================================================================
# TRAINING FILE SCHEMA
# =============================================================================


class HousingSchema(pa.DataFrameModel):
    """
    Data validation contract for the housing training file.

    Defines the required columns, their order and data types. Values are
    only required to be present and finite; no range is imposed, so signed
    or unusual magnitudes pass through to training unchanged.
    """

    ocean_proximity: Series[str] = pa.Field(
        str_length={"min_value": 1}, description="Proximity to the ocean."
    )
    longitude: Series[float] = pa.Field(description="Longitude of the block.")
    latitude: Series[float] = pa.Field(description="Latitude of the block.")
    housing_median_age: Series[float] = pa.Field(description="Median house age.")
    total_rooms: Series[float] = pa.Field(description="Rooms in the block.")
    total_bedrooms: Series[float] = pa.Field(description="Bedrooms in the block.")
    population: Series[float] = pa.Field(description="Population of the block.")
    households: Series[float] = pa.Field(description="Households in the block.")
    median_income: Series[float] = pa.Field(description="Median household income.")
    median_house_value: Series[float] = pa.Field(description="Median house value (label).")

    @pa.dataframe_check
    def numeric_values_are_finite(cls, df: pd.DataFrame) -> pd.Series:
        """Reject rows holding +/-Infinity in any numeric column."""
        numeric = df[[*NUMERIC_COLUMNS, TARGET_COLUMN]].apply(
            pd.to_numeric, errors="coerce"
        )
        finite = np.isfinite(numeric.to_numpy(dtype=float)).all(axis=1)
        return pd.Series(finite, index=df.index)

    class Config:  # type: ignore
        """
        Validation engine settings.

        Strict and ordered: the file must carry exactly the contract columns in
        the documented order. Coercion allows numeric text to be cast to float.
        """

        strict = True
        ordered = True
        coerce = True


# =============================================================================
# PREDICTION REQUEST SCHEMA
# =============================================================================


class HousingRecord(BaseModel):
    """
    A single property observation submitted for prediction.

    All fields are required and numeric fields must be finite. Category
    membership is checked by the encoder frozen at training time.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, allow_inf_nan=False)

    ocean_proximity: str = Field(min_length=1)
    longitude: float
    latitude: float
    housing_median_age: float
    total_rooms: float
    total_bedrooms: float
    population: float
    households: float
    median_income: float
