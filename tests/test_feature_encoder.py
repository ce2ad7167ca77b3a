import numpy as np
import pytest

from housing_price.components.feature_encoder import (
    ENCODER_SCHEMA_VERSION,
    FeatureEncoder,
)
from housing_price.core.data_definitions import NUMERIC_COLUMNS, HousingRecord
from housing_price.core.exceptions import UnknownCategoryError

from conftest import make_housing_frame


def test_categories_are_frozen_in_sorted_order(housing_frame):
    encoder = FeatureEncoder().fit(housing_frame)

    assert encoder.categories_ == ("<1H OCEAN", "INLAND", "NEAR BAY", "NEAR OCEAN")
    assert encoder.n_features_out == 4 + len(NUMERIC_COLUMNS)
    assert encoder.schema_version_ == ENCODER_SCHEMA_VERSION


def test_encode_places_one_hot_block_before_numeric_fields(fitted_encoder, sample_record):
    vector = fitted_encoder.encode(HousingRecord(**sample_record))

    assert vector.shape == (fitted_encoder.n_features_out,)
    one_hot = vector[: len(fitted_encoder.categories_)]
    assert one_hot.tolist() == [0.0, 0.0, 1.0, 0.0]
    assert vector[len(one_hot):].tolist() == [sample_record[c] for c in NUMERIC_COLUMNS]


def test_transform_has_constant_width_and_single_hot_entry(housing_frame, fitted_encoder):
    X = fitted_encoder.transform(housing_frame)

    assert X.shape == (len(housing_frame), fitted_encoder.n_features_out)
    one_hot = X[:, : len(fitted_encoder.categories_)]
    assert np.all(one_hot.sum(axis=1) == 1.0)


def test_encode_accepts_plain_mapping(fitted_encoder, sample_record):
    np.testing.assert_array_equal(
        fitted_encoder.encode(sample_record),
        fitted_encoder.encode(HousingRecord(**sample_record)),
    )


def test_unknown_category_raises_by_default(sample_record):
    frame = make_housing_frame(n_rows=20, categories=("NEAR BAY", "INLAND"))
    encoder = FeatureEncoder().fit(frame)
    assert encoder.categories_ == ("INLAND", "NEAR BAY")

    with pytest.raises(UnknownCategoryError) as excinfo:
        encoder.encode({**sample_record, "ocean_proximity": "ISLAND"})

    assert excinfo.value.value == "ISLAND"
    assert excinfo.value.known == ("INLAND", "NEAR BAY")


def test_zero_fill_policy_encodes_unknown_as_all_zero_block(sample_record):
    frame = make_housing_frame(n_rows=20, categories=("NEAR BAY", "INLAND"))
    encoder = FeatureEncoder(unknown_category_policy="zero_fill").fit(frame)

    vector = encoder.encode({**sample_record, "ocean_proximity": "ISLAND"})

    assert vector[:2].tolist() == [0.0, 0.0]
    assert vector[2:].tolist() == [sample_record[c] for c in NUMERIC_COLUMNS]


def test_refitting_a_frozen_encoder_is_refused(housing_frame, fitted_encoder):
    with pytest.raises(RuntimeError, match="already frozen"):
        fitted_encoder.fit(housing_frame)


def test_missing_columns_are_rejected(housing_frame):
    with pytest.raises(ValueError, match="median_income"):
        FeatureEncoder().fit(housing_frame.drop(columns=["median_income"]))


def test_invalid_policy_is_rejected(housing_frame):
    with pytest.raises(ValueError, match="unknown_category_policy"):
        FeatureEncoder(unknown_category_policy="guess").fit(housing_frame)


def test_feature_names_are_sanitized(fitted_encoder):
    names = fitted_encoder.get_feature_names_out()

    assert names[:4] == [
        "ocean_proximity__1H_OCEAN",
        "ocean_proximity_INLAND",
        "ocean_proximity_NEAR_BAY",
        "ocean_proximity_NEAR_OCEAN",
    ]
    assert names[4:] == list(NUMERIC_COLUMNS)


def test_empty_training_frame_freezes_no_categories(housing_frame):
    encoder = FeatureEncoder().fit(housing_frame.iloc[0:0])

    assert encoder.categories_ == ()
    assert encoder.transform(housing_frame.iloc[0:0]).shape == (0, len(NUMERIC_COLUMNS))
