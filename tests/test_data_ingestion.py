import pytest

from housing_price.components.data_ingestion import DataIngestion
from housing_price.core.config_definitions import DataIngestionConfig
from housing_price.core.data_definitions import CSV_COLUMNS
from housing_price.core.exceptions import DataLoadError

HEADER = ",".join(CSV_COLUMNS)
ROW = "NEAR BAY,-122.23,37.88,41,880,129,322,126,8.3252,452600"


def _ingest(tmp_path, text: str):
    path = tmp_path / "housing.csv"
    path.write_text(text)
    return DataIngestion(DataIngestionConfig(csv_path=path)).get_data()


def test_valid_file_is_loaded_and_typed(housing_csv, housing_frame):
    df = DataIngestion(DataIngestionConfig(csv_path=housing_csv)).get_data()

    assert list(df.columns) == list(CSV_COLUMNS)
    assert len(df) == len(housing_frame)
    assert df["households"].dtype == float


def test_quoted_fields_and_padding_are_accepted(tmp_path):
    df = _ingest(
        tmp_path,
        f'{HEADER}\n"NEAR BAY", -122.23, 37.88, 41, 880, 129, 322, 126, 8.3252, 452600\n',
    )

    assert df.loc[0, "ocean_proximity"] == "NEAR BAY"
    assert df.loc[0, "median_income"] == pytest.approx(8.3252)


def test_header_only_file_returns_empty_frame(tmp_path):
    df = _ingest(tmp_path, f"{HEADER}\n")

    assert df.empty
    assert list(df.columns) == list(CSV_COLUMNS)


@pytest.mark.parametrize(
    "column, value",
    [
        ("housing_median_age", -1.0),
        ("median_house_value", -5.0),
        ("median_income", 0.0),
        ("longitude", -500.0),
        ("latitude", 1e6),
        ("total_rooms", 1e300),
    ],
)
def test_any_finite_value_passes_the_contract(tmp_path, column, value):
    values = dict(zip(CSV_COLUMNS, ROW.split(",")))
    values[column] = repr(value)

    df = _ingest(tmp_path, f"{HEADER}\n{','.join(values.values())}\n")

    assert len(df) == 1
    assert df.loc[0, column] == pytest.approx(value)


def test_missing_file_is_a_data_load_error(tmp_path):
    ingestion = DataIngestion(DataIngestionConfig(csv_path=tmp_path / "absent.csv"))

    with pytest.raises(DataLoadError, match="not found"):
        ingestion.get_data()


@pytest.mark.parametrize(
    "text",
    [
        pytest.param(f"{HEADER},extra\n{ROW},1\n", id="extra-column"),
        pytest.param(
            HEADER.replace("longitude,latitude", "latitude,longitude") + f"\n{ROW}\n",
            id="wrong-order",
        ),
        pytest.param(
            f"{HEADER}\n" + ROW.replace(",880,", ",inf,") + "\n", id="infinite-value"
        ),
        pytest.param(f"{HEADER}\n" + ROW.replace(",880,", ",,") + "\n", id="missing-value"),
        pytest.param(
            f"{HEADER}\n" + ROW.replace(",880,", ",many,") + "\n", id="text-in-numeric"
        ),
        pytest.param(f"{HEADER}\n{ROW}\n{ROW}\n{ROW},1,2\n", id="ragged-row"),
        pytest.param("", id="no-header"),
    ],
)
def test_contract_violations_are_data_load_errors(tmp_path, text):
    with pytest.raises(DataLoadError):
        _ingest(tmp_path, text)
