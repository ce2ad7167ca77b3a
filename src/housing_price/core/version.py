"""Installed package version, stamped into model artifacts and prediction results."""

from importlib.metadata import PackageNotFoundError, version

DISTRIBUTION_NAME = "housing-price-mlops"

try:
    __version__ = version(DISTRIBUTION_NAME)
except PackageNotFoundError:
    # Running from a source checkout without an install.
    __version__ = "0.0.0"
