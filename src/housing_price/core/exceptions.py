"""
Domain-specific exceptions for the housing price pipeline.

This module defines a hierarchy of custom exceptions to enable granular
error handling and clear telemetry tagging across the system.
"""

# =============================================================================
# INFRASTRUCTURE & IO ERRORS
# =============================================================================


class DataLoadError(Exception):
    """
    Raised when the training file is missing, unreadable, or violates the
    CSV data contract (wrong column names, order, or non-finite values).
    """

    pass


class TelemetryError(Exception):
    """
    Raised when failing to log metrics, artifacts, or traces.
    Usually treated as non-blocking/best-effort.
    """

    pass


class ConfigurationError(Exception):
    """Raised when the application contract (config.yaml) is violated."""

    pass


# =============================================================================
# ENCODING ERRORS
# =============================================================================


class UnknownCategoryError(ValueError):
    """Raised when a categorical value was not seen while freezing the encoder."""

    def __init__(self, column: str, value: object, known: tuple[str, ...]) -> None:
        self.column = column
        self.value = value
        self.known = known
        super().__init__(
            f"Unknown category {value!r} for column '{column}'. "
            f"Known categories: {list(known)}"
        )


# =============================================================================
# MODEL LIFECYCLE ERRORS
# =============================================================================


class TrainingError(Exception):
    """Raised when the dataset is malformed or empty, or model fitting fails."""

    pass


class TrainingInProgressError(Exception):
    """Raised when a training run is already active for the same artifact path."""

    pass


class ModelLoadError(Exception):
    """Raised when a persisted model artifact is absent, corrupt, or incompatible."""

    pass
