"""
Regressors the trainer knows how to build.

The configuration names an algorithm by its estimator class name; this table
turns that name into the class. Every entry follows the scikit-learn
estimator API (`get_params`, `set_params`, `fit`, `predict`), which is all
the trainer relies on.
"""

from lightgbm import LGBMRegressor
from sklearn.base import RegressorMixin
from xgboost import XGBRegressor

REGRESSORS: dict[str, type[RegressorMixin]] = {
    LGBMRegressor.__name__: LGBMRegressor,  # type: ignore[dict-item]
    XGBRegressor.__name__: XGBRegressor,
}


def available_models() -> list[str]:
    return sorted(REGRESSORS)


def get_model_class(name: str) -> type[RegressorMixin]:
    """
    Look up a regressor class by its configured name.

    Raises:
        ValueError: If no regressor is registered under `name`.
    """
    try:
        return REGRESSORS[name]
    except KeyError:
        raise ValueError(
            f"Unknown regressor '{name}'. Choose one of: {available_models()}"
        ) from None
