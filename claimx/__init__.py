"""
claimx — model-agnostic explanations for claim frequency models.

Wraps fitted count models (glum GLMs, LightGBM, scikit-learn gradient
boosting) in a uniform explainer and computes permutation importance,
prediction break-downs, ceteris-paribus / partial-dependence profiles and
residual diagnostics on the freMTPL2 motor claims data.
"""

__version__ = "0.1.0"

from claimx.config import ClaimsSchema, ExplainConfig
from claimx.exceptions import (
    ExplainError,
    InvalidExposure,
    InvalidLoss,
    ShapeMismatch,
    UnknownFeature,
)
from claimx.explain import (
    Explainer,
    ModelFamily,
    make_explainer,
    model_parts,
    model_performance,
    model_profile,
    predict_parts,
    predict_profile,
    select_neighbours,
)

__all__ = [
    "ClaimsSchema",
    "ExplainConfig",
    "ExplainError",
    "Explainer",
    "InvalidExposure",
    "InvalidLoss",
    "ModelFamily",
    "ShapeMismatch",
    "UnknownFeature",
    "make_explainer",
    "model_parts",
    "model_performance",
    "model_profile",
    "predict_parts",
    "predict_profile",
    "select_neighbours",
]
