"""Explain subpackage exports.

	from claimx.explain import Explainer, model_parts, predict_parts, predict_profile

The engines only call ``Explainer.predict``, so every one of them works the
same for a glum GLM, a LightGBM model or a scikit-learn ensemble.
"""

from ._explainer import Explainer, ModelFamily, family_predict_function, make_explainer
from ._model_parts import VariableImportance, model_parts
from ._model_performance import ModelPerformance, model_performance
from ._predict_parts import BreakDown, predict_parts
from ._predict_profile import (
    Profiles,
    aggregate_profiles,
    gower_distance,
    make_grid,
    model_profile,
    predict_profile,
    select_neighbours,
)

__all__ = [
    "BreakDown",
    "Explainer",
    "ModelFamily",
    "ModelPerformance",
    "Profiles",
    "VariableImportance",
    "aggregate_profiles",
    "family_predict_function",
    "gower_distance",
    "make_explainer",
    "make_grid",
    "model_parts",
    "model_performance",
    "model_profile",
    "predict_parts",
    "predict_profile",
    "select_neighbours",
]
