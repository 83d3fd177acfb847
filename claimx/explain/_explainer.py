"""Uniform explainer adapter around a fitted claim frequency model.

An :class:`Explainer` ties together a fitted model, a reference dataset, the
observed claim counts and a prediction function. The engines in this
subpackage (importance, breakdown, profiles, residuals) only ever call
``explainer.predict``; they never touch the model's own API. That is what
lets a glum GLM, a LightGBM booster and a scikit-learn ensemble be explained
by the same code.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Any, Callable, Optional

import numpy as np
import pandas as pd

from claimx.config import ClaimsSchema, ExplainConfig
from claimx.exceptions import ShapeMismatch, UnknownFeature

logger = logging.getLogger("claimx.explain")


class ModelFamily(str, Enum):
    """Tag selecting how predictions are obtained from the wrapped model."""

    GLM = "glm"            # glum GeneralizedLinearRegressor
    LGBM = "lgbm"          # lightgbm LGBMRegressor or Booster
    HIST_GBM = "hist_gbm"  # sklearn HistGradientBoostingRegressor
    CUSTOM = "custom"      # anything with .predict, or an explicit predict_function


def _predict_glm(model, frame):
    # glum expands pandas categoricals itself and checks the levels it was fitted on
    return model.predict(frame)


def _predict_lgbm(model, frame):
    # LGBMRegressor exposes feature_name_, a raw Booster feature_name()
    names = getattr(model, "feature_name_", None)
    if names is None and hasattr(model, "feature_name"):
        names = model.feature_name()
    if names is not None:
        frame = frame[list(names)]
    return model.predict(frame)


def _predict_hist_gbm(model, frame):
    names = getattr(model, "feature_names_in_", None)
    if names is not None:
        frame = frame[list(names)]
    return model.predict(frame)


def _predict_custom(model, frame):
    return model.predict(frame)


_PREDICTORS = {
    ModelFamily.GLM: _predict_glm,
    ModelFamily.LGBM: _predict_lgbm,
    ModelFamily.HIST_GBM: _predict_hist_gbm,
    ModelFamily.CUSTOM: _predict_custom,
}


def family_predict_function(family, weight):
    """Prediction function ``(model, inputs) -> array`` for a model family.

    ``inputs`` holds the schema features and the weight column; the weight is
    dropped before the model sees the frame.
    """
    predictor = _PREDICTORS[ModelFamily(family)]

    def predict_function(model, inputs):
        return predictor(model, inputs.drop(columns=[weight]))

    predict_function.__name__ = f"predict_{ModelFamily(family).value}"
    return predict_function


@dataclass(frozen=True, eq=False)
class Explainer:
    """Read-only handle on a fitted model and its reference data.

    Build it with :meth:`Explainer.build` (or :func:`make_explainer`), which
    validates the inputs once. ``data`` and ``y`` are kept by reference.

    Attributes
    ----------
    model : object
        The fitted model. Opaque to every engine.
    data : pd.DataFrame
        Reference data; must contain ``schema.input_columns``.
    y : array-like
        Observed claim counts aligned with ``data``.
    schema : ClaimsSchema
        Column roles, with categorical levels frozen from ``data``.
    label : str
        Name used in every result table.
    family : ModelFamily
        Tag the prediction function was derived from.
    predict_function : callable
        ``(model, inputs) -> array``. ``inputs`` holds the features (with
        categoricals cast to the frozen levels) and the weight column.
    rate : bool
        When True the prediction function returns a claim frequency and
        :meth:`predict` multiplies it by the weight column.
    config : ExplainConfig
        Engine defaults.
    """

    model: Any
    data: pd.DataFrame
    y: Any
    schema: ClaimsSchema
    label: str
    family: ModelFamily
    predict_function: Callable
    rate: bool = True
    config: ExplainConfig = field(default_factory=ExplainConfig)

    @classmethod
    def build(
        cls,
        model,
        data,
        y,
        schema,
        label=None,
        family=ModelFamily.CUSTOM,
        predict_function: Optional[Callable] = None,
        rate: Optional[bool] = None,
        config: Optional[ExplainConfig] = None,
    ) -> "Explainer":
        """Validate the inputs and build an explainer.

        Parameters
        ----------
        model : object
            Fitted model.
        data : pd.DataFrame
            Reference data.
        y : array-like
            Observed claim counts, one per row of ``data``.
        schema : ClaimsSchema
            Column roles. Categorical levels are frozen from ``data`` unless
            already set.
        label : str, optional
            Defaults to the model's class name.
        family : ModelFamily or str
            Selects the prediction path when ``predict_function`` is None.
        predict_function : callable, optional
            Explicit ``(model, inputs) -> array``. Overrides ``family``.
        rate : bool, optional
            Whether predictions are frequencies to be scaled by exposure.
            Defaults to True for the model families and False for an
            explicit ``predict_function``, which is expected to return
            counts already.
        config : ExplainConfig, optional

        Raises
        ------
        ShapeMismatch
            ``data`` and ``y`` have different row counts.
        UnknownFeature, TypeError, InvalidExposure
            ``data`` does not satisfy ``schema``.
        """
        if len(data) != len(y):
            raise ShapeMismatch(
                f"data has {len(data)} rows but y has {len(y)}; they must be aligned."
            )
        schema.validate(data)
        schema = schema.with_levels(data)

        family = ModelFamily(family)
        if predict_function is None:
            predict_function = family_predict_function(family, schema.weight)
            rate = True if rate is None else rate
        else:
            rate = False if rate is None else rate

        if label is None:
            label = model.__class__.__name__

        explainer = cls(
            model=model,
            data=data,
            y=y,
            schema=schema,
            label=label,
            family=family,
            predict_function=predict_function,
            rate=rate,
            config=config or ExplainConfig(),
        )
        logger.info(
            "Built explainer %r: family=%s, %d rows, %d features, rate=%s",
            label, family.value, len(data), len(schema.features), rate,
        )
        return explainer

    # -- prediction -----------------------------------------------------------

    def as_frame(self, observations):
        """Coerce a DataFrame, Series or dict of observations into a DataFrame."""
        if isinstance(observations, pd.DataFrame):
            frame = observations
        elif isinstance(observations, pd.Series):
            # one row per Series; DataFrame([...]) infers a dtype per column
            frame = pd.DataFrame([observations.to_dict()], index=[observations.name or 0])
        elif isinstance(observations, dict):
            frame = pd.DataFrame([observations])
        else:
            raise TypeError(
                f"Observations must be a DataFrame, Series or dict, got {type(observations).__name__}."
            )
        missing = [c for c in self.schema.input_columns if c not in frame.columns]
        if missing:
            raise UnknownFeature(f"Columns {missing} are missing from the observations.")
        return frame

    def predict(self, data):
        """Predicted claim counts, one per row of ``data``."""
        data = self.as_frame(data)
        inputs = self.schema.model_frame(data)
        inputs[self.schema.weight] = data[self.schema.weight].to_numpy(dtype=float)

        pred = np.asarray(self.predict_function(self.model, inputs), dtype=float).ravel()
        if len(pred) != len(data):
            raise ShapeMismatch(
                f"Prediction function of {self.label!r} returned {len(pred)} values for {len(data)} rows."
            )
        if self.rate:
            pred = pred * inputs[self.schema.weight].to_numpy()
        return pred

    @cached_property
    def y_hat(self):
        """Predictions on the reference data (computed once)."""
        return self.predict(self.data)

    @property
    def residuals(self):
        return np.asarray(self.y, dtype=float) - self.y_hat

    def __repr__(self):
        return (
            f"Explainer(label={self.label!r}, family={self.family.value!r}, "
            f"rows={len(self.data)}, features={self.schema.features})"
        )


def make_explainer(model, data, y, schema, label=None, family=ModelFamily.CUSTOM,
                   predict_function=None, rate=None, config=None):
    """Shorthand for :meth:`Explainer.build`."""
    return Explainer.build(
        model, data, y, schema,
        label=label, family=family, predict_function=predict_function,
        rate=rate, config=config,
    )
