"""Break-down of a single prediction into additive per-variable contributions.

Starting from the reference data, each input column is in turn overwritten
with the observation's value for every row, and the change in the average
prediction is that column's contribution. Substitutions accumulate, so after
the last column every row equals the observation and the running average is
the observation's own prediction:

    intercept + sum(contributions) == prediction
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from claimx.exceptions import ShapeMismatch

logger = logging.getLogger("claimx.explain")


@dataclass
class BreakDown:
    """Result of :func:`predict_parts`.

    ``result`` has one row per input column in walk order, with columns
    ``variable``, ``variable_value``, ``contribution``, ``cumulative``,
    ``sign`` and ``label``. ``intercept`` is the average prediction over the
    reference data and ``prediction`` the model output for the observation.
    """

    result: pd.DataFrame
    intercept: float
    prediction: float
    label: str

    def top(self, n=5):
        """The ``n`` largest contributions by absolute value."""
        order = self.result["contribution"].abs().sort_values(ascending=False, kind="stable").index
        return self.result.loc[order].head(n)


def _greedy_order(explainer, observation, columns, intercept):
    """Columns sorted by the impact of substituting each one alone.

    Ties keep schema order.
    """
    impacts = []
    for col in columns:
        single = explainer.data.copy()
        single[col] = observation[col].iloc[0]
        impacts.append(abs(float(np.mean(explainer.predict(single))) - intercept))
    order = sorted(range(len(columns)), key=lambda i: -impacts[i])
    return [columns[i] for i in order]


def _resolve_order(explainer, order, columns):
    order = list(order)
    for col in order:
        explainer.schema.check_feature(col)
    # columns left out are walked last, in schema order
    return order + [c for c in columns if c not in order]


def predict_parts(explainer, observation, order=None):
    """Break down the prediction for one observation.

    Parameters
    ----------
    explainer : Explainer
    observation : pd.DataFrame (one row), pd.Series or dict
    order : list[str], optional
        Walk order. Defaults to greedy-by-impact (largest single-column
        change of the average prediction first, ties in schema order).
        Input columns missing from ``order`` are appended in schema order.

    Returns
    -------
    BreakDown
    """
    observation = explainer.as_frame(observation)
    if len(observation) != 1:
        raise ShapeMismatch(f"predict_parts explains one observation, got {len(observation)} rows.")

    columns = explainer.schema.input_columns
    intercept = float(np.mean(explainer.y_hat))
    prediction = float(explainer.predict(observation)[0])

    if order is None:
        order = _greedy_order(explainer, observation, columns, intercept)
    else:
        order = _resolve_order(explainer, order, columns)

    logger.info("Break-down for %r over %d columns", explainer.label, len(order))

    current = explainer.data.copy()
    previous = intercept
    records = []
    for col in order:
        value = observation[col].iloc[0]
        current[col] = value
        average = float(np.mean(explainer.predict(current)))
        contribution = average - previous
        records.append({
            "variable": col,
            "variable_value": value,
            "contribution": contribution,
            "cumulative": average,
            "sign": int(np.sign(contribution)),
            "label": explainer.label,
        })
        previous = average

    if not np.isclose(previous, prediction, rtol=1e-6, atol=1e-12):
        logger.warning(
            "Break-down of %r ends at %.10g but the prediction is %.10g; "
            "the prediction function may read columns outside the schema.",
            explainer.label, previous, prediction,
        )

    result = pd.DataFrame.from_records(
        records,
        columns=["variable", "variable_value", "contribution", "cumulative", "sign", "label"],
    )
    return BreakDown(result=result, intercept=intercept, prediction=prediction, label=explainer.label)
