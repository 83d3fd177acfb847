"""Permutation variable importance.

Importance of a feature is the increase in loss when that feature's column is
shuffled across rows, averaged over several shuffles:

    importance = mean(loss(y, f(X with column j permuted))) - loss(y, f(X))

The difference is the reported convention; the ratio of the two losses is
kept in the table as well.
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from claimx.evaluation import evaluate_loss, get_loss, loss_name
from claimx.explain._utils import check_random_state, sample_rows

logger = logging.getLogger("claimx.explain")


@dataclass
class VariableImportance:
    """Result of :func:`model_parts`.

    ``result`` has one row per tested variable, in the order they were
    supplied, with columns ``variable``, ``dropout_loss``, ``baseline_loss``,
    ``importance``, ``ratio`` and ``label``.
    """

    result: pd.DataFrame
    baseline_loss: float
    loss_name: str
    label: str
    n_repeats: int

    def sorted(self):
        """Rows by decreasing importance, for display."""
        return self.result.sort_values("importance", ascending=False, kind="stable")


def model_parts(explainer, loss_function=None, variables=None, n_repeats=None,
                n_sample=None, random_state=None):
    """Permutation importance of each variable for one explainer.

    Parameters
    ----------
    explainer : Explainer
    loss_function : callable or str, optional
        ``(y_true, y_pred) -> float`` or a name from ``claimx.evaluation.LOSSES``.
        Defaults to ``explainer.config.loss``.
    variables : list[str], optional
        Variables to permute. Defaults to the schema features; the weight
        column is never permuted.
    n_repeats : int, optional
        Shuffles per variable. Defaults to ``explainer.config.n_repeats``.
    n_sample : int, optional
        Rows sampled once before everything else. Defaults to
        ``explainer.config.n_sample``; None uses all rows.
    random_state : int, numpy Generator or None
        Defaults to ``explainer.config.random_state``.

    Returns
    -------
    VariableImportance

    Raises
    ------
    UnknownFeature
        A variable is not a schema feature.
    InvalidLoss
        The loss could not be evaluated (e.g. non-positive predictions under a
        deviance).
    """
    config = explainer.config
    loss = get_loss(config.loss if loss_function is None else loss_function)
    n_repeats = config.n_repeats if n_repeats is None else n_repeats
    n_sample = config.n_sample if n_sample is None else n_sample
    rng = check_random_state(config.random_state if random_state is None else random_state)

    if n_repeats < 1:
        raise ValueError(f"n_repeats must be at least 1, got {n_repeats}")

    variables = list(explainer.schema.features) if variables is None else list(variables)
    for variable in variables:
        explainer.schema.check_feature(variable, allow_weight=False)

    data = explainer.data
    y = np.asarray(explainer.y, dtype=float)
    rows = sample_rows(data, n_sample, rng)
    if rows is not None:
        data = data.iloc[rows]
        y = y[rows]

    baseline = evaluate_loss(loss, y, explainer.predict(data))
    logger.info(
        "Permutation importance for %r: %d variables, %d repeats, %d rows, %s baseline=%.6g",
        explainer.label, len(variables), n_repeats, len(data), loss_name(loss), baseline,
    )

    records = []
    for variable in variables:
        original = data[variable].to_numpy()
        shuffled = data.copy()
        losses = []
        for _ in range(n_repeats):
            shuffled[variable] = original[rng.permutation(len(data))]
            losses.append(evaluate_loss(loss, y, explainer.predict(shuffled)))
        dropout = float(np.mean(losses))
        logger.debug("%s: dropout loss %.6g", variable, dropout)
        records.append({
            "variable": variable,
            "dropout_loss": dropout,
            "baseline_loss": baseline,
            "importance": dropout - baseline,
            "ratio": dropout / baseline if baseline != 0 else np.inf,
            "label": explainer.label,
        })

    result = pd.DataFrame.from_records(
        records,
        columns=["variable", "dropout_loss", "baseline_loss", "importance", "ratio", "label"],
    )
    return VariableImportance(
        result=result,
        baseline_loss=baseline,
        loss_name=loss_name(loss),
        label=explainer.label,
        n_repeats=n_repeats,
    )
