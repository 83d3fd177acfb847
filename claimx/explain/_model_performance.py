"""Residuals and portfolio metrics of an explainer on its reference data."""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from claimx.evaluation import evaluate_loss, evaluate_predictions, get_loss, loss_name

logger = logging.getLogger("claimx.explain")


@dataclass
class ModelPerformance:
    """Result of :func:`model_performance`.

    ``residuals`` holds ``y``, ``y_hat``, ``residual`` (``y - y_hat``),
    ``weight`` and ``label`` per reference row; ``metrics`` the output of
    ``evaluate_predictions`` plus the selected loss.
    """

    residuals: pd.DataFrame
    metrics: dict
    label: str

    def summary(self):
        return pd.Series(self.metrics, name=self.label)


def model_performance(explainer, loss_function=None):
    """Residual table and metrics for ``explainer`` on its reference data."""
    loss = get_loss(explainer.config.loss if loss_function is None else loss_function)
    y = np.asarray(explainer.y, dtype=float)
    y_hat = explainer.y_hat
    weight = explainer.data[explainer.schema.weight].to_numpy(dtype=float)

    residuals = pd.DataFrame(
        {
            "y": y,
            "y_hat": y_hat,
            "residual": y - y_hat,
            "weight": weight,
            "label": explainer.label,
        },
        index=explainer.data.index,
    )

    metrics = evaluate_predictions(y, y_hat, sample_weight=weight)
    metrics[loss_name(loss)] = evaluate_loss(loss, y, y_hat)
    logger.info("Performance of %r: %s", explainer.label, metrics)
    return ModelPerformance(residuals=residuals, metrics=metrics, label=explainer.label)
