"""Evaluation subpackage exports.

Provides a clean import surface:

	from claimx.evaluation import evaluate_predictions, get_loss

Avoid importing analysis scripts here to keep dependency one-way (library -> analyses).
"""

from ._evaluate_predictions import evaluate_predictions, lorenz_curve
from ._losses import (
    LOSSES,
    evaluate_loss,
    get_loss,
    loss_absolute_error,
    loss_name,
    loss_poisson_deviance,
    loss_root_mean_square,
    loss_squared_error,
    make_tweedie_deviance,
)

__all__ = [
    "LOSSES",
    "evaluate_loss",
    "evaluate_predictions",
    "get_loss",
    "lorenz_curve",
    "loss_absolute_error",
    "loss_name",
    "loss_poisson_deviance",
    "loss_root_mean_square",
    "loss_squared_error",
    "make_tweedie_deviance",
]
