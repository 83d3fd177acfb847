"""Loss functions used by the permutation importance engine.

Every loss has the signature ``loss(y_true, y_pred) -> float``. The deviance
losses take a logarithm of the prediction, so they refuse non-positive
predictions with ``InvalidLoss`` instead of returning NaN or inf.
"""

import logging

import numpy as np
from glum import PoissonDistribution, TweedieDistribution

from claimx.exceptions import InvalidLoss

logger = logging.getLogger("claimx.evaluation")


def _as_arrays(y_true, y_pred):
    return np.asarray(y_true, dtype=float), np.asarray(y_pred, dtype=float)


def _require_positive(y_pred, name):
    # `~(y > 0)` also catches NaN
    bad = ~(y_pred > 0)
    if np.any(bad):
        raise InvalidLoss(
            f"{name} requires strictly positive predictions; "
            f"got {int(bad.sum())} non-positive value(s), min={np.nanmin(y_pred)!r}."
        )


def loss_squared_error(y_true, y_pred):
    """Mean squared error."""
    y_true, y_pred = _as_arrays(y_true, y_pred)
    return float(np.mean((y_true - y_pred) ** 2))


def loss_root_mean_square(y_true, y_pred):
    y_true, y_pred = _as_arrays(y_true, y_pred)
    return float(np.sqrt(np.mean((y_true - y_pred) ** 2)))


def loss_absolute_error(y_true, y_pred):
    y_true, y_pred = _as_arrays(y_true, y_pred)
    return float(np.mean(np.abs(y_true - y_pred)))


def loss_poisson_deviance(y_true, y_pred):
    """Mean Poisson deviance of claim counts, computed with glum's distribution."""
    y_true, y_pred = _as_arrays(y_true, y_pred)
    _require_positive(y_pred, "loss_poisson_deviance")
    return float(PoissonDistribution().deviance(y_true, y_pred) / len(y_true))


def make_tweedie_deviance(power):
    """Build a mean Tweedie deviance loss for the given variance power.

    >>> loss = make_tweedie_deviance(1.5)
    >>> loss.__name__
    'loss_tweedie_deviance_1.5'
    """
    distribution = TweedieDistribution(power)
    name = f"loss_tweedie_deviance_{power}"

    def loss_tweedie_deviance(y_true, y_pred):
        y_true, y_pred = _as_arrays(y_true, y_pred)
        _require_positive(y_pred, name)
        return float(distribution.deviance(y_true, y_pred) / len(y_true))

    loss_tweedie_deviance.__name__ = name
    return loss_tweedie_deviance


LOSSES = {
    "squared_error": loss_squared_error,
    "rmse": loss_root_mean_square,
    "absolute_error": loss_absolute_error,
    "poisson_deviance": loss_poisson_deviance,
    "tweedie_deviance": make_tweedie_deviance(1.5),
}


def get_loss(loss):
    """Resolve ``loss`` to a callable.

    ``loss`` is either a callable ``(y_true, y_pred) -> float`` (returned as
    is) or one of the names in ``LOSSES``.
    """
    if callable(loss):
        return loss
    try:
        return LOSSES[loss]
    except KeyError:
        raise ValueError(f"Unknown loss {loss!r}; choose one of {sorted(LOSSES)}.") from None


def loss_name(loss):
    return getattr(loss, "__name__", loss.__class__.__name__)


def evaluate_loss(loss, y_true, y_pred):
    """Evaluate ``loss`` and refuse NaN / inf results."""
    value = loss(y_true, y_pred)
    if not np.isfinite(value):
        raise InvalidLoss(f"{loss_name(loss)} evaluated to {value!r}.")
    return float(value)
