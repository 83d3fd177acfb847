"""
Evaluation metrics for claim frequency models.

This module provides a reusable function to compute the usual portfolio
metrics for a claim count model without recomputing them by hand for every
model in an analysis.
"""

import numpy as np
from glum import PoissonDistribution
from sklearn.metrics import auc


def lorenz_curve(y_true, y_pred, exposure):
    """Lorenz curve of observed claims when policies are ranked by predicted frequency.

    Parameters
    ----------
    y_true : array-like
        Observed claim counts.
    y_pred : array-like
        Predicted claim counts (already multiplied by exposure).
    exposure : array-like
        Exposure in years, strictly positive.

    Returns
    -------
    tuple of np.ndarray
        (cumulative exposure fraction, cumulative claim fraction)
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    exposure = np.asarray(exposure, dtype=float)

    # Rank by frequency, not by count: a long policy is not riskier per year
    # just because it has more expected claims.
    ranking = np.argsort(y_pred / exposure, kind="stable")
    ranked_exposure = exposure[ranking]
    ranked_claims = y_true[ranking]

    cumulative_claims = np.cumsum(ranked_claims)
    total_claims = cumulative_claims[-1]

    # Handle edge case: if no claims at all, the curve is flat at zero
    if total_claims > 0:
        cumulative_claims = cumulative_claims / total_claims
    else:
        cumulative_claims = np.zeros_like(cumulative_claims, dtype=float)

    cumulative_exposure = np.cumsum(ranked_exposure) / np.sum(ranked_exposure)
    return cumulative_exposure, cumulative_claims


def evaluate_predictions(y_true, y_pred, sample_weight, distribution=None):
    """
    Evaluate claim count predictions with insurance-specific metrics.

    This function computes several metrics commonly used in frequency modeling:
    - Deviance per unit of exposure
    - Gini coefficient (how well the model ranks policies by risk)
    - Mean Absolute Error of the claim frequency (exposure-weighted)
    - Total actual vs predicted claims

    Parameters
    ----------
    y_true : array-like
        Observed claim counts per policy.
    y_pred : array-like
        Predicted claim counts per policy (same shape as y_true), i.e. the
        predicted frequency already multiplied by exposure.
    sample_weight : array-like
        Exposure (fraction of a year the policy was active).
    distribution : object, optional
        Distribution object with a .deviance() method. Defaults to
        glum's PoissonDistribution.

    Returns
    -------
    dict
        - 'deviance': deviance of the counts divided by total exposure
        - 'gini': Gini coefficient from the Lorenz curve (0=random, 1=perfect)
        - 'mae': exposure-weighted mean absolute error of the frequency
        - 'total_actual': sum of observed claims
        - 'total_predicted': sum of predicted claims

    Examples
    --------
    >>> metrics = evaluate_predictions(
    ...     y_true=df_test["ClaimNb"],
    ...     y_pred=explainer.predict(df_test),
    ...     sample_weight=df_test["Exposure"],
    ... )
    >>> print(f"Gini: {metrics['gini']:.3f}")
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    sample_weight = np.asarray(sample_weight, dtype=float)

    if distribution is None:
        distribution = PoissonDistribution()

    metrics = {}

    # ===== 1. Deviance =====
    # Counts vs expected counts; normalised by total exposure so that
    # portfolios of different size are comparable.
    dev = distribution.deviance(y_true, y_pred)
    metrics['deviance'] = dev / np.sum(sample_weight)

    # ===== 2. Gini Coefficient via Lorenz Curve =====
    # Gini = 1 - 2*AUC (area under Lorenz curve)
    cumulative_exposure, cumulative_claims = lorenz_curve(y_true, y_pred, sample_weight)
    metrics['gini'] = 1 - 2 * auc(cumulative_exposure, cumulative_claims)

    # ===== 3. Mean Absolute Error (weighted) =====
    # Compared on the frequency scale, weighted by exposure.
    mae = np.average(
        np.abs(y_true / sample_weight - y_pred / sample_weight), weights=sample_weight
    )
    metrics['mae'] = mae

    # ===== 4. Total Claims (Actual vs Predicted) =====
    # Useful for checking if model is over/under-predicting the portfolio.
    metrics['total_actual'] = np.sum(y_true)
    metrics['total_predicted'] = np.sum(y_pred)

    return metrics
