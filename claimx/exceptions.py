"""Exceptions raised by the explanation engines.

Every error is a programming or usage error: nothing here is transient, so
callers should not retry. Each class also derives from the builtin that a
plain pandas/numpy user would expect to catch.
"""


class ExplainError(Exception):
    """Base class for all claimx errors."""


class ShapeMismatch(ExplainError, ValueError):
    """Row counts of data, labels or predictions do not line up."""


class InvalidLoss(ExplainError, ValueError):
    """A loss could not be evaluated on the given predictions.

    Raised for non-positive predictions under a deviance loss and for any
    loss that evaluates to NaN or infinity.
    """


class UnknownFeature(ExplainError, KeyError):
    """A feature name is not part of the schema or the data."""

    def __str__(self):
        # KeyError quotes its argument; keep the plain message instead
        return str(self.args[0]) if self.args else ""


class InvalidExposure(ExplainError, ValueError):
    """The weight (exposure) column holds null or non-positive values."""
