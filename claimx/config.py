"""Schema and engine configuration for claimx.

The column lists that an analysis run needs (model inputs, response, exposure)
live on an explicit :class:`ClaimsSchema` object which is handed to every
explainer, instead of being kept as module-level lists. Engine defaults
(random seed, number of permutation repeats, grid sizes, ...) live on
:class:`ExplainConfig`. Both serialise to JSON.
"""

import dataclasses
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from claimx.exceptions import InvalidExposure, UnknownFeature

logger = logging.getLogger("claimx")


# Categorical/numeric split used for freMTPL2 after load_transform().
FREMTPL2_CATEGORICALS = ["VehBrand", "VehGas", "Region", "Area", "DrivAge", "VehAge", "VehPower"]
FREMTPL2_NUMERICS = ["BonusMalus", "Density"]


class _JsonMixin:
    """to_dict / from_dict / save / load for the config dataclasses."""

    def to_dict(self):
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, d):
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})

    def save(self, path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2, default=str)
        logger.info("Saved %s to %s", self.__class__.__name__, path)

    @classmethod
    def load(cls, path):
        with open(path) as f:
            return cls.from_dict(json.load(f))


@dataclass
class ClaimsSchema(_JsonMixin):
    """Typed description of a claims-frequency table.

    Parameters
    ----------
    features : list[str]
        Model inputs, in the order the engines walk them.
    categorical : list[str]
        Subset of ``features`` treated as categorical. Everything else must
        be numeric.
    response : str
        Name of the claim count column.
    weight : str
        Name of the exposure column. It is read by every prediction function
        (rate models are rescaled by it) but it is not a feature.
    levels : dict[str, list]
        Categorical levels, frozen from the reference data by
        :meth:`with_levels`. Empty until then.
    """

    features: List[str]
    categorical: List[str] = field(default_factory=list)
    response: str = "ClaimNb"
    weight: str = "Exposure"
    levels: Dict[str, list] = field(default_factory=dict)

    def __post_init__(self):
        self.features = list(self.features)
        self.categorical = list(self.categorical)
        missing = [c for c in self.categorical if c not in self.features]
        if missing:
            raise UnknownFeature(f"Categorical columns {missing} are not listed in features.")
        if self.weight in self.features:
            raise ValueError(f"Weight column {self.weight!r} must not be listed as a feature.")

    @classmethod
    def fremtpl2(cls):
        """Schema of the freMTPL2 frequency table as returned by load_transform()."""
        return cls(
            features=FREMTPL2_CATEGORICALS + FREMTPL2_NUMERICS,
            categorical=list(FREMTPL2_CATEGORICALS),
        )

    @property
    def numeric(self):
        return [c for c in self.features if c not in self.categorical]

    @property
    def input_columns(self):
        """Columns a prediction function reads: the features plus the weight."""
        return self.features + [self.weight]

    def is_categorical(self, column):
        return column in self.categorical

    def check_feature(self, column, allow_weight=True):
        """Raise UnknownFeature unless ``column`` is a schema input column."""
        known = self.input_columns if allow_weight else self.features
        if column not in known:
            raise UnknownFeature(f"{column!r} is not a feature of the schema (known: {known}).")

    def validate(self, data):
        """Check ``data`` against the schema.

        Raises
        ------
        UnknownFeature
            An input column is missing from ``data``.
        TypeError
            A numeric feature does not have a numeric dtype.
        InvalidExposure
            The weight column holds null or non-positive values.
        """
        missing = [c for c in self.input_columns if c not in data.columns]
        if missing:
            raise UnknownFeature(f"Columns {missing} are missing from the data.")

        for col in self.numeric:
            if not pd.api.types.is_numeric_dtype(data[col]):
                raise TypeError(f"Numeric feature {col!r} has non-numeric dtype {data[col].dtype}.")

        weight = data[self.weight]
        if not pd.api.types.is_numeric_dtype(weight):
            raise InvalidExposure(f"Weight column {self.weight!r} must be numeric.")
        if weight.isna().any() or (weight <= 0).any():
            raise InvalidExposure(
                f"Weight column {self.weight!r} must be strictly positive and non-null."
            )

    def with_levels(self, data):
        """Return a copy of the schema with categorical levels taken from ``data``.

        Levels already set on the schema are kept, so a schema fitted on the
        training table stays valid for the test table.
        """
        levels = dict(self.levels)
        for col in self.categorical:
            if col in levels:
                continue
            values = data[col]
            if isinstance(values.dtype, pd.CategoricalDtype):
                levels[col] = list(values.cat.categories)
            else:
                levels[col] = sorted(values.dropna().unique().tolist())
        return dataclasses.replace(self, levels=levels)

    def model_frame(self, data):
        """Select the features of ``data`` and cast categoricals to fixed levels.

        Fixing the categories keeps the integer codes that LightGBM, glum and
        scikit-learn see identical between the reference data and a single
        cloned observation.
        """
        frame = data[self.features].copy()
        for col in self.categorical:
            if col in self.levels:
                frame[col] = frame[col].astype(pd.CategoricalDtype(self.levels[col]))
            else:
                frame[col] = frame[col].astype("category")
        return frame


@dataclass
class ExplainConfig(_JsonMixin):
    """Defaults for the explanation engines.

    Parameters
    ----------
    random_state : int
        Seed for permutations and row sampling.
    n_repeats : int
        Permutation trials per feature in the importance engine.
    n_sample : int | None
        Rows sampled before computing importance. ``None`` uses the full
        reference data.
    grid_points : int
        Grid size for numeric ceteris-paribus profiles.
    profile_sample : int
        Observations averaged into a partial-dependence curve.
    neighbours : int
        Default ``k`` for neighbour selection.
    loss : str
        Name of the default loss function (see ``claimx.evaluation.get_loss``).
    """

    random_state: int = 42
    n_repeats: int = 10
    n_sample: Optional[int] = None
    grid_points: int = 101
    profile_sample: int = 100
    neighbours: int = 10
    loss: str = "poisson_deviance"
