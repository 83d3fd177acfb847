"""Ceteris-paribus profiles, partial dependence and neighbour selection."""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from claimx.config import ExplainConfig
from claimx.exceptions import UnknownFeature
from claimx.explain._utils import check_random_state, sample_rows

logger = logging.getLogger("claimx.explain")

PROFILE_COLUMNS = ["_ids_", "_vname_", "_x_", "_yhat_", "_label_"]


@dataclass
class Profiles:
    """Result of the profile engine.

    For ``kind == "ceteris_paribus"`` the table has one row per
    (observation, grid point) with columns ``_ids_``, ``_vname_``, ``_x_``,
    ``_yhat_`` and ``_label_``. For ``kind == "partial"`` there is one row per
    grid point, ``_ids_`` is dropped and ``_n_`` counts the observations that
    were reduced.
    """

    result: pd.DataFrame
    variable: str
    label: str
    kind: str = "ceteris_paribus"


def make_grid(explainer, variable, grid_points=None):
    """Grid a variable is swept over.

    Categorical features use the schema's frozen levels that also occur in
    the reference data (sorted); numeric columns use ``grid_points`` equally spaced
    values between the observed min and max.
    """
    schema = explainer.schema
    schema.check_feature(variable)
    grid_points = explainer.config.grid_points if grid_points is None else grid_points

    if schema.is_categorical(variable):
        present = set(explainer.data[variable].astype(object))
        return [level for level in schema.levels[variable] if level in present]

    values = explainer.data[variable]
    lo, hi = float(values.min()), float(values.max())
    if lo == hi:
        return [lo]
    return np.linspace(lo, hi, grid_points).tolist()


def _with_observed(grid, value, categorical):
    if value in grid:
        return grid
    if categorical:
        return grid + [value]
    return sorted(grid + [value])


def predict_profile(explainer, observations, variable, grid=None, grid_points=None,
                    include_observed=True):
    """Ceteris-paribus profiles of ``variable`` for each observation.

    Every observation is cloned once per grid point with ``variable`` set to
    that point and every other column left at the observation's value.

    Parameters
    ----------
    explainer : Explainer
    observations : pd.DataFrame, pd.Series or dict
        Rows to profile; order is preserved. The index labels become
        ``_ids_`` (positions are used if the index has duplicates).
    variable : str
        Column to sweep; any schema input column, the weight included.
    grid : sequence, optional
        Values to sweep over. Defaults to :func:`make_grid`.
    grid_points : int, optional
        Numeric grid size when ``grid`` is None.
    include_observed : bool
        Add each observation's own value to its grid, so its profile passes
        through its own prediction.

    Returns
    -------
    Profiles
    """
    observations = explainer.as_frame(observations)
    explainer.schema.check_feature(variable)
    categorical = explainer.schema.is_categorical(variable)
    grid = make_grid(explainer, variable, grid_points) if grid is None else list(grid)

    ids = observations.index if observations.index.is_unique else pd.RangeIndex(len(observations))

    logger.info(
        "Ceteris-paribus profiles of %s for %r: %d observations, %d grid points",
        variable, explainer.label, len(observations), len(grid),
    )

    frames = []
    for position, obs_id in enumerate(ids):
        row = observations.iloc[[position]]
        points = grid
        if include_observed:
            points = _with_observed(grid, row[variable].iloc[0], categorical)

        clones = row.loc[row.index.repeat(len(points))].reset_index(drop=True)
        clones[variable] = points
        frames.append(pd.DataFrame({
            "_ids_": obs_id,
            "_vname_": variable,
            "_x_": points,
            "_yhat_": explainer.predict(clones),
            "_label_": explainer.label,
        }))

    result = pd.concat(frames, ignore_index=True) if frames else pd.DataFrame(columns=PROFILE_COLUMNS)
    return Profiles(result=result, variable=variable, label=explainer.label)


def aggregate_profiles(profiles, reducer=np.mean):
    """Collapse ceteris-paribus profiles into one curve.

    Only grid points present in every observation's profile are kept (points
    added by ``include_observed`` usually are not). With the default
    ``reducer`` this is the partial-dependence curve.
    """
    if profiles.kind != "ceteris_paribus":
        raise ValueError(
            f"Only ceteris-paribus profiles can be aggregated, got kind={profiles.kind!r}."
        )
    res = profiles.result
    n_ids = res["_ids_"].nunique()
    counts = res.groupby("_x_")["_ids_"].nunique()
    shared = counts.index[(counts == n_ids).to_numpy()]

    grouped = res[res["_x_"].isin(shared)].groupby("_x_", sort=True)["_yhat_"]
    agg = grouped.agg(lambda s: float(reducer(s.to_numpy()))).rename("_yhat_").reset_index()
    agg["_n_"] = grouped.size().to_numpy()
    agg.insert(0, "_vname_", profiles.variable)
    agg["_label_"] = profiles.label
    return Profiles(
        result=agg[["_vname_", "_x_", "_yhat_", "_n_", "_label_"]],
        variable=profiles.variable,
        label=profiles.label,
        kind="partial",
    )


def model_profile(explainer, variable, n_sample=None, grid_points=None, reducer=np.mean,
                  random_state=None):
    """Partial-dependence curve of ``variable``.

    Profiles ``n_sample`` rows of the reference data (default
    ``explainer.config.profile_sample``) on a common grid and aggregates them.
    """
    config = explainer.config
    n_sample = config.profile_sample if n_sample is None else n_sample
    rng = check_random_state(config.random_state if random_state is None else random_state)

    rows = sample_rows(explainer.data, n_sample, rng)
    observations = explainer.data if rows is None else explainer.data.iloc[rows]

    profiles = predict_profile(
        explainer, observations, variable, grid_points=grid_points, include_observed=False,
    )
    return aggregate_profiles(profiles, reducer=reducer)


def gower_distance(data, observation, variables, categorical=()):
    """Gower distance from every row of ``data`` to one observation.

    Numeric columns contribute ``|a - b| / range`` (range over ``data``),
    categorical columns contribute 0 on a match and 1 otherwise. The result
    is the mean over ``variables``. A missing value on either side counts as
    the largest contribution, 1.
    """
    distance = np.zeros(len(data))
    for variable in variables:
        column = data[variable]
        value = observation[variable]
        is_categorical = variable in categorical or not pd.api.types.is_numeric_dtype(column)
        if is_categorical:
            distance += column.astype(object).to_numpy() != value
            continue
        values = column.to_numpy(dtype=float)
        observed = values[~np.isnan(values)]
        spread = observed.max() - observed.min() if len(observed) else 0.0
        diff = np.abs(values - float(value))
        scaled = diff / spread if spread > 0 else (diff > 0).astype(float)
        distance += np.where(np.isnan(diff), 1.0, scaled)
    return distance / max(len(variables), 1)


def select_neighbours(data, observation, k=None, variables=None, schema=None):
    """The ``k`` rows of ``data`` closest to ``observation`` in Gower distance.

    Parameters
    ----------
    data : pd.DataFrame
    observation : pd.Series, dict or one-row pd.DataFrame
    k : int, optional
        Number of rows to return; all rows if ``k >= len(data)``. Defaults to
        ``ExplainConfig.neighbours``.
    variables : list[str], optional
        Columns compared. Defaults to ``schema.features`` if a schema is
        given, else every column the observation and data share.
    schema : ClaimsSchema, optional
        Marks the categorical columns; without it non-numeric dtypes are
        treated as categorical.

    Returns
    -------
    pd.DataFrame
        Selected rows, nearest first, ties in table order.
    """
    if isinstance(observation, pd.DataFrame):
        observation = observation.iloc[0]
    elif isinstance(observation, dict):
        observation = pd.Series(observation)

    if variables is None:
        if schema is not None:
            variables = list(schema.features)
        else:
            variables = [c for c in data.columns if c in observation.index]
    if schema is not None:
        for variable in variables:
            schema.check_feature(variable)
    missing = [v for v in variables if v not in data.columns or v not in observation.index]
    if missing:
        raise UnknownFeature(f"Columns {missing} are missing from the data or the observation.")
    categorical = schema.categorical if schema is not None else ()

    if k is None:
        k = ExplainConfig().neighbours
    if k < 1:
        raise ValueError(f"k must be at least 1, got {k}")

    distance = gower_distance(data, observation, variables, categorical)
    nearest = np.argsort(distance, kind="stable")[:k]
    return data.iloc[nearest]
