import numpy as np
import pandas as pd
import pytest

from claimx.explain import (
    Explainer,
    ModelFamily,
    aggregate_profiles,
    gower_distance,
    make_grid,
    model_profile,
    predict_profile,
    select_neighbours,
)
from claimx.config import ExplainConfig
from claimx.exceptions import UnknownFeature


def test_numeric_grid_spans_the_observed_range(formula_explainer, claims_df):
    grid = make_grid(formula_explainer, "BonusMalus", grid_points=7)
    assert len(grid) == 7
    assert grid[0] == claims_df["BonusMalus"].min()
    assert grid[-1] == claims_df["BonusMalus"].max()


def test_categorical_grid_is_sorted_levels(formula_explainer, claims_df):
    assert make_grid(formula_explainer, "Region") == sorted(claims_df["Region"].unique())


@pytest.mark.parametrize("variable", ["BonusMalus", "VehGas", "Density", "Exposure"])
def test_profile_passes_through_the_observation(formula_explainer, claims_df, variable):
    observations = claims_df.iloc[[0, 17, 230]]
    cp = predict_profile(formula_explainer, observations, variable)
    expected = formula_explainer.predict(observations)

    for obs_id, prediction in zip(observations.index, expected):
        own_value = observations.loc[obs_id, variable]
        rows = cp.result[(cp.result["_ids_"] == obs_id) & (cp.result["_x_"] == own_value)]
        assert len(rows) == 1
        assert rows["_yhat_"].iloc[0] == pytest.approx(prediction, rel=1e-12)


def test_one_row_per_observation_and_grid_point(formula_explainer, claims_df):
    observations = claims_df.iloc[:4]
    cp = predict_profile(formula_explainer, observations, "Area", include_observed=False)
    n_levels = len(formula_explainer.schema.levels["Area"])
    assert len(cp.result) == 4 * n_levels
    assert list(cp.result.columns) == ["_ids_", "_vname_", "_x_", "_yhat_", "_label_"]
    assert cp.result["_ids_"].unique().tolist() == observations.index.tolist()


def test_ignored_feature_gives_flat_profile(formula_explainer, claims_df):
    cp = predict_profile(formula_explainer, claims_df.iloc[[8]], "Region")
    assert cp.result["_yhat_"].nunique() == 1


def test_supplied_grid(formula_explainer, claims_df):
    cp = predict_profile(formula_explainer, claims_df.iloc[[0]], "BonusMalus",
                         grid=[50, 100, 150], include_observed=False)
    assert cp.result["_x_"].tolist() == [50, 100, 150]
    assert cp.result["_yhat_"].is_monotonic_increasing


def test_aggregate_is_the_mean_of_the_profiles(formula_explainer, claims_df):
    observations = claims_df.iloc[10:20]
    cp = predict_profile(formula_explainer, observations, "BonusMalus", grid_points=5)
    pdp = aggregate_profiles(cp)

    assert pdp.kind == "partial"
    assert len(pdp.result) == 5
    assert (pdp.result["_n_"] == 10).all()
    for _, row in pdp.result.iterrows():
        at_point = cp.result.loc[cp.result["_x_"] == row["_x_"], "_yhat_"]
        assert row["_yhat_"] == pytest.approx(at_point.mean())


def test_aggregate_with_other_reducer(formula_explainer, claims_df):
    cp = predict_profile(formula_explainer, claims_df.iloc[:6], "VehGas")
    pdp = aggregate_profiles(cp, reducer=np.median)
    expected = cp.result.groupby("_x_")["_yhat_"].median()
    np.testing.assert_allclose(pdp.result.set_index("_x_")["_yhat_"], expected.loc[pdp.result["_x_"]])


@pytest.mark.parametrize("family", [ModelFamily.GLM, ModelFamily.LGBM, ModelFamily.HIST_GBM])
def test_model_profile(model_explainers, family):
    explainer = model_explainers[family]
    pdp = model_profile(explainer, "BonusMalus")
    assert len(pdp.result) == explainer.config.grid_points
    assert (pdp.result["_n_"] == explainer.config.profile_sample).all()
    assert (pdp.result["_yhat_"] > 0).all()


def test_unknown_variable(formula_explainer, claims_df):
    with pytest.raises(UnknownFeature):
        predict_profile(formula_explainer, claims_df.iloc[[0]], "Colour")


def test_select_neighbours_returns_the_closest_rows(claims_df, schema):
    observation = claims_df.iloc[100]
    neighbours = select_neighbours(claims_df, observation, k=15, schema=schema)
    assert len(neighbours) == 15

    distance = pd.Series(
        gower_distance(claims_df, observation, schema.features, schema.categorical),
        index=claims_df.index,
    )
    selected = distance.loc[neighbours.index]
    excluded = distance.drop(neighbours.index)
    assert selected.max() <= excluded.min()
    # the observation itself is at distance zero
    assert neighbours.index[0] == claims_df.index[100]


def test_select_neighbours_small_dataset(claims_df, schema):
    small = claims_df.head(5)
    assert len(select_neighbours(small, claims_df.iloc[0], k=50, schema=schema)) == 5


def test_gower_distance_mixed_columns():
    data = pd.DataFrame({"x": [0.0, 5.0, 10.0], "c": ["a", "b", "a"]})
    distance = gower_distance(data, {"x": 0.0, "c": "a"}, ["x", "c"])
    np.testing.assert_allclose(distance, [0.0, 0.75, 0.5])


def test_neighbours_feed_profiles(formula_explainer, claims_df, schema):
    neighbours = select_neighbours(claims_df, claims_df.iloc[3], k=5, schema=schema)
    cp = predict_profile(formula_explainer, neighbours, "DrivAge", include_observed=False)
    assert cp.result["_ids_"].nunique() == 5


def test_gower_distance_with_missing_numeric():
    data = pd.DataFrame({"x": [0.0, 5.0, 10.0, np.nan]})
    distance = gower_distance(data, {"x": 0.0}, ["x"])
    np.testing.assert_allclose(distance, [0.0, 0.5, 1.0, 1.0])


def test_missing_value_is_never_the_nearest_row():
    data = pd.DataFrame({"x": [1.0, 5.0, 10.0, np.nan]})
    assert select_neighbours(data, {"x": 0.0}, k=1).index.tolist() == [0]


@pytest.mark.parametrize("observation, variables", [
    ({"x": 0.0}, ["Colour"]),
    ({"y": 0.0}, ["x"]),
])
def test_select_neighbours_unknown_variable_without_schema(observation, variables):
    data = pd.DataFrame({"x": [1.0, 5.0], "y": [2.0, 3.0]})
    with pytest.raises(UnknownFeature):
        select_neighbours(data, observation, k=1, variables=variables)


def test_select_neighbours_defaults_to_configured_count(claims_df, schema):
    neighbours = select_neighbours(claims_df, claims_df.iloc[0], schema=schema)
    assert len(neighbours) == ExplainConfig().neighbours


def test_categorical_grid_skips_levels_absent_from_the_data(claims_df, schema):
    subset = claims_df[claims_df["Area"] != "A"]
    explainer = Explainer.build(
        None, subset, subset["ClaimNb"], schema.with_levels(claims_df),
        predict_function=lambda model, inputs: np.ones(len(inputs)),
    )
    assert "A" in explainer.schema.levels["Area"]
    assert make_grid(explainer, "Area") == sorted(subset["Area"].unique())


def test_partial_profiles_cannot_be_aggregated_again(formula_explainer, claims_df):
    pdp = aggregate_profiles(predict_profile(formula_explainer, claims_df.iloc[:3], "VehGas"))
    with pytest.raises(ValueError, match="ceteris-paribus"):
        aggregate_profiles(pdp)
