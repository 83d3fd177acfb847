import pandas as pd
import pytest

from claimx.config import ClaimsSchema, ExplainConfig
from claimx.exceptions import InvalidExposure, UnknownFeature


def test_fremtpl2_schema_columns():
    schema = ClaimsSchema.fremtpl2()
    assert schema.numeric == ["BonusMalus", "Density"]
    assert schema.input_columns[-1] == "Exposure"
    assert "Exposure" not in schema.features


def test_categorical_must_be_a_feature():
    with pytest.raises(UnknownFeature):
        ClaimsSchema(features=["BonusMalus"], categorical=["Region"])


def test_weight_is_not_a_feature():
    with pytest.raises(ValueError):
        ClaimsSchema(features=["BonusMalus", "Exposure"])


def test_validate_missing_column(claims_df, schema):
    with pytest.raises(UnknownFeature):
        schema.validate(claims_df.drop(columns=["Density"]))


def test_validate_non_numeric_feature(claims_df, schema):
    df = claims_df.assign(BonusMalus=claims_df["BonusMalus"].astype(str))
    with pytest.raises(TypeError):
        schema.validate(df)


@pytest.mark.parametrize("bad_value", [0.0, -0.5, float("nan")])
def test_validate_exposure_must_be_positive(claims_df, schema, bad_value):
    df = claims_df.copy()
    df.loc[df.index[3], "Exposure"] = bad_value
    with pytest.raises(InvalidExposure):
        schema.validate(df)


def test_with_levels_is_frozen(claims_df, schema):
    fitted = schema.with_levels(claims_df)
    assert fitted.levels["VehGas"] == ["Diesel", "Regular"]
    assert schema.levels == {}

    # levels already on the schema are not re-derived from a smaller table
    again = fitted.with_levels(claims_df[claims_df["VehGas"] == "Diesel"])
    assert again.levels["VehGas"] == ["Diesel", "Regular"]


def test_model_frame_casts_categoricals(claims_df, schema):
    fitted = schema.with_levels(claims_df)
    frame = fitted.model_frame(claims_df.head(1))
    assert list(frame.columns) == fitted.features
    assert isinstance(frame["Region"].dtype, pd.CategoricalDtype)
    assert list(frame["Region"].cat.categories) == fitted.levels["Region"]


def test_save_and_load(tmp_path, claims_df, schema):
    fitted = schema.with_levels(claims_df)
    fitted.save(tmp_path / "schema.json")
    assert ClaimsSchema.load(tmp_path / "schema.json") == fitted

    config = ExplainConfig(n_repeats=3, loss="squared_error")
    config.save(tmp_path / "config.json")
    assert ExplainConfig.load(tmp_path / "config.json") == config
