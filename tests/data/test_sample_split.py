import pandas as pd
import pytest

from claimx.data import create_sample_split


def test_split_is_deterministic(claims_df):
    first = create_sample_split(claims_df, "IDpol")
    second = create_sample_split(claims_df.sample(frac=1, random_state=1), "IDpol")
    assert set(first["sample"]) == {"train", "test"}
    merged = first[["IDpol", "sample"]].merge(second[["IDpol", "sample"]], on="IDpol")
    assert (merged["sample_x"] == merged["sample_y"]).all()


@pytest.mark.parametrize("training_frac", [0.5, 0.8])
def test_split_fraction(claims_df, training_frac):
    df = create_sample_split(claims_df, "IDpol", training_frac=training_frac)
    share = (df["sample"] == "train").mean()
    assert abs(share - training_frac) < 0.05


def test_split_does_not_modify_input(claims_df):
    create_sample_split(claims_df, "IDpol")
    assert "sample" not in claims_df.columns


def test_split_on_several_columns():
    df = pd.DataFrame({"a": [1, 1, 2], "b": ["x", "y", "x"]})
    out = create_sample_split(df, ["a", "b"], training_frac=1.0)
    assert (out["sample"] == "train").all()


def test_split_rejects_bad_fraction(claims_df):
    with pytest.raises(ValueError):
        create_sample_split(claims_df, "IDpol", training_frac=1.5)
