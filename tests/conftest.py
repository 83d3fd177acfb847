"""Shared fixtures for claimx tests."""

import numpy as np
import pandas as pd
import pytest
from glum import GeneralizedLinearRegressor
from lightgbm import LGBMRegressor
from sklearn.ensemble import HistGradientBoostingRegressor

from claimx.config import ClaimsSchema, ExplainConfig
from claimx.data import make_claims_dataset
from claimx.explain import Explainer, ModelFamily


class FrequencyFormula:
    """Known log-linear frequency model with a BonusMalus x DrivAge interaction.

    Region, VehBrand, Area, VehPower and VehAge are ignored.
    """

    def predict(self, frame):
        log_freq = (
            -2.5
            + 0.02 * (frame["BonusMalus"].astype(float) - 50)
            + 0.3 * (frame["VehGas"] == "Regular").astype(float)
            - 0.1 * frame["DrivAge"].astype(float)
            + 0.001 * frame["BonusMalus"].astype(float) * frame["DrivAge"].astype(float)
            + 0.05 * np.log(frame["Density"].astype(float))
        )
        return np.exp(log_freq).to_numpy()


@pytest.fixture(scope="session")
def claims_df() -> pd.DataFrame:
    """Synthetic freMTPL2-like table, 2 000 policies."""
    return make_claims_dataset(n_samples=2_000, random_state=42)


@pytest.fixture(scope="session")
def schema() -> ClaimsSchema:
    return ClaimsSchema.fremtpl2()


@pytest.fixture(scope="session")
def config() -> ExplainConfig:
    return ExplainConfig(random_state=0, n_repeats=3, grid_points=11, profile_sample=20)


@pytest.fixture(scope="session")
def formula_explainer(claims_df, schema, config):
    return Explainer.build(
        FrequencyFormula(),
        claims_df,
        claims_df["ClaimNb"],
        schema,
        label="formula",
        family=ModelFamily.CUSTOM,
        config=config,
    )


@pytest.fixture(scope="session")
def training_frame(claims_df, schema):
    """Model frame, frequency target and exposure weights used to fit the models."""
    fitted_schema = schema.with_levels(claims_df)
    X = fitted_schema.model_frame(claims_df)
    y = claims_df["ClaimNb"] / claims_df["Exposure"]
    w = claims_df["Exposure"]
    return X, y, w


@pytest.fixture(scope="session")
def fitted_models(training_frame):
    X, y, w = training_frame
    glm = GeneralizedLinearRegressor(family="poisson", alpha=1e-4, fit_intercept=True)
    glm.fit(X, y, sample_weight=w)

    lgbm = LGBMRegressor(objective="poisson", n_estimators=30, learning_rate=0.1,
                         random_state=42, verbose=-1)
    lgbm.fit(X, y, sample_weight=w)

    hist_gbm = HistGradientBoostingRegressor(loss="poisson", max_iter=30,
                                             categorical_features="from_dtype", random_state=42)
    hist_gbm.fit(X, y, sample_weight=w)
    return {
        ModelFamily.GLM: glm,
        ModelFamily.LGBM: lgbm,
        ModelFamily.HIST_GBM: hist_gbm,
    }


@pytest.fixture(scope="session")
def model_explainers(fitted_models, claims_df, schema, config):
    return {
        family: Explainer.build(
            model, claims_df, claims_df["ClaimNb"], schema,
            label=family.value, family=family, config=config,
        )
        for family, model in fitted_models.items()
    }
