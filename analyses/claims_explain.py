# %%
# Claim frequency on freMTPL2: three count models and their explanations.
#
# GLM (glum), LightGBM and scikit-learn HistGradientBoosting are fitted on the
# claim frequency (ClaimNb / Exposure) with exposure weights. Each model is
# wrapped in a claimx Explainer so that residuals, permutation importance,
# break-downs and ceteris-paribus profiles are computed the same way for all
# three.

import logging

import matplotlib.pyplot as plt  # For plotting graphs
import numpy as np  # For numerical operations and arrays
import pandas as pd  # For working with DataFrames (tabular data)
from dask_ml.preprocessing import Categorizer  # For converting categorical variables
from glum import GeneralizedLinearRegressor, PoissonDistribution  # Poisson GLM for claim counts
from lightgbm import LGBMRegressor  # Gradient boosting machine learning model
from sklearn.ensemble import HistGradientBoostingRegressor  # Second boosting library

from claimx import ClaimsSchema, ExplainConfig, Explainer, ModelFamily
from claimx.data import create_sample_split, load_transform
from claimx.evaluation import evaluate_predictions
from claimx.explain import (
    aggregate_profiles,
    model_parts,
    model_performance,
    model_profile,
    predict_parts,
    predict_profile,
    select_neighbours,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

# %%
# Load and transform the French motor insurance dataset (frequency table)
df = load_transform()
print(df.shape)
df.head()

# %%
# Train/test split on the policy id (hash based, reproducible)
df = create_sample_split(df, "IDpol", training_frac=0.8)
df_train = df[df["sample"] == "train"].reset_index(drop=True)
df_test = df[df["sample"] == "test"].reset_index(drop=True)

# The schema names every column the models and the explainers read.
# Exposure is the weight: models predict a frequency, explainers rescale it
# to an expected claim count.
schema = ClaimsSchema.fremtpl2().with_levels(df_train)
config = ExplainConfig(random_state=42, n_repeats=5, n_sample=20_000, grid_points=41)

y_train_freq = df_train["ClaimNb"] / df_train["Exposure"]
w_train = df_train["Exposure"]

# %%
# GLM: Poisson with L1 penalty on categorised inputs
glm_categorizer = Categorizer(columns=schema.categorical)
X_train_glm = glm_categorizer.fit_transform(schema.model_frame(df_train))

glm = GeneralizedLinearRegressor(family="poisson", l1_ratio=1, alpha=1e-4, fit_intercept=True)
glm.fit(X_train_glm, y_train_freq, sample_weight=w_train)

pd.DataFrame(
    {"coefficient": np.concatenate(([glm.intercept_], glm.coef_))},
    index=["intercept"] + glm.feature_names_,
).T

# %%
# LightGBM: Poisson objective, native categorical handling
X_train = schema.model_frame(df_train)
lgbm = LGBMRegressor(
    objective="poisson",
    n_estimators=300,
    learning_rate=0.05,
    num_leaves=31,
    min_child_samples=50,
    random_state=42,
    verbose=-1,
)
lgbm.fit(X_train, y_train_freq, sample_weight=w_train)

# %%
# HistGradientBoosting: Poisson loss, categoricals from the pandas dtype
hist_gbm = HistGradientBoostingRegressor(
    loss="poisson",
    max_iter=300,
    learning_rate=0.05,
    categorical_features="from_dtype",
    random_state=42,
)
hist_gbm.fit(X_train, y_train_freq, sample_weight=w_train)

# %%
# One explainer per model, all on the test set
explainers = [
    Explainer.build(glm, df_test, df_test["ClaimNb"], schema, label="GLM Poisson",
                    family=ModelFamily.GLM, config=config),
    Explainer.build(lgbm, df_test, df_test["ClaimNb"], schema, label="LightGBM",
                    family=ModelFamily.LGBM, config=config),
    Explainer.build(hist_gbm, df_test, df_test["ClaimNb"], schema, label="HistGBM",
                    family=ModelFamily.HIST_GBM, config=config),
]

# %%
# Portfolio metrics on the test set
performance = [model_performance(exp) for exp in explainers]
pd.concat([mp.summary() for mp in performance], axis=1)

for exp in explainers:
    metrics = evaluate_predictions(
        df_test["ClaimNb"], exp.y_hat, df_test["Exposure"], distribution=PoissonDistribution()
    )
    print(f"{exp.label}: deviance={metrics['deviance']:.4f} gini={metrics['gini']:.3f}")

# %%
# Residual distributions (observed - predicted claims)
fig, ax = plt.subplots(figsize=(8, 5))
for mp in performance:
    ax.hist(mp.residuals["residual"], bins=60, range=(-1, 2), histtype="step",
            linewidth=1.5, label=mp.label)
ax.set_yscale("log")
ax.set_title("Residual distribution – Test")
ax.set_xlabel("ClaimNb - predicted claims")
ax.legend(); ax.grid(alpha=0.3); plt.tight_layout(); plt.show()

# %%
# Permutation variable importance, Poisson deviance loss
importances = [model_parts(exp, "poisson_deviance") for exp in explainers]

fig, axes = plt.subplots(1, len(importances), figsize=(15, 5), sharex=True)
for ax, vi in zip(axes, importances):
    table = vi.sorted().iloc[::-1]
    ax.barh(table["variable"], table["importance"], color="#2c7fb8")
    ax.set_title(vi.label)
    ax.set_xlabel(f"Increase in {vi.loss_name}")
    ax.grid(alpha=0.3)
plt.tight_layout(); plt.show()

pd.concat([vi.result for vi in importances]).pivot(index="variable", columns="label", values="importance")

# %%
# Break-down of one policy's prediction, per model
observation = df_test.iloc[[0]]
breakdowns = [predict_parts(exp, observation) for exp in explainers]

fig, axes = plt.subplots(1, len(breakdowns), figsize=(15, 5))
for ax, bd in zip(axes, breakdowns):
    table = bd.result.iloc[::-1]
    colors = np.where(table["contribution"] >= 0, "#d7191c", "#1a9641")
    ax.barh(table["variable"], table["contribution"], color=colors)
    ax.axvline(0, color="black", linewidth=0.8)
    ax.set_title(f"{bd.label}: {bd.intercept:.4f} -> {bd.prediction:.4f}")
    ax.set_xlabel("Contribution to predicted claims")
plt.tight_layout(); plt.show()

# %%
# Ceteris-paribus profiles for one policy and partial dependence
for variable in ["BonusMalus", "DrivAge", "Density"]:
    fig, ax = plt.subplots(figsize=(8, 5))
    for exp in explainers:
        pdp = model_profile(exp, variable)
        ax.plot(pdp.result["_x_"], pdp.result["_yhat_"], marker="o", markersize=3, label=exp.label)
    ax.set_title(f"Partial dependence – {variable}")
    ax.set_xlabel(variable)
    ax.set_ylabel("Average predicted claims")
    ax.legend(); ax.grid(alpha=0.3); plt.tight_layout(); plt.show()

# %%
# Local partial dependence: profiles of the 50 policies closest to one policy
neighbours = select_neighbours(df_test, observation, k=config.neighbours * 5, schema=schema)

fig, ax = plt.subplots(figsize=(8, 5))
for exp in explainers:
    cp = predict_profile(exp, neighbours, "BonusMalus", include_observed=False)
    local = aggregate_profiles(cp)
    ax.plot(local.result["_x_"], local.result["_yhat_"], label=exp.label)
ax.set_title("Neighbourhood partial dependence – BonusMalus")
ax.set_xlabel("BonusMalus")
ax.set_ylabel("Average predicted claims")
ax.legend(); ax.grid(alpha=0.3); plt.tight_layout(); plt.show()

# %%
