"""Synthetic freMTPL2-like claim frequency data for tests and demos."""

import numpy as np
import pandas as pd


def make_claims_dataset(n_samples=5_000, random_state=42):
    """Generate a synthetic claim frequency table.

    The columns mimic ``load_transform()`` output (already bucketed), and the
    claim counts are Poisson with a log-linear frequency driven mostly by
    BonusMalus, VehGas, DrivAge and Density. Region and VehBrand carry no
    signal.

    Parameters
    ----------
    n_samples : int
        Number of policies.
    random_state : int
        Random seed.

    Returns
    -------
    pd.DataFrame
        Columns IDpol, ClaimNb, Exposure, Area, VehPower, VehAge, DrivAge,
        BonusMalus, VehBrand, VehGas, Density, Region.
    """
    rng = np.random.default_rng(random_state)

    df = pd.DataFrame({
        "IDpol": np.arange(1, n_samples + 1),
        "Area": rng.choice(list("ABCDEF"), size=n_samples),
        "VehPower": rng.integers(4, 10, size=n_samples),
        "VehAge": rng.choice([0, 1, 2], size=n_samples, p=[0.1, 0.6, 0.3]),
        "DrivAge": rng.integers(0, 7, size=n_samples),
        "BonusMalus": np.clip(np.round(50 + rng.exponential(12, size=n_samples)), 50, 230).astype(int),
        "VehBrand": rng.choice([f"B{i}" for i in range(1, 7)], size=n_samples),
        "VehGas": rng.choice(["Diesel", "Regular"], size=n_samples),
        "Density": np.round(np.exp(rng.normal(6, 1.5, size=n_samples))).astype(int) + 1,
        "Region": rng.choice([f"R{i}" for i in (11, 24, 52, 53, 82, 93)], size=n_samples),
    })
    df["Exposure"] = np.round(rng.uniform(0.05, 1.0, size=n_samples), 3)

    log_freq = (
        -2.6
        + 0.02 * (df["BonusMalus"] - 50)
        + 0.25 * (df["VehGas"] == "Regular")
        - 0.1 * df["DrivAge"]
        + 0.08 * np.log(df["Density"])
    )
    mu = np.exp(log_freq) * df["Exposure"]
    df["ClaimNb"] = np.minimum(rng.poisson(mu), 4)

    columns = ["IDpol", "ClaimNb", "Exposure", "Area", "VehPower", "VehAge",
               "DrivAge", "BonusMalus", "VehBrand", "VehGas", "Density", "Region"]
    return df[columns]
