"""Simple loader/transform for the freMTPL2 claim frequency dataset.

Design notes:
- The loader tries multiple sources in order: local file > HF resolve URL
    > huggingface_hub helper > OpenML. The goal is a loader that works
    offline (local CSV) or in automated environments with HF caching.
- Only the frequency table is needed: the explained models predict claim
    counts, so the severity table is never joined.
"""

import logging
import os

import numpy as np
import pandas as pd

try:
    # Optional: huggingface_hub provides hf_hub_download for dataset caching.
    # To access gated HF repos set 'HUGGINGFACE_HUB_TOKEN' (or HF_TOKEN).
    from huggingface_hub import hf_hub_download
    _HAS_HF = True
except ImportError:
    hf_hub_download = None
    _HAS_HF = False

logger = logging.getLogger("claimx.data")

FREQ_FILENAME = "freMTPL2freq.csv"
HF_REPO_ID = "mabilton/fremtpl2"
HF_FREQ_URL = f"https://huggingface.co/datasets/{HF_REPO_ID}/resolve/main/{FREQ_FILENAME}"
OPENML_FREQ_URL = "https://www.openml.org/data/get_csv/20649148/freMTPL2freq.arff"


def _read_local_or_remote(freq_local):
    """
    Load the frequency CSV from the first source that works.

    Returns a pair (df_freq, source_str), where 'source_str' is a short label
    showing which fallback path succeeded: 'local', 'hf_url', 'hf_hub' or
    'openml'.
    """
    # 1) Prefer a local CSV (offline, fastest).
    if os.path.exists(freq_local):
        return pd.read_csv(freq_local), "local"

    # 2) Hugging Face direct 'resolve' URL; redirects to S3 for public datasets
    # and needs nothing beyond pandas.
    try:
        return pd.read_csv(HF_FREQ_URL), "hf_url"
    except Exception as e:
        logger.info("HF resolve URL failed (%s); trying the next source", e)

    # 3) huggingface_hub, which uses the local HF cache and retries.
    if _HAS_HF:
        try:
            freq_path = hf_hub_download(repo_id=HF_REPO_ID, filename=FREQ_FILENAME, repo_type="dataset")
            return pd.read_csv(freq_path), "hf_hub"
        except Exception as e:
            logger.info("huggingface_hub download failed (%s); trying OpenML", e)

    # 4) Last fallback: OpenML. The arff->csv converter quotes categorical
    # values with single quotes.
    try:
        return pd.read_csv(OPENML_FREQ_URL, quotechar="'"), "openml"
    except Exception as e:
        raise RuntimeError(
            f"Could not load dataset. Place {FREQ_FILENAME} in the data directory "
            "or ensure HF/OpenML access."
        ) from e


def transform(df):
    """Clean and bucket a raw freMTPL2 frequency table.

    - strips quotes from column names and casts IDpol to int
    - caps ClaimNb at 4 and Exposure at 1 year (values above are data errors)
    - caps VehPower at 9 and buckets VehAge / DrivAge
    """
    # The raw files sometimes include quotes around the column names.
    df = df.rename(lambda x: x.replace('"', ''), axis="columns")
    df["IDpol"] = df["IDpol"].astype(np.int64)

    # Strip the arff quoting from string categories as well
    for col in df.columns:
        if pd.api.types.is_string_dtype(df[col]):
            df[col] = df[col].str.strip("'\"")

    df["ClaimNb"] = np.minimum(df["ClaimNb"], 4)
    df["Exposure"] = np.minimum(df["Exposure"], 1.0)

    # VehAge: replace 10 with 9 first so it falls into the middle bin
    df["VehPower"] = np.minimum(df["VehPower"], 9)
    df["VehAge"] = np.digitize(
        np.where(df["VehAge"] == 10, 9, df["VehAge"]), bins=[1, 10]
    )
    df["DrivAge"] = np.digitize(df["DrivAge"], bins=[21, 26, 31, 41, 51, 71])
    return df.reset_index(drop=True)


def load_transform(data_dir=None):
    """Load and transform the freMTPL2 frequency table.

    Parameters
    ----------
    data_dir : str or path-like, optional
        Directory searched for ``freMTPL2freq.csv`` before any remote source.
        Defaults to the directory of this module.

    Returns
    -------
    pd.DataFrame
        One row per policy with ``IDpol`` as a regular column.
    """
    if data_dir is None:
        data_dir = os.path.dirname(__file__)
    local_freq = os.path.join(data_dir, FREQ_FILENAME)

    df, source = _read_local_or_remote(local_freq)
    logger.info("Loaded %d policies from %s", len(df), source)
    return transform(df)
