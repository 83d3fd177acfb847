"""Data subpackage exports: freMTPL2 loading, sample split, synthetic data."""

from ._load_transform import load_transform, transform
from ._sample_split import create_sample_split
from ._synthetic import make_claims_dataset

__all__ = ["create_sample_split", "load_transform", "make_claims_dataset", "transform"]
