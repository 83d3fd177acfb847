import numpy as np


def check_random_state(seed):
    """Turn ``seed`` into a numpy random generator.

    None or an int seeds a new ``np.random.Generator``; anything that already
    has ``permutation`` and ``choice`` (a Generator or RandomState) is
    returned unchanged.
    """
    if hasattr(seed, "permutation") and hasattr(seed, "choice"):
        return seed
    return np.random.default_rng(seed)


def sample_rows(data, n_sample, rng):
    """Positions of ``n_sample`` rows drawn without replacement, in table order.

    Returns None when ``n_sample`` is None or not smaller than the table.
    """
    if n_sample is None or n_sample >= len(data):
        return None
    if n_sample < 1:
        raise ValueError(f"n_sample must be positive, got {n_sample}")
    return np.sort(rng.choice(len(data), size=n_sample, replace=False))
