import hashlib


def create_sample_split(df, id_column, training_frac=0.8):
    """Create sample split based on ID column.

    The split is a deterministic function of the id: the md5 hash of the id
    is bucketed modulo 100, so a policy always lands on the same side no
    matter how the table is ordered or filtered.

    Parameters
    ----------
    df : pd.DataFrame
        Training data
    id_column : str or list of str
        Name of ID column. Several columns are joined with ``_`` before
        hashing.
    training_frac : float, optional
        Fraction to use for training, by default 0.8

    Returns
    -------
    pd.DataFrame
        Copy of ``df`` with a ``sample`` column holding "train" or "test".
    """
    if not 0 <= training_frac <= 1:
        raise ValueError(f"training_frac must be in [0, 1], got {training_frac}")

    columns = [id_column] if isinstance(id_column, str) else list(id_column)
    threshold = int(round(training_frac * 100))

    def assign_split(id_values):
        id_string = "_".join(str(v) for v in id_values)

        # md5 -> hex digest -> integer; modulo 100 is close to uniform, but a
        # small sample is not guaranteed an exact split
        hash_int = int(hashlib.md5(id_string.encode()).hexdigest(), 16)
        bucket = hash_int % 100
        return "train" if bucket < threshold else "test"

    df = df.copy()
    df["sample"] = [assign_split(values) for values in df[columns].itertuples(index=False)]
    return df
