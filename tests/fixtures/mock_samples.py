"""Synthetic cytometry sample generators for tests."""

from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd

from cytogate.core.data import SampleCollection

DEFAULT_CHANNELS = ("FSC-A", "FSC-H", "CD3", "CD4")


def create_bimodal_table(
    n_events: int = 400,
    channels: Sequence[str] = DEFAULT_CHANNELS,
    negative_mean: float = 1.0,
    positive_mean: float = 4.0,
    positive_fraction: float = 0.4,
    seed: int = 0,
) -> pd.DataFrame:
    """Events with a negative and a positive population on every marker channel.

    ``FSC-H`` tracks ``FSC-A`` linearly so singlet gating has a clear band.
    """
    rng = np.random.default_rng(seed)
    n_pos = int(round(n_events * positive_fraction))
    data = {}
    for channel in channels:
        if channel == "FSC-H":
            continue
        values = np.concatenate(
            [
                rng.normal(negative_mean, 0.4, n_events - n_pos),
                rng.normal(positive_mean, 0.4, n_pos),
            ]
        )
        data[channel] = rng.permutation(values)
    if "FSC-H" in channels:
        data["FSC-H"] = 0.8 * data["FSC-A"] + rng.normal(0, 0.05, n_events)
    return pd.DataFrame(data)[list(channels)]


def create_sample_collection(
    n_samples: int = 3,
    n_events: int = 400,
    channels: Sequence[str] = DEFAULT_CHANNELS,
    metadata: Optional[Dict[str, Dict[str, object]]] = None,
    seed: int = 0,
) -> SampleCollection:
    """Collection of bimodal samples named ``s1``, ``s2``, ...

    Odd samples get ``visit: 1``, even samples ``visit: 2`` unless
    ``metadata`` is given.
    """
    tables = {
        f"s{i + 1}": create_bimodal_table(n_events, channels, seed=seed + i)
        for i in range(n_samples)
    }
    if metadata is None:
        metadata = {
            name: {"visit": 1 if i % 2 == 0 else 2, "donor": f"D{i + 1}"}
            for i, name in enumerate(tables)
        }
    return SampleCollection(tables, metadata=metadata)
