"""Sample tables and sample collections.

A sample table is a ``pandas.DataFrame`` with one numeric column per channel
and one row per event. A :class:`SampleCollection` holds several tables with
identical channels, keyed by sample name in a fixed order, plus optional
per-sample metadata used for grouping.

Tables handed to a collection are treated as read-only; every operation here
returns new objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd


@dataclass
class MergedTable:
    """A sample collection flattened into one table.

    Attributes
    ----------
    data : pd.DataFrame
        Concatenated events of all samples, with a fresh RangeIndex
    sample_names : List[str]
        Originating samples, in merge order
    offsets : np.ndarray
        Row offset of each sample in ``data``; length ``len(sample_names) + 1``
    """

    data: pd.DataFrame
    sample_names: List[str] = field(default_factory=list)
    offsets: np.ndarray = field(default_factory=lambda: np.zeros(1, dtype=int))

    @property
    def n_events(self) -> int:
        return len(self.data)

    def take(self, indices: np.ndarray) -> pd.DataFrame:
        """Rows at the given positions, re-indexed from zero."""
        return self.data.iloc[np.sort(indices)].reset_index(drop=True)


class SampleCollection:
    """Ordered, name-keyed collection of sample tables with identical channels.

    Parameters
    ----------
    tables : Mapping[str, pd.DataFrame]
        Map of sample name to event table, in the desired sample order
    metadata : Mapping[str, Mapping[str, Any]], optional
        Per-sample metadata (e.g. donor, visit, stimulation)

    Raises
    ------
    ValueError
        If the collection is empty or the tables do not share channels

    Example
    -------
    >>> samples = SampleCollection({"s1": df1, "s2": df2})
    >>> samples.channels
    ['FSC-A', 'SSC-A', 'CD4']
    >>> merged = samples.merge()
    """

    def __init__(
        self,
        tables: Mapping[str, pd.DataFrame],
        metadata: Optional[Mapping[str, Mapping[str, Any]]] = None,
    ):
        if not tables:
            raise ValueError("A SampleCollection needs at least one sample")

        names = [str(name) for name in tables]
        first = next(iter(tables.values()))
        channels = [str(c) for c in first.columns]
        for name, table in tables.items():
            if set(map(str, table.columns)) != set(channels):
                raise ValueError(
                    f"Sample '{name}' channels {sorted(map(str, table.columns))} "
                    f"differ from {sorted(channels)}"
                )

        self._tables: Dict[str, pd.DataFrame] = {
            str(name): table for name, table in tables.items()
        }
        self._names = names
        self._channels = channels

        metadata = metadata or {}
        unknown = set(map(str, metadata)) - set(names)
        if unknown:
            raise ValueError(f"Metadata given for unknown samples: {sorted(unknown)}")
        self._metadata: Dict[str, Dict[str, Any]] = {
            name: dict(metadata.get(name, {})) for name in names
        }

    @classmethod
    def from_frame(
        cls,
        data: pd.DataFrame,
        sample_col: str = "sample_id",
        metadata: Optional[Mapping[str, Mapping[str, Any]]] = None,
    ) -> "SampleCollection":
        """Split a long table with a sample column into a collection."""
        if sample_col not in data.columns:
            raise ValueError(f"Missing sample column '{sample_col}'")
        tables = {
            str(name): group.drop(columns=[sample_col]).reset_index(drop=True)
            for name, group in data.groupby(sample_col, sort=False)
        }
        return cls(tables, metadata=metadata)

    @property
    def sample_names(self) -> List[str]:
        return list(self._names)

    @property
    def channels(self) -> List[str]:
        return list(self._channels)

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._tables

    def __getitem__(self, name: str) -> pd.DataFrame:
        return self._tables[name]

    def items(self) -> Iterator[Tuple[str, pd.DataFrame]]:
        for name in self._names:
            yield name, self._tables[name]

    def metadata(self, name: str) -> Dict[str, Any]:
        """Copy of the metadata of one sample."""
        return dict(self._metadata[name])

    def n_events(self, name: Optional[str] = None) -> int:
        """Number of events in one sample, or in the whole collection."""
        if name is not None:
            return len(self._tables[name])
        return int(sum(len(t) for t in self._tables.values()))

    def subset(self, names: Iterable[str]) -> "SampleCollection":
        """Collection restricted to ``names``, in the given order."""
        names = [str(n) for n in names]
        missing = [n for n in names if n not in self._tables]
        if missing:
            raise KeyError(f"Unknown samples: {missing}")
        return SampleCollection(
            {n: self._tables[n] for n in names},
            metadata={n: self._metadata[n] for n in names},
        )

    def map_tables(
        self, func: Callable[[str, pd.DataFrame], pd.DataFrame]
    ) -> "SampleCollection":
        """New collection with ``func(name, table)`` applied to every table."""
        return SampleCollection(
            {name: func(name, table) for name, table in self.items()},
            metadata=self._metadata,
        )

    def merge(self) -> MergedTable:
        """Concatenate all samples into one :class:`MergedTable`."""
        frames = [self._tables[n][self._channels] for n in self._names]
        lengths = [len(f) for f in frames]
        data = pd.concat(frames, axis=0, ignore_index=True)
        offsets = np.concatenate([[0], np.cumsum(lengths)]).astype(int)
        return MergedTable(data=data, sample_names=self.sample_names, offsets=offsets)

    def group_by(
        self, keys: Optional[Sequence[str]]
    ) -> List[Tuple[Tuple[Any, ...], "SampleCollection"]]:
        """Split the collection by metadata keys, preserving sample order.

        With no keys every sample forms its own group.
        """
        groups: Dict[Tuple[Any, ...], List[str]] = {}
        for name in self._names:
            if keys:
                meta = self._metadata[name]
                missing = [k for k in keys if k not in meta]
                if missing:
                    raise KeyError(f"Sample '{name}' has no metadata for {missing}")
                key = tuple(meta[k] for k in keys)
            else:
                key = (name,)
            groups.setdefault(key, []).append(name)
        return [(key, self.subset(names)) for key, names in groups.items()]

    def __repr__(self) -> str:
        return (
            f"SampleCollection(n_samples={len(self)}, channels={self._channels}, "
            f"n_events={self.n_events()})"
        )
