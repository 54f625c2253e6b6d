"""CSV loading of sample registries and event tables.

A sample registry lists one sample per row: its name (``sample_id``), the
path of its event table (``table_path``, relative to the registry) and any
number of metadata columns used for grouping.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from ..core.data.samples import SampleCollection

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

DEFAULT_REQUIRED_COLUMNS = ["sample_id", "table_path"]


def _resolve_path(value: str, base: Path) -> Path:
    candidate = Path(value)
    if not candidate.is_absolute():
        candidate = (base / candidate).resolve()
    return candidate


def load_sample_registry(
    path: PathLike,
    required_columns: Optional[List[str]] = None,
) -> pd.DataFrame:
    """Load a sample registry CSV.

    Parameters
    ----------
    path : PathLike
        Registry CSV
    required_columns : List[str], optional
        Defaults to ``sample_id`` and ``table_path``

    Returns
    -------
    pd.DataFrame
        Registry with ``table_path`` resolved against the registry's directory

    Raises
    ------
    FileNotFoundError
        If the registry does not exist
    ValueError
        If required columns are missing or sample ids repeat
    """
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Sample registry not found: {csv_path}")
    df = pd.read_csv(csv_path)

    required = required_columns or DEFAULT_REQUIRED_COLUMNS
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise ValueError(f"Sample registry missing columns: {missing}")

    df["sample_id"] = df["sample_id"].astype(str)
    duplicated = df["sample_id"][df["sample_id"].duplicated()].tolist()
    if duplicated:
        raise ValueError(f"Duplicate sample ids in registry: {duplicated}")

    df["table_path"] = df["table_path"].apply(lambda p: str(_resolve_path(p, csv_path.parent)))
    return df


def load_event_table(
    path: PathLike,
    channels: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Read one event table, optionally keeping only ``channels``.

    Raises
    ------
    FileNotFoundError
        If the table does not exist
    ValueError
        If the table is empty or lacks a requested channel
    """
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Event table not found: {csv_path}")
    df = pd.read_csv(csv_path)
    if df.empty:
        raise ValueError(f"Event table {csv_path} is empty")
    if channels is not None:
        missing = [c for c in channels if c not in df.columns]
        if missing:
            raise ValueError(f"Event table {csv_path} missing channels: {missing}")
        df = df[list(channels)]
    return df


def load_sample_collection(
    registry_path: PathLike,
    channels: Optional[Sequence[str]] = None,
    metadata_columns: Optional[Sequence[str]] = None,
) -> SampleCollection:
    """Build a :class:`SampleCollection` from a sample registry.

    Parameters
    ----------
    registry_path : PathLike
        Registry CSV
    channels : Sequence[str], optional
        Channels to keep from every table; all columns when omitted
    metadata_columns : Sequence[str], optional
        Registry columns copied into sample metadata; defaults to every
        column other than ``sample_id`` and ``table_path``
    """
    registry = load_sample_registry(registry_path)
    if metadata_columns is None:
        metadata_columns = [c for c in registry.columns if c not in DEFAULT_REQUIRED_COLUMNS]

    tables: Dict[str, pd.DataFrame] = {}
    metadata: Dict[str, Dict[str, object]] = {}
    for row in registry.to_dict(orient="records"):
        name = row["sample_id"]
        tables[name] = load_event_table(row["table_path"], channels)
        metadata[name] = {col: row[col] for col in metadata_columns}

    logger.info("Loaded %d samples from %s", len(tables), registry_path)
    return SampleCollection(tables, metadata=metadata)
