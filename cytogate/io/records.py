"""Gating summaries as YAML or JSON documents."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Union

import yaml

PathLike = Union[str, Path]

RECORD_FORMATS = ("yaml", "json")


def format_record(record: Dict[str, Any], fmt: str = "yaml") -> str:
    """Render ``record`` as one YAML or JSON document.

    Non-finite gate bounds are kept: YAML writes ``.inf`` and JSON writes
    ``Infinity``, both of which load back as floats in Python.

    Raises
    ------
    ValueError
        If ``fmt`` is not one of ``RECORD_FORMATS``
    """
    if fmt == "yaml":
        return yaml.safe_dump(record, sort_keys=False)
    if fmt == "json":
        return json.dumps(record, indent=2, default=str) + "\n"
    raise ValueError(f"Unknown record format '{fmt}'; expected one of {RECORD_FORMATS}")


def write_record(path: PathLike, record: Dict[str, Any], fmt: str = "yaml") -> Path:
    """Write ``record`` to ``path``, replacing any previous content."""
    text = format_record(record, fmt)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        handle.write(text)
    return path
