"""Process-wide gating options.

Options are read-only at invocation time and are passed explicitly into the
dispatch adaptor rather than read from ambient global state, so independent
gating invocations stay deterministic and can run in parallel.

Example
-------
>>> from cytogate.config import GatingOptions
>>> options = GatingOptions.from_yaml("gating.yaml")
>>> options.min_events
100
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

PathLike = Union[str, Path]


@dataclass(frozen=True)
class GatingOptions:
    """Read-only configuration for the dispatch adaptor.

    Attributes
    ----------
    min_events : int
        Samples (or merged groups) with at most this many events are not
        gated; a dummy gate is returned instead
    random_seed : int, optional
        Seed for subsampling. None draws fresh entropy per invocation
    algorithm_defaults : Dict[str, Dict[str, Any]]
        Per-algorithm default arguments, merged under the caller's arguments
    n_jobs : int
        Number of parallel workers used when running a gating step over
        several groups
    """

    min_events: int = 0
    random_seed: Optional[int] = None
    algorithm_defaults: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    n_jobs: int = 1

    def __post_init__(self) -> None:
        if isinstance(self.min_events, bool) or not isinstance(self.min_events, int):
            raise ValueError(f"min_events must be an integer, got {self.min_events!r}")
        if self.min_events < 0:
            raise ValueError(f"min_events must be >= 0, got {self.min_events}")
        if self.n_jobs < 1:
            raise ValueError(f"n_jobs must be >= 1, got {self.n_jobs}")
        for name, defaults in self.algorithm_defaults.items():
            if not isinstance(defaults, dict):
                raise ValueError(
                    f"algorithm_defaults['{name}'] must be a mapping, got {defaults!r}"
                )

    def defaults_for(self, algorithm: str) -> Dict[str, Any]:
        """Return a copy of the default arguments for an algorithm."""
        return dict(self.algorithm_defaults.get(algorithm, {}))

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "GatingOptions":
        """Create options from a dictionary, ignoring unknown keys."""
        data = data or {}
        if "gating" in data:
            data = data["gating"] or {}
        return cls(
            min_events=data.get("min_events", 0),
            random_seed=data.get("random_seed"),
            algorithm_defaults=dict(data.get("algorithm_defaults") or {}),
            n_jobs=data.get("n_jobs", 1),
        )

    @classmethod
    def from_yaml(cls, path: PathLike) -> "GatingOptions":
        """Load options from a YAML file.

        Parameters
        ----------
        path : PathLike
            Path to YAML file. A top-level ``gating:`` section is accepted.

        Raises
        ------
        FileNotFoundError
            If the file does not exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Options file not found: {path}")
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "min_events": self.min_events,
            "random_seed": self.random_seed,
            "algorithm_defaults": {
                name: dict(args) for name, args in self.algorithm_defaults.items()
            },
            "n_jobs": self.n_jobs,
        }
