"""Gating step representation and validation."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from ..core.dispatch.families import AlgorithmFamily
from ..core.gates.types import QUADRANTS

PathLike = Union[str, Path]


@dataclass
class GatingStep:
    """One gating operation applied to a sample collection.

    Attributes
    ----------
    algorithm : str
        Registered algorithm name (e.g., "mindensity", "flowclust_1d")
    channels : List[str]
        One or two channels to gate on
    pop_alias : List[str]
        Population names produced by the gate (e.g., ["cd3+"])
    args : Dict[str, Any]
        Algorithm arguments
    group_by : List[str]
        Metadata keys grouping samples for preprocessing and collapsing;
        empty treats the whole collection as one group
    collapse : bool
        If True, every group is merged and gated once
    preprocessing : str, optional
        Preprocessing method name ("prior_flowclust", "standardize")
    preprocessing_args : Dict[str, Any]
        Preprocessing method arguments
    parent : str
        Parent population, recorded in summaries

    Example
    -------
    >>> step = GatingStep(
    ...     algorithm="flowclust_1d",
    ...     channels=["CD4"],
    ...     pop_alias=["cd4+"],
    ...     args={"K": 2},
    ...     preprocessing="prior_flowclust",
    ... )
    >>> valid, errors = step.validate()
    """

    algorithm: str
    channels: List[str]
    pop_alias: List[str] = field(default_factory=lambda: ["+"])
    args: Dict[str, Any] = field(default_factory=dict)
    group_by: List[str] = field(default_factory=list)
    collapse: bool = False
    preprocessing: Optional[str] = None
    preprocessing_args: Dict[str, Any] = field(default_factory=dict)
    parent: str = "root"

    def validate(self, family: Optional[AlgorithmFamily] = None) -> Tuple[bool, List[str]]:
        """Check the step for structural problems.

        Parameters
        ----------
        family : AlgorithmFamily, optional
            Family of the step's algorithm. Quadrant gates name exactly one
            population per quadrant

        Returns
        -------
        Tuple[bool, List[str]]
            (success, errors) where success is True if no problems were found
        """
        errors = []
        if not self.algorithm:
            errors.append("Step has no algorithm")
        if len(self.channels) not in (1, 2):
            errors.append(f"Expected one or two channels, got {self.channels}")
        if not self.pop_alias:
            errors.append("Step has no population alias")
        if self.collapse and self.preprocessing == "standardize":
            errors.append("'collapse' is not applicable to 'standardize'")
        if family == AlgorithmFamily.QUADRANT and len(self.pop_alias) != len(QUADRANTS):
            errors.append(
                f"{self.algorithm} gates {len(QUADRANTS)} quadrants but pop_alias names "
                f"{len(self.pop_alias)}: {self.pop_alias}"
            )
        return (len(errors) == 0, errors)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GatingStep":
        """Create a step from a dictionary.

        ``channels``, ``pop_alias`` and ``group_by`` accept either a list or a
        comma-separated string.

        Raises
        ------
        KeyError
            If ``algorithm`` or ``channels`` is missing
        """
        missing = [key for key in ("algorithm", "channels") if key not in data]
        if missing:
            raise KeyError(f"Gating step missing required fields: {missing}")
        return cls(
            algorithm=data["algorithm"],
            channels=_as_list(data["channels"]),
            pop_alias=_as_list(data.get("pop_alias", "+")),
            args=dict(data.get("args") or {}),
            group_by=_as_list(data.get("group_by") or []),
            collapse=bool(data.get("collapse", False)),
            preprocessing=data.get("preprocessing") or None,
            preprocessing_args=dict(data.get("preprocessing_args") or {}),
            parent=data.get("parent", "root"),
        )

    @classmethod
    def from_yaml(cls, path: PathLike) -> "GatingStep":
        """Load a step from a YAML file with an optional top-level ``step:`` key.

        Raises
        ------
        FileNotFoundError
            If the file does not exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Step file not found: {path}")
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data.get("step", data))

    def to_dict(self) -> Dict[str, Any]:
        """Convert step to dictionary for serialization."""
        return {
            "algorithm": self.algorithm,
            "channels": list(self.channels),
            "pop_alias": list(self.pop_alias),
            "args": dict(self.args),
            "group_by": list(self.group_by),
            "collapse": self.collapse,
            "preprocessing": self.preprocessing,
            "preprocessing_args": dict(self.preprocessing_args),
            "parent": self.parent,
        }


def _as_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(v) for v in value]
