"""Gate types and per-sample gating results.

Gates are immutable decision boundaries over one or two channels. A single
algorithm invocation returns a :class:`Gate`, a :class:`GateSet` (when more
than one population alias is requested), or a decision/label vector; the
dispatch adaptor tags whichever it got with a :class:`ResultKind` and
replicates it into a :class:`PerSampleResult`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from matplotlib.path import Path as MplPath


class Gate(ABC):
    """Base class for all gates."""

    gate_id: str

    @property
    @abstractmethod
    def channels(self) -> Tuple[str, ...]:
        """Channels the gate is defined over."""

    @abstractmethod
    def contains(self, data: pd.DataFrame) -> np.ndarray:
        """Boolean membership of each row of ``data``."""

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Plain-data summary for logging and export."""


@dataclass(frozen=True)
class RectangleGate(Gate):
    """Per-channel ``[min, max)`` intervals combined by conjunction.

    Attributes
    ----------
    bounds : Dict[str, Tuple[float, float]]
        Map of channel to (min, max)
    gate_id : str
        Gate identifier
    """

    bounds: Dict[str, Tuple[float, float]]
    gate_id: str = "rectangle"

    def __post_init__(self) -> None:
        if not self.bounds:
            raise ValueError("RectangleGate needs at least one channel")
        normalized = {
            str(ch): (float(lo), float(hi)) for ch, (lo, hi) in self.bounds.items()
        }
        object.__setattr__(self, "bounds", normalized)

    @property
    def channels(self) -> Tuple[str, ...]:
        return tuple(self.bounds)

    def contains(self, data: pd.DataFrame) -> np.ndarray:
        mask = np.ones(len(data), dtype=bool)
        for channel, (lo, hi) in self.bounds.items():
            values = data[channel].to_numpy(dtype=float)
            mask &= (values >= lo) & (values < hi)
        return mask

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "rectangle",
            "gate_id": self.gate_id,
            "bounds": {ch: [lo, hi] for ch, (lo, hi) in self.bounds.items()},
        }


@dataclass(frozen=True)
class MixtureRectangleGate(RectangleGate):
    """Rectangle gate annotated with mixture-model priors and posteriors."""

    priors: Dict[str, Any] = field(default_factory=dict)
    posteriors: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        summary = super().to_dict()
        summary["type"] = "mixture_rectangle"
        summary["has_prior"] = bool(self.priors)
        summary["has_posterior"] = bool(self.posteriors)
        return summary


@dataclass(frozen=True, eq=False)
class PolygonGate(Gate):
    """Two-channel polygon gate.

    Attributes
    ----------
    x_channel, y_channel : str
        Channels on the x and y axes
    vertices : np.ndarray
        (n, 2) polygon vertices
    gate_id : str
        Gate identifier
    """

    x_channel: str
    y_channel: str
    vertices: np.ndarray
    gate_id: str = "polygon"

    def __post_init__(self) -> None:
        vertices = np.asarray(self.vertices, dtype=float)
        if vertices.ndim != 2 or vertices.shape[1] != 2 or len(vertices) < 3:
            raise ValueError(
                f"PolygonGate needs an (n >= 3, 2) vertex array, got shape {vertices.shape}"
            )
        vertices.setflags(write=False)
        object.__setattr__(self, "vertices", vertices)

    @property
    def channels(self) -> Tuple[str, ...]:
        return (self.x_channel, self.y_channel)

    def contains(self, data: pd.DataFrame) -> np.ndarray:
        points = data[[self.x_channel, self.y_channel]].to_numpy(dtype=float)
        return MplPath(self.vertices).contains_points(points)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "polygon",
            "gate_id": self.gate_id,
            "channels": list(self.channels),
            "vertices": self.vertices.tolist(),
        }


@dataclass(frozen=True, eq=False)
class MixturePolygonGate(PolygonGate):
    """Polygon gate annotated with mixture-model priors and posteriors."""

    priors: Dict[str, Any] = field(default_factory=dict)
    posteriors: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        summary = super().to_dict()
        summary["type"] = "mixture_polygon"
        summary["has_prior"] = bool(self.priors)
        summary["has_posterior"] = bool(self.posteriors)
        return summary


QUADRANTS = ("-+", "++", "+-", "--")


@dataclass(frozen=True)
class QuadGate(Gate):
    """Two orthogonal 1-D cutpoints splitting the plane into four quadrants.

    Quadrant labels are ``<x sign><y sign>``, e.g. ``"+-"`` is x-positive,
    y-negative.
    """

    x_channel: str
    y_channel: str
    x_cut: float
    y_cut: float
    quadrant: str = "++"
    gate_id: str = "quadrant"

    def __post_init__(self) -> None:
        if self.quadrant not in QUADRANTS:
            raise ValueError(f"Unknown quadrant '{self.quadrant}', expected one of {QUADRANTS}")
        object.__setattr__(self, "x_cut", float(self.x_cut))
        object.__setattr__(self, "y_cut", float(self.y_cut))

    @property
    def channels(self) -> Tuple[str, ...]:
        return (self.x_channel, self.y_channel)

    def labels(self, data: pd.DataFrame) -> pd.Categorical:
        """Quadrant label of every row."""
        x_pos = data[self.x_channel].to_numpy(dtype=float) >= self.x_cut
        y_pos = data[self.y_channel].to_numpy(dtype=float) >= self.y_cut
        labels = np.char.add(np.where(x_pos, "+", "-"), np.where(y_pos, "+", "-"))
        return pd.Categorical(labels, categories=list(QUADRANTS))

    def contains(self, data: pd.DataFrame) -> np.ndarray:
        return np.asarray(self.labels(data) == self.quadrant)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "quadrant",
            "gate_id": self.gate_id,
            "channels": list(self.channels),
            "cutpoints": [self.x_cut, self.y_cut],
            "quadrant": self.quadrant,
        }


@dataclass(frozen=True)
class GateSet:
    """Ordered gates produced by one invocation for several populations."""

    gates: Tuple[Gate, ...]

    def __post_init__(self) -> None:
        gates = tuple(self.gates)
        if not gates:
            raise ValueError("GateSet needs at least one gate")
        if not all(isinstance(g, Gate) for g in gates):
            raise TypeError("GateSet members must all be Gate instances")
        object.__setattr__(self, "gates", gates)

    @classmethod
    def replicate(cls, gate: Gate, arity: int) -> "GateSet":
        return cls(tuple(gate for _ in range(arity)))

    @property
    def arity(self) -> int:
        return len(self.gates)

    def __iter__(self) -> Iterator[Gate]:
        return iter(self.gates)

    def __len__(self) -> int:
        return len(self.gates)

    def __getitem__(self, index: int) -> Gate:
        return self.gates[index]

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "gate_set", "gates": [g.to_dict() for g in self.gates]}


class ResultKind(Enum):
    """Tag for the shape of a dispatch result."""

    GATE = "gate"
    GATE_SET = "gate_set"
    DECISION_VECTOR = "decision_vector"
    LABEL_VECTOR = "label_vector"


def classify_result(value: Any) -> Optional[ResultKind]:
    """Return the :class:`ResultKind` of ``value``, or None if it is none of them."""
    if isinstance(value, Gate):
        return ResultKind.GATE
    if isinstance(value, GateSet):
        return ResultKind.GATE_SET
    if isinstance(value, pd.Categorical):
        return ResultKind.LABEL_VECTOR
    if isinstance(value, pd.Series):
        if isinstance(value.dtype, pd.CategoricalDtype):
            return ResultKind.LABEL_VECTOR
        if pd.api.types.is_bool_dtype(value.dtype):
            return ResultKind.DECISION_VECTOR
        return None
    if isinstance(value, np.ndarray) and value.dtype == np.bool_:
        return ResultKind.DECISION_VECTOR
    return None


def result_arity(value: Any) -> int:
    """Number of populations described by a result."""
    if isinstance(value, GateSet):
        return value.arity
    return 1


@dataclass(frozen=True, eq=False)
class PerSampleResult(Mapping):
    """Gating result replicated under every sample name.

    Attributes
    ----------
    kind : ResultKind
        Shape shared by every value
    results : Dict[str, Any]
        Map of sample name to Gate, GateSet or decision/label vector
    """

    kind: ResultKind
    results: Dict[str, Any]

    def __post_init__(self) -> None:
        arities = {result_arity(v) for v in self.results.values()}
        kinds = {classify_result(v) for v in self.results.values()}
        if len(arities) > 1 or kinds - {self.kind}:
            raise ValueError(
                f"PerSampleResult values must share one shape; got kinds {kinds}, arities {arities}"
            )
        object.__setattr__(self, "results", dict(self.results))

    @classmethod
    def replicate(
        cls,
        value: Any,
        kind: ResultKind,
        sample_names: Sequence[str],
    ) -> "PerSampleResult":
        return cls(kind=kind, results={name: value for name in sample_names})

    @classmethod
    def combine(cls, parts: Sequence["PerSampleResult"]) -> "PerSampleResult":
        """Merge results computed for disjoint sample subsets."""
        if not parts:
            raise ValueError("Nothing to combine")
        results: Dict[str, Any] = {}
        for part in parts:
            overlap = set(results) & set(part.results)
            if overlap:
                raise ValueError(f"Samples gated more than once: {sorted(overlap)}")
            results.update(part.results)
        kinds = {part.kind for part in parts}
        if len(kinds) > 1:
            raise ValueError(f"Cannot combine results of different kinds: {kinds}")
        return cls(kind=parts[0].kind, results=results)

    @property
    def arity(self) -> int:
        for value in self.results.values():
            return result_arity(value)
        return 0

    @property
    def sample_names(self) -> List[str]:
        return list(self.results)

    def __getitem__(self, sample_name: str) -> Any:
        return self.results[sample_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)
