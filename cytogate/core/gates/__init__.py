"""Gate types and per-sample gating results.

Example Usage
-------------
>>> from cytogate.core.gates import RectangleGate
>>> gate = RectangleGate({"CD4": (1.5, float("inf"))}, gate_id="cd4+")
>>> mask = gate.contains(table)
"""

from .types import (
    QUADRANTS,
    Gate,
    GateSet,
    MixturePolygonGate,
    MixtureRectangleGate,
    PerSampleResult,
    PolygonGate,
    QuadGate,
    RectangleGate,
    ResultKind,
    classify_result,
    result_arity,
)

__all__ = [
    "QUADRANTS",
    "Gate",
    "GateSet",
    "MixturePolygonGate",
    "MixtureRectangleGate",
    "PerSampleResult",
    "PolygonGate",
    "QuadGate",
    "RectangleGate",
    "ResultKind",
    "classify_result",
    "result_arity",
]
