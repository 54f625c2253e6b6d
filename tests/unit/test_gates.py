"""Unit tests for gate types and per-sample results."""

import numpy as np
import pandas as pd
import pytest

from cytogate.core.gates import (
    QUADRANTS,
    GateSet,
    MixtureRectangleGate,
    PerSampleResult,
    PolygonGate,
    QuadGate,
    RectangleGate,
    ResultKind,
    classify_result,
)


@pytest.fixture
def grid() -> pd.DataFrame:
    return pd.DataFrame({"x": [-1.0, 0.0, 0.5, 1.0, 2.0], "y": [0.5, 0.5, 0.5, 0.5, 0.5]})


class TestRectangleGate:
    """Tests for RectangleGate."""

    def test_half_open_interval(self, grid):
        gate = RectangleGate({"x": (0.0, 1.0)})
        assert gate.contains(grid).tolist() == [False, True, True, False, False]

    def test_conjunction(self, grid):
        gate = RectangleGate({"x": (0.0, np.inf), "y": (1.0, np.inf)})
        assert not gate.contains(grid).any()

    def test_bounds_normalized(self):
        gate = RectangleGate({"x": (0, 1)})
        assert gate.bounds == {"x": (0.0, 1.0)}
        assert gate.channels == ("x",)

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            RectangleGate({})

    def test_to_dict(self):
        gate = MixtureRectangleGate({"x": (0, 1)}, gate_id="g", priors={"x": 1})
        summary = gate.to_dict()
        assert summary["type"] == "mixture_rectangle"
        assert summary["bounds"] == {"x": [0.0, 1.0]}
        assert summary["has_prior"] is True
        assert summary["has_posterior"] is False


class TestPolygonGate:
    """Tests for PolygonGate."""

    def test_contains(self):
        gate = PolygonGate("x", "y", np.array([[0, 0], [0, 2], [2, 2], [2, 0]]))
        data = pd.DataFrame({"x": [1.0, 3.0], "y": [1.0, 1.0]})
        assert gate.contains(data).tolist() == [True, False]

    def test_vertices_read_only(self):
        gate = PolygonGate("x", "y", [[0, 0], [0, 1], [1, 1]])
        with pytest.raises(ValueError):
            gate.vertices[0, 0] = 5

    def test_needs_three_vertices(self):
        with pytest.raises(ValueError):
            PolygonGate("x", "y", [[0, 0], [1, 1]])


class TestQuadGate:
    """Tests for QuadGate."""

    def test_labels(self):
        gate = QuadGate("x", "y", 0.0, 0.0)
        data = pd.DataFrame({"x": [-1, 1, 1, -1], "y": [1, 1, -1, -1]})
        assert list(gate.labels(data)) == list(QUADRANTS)

    def test_contains_selected_quadrant(self):
        gate = QuadGate("x", "y", 0.0, 0.0, quadrant="+-")
        data = pd.DataFrame({"x": [-1, 1, 1], "y": [1, 1, -1]})
        assert gate.contains(data).tolist() == [False, False, True]

    def test_unknown_quadrant(self):
        with pytest.raises(ValueError):
            QuadGate("x", "y", 0, 0, quadrant="+")


class TestClassifyResult:
    """Tests for classify_result."""

    def test_kinds(self):
        gate = RectangleGate({"x": (0, 1)})
        assert classify_result(gate) == ResultKind.GATE
        assert classify_result(GateSet((gate, gate))) == ResultKind.GATE_SET
        assert classify_result(np.array([True, False])) == ResultKind.DECISION_VECTOR
        assert classify_result(pd.Series([True, False])) == ResultKind.DECISION_VECTOR
        assert classify_result(pd.Categorical(["a", "b"])) == ResultKind.LABEL_VECTOR
        assert classify_result(pd.Series(["a"], dtype="category")) == ResultKind.LABEL_VECTOR

    def test_unclassifiable(self):
        assert classify_result(None) is None
        assert classify_result(np.array([1, 0])) is None
        assert classify_result({"x": 1}) is None


class TestPerSampleResult:
    """Tests for PerSampleResult."""

    def test_replicate(self):
        gate = RectangleGate({"x": (0, 1)})
        result = PerSampleResult.replicate(gate, ResultKind.GATE, ["a", "b"])
        assert result["a"] is result["b"] is gate
        assert len(result) == 2
        assert result.arity == 1

    def test_mixed_shapes_rejected(self):
        gate = RectangleGate({"x": (0, 1)})
        with pytest.raises(ValueError):
            PerSampleResult(ResultKind.GATE, {"a": gate, "b": GateSet((gate, gate))})

    def test_combine(self):
        gate = RectangleGate({"x": (0, 1)})
        parts = [
            PerSampleResult.replicate(gate, ResultKind.GATE, ["a"]),
            PerSampleResult.replicate(gate, ResultKind.GATE, ["b", "c"]),
        ]
        assert PerSampleResult.combine(parts).sample_names == ["a", "b", "c"]

    def test_combine_overlap_rejected(self):
        gate = RectangleGate({"x": (0, 1)})
        part = PerSampleResult.replicate(gate, ResultKind.GATE, ["a"])
        with pytest.raises(ValueError, match="more than once"):
            PerSampleResult.combine([part, part])
