"""Pytest configuration and shared fixtures for cytogate tests."""

import sys
from pathlib import Path

import pytest
import numpy as np
import pandas as pd

# Add package to path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from cytogate.core.dispatch import AlgorithmRegistry, default_registry
from cytogate.core.gates import RectangleGate
from tests.fixtures import create_bimodal_table, create_sample_collection


# ============================================================================
# Sample Fixtures
# ============================================================================


@pytest.fixture
def bimodal_table() -> pd.DataFrame:
    """Single 400-event table with negative/positive populations."""
    return create_bimodal_table(n_events=400, seed=1)


@pytest.fixture
def samples():
    """Three samples, 400 events each, with visit/donor metadata."""
    return create_sample_collection(n_samples=3, n_events=400)


@pytest.fixture
def four_samples():
    """Four samples; visits alternate 1, 2, 1, 2."""
    return create_sample_collection(n_samples=4, n_events=200)


@pytest.fixture
def tiny_samples():
    """Two samples of five events each."""
    return create_sample_collection(n_samples=2, n_events=5)


# ============================================================================
# Stub Algorithms
# ============================================================================


class RecordingAlgorithm:
    """Stub gating algorithm that records its calls and returns a fixed value."""

    def __init__(self, result=None):
        self.calls = []
        self.result = result

    def __call__(self, table, *args, **kwargs):
        self.calls.append({"table": table, "args": args, "kwargs": kwargs})
        if self.result is not None:
            return self.result
        channel = args[0] if args and isinstance(args[0], str) else table.columns[0]
        return RectangleGate({channel: (0.0, np.inf)}, gate_id="stub")

    @property
    def last(self):
        return self.calls[-1]


@pytest.fixture
def recording_algorithm():
    """Factory for a fresh :class:`RecordingAlgorithm`."""
    return RecordingAlgorithm


@pytest.fixture
def stub_registry():
    """Registry whose named algorithm is replaced by a stub.

    Usage: ``registry = stub_registry("mindensity", stub)``.
    """

    def make(name, algorithm) -> AlgorithmRegistry:
        return default_registry().with_algorithm(name, algorithm)

    return make


@pytest.fixture
def empty_registry() -> AlgorithmRegistry:
    """Registry with nothing registered."""
    return AlgorithmRegistry()


# ============================================================================
# File Fixtures
# ============================================================================


@pytest.fixture
def registry_csv(tmp_path: Path) -> Path:
    """Sample registry CSV pointing at three event tables."""
    tables_dir = tmp_path / "tables"
    tables_dir.mkdir()
    rows = []
    for i in range(3):
        name = f"s{i + 1}"
        create_bimodal_table(n_events=300, seed=i).to_csv(tables_dir / f"{name}.csv", index=False)
        rows.append({"sample_id": name, "table_path": f"tables/{name}.csv", "visit": 1 + i % 2})
    path = tmp_path / "samples.csv"
    pd.DataFrame(rows).to_csv(path, index=False)
    return path


@pytest.fixture
def gating_options_yaml(tmp_path: Path) -> Path:
    """Gating options file with a top-level ``gating:`` section."""
    import yaml

    config = {
        "gating": {
            "min_events": 10,
            "random_seed": 7,
            "n_jobs": 1,
            "algorithm_defaults": {"mindensity": {"adjust": 1.5}},
        }
    }
    path = tmp_path / "gating.yaml"
    with open(path, "w") as f:
        yaml.dump(config, f)
    return path
