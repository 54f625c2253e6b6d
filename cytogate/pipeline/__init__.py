"""Gating step execution.

Example Usage:
    from cytogate.pipeline import GatingStep, run_gating_step

    step = GatingStep(algorithm="mindensity", channels=["CD3"], pop_alias=["cd3+"])
    result = run_gating_step(samples, step)
"""

from .step import GatingStep
from .executor import run_gating_step

__all__ = ["GatingStep", "run_gating_step"]
