"""Two-channel gates: singlet discrimination and quadrants."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import pandas as pd
from scipy.stats import norm, theilslopes
from sklearn.mixture import GaussianMixture

from ..core.gates.types import QUADRANTS, GateSet, PolygonGate, QuadGate
from .density import mindensity
from .mixture import event_matrix


def singlet_gate(
    table: pd.DataFrame,
    area: str,
    height: str,
    prediction_level: float = 0.99,
    wider_gate: bool = False,
    filter_id: str = "singlet",
    **kwargs,
) -> PolygonGate:
    """Band around the robust area-vs-height regression line.

    The line is a Theil-Sen fit of height on area; the band half-width is the
    normal ``prediction_level`` quantile of the MAD of the residuals (doubled
    with ``wider_gate``). Doublets fall below the band.
    """
    X = event_matrix(table, [area, height])
    if len(X) < 3:
        raise ValueError(f"need at least three events for a singlet gate, got {len(X)}")
    x, y = X[:, 0], X[:, 1]
    slope, intercept, _, _ = theilslopes(y, x)

    residuals = y - (intercept + slope * x)
    spread = 1.4826 * np.median(np.abs(residuals - np.median(residuals)))
    half_width = norm.ppf(0.5 + prediction_level / 2) * spread
    if wider_gate:
        half_width *= 2

    x_lo, x_hi = x.min(), x.max()
    vertices = np.array(
        [
            [x_lo, intercept + slope * x_lo - half_width],
            [x_lo, intercept + slope * x_lo + half_width],
            [x_hi, intercept + slope * x_hi + half_width],
            [x_hi, intercept + slope * x_hi - half_width],
        ]
    )
    return PolygonGate(x_channel=area, y_channel=height, vertices=vertices, gate_id=filter_id)


def quadrants(x_channel: str, y_channel: str, x_cut: float, y_cut: float, filter_id: str) -> GateSet:
    """One :class:`QuadGate` per quadrant, in ``-+``, ``++``, ``+-``, ``--`` order."""
    return GateSet(
        tuple(
            QuadGate(x_channel, y_channel, x_cut, y_cut, quadrant=q, gate_id=f"{filter_id}{q}")
            for q in QUADRANTS
        )
    )


def quadgate_seq(
    table: pd.DataFrame,
    channels: Sequence[str],
    gate_range: Optional[Sequence[float]] = None,
    min_events: int = 10,
    filter_id: str = "quadgate",
    **kwargs,
) -> GateSet:
    """Quadrants from two sequential density cuts.

    The x channel is cut first; the y channel is then cut on the x-positive
    events when there are at least ``min_events`` of them, otherwise on all.
    """
    x_channel, y_channel = channels
    x_gate = mindensity(table, x_channel, gate_range=gate_range, **kwargs)
    x_cut = x_gate.bounds[x_channel][0]

    positive = table[table[x_channel] >= x_cut]
    subset = positive if len(positive) >= min_events else table
    y_gate = mindensity(subset, y_channel, gate_range=gate_range, **kwargs)
    return quadrants(x_channel, y_channel, x_cut, y_gate.bounds[y_channel][0], filter_id)


def quadgate_tmix(
    table: pd.DataFrame,
    channels: Sequence[str],
    K: int = 4,
    random_state: Optional[int] = 0,
    filter_id: str = "quadgate",
    **kwargs,
) -> GateSet:
    """Quadrants from a ``K``-component two-channel mixture.

    On each axis the component means are split into a lower and an upper half
    and the cut is the midpoint between the two halves' closest means.
    """
    if K < 2:
        raise ValueError(f"quadgate_tmix needs K >= 2, got {K}")
    x_channel, y_channel = channels
    X = event_matrix(table, [x_channel, y_channel])
    model = GaussianMixture(n_components=K, covariance_type="full", random_state=random_state)
    means = model.fit(X).means_

    cuts = []
    for axis in (0, 1):
        centers = np.sort(means[:, axis])
        mid = K // 2
        cuts.append(0.5 * (centers[mid - 1] + centers[mid]))
    return quadrants(x_channel, y_channel, cuts[0], cuts[1], filter_id)
