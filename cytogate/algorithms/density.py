"""One-dimensional density and threshold gates.

All functions take ``(table, channel, **kwargs)`` and return a
:class:`~cytogate.core.gates.RectangleGate` that is open on one side.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy.signal import find_peaks
from scipy.stats import gaussian_kde

from ..core.gates.types import RectangleGate

logger = logging.getLogger(__name__)


def channel_values(
    table: pd.DataFrame,
    channel: str,
    gate_range: Optional[Sequence[float]] = None,
) -> np.ndarray:
    """Finite values of ``channel``, restricted to ``gate_range`` if given."""
    values = table[channel].to_numpy(dtype=float)
    values = values[np.isfinite(values)]
    if gate_range is not None:
        lo, hi = gate_range
        values = values[(values >= lo) & (values <= hi)]
    return values


def half_open_gate(
    channel: str,
    cut: float,
    positive: bool,
    gate_id: str,
) -> RectangleGate:
    """``[cut, inf)`` for positive gates, ``[-inf, cut)`` otherwise."""
    bounds = (cut, np.inf) if positive else (-np.inf, cut)
    return RectangleGate({channel: bounds}, gate_id=gate_id)


def kde_profile(
    values: np.ndarray,
    adjust: float = 1.0,
    n_grid: int = 512,
) -> Tuple[np.ndarray, np.ndarray]:
    """Gaussian KDE evaluated on an even grid spanning the data.

    Raises
    ------
    ValueError
        With fewer than two distinct values
    """
    if len(np.unique(values)) < 2:
        raise ValueError(f"need at least two distinct values for a density, got {len(values)}")
    kde = gaussian_kde(values)
    kde.set_bandwidth(kde.factor * adjust)
    grid = np.linspace(values.min(), values.max(), n_grid)
    return grid, kde(grid)


def mindensity(
    table: pd.DataFrame,
    channel: str,
    gate_range: Optional[Sequence[float]] = None,
    positive: bool = True,
    adjust: float = 2.0,
    filter_id: str = "mindensity",
    **kwargs,
) -> RectangleGate:
    """Cut at the density minimum between the two highest peaks.

    With a single peak the cut is the lowest density on the gated side of it.
    """
    values = channel_values(table, channel, gate_range)
    grid, density = kde_profile(values, adjust=adjust)

    peaks, _ = find_peaks(density)
    if len(peaks) == 0:
        peaks = np.array([int(np.argmax(density))])

    if len(peaks) >= 2:
        top = np.sort(peaks[np.argsort(density[peaks])[-2:]])
        window = slice(top[0], top[1] + 1)
        cut = grid[window][np.argmin(density[window])]
    else:
        peak = int(peaks[0])
        window = slice(peak, len(grid)) if positive else slice(0, peak + 1)
        cut = grid[window][np.argmin(density[window])]

    return half_open_gate(channel, float(cut), positive, filter_id)


def quantile_gate(
    table: pd.DataFrame,
    channel: str,
    probs: float = 0.999,
    positive: bool = True,
    filter_id: str = "quantile",
    **kwargs,
) -> RectangleGate:
    """Cut at a fixed quantile of the channel."""
    if not 0 <= probs <= 1:
        raise ValueError(f"'probs' must be in [0, 1], got {probs}")
    values = channel_values(table, channel)
    if len(values) == 0:
        raise ValueError(f"no finite values in channel '{channel}'")
    return half_open_gate(channel, float(np.quantile(values, probs)), positive, filter_id)


def tailgate(
    table: pd.DataFrame,
    channel: str,
    tol: float = 1e-2,
    gate_range: Optional[Sequence[float]] = None,
    positive: bool = True,
    adjust: float = 2.0,
    filter_id: str = "tailgate",
    **kwargs,
) -> RectangleGate:
    """Cut where the density right of the main peak falls below ``tol * peak``.

    Used for rare positive populations that form a tail rather than a peak.
    """
    values = channel_values(table, channel, gate_range)
    grid, density = kde_profile(values, adjust=adjust)

    peak = int(np.argmax(density))
    threshold = tol * density[peak]
    below = np.nonzero(density[peak:] < threshold)[0]
    cut = grid[peak + below[0]] if len(below) else grid[-1]
    return half_open_gate(channel, float(cut), positive, filter_id)


def tv_denoise(values: np.ndarray, lam: float) -> np.ndarray:
    """Total-variation denoising of a 1-D signal (Condat's direct algorithm).

    Solves ``argmin_x 0.5 * ||y - x||^2 + lam * sum |x[i+1] - x[i]|``. The
    derivative of the taut string through the cumulative counts is exactly
    this solution applied to the counts.
    """
    y = np.asarray(values, dtype=float)
    n = len(y)
    out = np.empty(n)
    if n == 0:
        return out

    k = k0 = kplus = kminus = 0
    umin, umax = lam, -lam
    vmin, vmax = y[0] - lam, y[0] + lam

    while True:
        while k == n - 1:
            if umin < 0.0:
                end = max(kminus, k0) + 1
                out[k0:end] = vmin
                k0 = end
                k = kminus = k0
                vmin = y[k]
                umin = lam
                umax = vmin + umin - vmax
            elif umax > 0.0:
                end = max(kplus, k0) + 1
                out[k0:end] = vmax
                k0 = end
                k = kplus = k0
                vmax = y[k]
                umax = -lam
                umin = vmax + umax - vmin
            else:
                vmin += umin / (k - k0 + 1)
                out[k0:k + 1] = vmin
                return out

        umin += y[k + 1] - vmin
        if umin < -lam:
            end = max(kminus, k0) + 1
            out[k0:end] = vmin
            k0 = end
            k = kplus = kminus = k0
            vmin = y[k]
            vmax = vmin + 2 * lam
            umin, umax = lam, -lam
            continue

        umax += y[k + 1] - vmax
        if umax > lam:
            end = max(kplus, k0) + 1
            out[k0:end] = vmax
            k0 = end
            k = kplus = kminus = k0
            vmax = y[k]
            vmin = vmax - 2 * lam
            umin, umax = lam, -lam
            continue

        k += 1
        if umin >= lam:
            kminus = k
            vmin += (umin - lam) / (kminus - k0 + 1)
            umin = lam
        if umax <= -lam:
            kplus = k
            vmax += (umax + lam) / (kplus - k0 + 1)
            umax = -lam


def _plateaus(signal: np.ndarray) -> list:
    """(start, stop, value) of runs of equal value."""
    runs = []
    start = 0
    for i in range(1, len(signal) + 1):
        if i == len(signal) or not np.isclose(signal[i], signal[start]):
            runs.append((start, i, float(signal[start])))
            start = i
    return runs


def tautstring_gate(
    table: pd.DataFrame,
    channel: str,
    gate_range: Optional[Sequence[float]] = None,
    n_bins: int = 256,
    lam: Optional[float] = None,
    positive: bool = True,
    filter_id: str = "tautstring",
    **kwargs,
) -> RectangleGate:
    """Cut at the lowest plateau between the two largest taut-string modes.

    Raises
    ------
    ValueError
        If the taut string has fewer than two modes
    """
    values = channel_values(table, channel, gate_range)
    if len(values) < 2:
        raise ValueError(f"need at least two events for a taut string, got {len(values)}")
    counts, edges = np.histogram(values, bins=n_bins)
    if lam is None:
        lam = float(np.sqrt(max(counts.max(), 1)))
    smooth = tv_denoise(counts.astype(float), lam)

    runs = _plateaus(smooth)
    modes = [
        i
        for i, (_, _, value) in enumerate(runs)
        if (i == 0 or runs[i - 1][2] < value) and (i == len(runs) - 1 or runs[i + 1][2] < value)
    ]
    if len(modes) < 2:
        raise ValueError(f"taut string on '{channel}' has {len(modes)} mode(s); cannot place a cut")

    first, second = sorted(sorted(modes, key=lambda i: runs[i][2])[-2:])
    valley = min(range(first + 1, second), key=lambda i: runs[i][2])
    start, stop, _ = runs[valley]
    cut = 0.5 * (edges[start] + edges[stop])
    logger.debug("taut string on %s: %d modes, cut at %.4g", channel, len(modes), cut)
    return half_open_gate(channel, float(cut), positive, filter_id)
