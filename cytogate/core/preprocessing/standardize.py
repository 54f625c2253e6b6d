"""Channel standardization ahead of tail gating.

Center and scale are Huber M-estimates of location and scale, so a few
extreme events in the tail being gated do not drag the standardization.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..data.samples import SampleCollection
from ..dispatch.errors import InvalidArgumentError
from .results import StandardizationResult

HUBER_K = 1.5
MAD_CONSTANT = 1.4826


def huber_location_scale(
    values: np.ndarray,
    k: float = HUBER_K,
    tol: float = 1e-6,
    max_iter: int = 100,
) -> Tuple[float, float]:
    """Huber M-estimate of location with MAD scale.

    Parameters
    ----------
    values : np.ndarray
        Finite values
    k : float
        Winsorizing constant in units of scale
    tol : float
        Convergence tolerance, relative to scale
    max_iter : int
        Iteration cap

    Returns
    -------
    Tuple[float, float]
        (location, scale). Scale is 0 when the MAD is 0.
    """
    values = np.asarray(values, dtype=float)
    mu = float(np.median(values))
    scale = MAD_CONSTANT * float(np.median(np.abs(values - mu)))
    if scale == 0:
        return mu, 0.0
    for _ in range(max_iter):
        clipped = np.clip(values, mu - k * scale, mu + k * scale)
        new_mu = float(np.mean(clipped))
        if abs(new_mu - mu) <= tol * scale:
            mu = new_mu
            break
        mu = new_mu
    return mu, scale


def _center_scale(
    name: str,
    values: np.ndarray,
    logger: logging.Logger,
) -> Tuple[float, float]:
    values = values[np.isfinite(values)]
    if len(values) == 0:
        logger.warning("%s: no events to standardize; using center=0, scale=1", name)
        return 0.0, 1.0

    center, scale = huber_location_scale(values)
    if scale > 0:
        return center, scale

    std = float(np.std(values, ddof=1)) if len(values) > 1 else 0.0
    if std > 0:
        logger.warning("%s: MAD is zero; using the standard deviation as scale", name)
        return center, std
    logger.warning("%s: channel is constant; using scale=1", name)
    return center, 1.0


def standardize_table(
    table: pd.DataFrame,
    channel: str,
    sample_name: str = "",
    data: bool = True,
    logger: Optional[logging.Logger] = None,
) -> StandardizationResult:
    """Standardize one channel of one table.

    Parameters
    ----------
    table : pd.DataFrame
        Event table
    channel : str
        Channel to standardize
    sample_name : str
        Name recorded in the result and in log messages
    data : bool
        If True, attach a copy of ``table`` with the channel standardized
    logger : logging.Logger, optional
        Receives degenerate-sample warnings
    """
    logger = logger or logging.getLogger(__name__)
    values = table[channel].to_numpy(dtype=float)
    center, scale = _center_scale(sample_name or channel, values, logger)

    transformed = None
    if data:
        transformed = table.copy()
        transformed[channel] = (values - center) / scale
    return StandardizationResult(
        sample_name=sample_name,
        channel=channel,
        center=center,
        scale=scale,
        table=transformed,
    )


def standardize(
    samples: SampleCollection,
    channels: Sequence[str],
    group_by: bool = False,
    collapse: bool = False,
    logger: Optional[logging.Logger] = None,
) -> Dict[str, StandardizationResult]:
    """Standardize one channel of every sample.

    Parameters
    ----------
    samples : SampleCollection
        Samples to standardize
    channels : Sequence[str]
        Exactly one channel
    group_by : bool
        If True, every result carries the merged standardized table of the
        whole collection (used when a group is gated as one); otherwise only
        the per-sample center/scale are returned
    collapse : bool
        Must be False; standardization runs before samples are collapsed
    logger : logging.Logger, optional
        Receives degenerate-sample warnings

    Returns
    -------
    Dict[str, StandardizationResult]
        Map of sample name to its standardization

    Raises
    ------
    InvalidArgumentError
        If not given exactly one channel, or if ``collapse`` is True
    """
    logger = logger or logging.getLogger(__name__)
    if len(channels) != 1:
        raise InvalidArgumentError(
            f"invalid number of channels for standardize: {list(channels)}"
        )
    if collapse:
        raise InvalidArgumentError("'collapse = True' is not applicable to 'standardize'!")
    channel = channels[0]

    if not group_by:
        return {
            name: standardize_table(table, channel, sample_name=name, data=False, logger=logger)
            for name, table in samples.items()
        }

    per_sample = {
        name: standardize_table(table, channel, sample_name=name, data=True, logger=logger)
        for name, table in samples.items()
    }
    collapsed = pd.concat(
        [result.table for result in per_sample.values()],
        axis=0,
        ignore_index=True,
    )
    logger.debug(
        "Standardized %s across %d samples (%d events)",
        channel,
        len(per_sample),
        len(collapsed),
    )
    return {
        name: StandardizationResult(
            sample_name=name,
            channel=channel,
            center=result.center,
            scale=result.scale,
            table=collapsed,
        )
        for name, result in per_sample.items()
    }
