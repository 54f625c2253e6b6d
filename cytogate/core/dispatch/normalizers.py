"""Argument normalizers, one per algorithm family.

Every normalizer has the contract::

    normalizer(algorithm, table, pp_res, channels, **kwargs) -> Gate

It checks the channel count the family needs, rewrites the caller's keyword
arguments into the exact call the underlying ``algorithm`` expects and
returns whatever that call returns. Normalizers are looked up by algorithm
name through :data:`NORMALIZERS`, filled by :func:`register_normalizer`.
"""

from __future__ import annotations

import logging
import warnings
from typing import Any, Callable, Dict, List, Optional, Sequence

import pandas as pd

from ..gates.types import Gate, RectangleGate
from ..preprocessing.results import (
    ABSENT_PRIOR,
    STANDARDIZE_MARKER,
    PriorSpec,
    preprocessing_kind,
)
from .errors import InvalidArgumentError
from .params import BoundaryArgs, Mixture2DArgs, MixtureArgs
from .resolver import resolve_cluster_args

logger = logging.getLogger(__name__)

Normalizer = Callable[..., Any]

NORMALIZERS: Dict[str, Normalizer] = {}


def register_normalizer(*names: str) -> Callable[[Normalizer], Normalizer]:
    """Register a normalizer under one or more algorithm names.

    Use as decorator:
        @register_normalizer("mindensity", "quantile")
        def normalize_density(algorithm, table, pp_res, channels, **kwargs):
            ...
    """

    def decorator(func: Normalizer) -> Normalizer:
        for name in names:
            NORMALIZERS[name] = func
        return func

    return decorator


def require_channels(algorithm_name: str, channels: Sequence[str], n: int) -> None:
    """Raise InvalidArgumentError unless exactly ``n`` channels are given."""
    if len(channels) != n:
        raise InvalidArgumentError(
            f"invalid number of channels for {algorithm_name}: expected {n}, "
            f"got {len(channels)} ({list(channels)})"
        )


@register_normalizer("mindensity", "tautstring", "quantile")
def normalize_density(
    algorithm: Callable[..., Gate],
    table: pd.DataFrame,
    pp_res: Any,
    channels: Sequence[str],
    **kwargs: Any,
) -> Gate:
    """Density/threshold families: one channel, arguments passed through."""
    require_channels(getattr(algorithm, "__name__", "density gate"), channels, 1)
    return algorithm(table, channels[0], **kwargs)


@register_normalizer("flowclust_1d")
def normalize_mixture_1d(
    algorithm: Callable[..., Gate],
    table: pd.DataFrame,
    pp_res: Any,
    channels: Sequence[str],
    **kwargs: Any,
) -> Gate:
    """1-D mixture family.

    Resolves K from ``K``/``neg``/``pos``, picks the channel's prior from a
    :class:`PriorSpec`, and defaults ``cutpoint_method`` to ``"quantile"``
    when no positive sub-population is expected or a single cluster leaves
    no between-cluster boundary to cut at.
    """
    require_channels("flowclust_1d", channels, 1)
    channel = channels[0]

    prior = None
    if pp_res is not None:
        if not isinstance(pp_res, PriorSpec):
            raise InvalidArgumentError(
                f"flowclust_1d expects a PriorSpec as preprocessing result, "
                f"got {type(pp_res).__name__}"
            )
        prior = pp_res.for_channel(channel)

    args = MixtureArgs.from_kwargs(kwargs)
    params = resolve_cluster_args(args.cluster, logger=logger)

    cutpoint_method = args.cutpoint_method
    if cutpoint_method is None and (params.pos == 0 or params.K == 1):
        cutpoint_method = "quantile"

    call_args: Dict[str, Any] = dict(args.extra)
    if cutpoint_method is not None:
        call_args["cutpoint_method"] = cutpoint_method

    return algorithm(
        table,
        channel,
        prior=prior,
        K=params.K,
        neg_cluster=params.neg,
        **call_args,
    )


@register_normalizer("flowclust_2d")
def normalize_mixture_2d(
    algorithm: Callable[..., Gate],
    table: pd.DataFrame,
    pp_res: Any,
    channels: Sequence[str],
    **kwargs: Any,
) -> Gate:
    """2-D mixture family: K defaults to 2, prior switched by ``use_prior``."""
    require_channels("flowclust_2d", channels, 2)
    x_channel, y_channel = channels

    args = Mixture2DArgs.from_kwargs(kwargs)
    K = args.K
    if K is None:
        logger.info("'K' argument is missing! Using default setting: K = 2")
        K = 2

    if pp_res is None:
        use_prior = "no"
        prior = ABSENT_PRIOR
    elif isinstance(pp_res, PriorSpec):
        use_prior = "yes"
        prior = pp_res.joint
    else:
        raise InvalidArgumentError(
            f"flowclust_2d expects a PriorSpec as preprocessing result, "
            f"got {type(pp_res).__name__}"
        )

    return algorithm(
        table,
        x_channel,
        y_channel,
        use_prior=use_prior,
        prior=prior,
        K=K,
        **args.extra,
    )


@register_normalizer("tailgate")
def normalize_tail(
    algorithm: Callable[..., Gate],
    table: pd.DataFrame,
    pp_res: Any,
    channels: Sequence[str],
    **kwargs: Any,
) -> Gate:
    """Tail family, with optional standardization.

    When ``pp_res`` is a standardization result the gate is searched on
    standardized data (the embedded table if present, otherwise ``table``
    standardized with the result's center/scale) and the returned interval
    is mapped back with ``center + scale * boundary``.
    """
    require_channels("tailgate", channels, 1)
    channel = channels[0]

    if preprocessing_kind(pp_res) != STANDARDIZE_MARKER:
        return algorithm(table, channel, **kwargs)

    transformed = pp_res.table
    if transformed is None:
        transformed = table.copy()
        transformed[channel] = pp_res.transform(table[channel].to_numpy())

    gate = algorithm(transformed, channel, **kwargs)
    if not isinstance(gate, RectangleGate):
        raise TypeError(
            f"tail gate on standardized data must return a RectangleGate, "
            f"got {type(gate).__name__}"
        )
    lo, hi = pp_res.back_transform(list(gate.bounds[channel]))
    return RectangleGate({channel: (lo, hi)}, gate_id=gate.gate_id)


@register_normalizer("cytokine")
def normalize_cytokine(
    algorithm: Callable[..., Gate],
    table: pd.DataFrame,
    pp_res: Any,
    channels: Sequence[str],
    **kwargs: Any,
) -> Gate:
    """Deprecated alias of the tail gate."""
    warnings.warn(
        "'cytokine' is deprecated; use 'tailgate' instead",
        DeprecationWarning,
        stacklevel=2,
    )
    return normalize_tail(algorithm, table, pp_res, channels, **kwargs)


@register_normalizer("singlet")
def normalize_singlet(
    algorithm: Callable[..., Gate],
    table: pd.DataFrame,
    pp_res: Any,
    channels: Sequence[str],
    **kwargs: Any,
) -> Gate:
    """Singlet family: channels are (area, height)."""
    require_channels("singlet", channels, 2)
    return algorithm(table, area=channels[0], height=channels[1], **kwargs)


@register_normalizer("boundary")
def normalize_boundary(
    algorithm: Optional[Callable[..., Gate]],
    table: pd.DataFrame,
    pp_res: Any,
    channels: Sequence[str],
    **kwargs: Any,
) -> Gate:
    """Boundary family: a rectangle from explicit per-channel min/max.

    No statistical algorithm is called; missing bounds default to
    ``-inf``/``+inf``.
    """
    if len(channels) not in (1, 2):
        raise InvalidArgumentError(
            f"invalid number of channels for boundary: {list(channels)}"
        )
    args = BoundaryArgs.from_kwargs(kwargs, len(channels))
    bounds = {
        channel: (lo, hi) for channel, lo, hi in zip(channels, args.min, args.max)
    }
    return RectangleGate(bounds, gate_id=kwargs.get("gate_id", "boundary"))


@register_normalizer("quadgate_seq", "quadgate_tmix")
def normalize_quadrant(
    algorithm: Callable[..., Any],
    table: pd.DataFrame,
    pp_res: Any,
    channels: Sequence[str],
    **kwargs: Any,
) -> Any:
    """Quadrant family: two channels, arguments passed through."""
    require_channels(getattr(algorithm, "__name__", "quadrant gate"), channels, 2)
    return algorithm(table, list(channels), **kwargs)


def get_normalizer(name: str) -> Normalizer:
    """Normalizer registered for ``name``."""
    return NORMALIZERS[name]


def list_normalizers() -> List[str]:
    return sorted(NORMALIZERS)
