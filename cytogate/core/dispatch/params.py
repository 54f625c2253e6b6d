"""Typed argument structures for the algorithm families.

Caller arguments arrive as a loose keyword mapping (typically parsed from a
gating template). Each family pulls out the fields it interprets into a
frozen dataclass and keeps everything else in ``extra``, which is forwarded
to the underlying algorithm untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from .errors import InvalidArgumentError


def coerce_count(name: str, value: Any) -> Optional[int]:
    """Coerce a cluster-count style argument to a non-negative int.

    Accepts ints, integral floats, numeric strings and length-1 sequences.
    Longer sequences are rejected instead of silently truncated.

    Parameters
    ----------
    name : str
        Argument name, echoed in error messages
    value : Any
        Raw value; None passes through

    Returns
    -------
    int or None

    Raises
    ------
    InvalidArgumentError
        If the value is not a single non-negative integer
    """
    if value is None:
        return None
    raw = value
    if isinstance(value, (list, tuple, np.ndarray, pd.Series)):
        values = np.asarray(value, dtype=object).ravel()
        if len(values) != 1:
            raise InvalidArgumentError(
                f"'{name}' must be a single integer, got {raw!r}"
            )
        value = values[0]
    if isinstance(value, (bool, np.bool_)):
        raise InvalidArgumentError(f"'{name}' must be an integer, got {raw!r}")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise InvalidArgumentError(
                f"'{name}' must be an integer, got {raw!r}"
            ) from None

    if isinstance(value, (int, np.integer)):
        count = int(value)
    elif isinstance(value, (float, np.floating)):
        if not np.isfinite(value) or not float(value).is_integer():
            raise InvalidArgumentError(f"'{name}' must be an integer, got {raw!r}")
        count = int(value)
    else:
        raise InvalidArgumentError(f"'{name}' must be an integer, got {raw!r}")

    if count < 0:
        raise InvalidArgumentError(f"'{name}' must be >= 0, got {raw!r}")
    return count


def coerce_bounds(
    name: str,
    value: Any,
    n_channels: int,
    default: float,
) -> List[float]:
    """Coerce a per-channel ``min``/``max`` argument to a list of floats.

    Raises
    ------
    InvalidArgumentError
        If the number of values does not match ``n_channels``
    """
    if value is None:
        return [default] * n_channels
    values = np.atleast_1d(np.asarray(value, dtype=float)).ravel()
    if len(values) != n_channels:
        raise InvalidArgumentError(
            f"The lengths of 'min' and 'max' must match the number of 'channels' "
            f"given ({n_channels}); got {name}={value!r}"
        )
    return [float(v) for v in values]


@dataclass(frozen=True)
class ClusterParams:
    """Resolved cluster-count parameters.

    Attributes
    ----------
    K : int, optional
        Total number of mixture components; None lets the algorithm choose
    neg : int, optional
        Expected number of negative sub-populations
    pos : int, optional
        Expected number of positive sub-populations
    """

    K: Optional[int] = None
    neg: Optional[int] = None
    pos: Optional[int] = None


@dataclass(frozen=True)
class ClusterArgs:
    """Raw cluster-count arguments with explicit presence flags.

    ``has_neg``/``has_pos`` record whether the caller supplied the argument
    at all; an argument supplied as None counts as absent.
    """

    K: Optional[int] = None
    neg: Optional[int] = None
    pos: Optional[int] = None
    has_neg: bool = False
    has_pos: bool = False

    @classmethod
    def from_values(
        cls,
        K: Any = None,
        neg: Any = None,
        pos: Any = None,
    ) -> "ClusterArgs":
        neg_value = coerce_count("neg", neg)
        pos_value = coerce_count("pos", pos)
        return cls(
            K=coerce_count("K", K),
            neg=neg_value,
            pos=pos_value,
            has_neg=neg_value is not None,
            has_pos=pos_value is not None,
        )

    @classmethod
    def pop_from(cls, kwargs: Dict[str, Any]) -> "ClusterArgs":
        """Remove ``K``, ``neg`` and ``pos`` from ``kwargs`` and parse them."""
        return cls.from_values(
            K=kwargs.pop("K", None),
            neg=kwargs.pop("neg", None),
            pos=kwargs.pop("pos", None),
        )


@dataclass(frozen=True)
class MixtureArgs:
    """Arguments for the 1-D mixture-model family."""

    cluster: ClusterArgs = field(default_factory=ClusterArgs)
    cutpoint_method: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_kwargs(cls, kwargs: Dict[str, Any]) -> "MixtureArgs":
        remaining = dict(kwargs)
        cluster = ClusterArgs.pop_from(remaining)
        cutpoint_method = remaining.pop("cutpoint_method", None)
        if cutpoint_method is not None and not isinstance(cutpoint_method, str):
            raise InvalidArgumentError(
                f"'cutpoint_method' must be a string, got {cutpoint_method!r}"
            )
        return cls(cluster=cluster, cutpoint_method=cutpoint_method, extra=remaining)


@dataclass(frozen=True)
class Mixture2DArgs:
    """Arguments for the 2-D mixture-model family."""

    K: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_kwargs(cls, kwargs: Dict[str, Any]) -> "Mixture2DArgs":
        remaining = dict(kwargs)
        K = coerce_count("K", remaining.pop("K", None))
        return cls(K=K, extra=remaining)


@dataclass(frozen=True)
class BoundaryArgs:
    """Explicit per-channel bounds for the boundary family."""

    min: Sequence[float] = ()
    max: Sequence[float] = ()

    @classmethod
    def from_kwargs(cls, kwargs: Dict[str, Any], n_channels: int) -> "BoundaryArgs":
        return cls(
            min=tuple(coerce_bounds("min", kwargs.get("min"), n_channels, -np.inf)),
            max=tuple(coerce_bounds("max", kwargs.get("max"), n_channels, np.inf)),
        )
