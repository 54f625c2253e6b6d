"""Cluster-parameter resolution shared by dispatch and prior elicitation.

Both the 1-D mixture normalizer and prior elicitation call
:func:`resolve_cluster_params`, so identical inputs always give identical
decisions at both call sites.
"""

import logging
from typing import Any, Optional

from .errors import ParameterInconsistencyError
from .params import ClusterArgs, ClusterParams


def resolve_cluster_params(
    K: Any = None,
    neg: Any = None,
    pos: Any = None,
    logger: Optional[logging.Logger] = None,
) -> ClusterParams:
    """Reconcile an explicit K with expected negative/positive counts.

    Rules, in order:

    1. K absent: K = neg + pos if both are given, otherwise stays None.
    2. K given with both neg and pos: warn and set K = neg + pos.
    3. K given with only pos: pos must not exceed K.
    4. K given with only neg: neg must not exceed K.

    Parameters
    ----------
    K : int, optional
        Explicit number of mixture components
    neg : int, optional
        Expected number of negative sub-populations
    pos : int, optional
        Expected number of positive sub-populations
    logger : logging.Logger, optional
        Receives the override warning

    Returns
    -------
    ClusterParams

    Raises
    ------
    ParameterInconsistencyError
        If a single expected count exceeds K
    InvalidArgumentError
        If any value is not a single non-negative integer
    """
    logger = logger or logging.getLogger(__name__)
    args = ClusterArgs.from_values(K=K, neg=neg, pos=pos)
    return _resolve(args, logger)


def resolve_cluster_args(
    args: ClusterArgs,
    logger: Optional[logging.Logger] = None,
) -> ClusterParams:
    """Resolve already-parsed :class:`ClusterArgs`."""
    return _resolve(args, logger or logging.getLogger(__name__))


def _resolve(args: ClusterArgs, logger: logging.Logger) -> ClusterParams:
    K = args.K
    neg = args.neg if args.has_neg else None
    pos = args.pos if args.has_pos else None

    if K is None:
        if neg is not None and pos is not None:
            K = neg + pos
    elif neg is not None and pos is not None:
        logger.warning(
            "Values given for 'K' (%d), 'neg' (%d) and 'pos' (%d). Setting K = neg + pos = %d",
            K,
            neg,
            pos,
            neg + pos,
        )
        K = neg + pos
    elif pos is not None and pos > K:
        raise ParameterInconsistencyError(
            f"The number of positive clusters ({pos}) exceeds 'K' ({K})."
        )
    elif neg is not None and neg > K:
        raise ParameterInconsistencyError(
            f"The number of negative clusters ({neg}) exceeds 'K' ({K})."
        )

    return ClusterParams(K=K, neg=neg, pos=pos)
