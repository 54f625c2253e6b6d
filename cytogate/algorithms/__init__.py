"""Built-in gating algorithms.

These are the functions the default algorithm registry binds to. Each takes
an event table plus channel names and returns a gate; the dispatch layer
adapts caller arguments to these signatures.

Example Usage:
    from cytogate.algorithms import mindensity, flowclust_1d

    gate = mindensity(table, "CD3")
    gate = flowclust_1d(table, "CD4", K=2, neg_cluster=1)
"""

from .density import mindensity, quantile_gate, tailgate, tautstring_gate, tv_denoise
from .mixture import MixturePrior, flowclust_1d, flowclust_2d, prior_flowclust
from .bivariate import quadgate_seq, quadgate_tmix, singlet_gate

__all__ = [
    "mindensity",
    "quantile_gate",
    "tailgate",
    "tautstring_gate",
    "tv_denoise",
    "MixturePrior",
    "flowclust_1d",
    "flowclust_2d",
    "prior_flowclust",
    "singlet_gate",
    "quadgate_seq",
    "quadgate_tmix",
]
