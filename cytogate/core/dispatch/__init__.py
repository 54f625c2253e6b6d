"""Algorithm dispatch and parameter resolution.

Provides the algorithm registry, per-family argument normalizers, the
cluster-parameter resolver and the dispatch adaptor that ties them together.

Example Usage
-------------
>>> from cytogate.config import GatingOptions
>>> from cytogate.core.dispatch import GatingAdaptor, resolve_cluster_params
>>> resolve_cluster_params(K=None, neg=3, pos=2).K
5
>>> adaptor = GatingAdaptor(GatingOptions(min_events=10))
>>> result = adaptor.adapt(samples, None, "flowclust_1d", ["cd4+"], ["CD4"], {"neg": 1, "pos": 1})
"""

# Errors
from .errors import (
    AlgorithmFailureError,
    GatingError,
    InvalidArgumentError,
    ParameterInconsistencyError,
    UnregisteredAlgorithmError,
)

# Families and typed arguments
from .families import AlgorithmFamily
from .params import (
    BoundaryArgs,
    ClusterArgs,
    ClusterParams,
    Mixture2DArgs,
    MixtureArgs,
    coerce_bounds,
    coerce_count,
)

# Cluster-parameter resolution
from .resolver import resolve_cluster_args, resolve_cluster_params

# Normalizers and registry
from .normalizers import NORMALIZERS, get_normalizer, register_normalizer
from .registry import AlgorithmRegistry, AlgorithmSpec, default_registry

# Adaptor
from .adaptor import (
    Failure,
    GatingAdaptor,
    Success,
    dummy_gate,
    subsample_size,
)

__all__ = [
    # Errors
    "AlgorithmFailureError",
    "GatingError",
    "InvalidArgumentError",
    "ParameterInconsistencyError",
    "UnregisteredAlgorithmError",
    # Families and arguments
    "AlgorithmFamily",
    "BoundaryArgs",
    "ClusterArgs",
    "ClusterParams",
    "Mixture2DArgs",
    "MixtureArgs",
    "coerce_bounds",
    "coerce_count",
    # Resolver
    "resolve_cluster_args",
    "resolve_cluster_params",
    # Normalizers and registry
    "NORMALIZERS",
    "get_normalizer",
    "register_normalizer",
    "AlgorithmRegistry",
    "AlgorithmSpec",
    "default_registry",
    # Adaptor
    "Failure",
    "GatingAdaptor",
    "Success",
    "dummy_gate",
    "subsample_size",
]
