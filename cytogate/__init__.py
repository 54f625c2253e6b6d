"""cytogate: algorithm dispatch and parameter resolution for automated gating.

This package provides tools for:
- Dispatching named gating algorithms over collections of per-sample tables
- Normalizing and validating algorithm-family specific arguments
- Eliciting mixture-model priors and propagating them across samples
- Standardizing channels before tail gating and back-transforming the gates
- Replicating a single gating result into a well-typed per-sample result

The statistical gating algorithms themselves are treated as opaque
callables; reference implementations live in ``cytogate.algorithms``.

Example usage:
    >>> from cytogate.config import GatingOptions
    >>> from cytogate.core.dispatch import GatingAdaptor
    >>>
    >>> adaptor = GatingAdaptor(GatingOptions(min_events=50))
    >>> result = adaptor.adapt(samples, None, "mindensity", ["cd4+"], ["CD4"])
    >>> result["sample_01"]
"""

__version__ = "0.1.0"
