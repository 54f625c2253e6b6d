"""Preprocessing ahead of gating.

Provides prior elicitation for mixture-model gating and channel
standardization for tail gating. Results are passed to the dispatch adaptor
as ``pp_res``.

Example Usage
-------------
>>> from cytogate.core.preprocessing import elicit_prior, standardize
>>> priors = elicit_prior(samples, "1d", ["CD4"], collapse=False, K=2)
>>> priors["sample_01"].for_channel("CD4")
>>> scales = standardize(samples, ["IFNg"], group_by=False)
"""

from .results import (
    ABSENT_PRIOR,
    PRIOR_MARKER,
    STANDARDIZE_MARKER,
    PriorSpec,
    StandardizationResult,
    preprocessing_kind,
)
from .standardize import huber_location_scale, standardize, standardize_table
from .prior import DictPopulationSource, PopulationSource, elicit_prior
from .registry import (
    PREPROCESSORS,
    list_preprocessors,
    register_preprocessor,
    run_preprocessing,
)

__all__ = [
    # Results
    "ABSENT_PRIOR",
    "PRIOR_MARKER",
    "STANDARDIZE_MARKER",
    "PriorSpec",
    "StandardizationResult",
    "preprocessing_kind",
    # Standardization
    "huber_location_scale",
    "standardize",
    "standardize_table",
    # Priors
    "DictPopulationSource",
    "PopulationSource",
    "elicit_prior",
    # Registry
    "PREPROCESSORS",
    "list_preprocessors",
    "register_preprocessor",
    "run_preprocessing",
]
