"""Prior elicitation for mixture-model gating.

Priors are estimated across all samples of a group (optionally from an
ancestor population's data) before gating, because the mixture algorithm
itself only ever sees one merged table.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

import numpy as np

from ..data.samples import SampleCollection
from ..dispatch.errors import InvalidArgumentError
from ..dispatch.families import AlgorithmFamily
from ..dispatch.params import ClusterArgs, coerce_count
from ..dispatch.resolver import resolve_cluster_args
from .results import PriorSpec

PriorElicitor = Callable[..., Any]


class PopulationSource(ABC):
    """Supplies sample collections of ancestor populations."""

    @abstractmethod
    def get_ancestor_data(
        self, sample_names: Sequence[str], source_name: str
    ) -> SampleCollection:
        """Events of population ``source_name`` for the given samples."""


class DictPopulationSource(PopulationSource):
    """Population source backed by a ``{population: SampleCollection}`` map."""

    def __init__(self, populations: Mapping[str, SampleCollection]):
        self._populations = dict(populations)

    def get_ancestor_data(
        self, sample_names: Sequence[str], source_name: str
    ) -> SampleCollection:
        if source_name not in self._populations:
            raise KeyError(f"Unknown population '{source_name}'")
        return self._populations[source_name].subset(sample_names)


def _prior_family(family: Union[str, AlgorithmFamily]) -> str:
    if isinstance(family, AlgorithmFamily):
        return family.prior_family
    if family in ("1d", "2d"):
        return family
    raise InvalidArgumentError(f"Unknown prior family {family!r}; expected '1d' or '2d'")


def _default_elicitor() -> PriorElicitor:
    from ...algorithms.mixture import prior_flowclust

    return prior_flowclust


def elicit_prior(
    samples: SampleCollection,
    family: Union[str, AlgorithmFamily],
    channels: Sequence[str],
    collapse: bool,
    prior_source: Optional[str] = None,
    hierarchy: Optional[PopulationSource] = None,
    elicitor: Optional[PriorElicitor] = None,
    logger: Optional[logging.Logger] = None,
    **kwargs: Any,
) -> Union[PriorSpec, Dict[str, PriorSpec]]:
    """Elicit a mixture-model prior for one gating step.

    Parameters
    ----------
    samples : SampleCollection
        Samples about to be gated
    family : str or AlgorithmFamily
        ``"1d"`` (independent prior per channel) or ``"2d"`` (joint prior)
    channels : Sequence[str]
        1-D: one or two channels; 2-D: two channels
    collapse : bool
        True when the group is gated as one merged table; the prior is
        then returned as is. False replicates it under every sample name
    prior_source : str, optional
        Ancestor population to elicit the prior from
    hierarchy : PopulationSource, optional
        Required when ``prior_source`` is given
    elicitor : Callable, optional
        ``elicitor(data, channels, K=..., min=..., max=..., **kwargs)``;
        defaults to the built-in mixture prior
    logger : logging.Logger, optional
        Receives K override/default messages
    **kwargs
        ``K``, ``neg``, ``pos``, ``min``, ``max`` and elicitor arguments.
        ``neg``/``pos`` are only used when present

    Returns
    -------
    PriorSpec or Dict[str, PriorSpec]

    Raises
    ------
    InvalidArgumentError
        For unsupported channel counts or a missing hierarchy
    ParameterInconsistencyError
        If ``neg`` or ``pos`` exceeds ``K``
    """
    logger = logger or logging.getLogger(__name__)
    elicitor = elicitor or _default_elicitor()
    prior_family = _prior_family(family)
    channels = list(channels)
    args = dict(kwargs)

    if prior_source is None:
        prior_data = samples
    else:
        if hierarchy is None:
            raise InvalidArgumentError(
                f"prior_source '{prior_source}' given without a population hierarchy"
            )
        prior_data = hierarchy.get_ancestor_data(samples.sample_names, prior_source)

    if prior_family == "1d":
        if len(channels) not in (1, 2):
            raise InvalidArgumentError(
                f"invalid number of channels for prior_flowclust: {channels}"
            )
        cluster = ClusterArgs.pop_from(args)
        params = resolve_cluster_args(cluster, logger=logger)
        min_value = args.pop("min", -np.inf)
        max_value = args.pop("max", np.inf)
        priors = {
            channel: elicitor(
                prior_data,
                [channel],
                K=params.K,
                min=min_value,
                max=max_value,
                **args,
            )
            for channel in channels
        }
        spec = PriorSpec(family="1d", channels=tuple(channels), priors=priors)
    else:
        if len(channels) != 2:
            raise InvalidArgumentError(
                f"invalid number of channels for 2-D prior_flowclust: {channels}"
            )
        K = coerce_count("K", args.pop("K", None))
        for unused in ("neg", "pos", "min", "max"):
            args.pop(unused, None)
        if K is None:
            logger.info(
                "'K' argument is missing in prior_flowclust! Using default setting: K = 2. "
                "You should set this to the same value as 'K' in the call to flowclust_2d."
            )
            K = 2
        joint = elicitor(prior_data, channels, K=K, **args)
        spec = PriorSpec(family="2d", channels=tuple(channels), joint=joint)

    if collapse:
        return spec
    return {name: spec for name in prior_data.sample_names}
