"""Preprocessing methods by name.

A gating step may name a preprocessing method; its result is handed to the
dispatch adaptor as ``pp_res``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..data.samples import SampleCollection
from ..dispatch.families import AlgorithmFamily
from .prior import PopulationSource, elicit_prior
from .standardize import standardize

Preprocessor = Callable[..., Any]

PREPROCESSORS: Dict[str, Preprocessor] = {}


def register_preprocessor(name: str) -> Callable[[Preprocessor], Preprocessor]:
    """Register a preprocessing method under ``name``."""

    def decorator(func: Preprocessor) -> Preprocessor:
        PREPROCESSORS[name] = func
        return func

    return decorator


@register_preprocessor("prior_flowclust")
def _prior_flowclust(
    samples: SampleCollection,
    channels: Sequence[str],
    family: AlgorithmFamily,
    group_by: bool,
    collapse: bool,
    hierarchy: Optional[PopulationSource] = None,
    logger: Optional[logging.Logger] = None,
    **kwargs: Any,
) -> Any:
    return elicit_prior(
        samples,
        family,
        channels,
        collapse,
        hierarchy=hierarchy,
        logger=logger,
        **kwargs,
    )


@register_preprocessor("standardize")
def _standardize(
    samples: SampleCollection,
    channels: Sequence[str],
    family: AlgorithmFamily,
    group_by: bool,
    collapse: bool,
    hierarchy: Optional[PopulationSource] = None,
    logger: Optional[logging.Logger] = None,
    **kwargs: Any,
) -> Any:
    return standardize(samples, channels, group_by=group_by, collapse=collapse, logger=logger)


def run_preprocessing(
    name: str,
    samples: SampleCollection,
    channels: Sequence[str],
    family: AlgorithmFamily,
    group_by: bool = False,
    collapse: bool = False,
    hierarchy: Optional[PopulationSource] = None,
    logger: Optional[logging.Logger] = None,
    **kwargs: Any,
) -> Any:
    """Run the preprocessing method ``name``.

    Raises
    ------
    KeyError
        If no preprocessing method is registered under ``name``
    """
    if name not in PREPROCESSORS:
        raise KeyError(
            f"Unknown preprocessing method '{name}'. Available: {list_preprocessors()}"
        )
    return PREPROCESSORS[name](
        samples,
        channels,
        family,
        group_by,
        collapse,
        hierarchy=hierarchy,
        logger=logger,
        **kwargs,
    )


def list_preprocessors() -> List[str]:
    return sorted(PREPROCESSORS)
