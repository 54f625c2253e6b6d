"""Run a gating step over a sample collection.

Samples are grouped by metadata (all samples form one group when the step
has no grouping keys) and preprocessed per group, then gated either as one
merged table per group (``collapse``) or one sample at a time with that
sample's own preprocessing entry. Groups are independent and may run
in parallel.
"""

import time
from typing import Any, List, Optional, Tuple

from joblib import Parallel, delayed

from ..core.data.samples import SampleCollection
from ..core.dispatch.adaptor import GatingAdaptor
from ..core.gates.types import PerSampleResult
from ..core.preprocessing.prior import PopulationSource
from ..core.preprocessing.registry import run_preprocessing
from .step import GatingStep


def _groups(
    samples: SampleCollection, step: GatingStep
) -> List[Tuple[Tuple[Any, ...], SampleCollection]]:
    # Without grouping keys the whole collection is preprocessed together
    if not step.group_by:
        return [(("all",), samples)]
    return samples.group_by(step.group_by)


def _run_group(
    group: SampleCollection,
    step: GatingStep,
    adaptor: GatingAdaptor,
    hierarchy: Optional[PopulationSource],
) -> PerSampleResult:
    family = adaptor.registry.get(step.algorithm).family

    pp_res = None
    if step.preprocessing:
        pp_res = run_preprocessing(
            step.preprocessing,
            group,
            step.channels,
            family,
            group_by=bool(step.group_by),
            collapse=step.collapse,
            hierarchy=hierarchy,
            logger=adaptor.logger,
            **step.preprocessing_args,
        )

    if step.collapse:
        return adaptor.adapt(group, pp_res, step.algorithm, step.pop_alias, step.channels, step.args)

    parts = []
    for name in group.sample_names:
        sample_pp = pp_res[name] if pp_res is not None else None
        parts.append(
            adaptor.adapt(
                group.subset([name]),
                sample_pp,
                step.algorithm,
                step.pop_alias,
                step.channels,
                step.args,
            )
        )
    return PerSampleResult.combine(parts)


def run_gating_step(
    samples: SampleCollection,
    step: GatingStep,
    adaptor: Optional[GatingAdaptor] = None,
    hierarchy: Optional[PopulationSource] = None,
    backend: str = "loky",
) -> PerSampleResult:
    """Gate every sample of ``samples`` with one step.

    Parameters
    ----------
    samples : SampleCollection
        Samples to gate
    step : GatingStep
        What to gate and how
    adaptor : GatingAdaptor, optional
        Dispatch adaptor; defaults to one with default options. Its
        ``options.n_jobs`` sets the number of parallel groups
    hierarchy : PopulationSource, optional
        Ancestor populations for prior elicitation
    backend : str
        joblib backend used when ``n_jobs > 1``

    Returns
    -------
    PerSampleResult
        One entry per sample

    Raises
    ------
    ValueError
        If the step does not validate
    """
    adaptor = adaptor or GatingAdaptor()
    logger = adaptor.logger

    registry = adaptor.registry
    family = registry.get(step.algorithm).family if registry.is_registered(step.algorithm) else None
    valid, errors = step.validate(family)
    if not valid:
        raise ValueError(f"Invalid gating step: {'; '.join(errors)}")
    # Fail on unknown algorithms before any preprocessing
    registry.get(step.algorithm)

    groups = _groups(samples, step)
    n_jobs = min(adaptor.options.n_jobs, len(groups))
    logger.info(
        "Gating %s on %s: %d samples in %d groups (%d workers)",
        step.algorithm,
        ",".join(step.channels),
        len(samples),
        len(groups),
        n_jobs,
    )

    start_time = time.time()
    if n_jobs <= 1:
        parts = [_run_group(group, step, adaptor, hierarchy) for _, group in groups]
    else:
        parts = Parallel(n_jobs=n_jobs, backend=backend)(
            delayed(_run_group)(group, step, adaptor, hierarchy) for _, group in groups
        )
    logger.info("Gating %s completed in %.2f sec", step.algorithm, time.time() - start_time)

    return PerSampleResult.combine(parts)
