"""Dispatch adaptor: run one gating algorithm over a sample collection.

The adaptor merges the collection into one table, optionally subsamples it,
falls back to a dummy gate when there are too few events, calls the
algorithm through its argument normalizer, validates the shape of what came
back and replicates it under every sample name.

Gating each sample independently is done by calling :meth:`GatingAdaptor.adapt`
once per sample (see :mod:`cytogate.pipeline.executor`).
"""

from __future__ import annotations

import logging
import numbers
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ...config import GatingOptions
from ..data.samples import MergedTable, SampleCollection
from ..gates.types import (
    Gate,
    GateSet,
    MixtureRectangleGate,
    PerSampleResult,
    RectangleGate,
    ResultKind,
    classify_result,
)
from .errors import (
    AlgorithmFailureError,
    InvalidArgumentError,
    ParameterInconsistencyError,
)
from .families import AlgorithmFamily
from .registry import AlgorithmRegistry, AlgorithmSpec, default_registry

SUBSAMPLE_KEYS = ("subSample", "sub_sample")


@dataclass(frozen=True)
class Success:
    """Value returned by the normalizer call."""

    value: Any


@dataclass(frozen=True)
class Failure:
    """Exception raised by the normalizer call."""

    error: BaseException

    @property
    def detail(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"


Outcome = Union[Success, Failure]


def clean_channels(channels: Sequence[Any]) -> list:
    """Drop missing (None/NaN) channel entries."""
    cleaned = []
    for channel in channels:
        if channel is None:
            continue
        if isinstance(channel, float) and np.isnan(channel):
            continue
        cleaned.append(str(channel))
    return cleaned


def dummy_gate(
    channels: Sequence[str],
    family: AlgorithmFamily,
    n_populations: int = 1,
) -> Union[Gate, GateSet]:
    """Gate that selects nothing, used when there is not enough data.

    Parameters
    ----------
    channels : Sequence[str]
        One or two channels
    family : AlgorithmFamily
        Mixture families get empty prior/posterior annotations
    n_populations : int
        Number of population aliases; more than one returns a GateSet

    Raises
    ------
    InvalidArgumentError
        If not given one or two channels
    """
    channels = clean_channels(channels)
    if len(channels) not in (1, 2):
        raise InvalidArgumentError(
            f"{len(channels)} dimensional gating is not supported yet! channels={channels}"
        )
    bounds = {channel: (-np.inf, -np.inf) for channel in channels}
    if family.is_mixture:
        gate: Gate = MixtureRectangleGate(bounds, gate_id="dummy", priors={}, posteriors={})
    else:
        gate = RectangleGate(bounds, gate_id="dummy")
    if n_populations > 1:
        return GateSet.replicate(gate, n_populations)
    return gate


def subsample_size(value: Any, total: int) -> int:
    """Number of rows to draw for a ``subSample`` argument.

    Values above 1 are absolute row counts, values in (0, 1] are fractions
    of ``total``; both are rounded to the nearest integer.

    Raises
    ------
    InvalidArgumentError
        For non-numeric, non-positive or NaN values, or more rows than exist
    """
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Real):
        raise InvalidArgumentError(f"invalid 'subSample' argument: {value!r}")
    value = float(value)
    if not np.isfinite(value) or value <= 0:
        raise InvalidArgumentError(f"invalid 'subSample' argument: {value!r}")
    n = int(round(value)) if value > 1 else int(round(value * total))
    if n > total:
        raise InvalidArgumentError(
            f"invalid 'subSample' argument: {value!r} asks for {n} rows but only {total} exist"
        )
    return n


class GatingAdaptor:
    """Run a named gating algorithm over a sample collection.

    Parameters
    ----------
    options : GatingOptions, optional
        Read-only options (``min_events``, ``random_seed``, per-algorithm
        defaults)
    registry : AlgorithmRegistry, optional
        Algorithm registry; defaults to the built-in algorithms
    logger : logging.Logger, optional
        Receives insufficient-data warnings and normalizer messages

    Example
    -------
    >>> adaptor = GatingAdaptor(GatingOptions(min_events=100))
    >>> result = adaptor.adapt(samples, None, "mindensity", ["cd3+"], ["CD3"])
    >>> result.kind
    <ResultKind.GATE: 'gate'>
    """

    def __init__(
        self,
        options: Optional[GatingOptions] = None,
        registry: Optional[AlgorithmRegistry] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.options = options or GatingOptions()
        self.registry = registry or default_registry()
        self.logger = logger or logging.getLogger(__name__)

    def adapt(
        self,
        samples: SampleCollection,
        pp_res: Any,
        algorithm: str,
        pop_alias: Sequence[str],
        channels: Sequence[str],
        algorithm_args: Optional[Dict[str, Any]] = None,
    ) -> PerSampleResult:
        """Gate the merged collection once and replicate the result.

        Parameters
        ----------
        samples : SampleCollection
            Samples to gate together
        pp_res : Any
            Preprocessing result (prior or standardization), or None
        algorithm : str
            Registered algorithm name
        pop_alias : Sequence[str]
            Population names; more than one expects a GateSet
        channels : Sequence[str]
            One or two channels to gate on
        algorithm_args : Dict[str, Any], optional
            Algorithm arguments; ``subSample`` is interpreted here

        Returns
        -------
        PerSampleResult
            Same value under every sample name

        Raises
        ------
        UnregisteredAlgorithmError
            If ``algorithm`` is not registered
        InvalidArgumentError
            For a bad ``subSample`` or unsupported channel count
        AlgorithmFailureError
            If the algorithm raised or returned something that is not a gate
        """
        spec = self.registry.get(algorithm)
        sample_names = samples.sample_names

        args = self.options.defaults_for(algorithm)
        args.update(algorithm_args or {})
        sub_sample = None
        for key in SUBSAMPLE_KEYS:
            if key in args:
                sub_sample = args.pop(key)

        merged = samples.merge()
        table = merged.data
        if sub_sample is not None:
            table = self._subsample(merged, sub_sample)

        n_events = len(table)
        if n_events <= self.options.min_events:
            self.logger.warning(
                "%s: Not enough events (%d <= min_events %d) to proceed with data-driven "
                "gating! Returning a dummy gate instead.",
                ",".join(sample_names),
                n_events,
                self.options.min_events,
            )
            value = dummy_gate(channels, spec.family, len(pop_alias))
        else:
            outcome = self._invoke(spec, table, pp_res, clean_channels(channels), args)
            value = self._validate(outcome, sample_names)

        kind = classify_result(value)
        return PerSampleResult.replicate(value, kind, sample_names)

    def _subsample(self, merged: MergedTable, value: Any) -> pd.DataFrame:
        n = subsample_size(value, merged.n_events)
        rng = np.random.default_rng(self.options.random_seed)
        indices = rng.choice(merged.n_events, size=n, replace=False)
        self.logger.debug("Subsampled %d of %d events", n, merged.n_events)
        return merged.take(indices)

    def _invoke(
        self,
        spec: AlgorithmSpec,
        table: pd.DataFrame,
        pp_res: Any,
        channels: Sequence[str],
        args: Dict[str, Any],
    ) -> Outcome:
        try:
            return Success(spec.invoke(table, pp_res, channels, **args))
        except Exception as exc:
            self.logger.debug("%s raised %s", spec.name, exc, exc_info=True)
            return Failure(exc)

    def _validate(self, outcome: Outcome, sample_names: Sequence[str]) -> Any:
        if isinstance(outcome, Failure):
            if isinstance(outcome.error, (InvalidArgumentError, ParameterInconsistencyError)):
                raise outcome.error
            raise AlgorithmFailureError(sample_names, outcome.detail, cause=outcome.error)
        kind: Optional[ResultKind] = classify_result(outcome.value)
        if kind is None:
            raise AlgorithmFailureError(
                sample_names,
                f"unexpected result of type {type(outcome.value).__name__}: {outcome.value!r}",
            )
        return outcome.value
