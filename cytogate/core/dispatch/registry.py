"""Algorithm registry.

Maps algorithm names to their family, argument normalizer and underlying
algorithm callable. The default registry is built once from a fixed
enumeration of supported algorithms; there is no plugin discovery.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional

from .errors import UnregisteredAlgorithmError
from .families import AlgorithmFamily
from .normalizers import NORMALIZERS, Normalizer


@dataclass(frozen=True)
class AlgorithmSpec:
    """Registration of one gating algorithm.

    Attributes
    ----------
    name : str
        Algorithm name used in gating steps
    family : AlgorithmFamily
        Family deciding the normalizer contract and dummy-gate shape
    normalizer : Callable
        Argument normalizer, ``(algorithm, table, pp_res, channels, **kwargs)``
    algorithm : Callable, optional
        Underlying gating algorithm; None for families that build the gate
        directly (boundary)
    """

    name: str
    family: AlgorithmFamily
    normalizer: Normalizer
    algorithm: Optional[Callable[..., Any]] = None

    def invoke(self, table, pp_res, channels, **kwargs) -> Any:
        return self.normalizer(self.algorithm, table, pp_res, channels, **kwargs)


class AlgorithmRegistry:
    """Name -> :class:`AlgorithmSpec` lookup.

    Example
    -------
    >>> registry = default_registry()
    >>> registry.is_registered("mindensity")
    True
    >>> registry.get("flowclust_1d").family
    <AlgorithmFamily.MIXTURE_1D: 'mixture_1d'>
    """

    def __init__(self, specs: Optional[List[AlgorithmSpec]] = None):
        self._specs: Dict[str, AlgorithmSpec] = {}
        for spec in specs or []:
            self._specs[spec.name] = spec

    def register(
        self,
        name: str,
        family: AlgorithmFamily,
        algorithm: Optional[Callable[..., Any]] = None,
        normalizer: Optional[Normalizer] = None,
    ) -> AlgorithmSpec:
        """Register (or replace) an algorithm.

        Parameters
        ----------
        name : str
            Algorithm name
        family : AlgorithmFamily
            Algorithm family
        algorithm : Callable, optional
            Underlying algorithm
        normalizer : Callable, optional
            Argument normalizer; defaults to the one registered for ``name``

        Raises
        ------
        ValueError
            If no normalizer is given and none is registered for ``name``
        """
        if normalizer is None:
            if name not in NORMALIZERS:
                raise ValueError(f"No argument normalizer registered for '{name}'")
            normalizer = NORMALIZERS[name]
        spec = AlgorithmSpec(name=name, family=family, normalizer=normalizer, algorithm=algorithm)
        self._specs[name] = spec
        return spec

    def with_algorithm(self, name: str, algorithm: Callable[..., Any]) -> "AlgorithmRegistry":
        """Copy of this registry with the algorithm behind ``name`` replaced."""
        spec = self.get(name)
        specs = dict(self._specs)
        specs[name] = replace(spec, algorithm=algorithm)
        return AlgorithmRegistry(list(specs.values()))

    def is_registered(self, name: str) -> bool:
        return name in self._specs

    def get(self, name: str) -> AlgorithmSpec:
        """Spec of a registered algorithm.

        Raises
        ------
        UnregisteredAlgorithmError
            If ``name`` is not registered
        """
        try:
            return self._specs[name]
        except KeyError:
            raise UnregisteredAlgorithmError(name) from None

    def names(self) -> List[str]:
        return sorted(self._specs)

    def summary(self) -> Dict[str, List[str]]:
        """Algorithm names grouped by family."""
        summary: Dict[str, List[str]] = {}
        for name, spec in self._specs.items():
            summary.setdefault(spec.family.value, []).append(name)
        for family in summary:
            summary[family].sort()
        return summary


def _builtin_specs() -> List[AlgorithmSpec]:
    from ... import algorithms

    table = [
        ("mindensity", AlgorithmFamily.DENSITY, algorithms.mindensity),
        ("tautstring", AlgorithmFamily.DENSITY, algorithms.tautstring_gate),
        ("quantile", AlgorithmFamily.DENSITY, algorithms.quantile_gate),
        ("flowclust_1d", AlgorithmFamily.MIXTURE_1D, algorithms.flowclust_1d),
        ("flowclust_2d", AlgorithmFamily.MIXTURE_2D, algorithms.flowclust_2d),
        ("tailgate", AlgorithmFamily.TAIL, algorithms.tailgate),
        ("cytokine", AlgorithmFamily.TAIL, algorithms.tailgate),
        ("singlet", AlgorithmFamily.SINGLET, algorithms.singlet_gate),
        ("boundary", AlgorithmFamily.BOUNDARY, None),
        ("quadgate_seq", AlgorithmFamily.QUADRANT, algorithms.quadgate_seq),
        ("quadgate_tmix", AlgorithmFamily.QUADRANT, algorithms.quadgate_tmix),
    ]
    return [
        AlgorithmSpec(name=name, family=family, normalizer=NORMALIZERS[name], algorithm=func)
        for name, family, func in table
    ]


@lru_cache(maxsize=1)
def default_registry() -> AlgorithmRegistry:
    """Registry of the built-in algorithms, built once per process.

    The returned registry is shared; use :meth:`AlgorithmRegistry.with_algorithm`
    or a fresh :class:`AlgorithmRegistry` instead of registering into it.
    """
    return AlgorithmRegistry(_builtin_specs())
