"""Algorithm families known to the dispatch engine."""

from enum import Enum


class AlgorithmFamily(Enum):
    """Groups of algorithms sharing one argument normalizer contract."""

    DENSITY = "density"
    MIXTURE_1D = "mixture_1d"
    MIXTURE_2D = "mixture_2d"
    TAIL = "tail"
    SINGLET = "singlet"
    BOUNDARY = "boundary"
    QUADRANT = "quadrant"

    @property
    def is_mixture(self) -> bool:
        return self in (AlgorithmFamily.MIXTURE_1D, AlgorithmFamily.MIXTURE_2D)

    @property
    def prior_family(self) -> str:
        """``"1d"`` or ``"2d"`` for mixture families."""
        if self is AlgorithmFamily.MIXTURE_1D:
            return "1d"
        if self is AlgorithmFamily.MIXTURE_2D:
            return "2d"
        raise ValueError(f"{self.value} algorithms take no mixture prior")
