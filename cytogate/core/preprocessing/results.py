"""Preprocessing result types threaded into the dispatch adaptor.

Each result kind carries a ``preprocessing`` marker so normalizers can
recognize what they were handed without inspecting its contents.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional, Tuple

import numpy as np
import pandas as pd

PRIOR_MARKER = "prior"
STANDARDIZE_MARKER = "standardize"


class _AbsentPrior:
    """Placeholder forwarded to 2-D mixture algorithms when no prior exists."""

    preprocessing: ClassVar[str] = PRIOR_MARKER

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT_PRIOR"


ABSENT_PRIOR = _AbsentPrior()


@dataclass(frozen=True)
class PriorSpec:
    """Mixture-model prior for one gating step.

    Attributes
    ----------
    family : str
        ``"1d"`` for independent per-channel priors, ``"2d"`` for one joint
        prior over two channels
    channels : Tuple[str, ...]
        Channels the prior was elicited on
    priors : Dict[str, Any]
        1-D family: map of channel to prior object
    joint : Any
        2-D family: the joint prior object
    """

    preprocessing: ClassVar[str] = PRIOR_MARKER

    family: str
    channels: Tuple[str, ...]
    priors: Dict[str, Any] = field(default_factory=dict)
    joint: Any = None

    def __post_init__(self) -> None:
        if self.family not in ("1d", "2d"):
            raise ValueError(f"Unknown prior family '{self.family}'")
        object.__setattr__(self, "channels", tuple(self.channels))

    def for_channel(self, channel: str) -> Any:
        """Prior of one channel, or None when it was not elicited."""
        return self.priors.get(channel)


@dataclass(frozen=True, eq=False)
class StandardizationResult:
    """Center/scale of one channel for one sample.

    Attributes
    ----------
    sample_name : str
        Sample the parameters were computed on
    channel : str
        Standardized channel
    center : float
        Location estimate
    scale : float
        Scale estimate (> 0)
    table : pd.DataFrame, optional
        Standardized data. Grouped standardization attaches the merged,
        standardized table of the whole group; otherwise omitted
    """

    preprocessing: ClassVar[str] = STANDARDIZE_MARKER

    sample_name: str
    channel: str
    center: float
    scale: float
    table: Optional[pd.DataFrame] = None

    def __post_init__(self) -> None:
        if not np.isfinite(self.scale) or self.scale <= 0:
            raise ValueError(f"scale must be a positive finite number, got {self.scale}")
        object.__setattr__(self, "center", float(self.center))
        object.__setattr__(self, "scale", float(self.scale))

    @property
    def has_table(self) -> bool:
        return self.table is not None

    def transform(self, values: np.ndarray) -> np.ndarray:
        """Map original units to standardized units."""
        return (np.asarray(values, dtype=float) - self.center) / self.scale

    def back_transform(self, values: np.ndarray) -> np.ndarray:
        """Map standardized units back to original units."""
        return self.center + self.scale * np.asarray(values, dtype=float)


def preprocessing_kind(result: Any) -> Optional[str]:
    """Marker of a preprocessing result, or None for anything else."""
    return getattr(result, "preprocessing", None)
