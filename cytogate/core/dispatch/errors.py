"""Exceptions raised by the dispatch engine.

``InvalidArgumentError``, ``UnregisteredAlgorithmError`` and
``ParameterInconsistencyError`` are raised directly at the seam where the
bad value is seen. ``AlgorithmFailureError`` is raised by the adaptor after
result validation, carrying whatever the underlying algorithm raised or
returned. Insufficient data is not an error.
"""

from typing import Iterable, Optional


class GatingError(Exception):
    """Base class for all dispatch engine errors."""

    pass


class InvalidArgumentError(GatingError, ValueError):
    """Raised for bad subsample values, channel counts or bound lengths."""

    pass


class UnregisteredAlgorithmError(GatingError, LookupError):
    """Raised when an algorithm name is not in the registry."""

    def __init__(self, algorithm: str):
        self.algorithm = algorithm
        super().__init__(f"Can't gate using unregistered method '{algorithm}'")


class ParameterInconsistencyError(GatingError, ValueError):
    """Raised when an expected sub-population count exceeds K."""

    pass


class AlgorithmFailureError(GatingError, RuntimeError):
    """Raised when gating fails or returns something that is not a gate.

    Attributes
    ----------
    sample_names : list of str
        Samples whose gating failed
    detail : str
        Captured failure message or the repr of the malformed value
    cause : BaseException, optional
        Exception raised by the underlying algorithm, if any
    """

    def __init__(
        self,
        sample_names: Iterable[str],
        detail: str,
        cause: Optional[BaseException] = None,
    ):
        self.sample_names = list(sample_names)
        self.detail = detail
        self.cause = cause
        super().__init__(f"failed at {','.join(self.sample_names)}\n{detail}")
