"""Configuration for cytogate.

Example
-------
>>> from cytogate.config import GatingOptions
>>> options = GatingOptions(min_events=10)
"""

from .options import GatingOptions

__all__ = ["GatingOptions"]
