"""Test fixtures for cytogate.

Provides synthetic sample generators.
"""

from .mock_samples import (
    DEFAULT_CHANNELS,
    create_bimodal_table,
    create_sample_collection,
)

__all__ = [
    "DEFAULT_CHANNELS",
    "create_bimodal_table",
    "create_sample_collection",
]
