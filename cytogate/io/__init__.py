"""I/O utilities for cytogate.

Provides run log files, gating summary documents and CSV loading of sample
registries.
"""

from .logging import get_logger, get_timestamped_log_path
from .records import RECORD_FORMATS, format_record, write_record
from .csv import load_event_table, load_sample_collection, load_sample_registry

__all__ = [
    # Logging
    "get_logger",
    "get_timestamped_log_path",
    # Summaries
    "RECORD_FORMATS",
    "format_record",
    "write_record",
    # CSV I/O
    "load_event_table",
    "load_sample_collection",
    "load_sample_registry",
]
