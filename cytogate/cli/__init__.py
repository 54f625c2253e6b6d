"""Command-line interface for cytogate.

Example Usage
-------------
    # From command line:
    cytogate --help
    cytogate algorithms
    cytogate gate --registry samples.csv -a mindensity -c CD3 -p cd3+
"""

from .main import cli, main

__all__ = [
    "cli",
    "main",
]
