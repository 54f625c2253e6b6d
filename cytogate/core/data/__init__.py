"""Sample tables and collections.

Example Usage
-------------
>>> from cytogate.core.data import SampleCollection
>>> samples = SampleCollection({"s1": df1, "s2": df2})
>>> merged = samples.merge()
>>> merged.n_events
"""

from .samples import MergedTable, SampleCollection

__all__ = ["MergedTable", "SampleCollection"]
