"""Core computational modules for cytogate.

This package contains:
- data: sample tables, sample collections and merging
- gates: gate types and per-sample results
- dispatch: algorithm registry, argument normalizers, cluster-parameter
  resolution and the dispatch adaptor
- preprocessing: prior elicitation and channel standardization
"""
