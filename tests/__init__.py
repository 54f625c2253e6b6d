"""Test suite for cytogate.

Test organization:
- fixtures/: Synthetic sample generators
- unit/: Unit tests for individual modules

Run tests with:
    pytest tests/
    pytest tests/unit/
    pytest tests/ -v --tb=short
"""
