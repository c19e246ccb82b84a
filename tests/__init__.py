"""Test suite for karyotap.

Test organization:
- fixtures/: Mock manifests, count matrices and experiments
- unit/: Unit tests for individual modules

Run tests with:
    pytest tests/
    pytest tests/unit/ -v --tb=short
"""
