"""Test fixtures for karyotap."""

from .mock_experiment import (
    DEFAULT_PROBES,
    create_mock_counts,
    create_mock_experiment,
    create_mock_manifest,
)

__all__ = [
    "DEFAULT_PROBES",
    "create_mock_counts",
    "create_mock_experiment",
    "create_mock_manifest",
]
