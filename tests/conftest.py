"""Pytest configuration and shared fixtures for karyotap tests."""

import sys
from pathlib import Path

import pytest
import pandas as pd

# Add package to path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from tests.fixtures import (
    create_mock_counts,
    create_mock_experiment,
    create_mock_manifest,
)


# ============================================================================
# Reference Fixtures
# ============================================================================


@pytest.fixture
def small_reference() -> pd.DataFrame:
    """Small reference cytoband table (1-based closed) with a chr3 gap."""
    return pd.DataFrame(
        [
            ("chr1", 1, 999000, "p36.33"),
            ("chr1", 999000, 1050000, "p36.33"),
            ("chr1", 1050001, 2000000, "p36.32"),
            ("chr1", 2000001, 130000000, "q21.1"),
            ("chr3", 1, 100000, "p26.3"),
            ("chr3", 200001, 300000, "p26.2"),
            ("chrY", 1, 2500000, "p11.32"),
        ],
        columns=["chromosome", "start", "end", "cytoband"],
    )


# ============================================================================
# Input Fixtures
# ============================================================================


@pytest.fixture
def mock_manifest() -> pd.DataFrame:
    """Default seven-probe manifest including chrY, gRNA and barcode probes."""
    return create_mock_manifest()


@pytest.fixture
def mock_counts(mock_manifest) -> pd.DataFrame:
    """Counts for every probe of ``mock_manifest``."""
    return create_mock_counts(mock_manifest["probe.id"].tolist(), n_cells=10)


@pytest.fixture
def cnv_only_probes() -> list:
    """Five autosomal probes, no chrY and no special probes."""
    return [
        ("P1", "1", 1000000, 1000500),
        ("P2", "2", 5000000, 5000400),
        ("P3", "5", 20000000, 20000300),
        ("P4", "12", 30000000, 30000300),
        ("P5", "20", 1000000, 1000300),
    ]


# ============================================================================
# Experiment Fixtures
# ============================================================================


@pytest.fixture
def mock_experiment():
    """Unpartitioned experiment with CO261 gRNA and barcode probes set."""
    return create_mock_experiment(grna_probe="AMPL205666", barcode_probe="AMPL205334")


@pytest.fixture
def cnv_only_experiment(cnv_only_probes):
    """Experiment in which every probe is a CNV probe."""
    return create_mock_experiment(probes=cnv_only_probes)


@pytest.fixture
def tmp_output_dir(tmp_path: Path) -> Path:
    """Create a temporary output directory for tests."""
    output_dir = tmp_path / "output"
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def sample_experiment_config(tmp_path) -> Path:
    """Create sample experiment configuration file."""
    import yaml

    config = {
        "experiment": {
            "genome": "hg19",
            "panel_id": "CO261",
            "annotate_cytobands": True,
            "move_non_genome_probes": True,
            "verbose": False,
        },
    }

    path = tmp_path / "experiment.yaml"
    with open(path, "w") as f:
        yaml.dump(config, f)

    return path
