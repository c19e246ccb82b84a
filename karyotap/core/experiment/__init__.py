"""Experiment container module.

Provides the TapestriExperiment container (AnnData primary table plus
named auxiliary tables), its configuration, and construction from a
probe x cell count matrix and probe manifest.

Example Usage
-------------
>>> from karyotap.core.experiment import (
...     ExperimentConfig, create_tapestri_experiment,
... )
>>> config = ExperimentConfig(panel_id="CO261")
>>> exp = create_tapestri_experiment(counts, manifest, config=config)
>>> exp.alt_exp_names
['grnaCounts', 'barcodeCounts', 'chrYCounts']
"""

from .container import (
    CHROMOSOME_COL,
    END_COL,
    MANIFEST_COLUMNS,
    PROBE_ID_COL,
    START_COL,
    TapestriExperiment,
)
from .config import ExperimentConfig
from .builder import create_tapestri_experiment, prepare_probe_metadata

__all__ = [
    # Container
    "CHROMOSOME_COL",
    "END_COL",
    "MANIFEST_COLUMNS",
    "PROBE_ID_COL",
    "START_COL",
    "TapestriExperiment",
    # Config
    "ExperimentConfig",
    # Construction
    "create_tapestri_experiment",
    "prepare_probe_metadata",
]
