"""Probe classification and partitioning module.

Classifies probes into feature types (CNV, chrYCounts, grnaCounts,
barcodeCounts, otherProbeCounts) and moves every non-CNV feature type
into its own auxiliary table.

Example Usage
-------------
>>> from karyotap.core.probes import move_non_genome_probes
>>> result = move_non_genome_probes(exp)
>>> if result.partitioned:
...     grna = result.experiment.alt_exp("grnaCounts")
"""

from .rules import (
    CNV_CHROMOSOMES,
    REFERENCE_CATEGORY,
    ClassificationResult,
    FeatureCategory,
    OverrideRule,
    base_categories,
    build_override_rules,
    canonical_chromosomes,
    classify_probes,
)
from .partition import (
    NO_OP_MESSAGE,
    PartitionResult,
    move_non_genome_probes,
    split_alt_exps,
)

__all__ = [
    # Rules
    "CNV_CHROMOSOMES",
    "REFERENCE_CATEGORY",
    "ClassificationResult",
    "FeatureCategory",
    "OverrideRule",
    "base_categories",
    "build_override_rules",
    "canonical_chromosomes",
    "classify_probes",
    # Partition
    "NO_OP_MESSAGE",
    "PartitionResult",
    "move_non_genome_probes",
    "split_alt_exps",
]
