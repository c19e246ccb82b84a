"""Cytoband annotation module.

Provides the bundled reference cytoband table, the probe/cytoband
interval overlap engine, and the arm/cytoband annotator.

Example Usage
-------------
>>> from karyotap.core.cytobands import get_cytobands
>>> exp = get_cytobands(exp, genome="hg19")
>>> exp.row_data[["chr", "cytoband", "arm"]].head()
"""

from .reference import (
    SUPPORTED_GENOMES,
    UnsupportedGenomeError,
    cytoband_path,
    get_cytoband_table,
    load_cytoband_table,
    resolve_genome,
)
from .overlaps import (
    CytobandRecord,
    GenomicInterval,
    find_overlaps,
    normalize_chromosome,
    overlaps_to_records,
    strip_chromosome_prefix,
)
from .annotator import (
    ARM_COL,
    CYTOBAND_COL,
    annotate_probes,
    build_probe_intervals,
    compute_arms,
    get_cytobands,
)

__all__ = [
    # Reference
    "SUPPORTED_GENOMES",
    "UnsupportedGenomeError",
    "cytoband_path",
    "get_cytoband_table",
    "load_cytoband_table",
    "resolve_genome",
    # Overlaps
    "CytobandRecord",
    "GenomicInterval",
    "find_overlaps",
    "normalize_chromosome",
    "overlaps_to_records",
    "strip_chromosome_prefix",
    # Annotation
    "ARM_COL",
    "CYTOBAND_COL",
    "annotate_probes",
    "build_probe_intervals",
    "compute_arms",
    "get_cytobands",
]
