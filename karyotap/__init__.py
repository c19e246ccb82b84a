"""karyotap: probe annotation and feature partitioning for Tapestri experiments.

This package provides tools for:
- Building a TapestriExperiment from a probe x cell count matrix and
  a probe manifest
- Annotating probes with cytobands and chromosome arms (hg19)
- Moving non-genomic probes (gRNA, barcode, chrY, other) out of the
  primary count table into named auxiliary tables

Example usage:
    >>> from karyotap.core.experiment import ExperimentConfig, create_tapestri_experiment
    >>>
    >>> config = ExperimentConfig(panel_id="CO261")
    >>> exp = create_tapestri_experiment(counts, manifest, config=config)
    >>> exp.row_data[["chr", "cytoband", "arm"]].head()
    >>> exp.alt_exp("grnaCounts")
"""

__version__ = "0.1.0"
