"""Core computational modules for karyotap.

This package contains:
- experiment: TapestriExperiment container, configuration and construction
- cytobands: reference cytoband table, interval overlaps, arm annotation
- probes: probe classification and auxiliary table partitioning
"""
