"""Command-line interface for karyotap.

Example Usage
-------------
    # From command line:
    karyotap --help
    karyotap build --counts counts.csv --manifest probes.csv --out exp/
    karyotap cytobands --input exp/ --out exp_annotated/
    karyotap move-probes --input exp/ --out exp_split/
"""

from .main import cli, main

__all__ = [
    "cli",
    "main",
]
