"""Bundled reference cytoband tables.

The table ships in UCSC ``cytoBand.txt`` layout (0-based half-open) and is
converted on load to 1-based closed coordinates, the convention probe
positions use. Each table is read once per process and cached; callers
outside this package get a copy.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import pandas as pd

SUPPORTED_GENOMES = ("hg19",)

REFERENCE_COLUMNS = ["chromosome", "start", "end", "cytoband", "stain"]

_DATA_DIR = Path(__file__).resolve().parent.parent.parent / "data"


class UnsupportedGenomeError(ValueError):
    """Raised when a reference genome other than the bundled one is requested."""


def resolve_genome(genome: str) -> str:
    """Validate and normalize a reference genome name.

    Parameters
    ----------
    genome : str
        Genome name, case-insensitive (e.g., "hg19", "HG19")

    Returns
    -------
    str
        Normalized genome name

    Raises
    ------
    UnsupportedGenomeError
        If the genome is not bundled with the package
    """
    name = str(genome).strip().lower()
    if name not in SUPPORTED_GENOMES:
        supported = ", ".join(f'"{g}"' for g in SUPPORTED_GENOMES)
        raise UnsupportedGenomeError(
            f'genome "{name}" not found. Only {supported} is currently supported.'
        )
    return name


def cytoband_path(genome: str = "hg19") -> Path:
    """Path of the bundled cytoband file for a genome."""
    return _DATA_DIR / f"cytoband_{resolve_genome(genome)}.tsv"


@lru_cache(maxsize=None)
def load_cytoband_table(genome: str = "hg19") -> pd.DataFrame:
    """Load the cached reference cytoband table.

    The returned frame is shared process-wide and must not be modified;
    use :func:`get_cytoband_table` for a private copy.

    Parameters
    ----------
    genome : str
        Reference genome name

    Returns
    -------
    pd.DataFrame
        Columns ``chromosome, start, end, cytoband, stain`` in file order,
        1-based closed coordinates
    """
    path = cytoband_path(genome)
    if not path.exists():
        raise FileNotFoundError(f"Cytoband table not found: {path}")

    raw = pd.read_csv(
        path,
        sep="\t",
        header=None,
        names=["chromosome", "chrom_start", "chrom_end", "cytoband", "stain"],
        dtype={"chromosome": str, "cytoband": str, "stain": str},
        comment="#",
    )

    table = pd.DataFrame({
        "chromosome": raw["chromosome"],
        "start": raw["chrom_start"].astype("int64") + 1,
        "end": raw["chrom_end"].astype("int64"),
        "cytoband": raw["cytoband"],
        "stain": raw["stain"],
    })
    return table


def get_cytoband_table(genome: str = "hg19") -> pd.DataFrame:
    """Return a copy of the reference cytoband table for a genome."""
    return load_cytoband_table(resolve_genome(genome)).copy()
