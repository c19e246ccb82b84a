"""Cytoband and chromosome arm annotation of probes.

Arms are derived from the cytoband code: the chromosome name without
the ``chr`` prefix followed by the first character of the band
(``chr1`` + ``p36.33`` -> ``1p``). Probes without an overlapping band
get a null cytoband and a null arm.
"""

from __future__ import annotations

import logging
from typing import Optional

import pandas as pd

from ..experiment.container import (
    CHROMOSOME_COL,
    END_COL,
    START_COL,
    TapestriExperiment,
)
from .overlaps import find_overlaps, normalize_chromosome, strip_chromosome_prefix
from .reference import load_cytoband_table, resolve_genome

logger = logging.getLogger(__name__)

CYTOBAND_COL = "cytoband"
ARM_COL = "arm"


def build_probe_intervals(probes: pd.DataFrame) -> pd.DataFrame:
    """Build overlap queries from probe metadata.

    Probes without numeric start/end positions are left out; they end up
    with a null cytoband after annotation.

    Parameters
    ----------
    probes : pd.DataFrame
        Probe metadata indexed by probe ID with ``chr``, ``start.pos``
        and ``end.pos`` columns

    Returns
    -------
    pd.DataFrame
        Query frame with ``chromosome, start, end, id``
    """
    missing = [c for c in (CHROMOSOME_COL, START_COL, END_COL) if c not in probes.columns]
    if missing:
        raise ValueError(f"Probe metadata missing columns: {missing}")

    starts = pd.to_numeric(probes[START_COL], errors="coerce")
    ends = pd.to_numeric(probes[END_COL], errors="coerce")
    has_coords = (starts.notna() & ends.notna()).to_numpy()

    if not has_coords.all():
        logger.debug(
            "Skipping %d probe(s) without coordinates: %s",
            int((~has_coords).sum()),
            list(probes.index[~has_coords]),
        )

    return pd.DataFrame({
        "chromosome": [normalize_chromosome(c) for c in probes[CHROMOSOME_COL][has_coords]],
        "start": starts[has_coords].astype("int64").to_numpy(),
        "end": ends[has_coords].astype("int64").to_numpy(),
        "id": probes.index[has_coords].astype(str),
    })


def compute_arms(chromosomes: pd.Series, cytobands: pd.Series) -> pd.Categorical:
    """Derive chromosome arm labels from chromosome names and cytobands.

    Parameters
    ----------
    chromosomes : pd.Series
        Chromosome names, with or without ``chr`` prefix
    cytobands : pd.Series
        Cytoband codes aligned with ``chromosomes``; null where unmatched

    Returns
    -------
    pd.Categorical
        Arm labels; categories are the distinct arms in first-encountered
        order, null where the cytoband is null
    """
    arms = [
        None if pd.isna(band) else strip_chromosome_prefix(chrom) + str(band)[0]
        for chrom, band in zip(chromosomes, cytobands)
    ]
    levels = pd.unique(pd.Series([a for a in arms if a is not None], dtype=object))
    return pd.Categorical(arms, categories=levels)


def annotate_probes(probes: pd.DataFrame, overlaps: pd.DataFrame) -> pd.DataFrame:
    """Add cytoband and arm columns to probe metadata.

    Overlap results are re-keyed by probe ID and realigned to the order of
    ``probes``; the row order and count of ``probes`` are preserved.

    Parameters
    ----------
    probes : pd.DataFrame
        Probe metadata indexed by probe ID with a ``chr`` column
    overlaps : pd.DataFrame
        Result of :func:`find_overlaps`, indexed by probe ID

    Returns
    -------
    pd.DataFrame
        Copy of ``probes`` with ``cytoband`` (str or null) and ``arm``
        (categorical) columns; existing columns of those names are replaced
    """
    aligned = overlaps.reindex(probes.index.astype(str))
    cytobands = aligned[CYTOBAND_COL].astype(object)
    cytobands = cytobands.where(cytobands.notna(), None)

    result = probes.copy()
    result[CYTOBAND_COL] = cytobands.to_numpy()
    result[ARM_COL] = compute_arms(result[CHROMOSOME_COL].map(normalize_chromosome), cytobands)
    return result


def get_cytobands(
    experiment: TapestriExperiment,
    genome: str = "hg19",
    verbose: bool = True,
    log: Optional[logging.Logger] = None,
) -> TapestriExperiment:
    """Add chromosome cytobands and arms to the primary table's probes.

    Parameters
    ----------
    experiment : TapestriExperiment
        Experiment to annotate; not modified
    genome : str
        Reference genome; only "hg19" is currently supported
    verbose : bool
        If True, progress is logged at INFO level
    log : logging.Logger, optional
        Logger instance; defaults to the module logger

    Returns
    -------
    TapestriExperiment
        New experiment whose primary ``var`` has ``cytoband`` and ``arm``

    Raises
    ------
    UnsupportedGenomeError
        If ``genome`` is not supported; raised before any work is done
    """
    log = log or logger
    genome = resolve_genome(genome)

    if verbose:
        log.info("Adding cytobands from %s.", genome)

    var = experiment.row_data
    queries = build_probe_intervals(var)
    overlaps = find_overlaps(queries, load_cytoband_table(genome))
    annotated = annotate_probes(var, overlaps)

    n_unmatched = int(annotated[CYTOBAND_COL].isna().sum())
    if verbose and n_unmatched:
        log.info(
            "%d probe(s) do not overlap a %s cytoband: %s",
            n_unmatched,
            genome,
            list(annotated.index[annotated[CYTOBAND_COL].isna().to_numpy()]),
        )

    result = experiment.copy()
    result.adata.var[CYTOBAND_COL] = annotated[CYTOBAND_COL].to_numpy()
    result.adata.var[ARM_COL] = annotated[ARM_COL].array
    result.genome = genome
    return result
