"""Construction of a TapestriExperiment from counts and a probe manifest.

Inputs are validated in full before the experiment is built. By default
probes are annotated with cytobands and non-genomic probes are moved to
auxiliary tables, in that order.
"""

from __future__ import annotations

import logging
from typing import Optional

import anndata as ad
import pandas as pd

from .config import ExperimentConfig
from .container import (
    CHROMOSOME_COL,
    END_COL,
    MANIFEST_COLUMNS,
    PROBE_ID_COL,
    START_COL,
    TapestriExperiment,
)

logger = logging.getLogger(__name__)


def prepare_probe_metadata(probe_manifest: pd.DataFrame) -> pd.DataFrame:
    """Validate a probe manifest and index it by probe ID.

    Parameters
    ----------
    probe_manifest : pd.DataFrame
        Manifest with ``probe.id``, ``chr``, ``start.pos``, ``end.pos``
        columns; extra columns are kept

    Returns
    -------
    pd.DataFrame
        Copy indexed by probe ID (as str), ``chr`` as str, positions as
        nullable integers

    Raises
    ------
    ValueError
        If columns are missing, probe IDs repeat, or start > end
    """
    missing = [c for c in MANIFEST_COLUMNS if c not in probe_manifest.columns]
    if missing:
        raise ValueError(f"Probe manifest missing columns: {missing}")

    manifest = probe_manifest.copy()
    manifest[PROBE_ID_COL] = manifest[PROBE_ID_COL].astype(str)

    dups = manifest[PROBE_ID_COL][manifest[PROBE_ID_COL].duplicated()].unique().tolist()
    if dups:
        raise ValueError(f"Duplicate probe IDs in manifest: {dups}")

    manifest[CHROMOSOME_COL] = manifest[CHROMOSOME_COL].astype(str)
    for col in (START_COL, END_COL):
        manifest[col] = pd.to_numeric(manifest[col], errors="coerce").astype("Int64")

    bad = (manifest[START_COL] > manifest[END_COL]).fillna(False).to_numpy(dtype=bool)
    if bad.any():
        raise ValueError(
            f"Probes with start.pos > end.pos: {manifest.loc[bad, PROBE_ID_COL].tolist()}"
        )

    manifest.index = pd.Index(manifest[PROBE_ID_COL].to_numpy(), name=None)
    return manifest


def create_tapestri_experiment(
    counts: pd.DataFrame,
    probe_manifest: pd.DataFrame,
    cell_metadata: Optional[pd.DataFrame] = None,
    config: Optional[ExperimentConfig] = None,
    log: Optional[logging.Logger] = None,
) -> TapestriExperiment:
    """Build a TapestriExperiment.

    Parameters
    ----------
    counts : pd.DataFrame
        Probe x cell read count matrix, indexed by probe ID
    probe_manifest : pd.DataFrame
        Probe manifest (see :func:`prepare_probe_metadata`)
    cell_metadata : pd.DataFrame, optional
        Cell metadata indexed by cell barcode; must cover every cell
    config : ExperimentConfig, optional
        Construction settings; defaults to ``ExperimentConfig()``
    log : logging.Logger, optional
        Logger instance

    Returns
    -------
    TapestriExperiment
        Experiment with cells as ``obs`` and probes as ``var``

    Raises
    ------
    ValueError
        On invalid inputs, an unknown panel, or an unsupported genome
    """
    from ..cytobands import get_cytobands, resolve_genome
    from ..probes import move_non_genome_probes

    config = config or ExperimentConfig()
    log = log or logger

    # Fail on configuration problems before building anything
    genome = resolve_genome(config.genome) if config.annotate_cytobands else config.genome
    grna_probe, barcode_probe = config.resolve_special_probes()

    manifest = prepare_probe_metadata(probe_manifest)

    counts = counts.copy()
    counts.index = counts.index.astype(str)
    counts.columns = counts.columns.astype(str)

    if counts.index.duplicated().any():
        raise ValueError(
            f"Duplicate probe IDs in counts: {counts.index[counts.index.duplicated()].unique().tolist()}"
        )
    if counts.columns.duplicated().any():
        raise ValueError(
            f"Duplicate cell barcodes in counts: {counts.columns[counts.columns.duplicated()].unique().tolist()}"
        )

    not_in_manifest = counts.index.difference(manifest.index)
    if len(not_in_manifest) > 0:
        raise ValueError(f"Probes missing from manifest: {list(not_in_manifest)}")

    not_in_counts = manifest.index.difference(counts.index)
    if len(not_in_counts) > 0:
        log.warning(
            "Ignoring %d manifest probe(s) without counts: %s",
            len(not_in_counts),
            list(not_in_counts),
        )

    var = manifest.loc[counts.index]

    if cell_metadata is None:
        obs = pd.DataFrame(index=counts.columns)
    else:
        obs = cell_metadata.copy()
        obs.index = obs.index.astype(str)
        missing_cells = counts.columns.difference(obs.index)
        if len(missing_cells) > 0:
            raise ValueError(f"Cells missing from cell metadata: {list(missing_cells)}")
        obs = obs.loc[counts.columns]

    adata = ad.AnnData(X=counts.to_numpy().T, obs=obs, var=var)

    experiment = TapestriExperiment(
        adata=adata,
        grna_probe=grna_probe,
        barcode_probe=barcode_probe,
        genome=genome,
    )
    if config.verbose:
        log.info(
            "Created experiment with %d cells and %d probes.",
            experiment.n_cells,
            experiment.n_probes,
        )

    if config.annotate_cytobands:
        experiment = get_cytobands(experiment, genome=genome, verbose=config.verbose, log=log)

    if config.move_non_genome_probes:
        experiment = move_non_genome_probes(experiment, log=log).experiment

    return experiment
