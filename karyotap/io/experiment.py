"""File I/O for probe manifests, count matrices and experiments.

An experiment is stored as a directory::

    experiment/
        main.h5ad              primary table
        alt_exps/<name>.h5ad   one file per auxiliary table
        experiment.yaml        special probe slots, genome, table order
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

import anndata as ad
import pandas as pd
import yaml

from ..core.experiment.container import (
    MANIFEST_COLUMNS,
    PROBE_ID_COL,
    TapestriExperiment,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

MAIN_FILENAME = "main.h5ad"
ALT_EXPS_DIRNAME = "alt_exps"
METADATA_FILENAME = "experiment.yaml"


def ensure_output_dir(path: PathLike) -> Path:
    """Create the directory at path if it does not exist and return it."""
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def _read_table(path: Path, **kwargs) -> pd.DataFrame:
    sep = "\t" if path.suffix.lower() in (".tsv", ".txt") else ","
    return pd.read_csv(path, sep=sep, **kwargs)


def load_probe_manifest(path: PathLike) -> pd.DataFrame:
    """Load a probe manifest CSV/TSV and check its schema.

    Parameters
    ----------
    path : PathLike
        Manifest file with ``probe.id``, ``chr``, ``start.pos``, ``end.pos``

    Returns
    -------
    pd.DataFrame
        Manifest in file order

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    ValueError
        If required columns are missing or the file is empty
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Probe manifest not found: {path}")

    df = _read_table(path, dtype={PROBE_ID_COL: str, "chr": str})
    if df.empty:
        raise ValueError(f"Probe manifest {path} is empty")

    missing = [c for c in MANIFEST_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Probe manifest {path} missing columns: {missing}")
    return df


def load_count_matrix(path: PathLike) -> pd.DataFrame:
    """Load a probe x cell count matrix CSV/TSV.

    The first column holds probe IDs, the header holds cell barcodes.

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    ValueError
        If the matrix is empty or holds non-numeric values
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Count matrix not found: {path}")

    df = _read_table(path, index_col=0)
    if df.empty:
        raise ValueError(f"Count matrix {path} is empty")

    non_numeric = [c for c in df.columns if not pd.api.types.is_numeric_dtype(df[c])]
    if non_numeric:
        raise ValueError(f"Count matrix {path} has non-numeric cell columns: {non_numeric}")

    df.index = df.index.astype(str)
    df.columns = df.columns.astype(str)
    return df


def load_cell_metadata(path: PathLike) -> pd.DataFrame:
    """Load cell metadata CSV/TSV indexed by its first column (cell barcode)."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Cell metadata not found: {path}")
    df = _read_table(path, index_col=0)
    df.index = df.index.astype(str)
    return df


def _to_h5ad_compatible(adata: ad.AnnData) -> ad.AnnData:
    """Copy of adata whose text columns are categorical.

    Text columns holding nulls (e.g. ``cytoband`` for unmatched probes)
    cannot be written as plain string arrays.
    """
    adata = adata.copy()
    for frame in (adata.obs, adata.var):
        for col in frame.columns:
            dtype = frame[col].dtype
            if isinstance(dtype, pd.CategoricalDtype) or pd.api.types.is_bool_dtype(dtype):
                continue
            if pd.api.types.is_object_dtype(dtype) or pd.api.types.is_string_dtype(dtype):
                values = frame[col].astype(object)
                frame[col] = pd.Categorical(values.where(values.notna(), None))
    return adata


def write_experiment(experiment: TapestriExperiment, out_dir: PathLike) -> Path:
    """Write an experiment directory.

    Parameters
    ----------
    experiment : TapestriExperiment
        Experiment to write
    out_dir : PathLike
        Target directory; created if missing

    Returns
    -------
    Path
        The experiment directory
    """
    experiment.validate()
    out_dir = ensure_output_dir(out_dir)

    _to_h5ad_compatible(experiment.adata).write_h5ad(out_dir / MAIN_FILENAME)

    alt_dir = out_dir / ALT_EXPS_DIRNAME
    # Stale tables from an earlier write would be read back otherwise
    if alt_dir.exists():
        for stale in alt_dir.glob("*.h5ad"):
            stale.unlink()
    if experiment.alt_exps:
        alt_dir.mkdir(parents=True, exist_ok=True)
    for name, alt in experiment.alt_exps.items():
        _to_h5ad_compatible(alt).write_h5ad(alt_dir / f"{name}.h5ad")

    metadata = {
        "genome": experiment.genome,
        "grna_probe": experiment.grna_probe,
        "barcode_probe": experiment.barcode_probe,
        "alt_exps": experiment.alt_exp_names,
    }
    with open(out_dir / METADATA_FILENAME, "w") as f:
        yaml.safe_dump(metadata, f, sort_keys=False)

    logger.info("Wrote experiment to %s", out_dir)
    return out_dir


def read_experiment(path: PathLike) -> TapestriExperiment:
    """Read an experiment directory written by :func:`write_experiment`.

    Raises
    ------
    FileNotFoundError
        If the primary table or a listed auxiliary table is missing
    """
    path = Path(path)
    main_path = path / MAIN_FILENAME
    if not main_path.exists():
        raise FileNotFoundError(f"Primary table not found: {main_path}")

    metadata = {}
    metadata_path = path / METADATA_FILENAME
    if metadata_path.exists():
        with open(metadata_path) as f:
            metadata = yaml.safe_load(f) or {}

    alt_exps = {}
    for name in metadata.get("alt_exps", []):
        alt_path = path / ALT_EXPS_DIRNAME / f"{name}.h5ad"
        if not alt_path.exists():
            raise FileNotFoundError(f"Auxiliary table not found: {alt_path}")
        alt_exps[name] = ad.read_h5ad(alt_path)

    experiment = TapestriExperiment(
        adata=ad.read_h5ad(main_path),
        alt_exps=alt_exps,
        grna_probe=metadata.get("grna_probe"),
        barcode_probe=metadata.get("barcode_probe"),
        genome=metadata.get("genome", "hg19"),
    )
    experiment.validate()
    return experiment
