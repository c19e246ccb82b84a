"""Partitioning of probes into the primary table and auxiliary tables.

Probes of the reference category (CNV) stay in the primary table. Every
other category present becomes an auxiliary table named after it, holding
the counts and probe metadata of its probes. All tables keep the full,
unreordered cell axis; probe order within each table follows the
original order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

import anndata as ad
import numpy as np
import pandas as pd

from ..experiment.container import TapestriExperiment
from .rules import REFERENCE_CATEGORY, classify_probes

logger = logging.getLogger(__name__)

NO_OP_MESSAGE = "No non-genomic probe IDs found."


@dataclass
class PartitionResult:
    """Result from moving non-genomic probes.

    Attributes
    ----------
    experiment : TapestriExperiment
        Resulting experiment; the input object itself when nothing moved
    partitioned : bool
        False when every probe belongs to the reference category
    moved : Dict[str, List[str]]
        Auxiliary table name -> probe IDs moved into it
    messages : List[str]
        Informational diagnostics
    """

    experiment: TapestriExperiment
    partitioned: bool
    moved: Dict[str, List[str]] = field(default_factory=dict)
    messages: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for reporting."""
        return {
            "partitioned": self.partitioned,
            "n_probes_primary": self.experiment.n_probes,
            "n_cells": self.experiment.n_cells,
            "moved": {name: list(ids) for name, ids in self.moved.items()},
            "messages": list(self.messages),
        }


def _category_name(value) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def _align_feature_types(
    experiment: TapestriExperiment,
    feature_types: Union[pd.Series, Sequence],
) -> np.ndarray:
    """Feature type per primary probe, in primary probe order."""
    probe_ids = experiment.adata.var_names.astype(str)

    if isinstance(feature_types, pd.Series):
        labels = feature_types.copy()
        labels.index = labels.index.astype(str)
        if labels.index.duplicated().any():
            raise ValueError("Feature types contain duplicate probe IDs")
        extra = labels.index.difference(probe_ids)
        if len(extra) > 0:
            raise ValueError(f"Feature types given for unknown probes: {list(extra)}")
        labels = labels.reindex(probe_ids)
        if labels.isna().any():
            missing = list(probe_ids[labels.isna().to_numpy()])
            raise ValueError(f"Feature types missing for probes: {missing}")
        values = labels.tolist()
    else:
        values = list(feature_types)
        if len(values) != len(probe_ids):
            raise ValueError(
                f"Got {len(values)} feature types for {len(probe_ids)} probes"
            )

    return np.array([_category_name(v) for v in values], dtype=object)


def _append_probes(existing: ad.AnnData, new: ad.AnnData) -> ad.AnnData:
    """Concatenate probes of two tables sharing the same cells."""
    if not existing.obs_names.equals(new.obs_names):
        raise ValueError("Cannot append probes: cell axes differ")
    return ad.concat([existing, new], axis=1, join="outer", merge="same")


def split_alt_exps(
    experiment: TapestriExperiment,
    feature_types: Union[pd.Series, Sequence],
    ref=REFERENCE_CATEGORY,
    log: Optional[logging.Logger] = None,
) -> TapestriExperiment:
    """Split primary probes into auxiliary tables by feature type.

    Parameters
    ----------
    experiment : TapestriExperiment
        Experiment to split; not modified
    feature_types : pd.Series or sequence
        Feature type per probe; a Series indexed by probe ID, or a sequence
        aligned with the primary probe order
    ref : str or FeatureCategory
        Feature type that stays in the primary table
    log : logging.Logger, optional
        Logger instance

    Returns
    -------
    TapestriExperiment
        New experiment; existing auxiliary tables are kept, one new table
        per non-reference feature type in order of first appearance. Probes
        of a feature type that already has a table are appended after its
        current probes.

    Raises
    ------
    ValueError
        If feature types do not cover the primary probes exactly
    """
    log = log or logger
    ref = _category_name(ref)
    types = _align_feature_types(experiment, feature_types)
    adata = experiment.adata

    alt_exps = {name: alt.copy() for name, alt in experiment.alt_exps.items()}
    for name in pd.unique(pd.Series(types, dtype=object)):
        if name == ref:
            continue
        moved = adata[:, types == name].copy()
        if name in alt_exps:
            log.info(
                "Appending %d probe(s) to existing auxiliary table '%s'.",
                moved.n_vars,
                name,
            )
            moved = _append_probes(alt_exps[name], moved)
        alt_exps[name] = moved

    ref_mask = types == ref
    if not ref_mask.any():
        log.warning("No probes assigned to '%s'; primary table is empty.", ref)

    return TapestriExperiment(
        adata=adata[:, ref_mask].copy(),
        alt_exps=alt_exps,
        grna_probe=experiment.grna_probe,
        barcode_probe=experiment.barcode_probe,
        genome=experiment.genome,
    )


def move_non_genome_probes(
    experiment: TapestriExperiment,
    log: Optional[logging.Logger] = None,
) -> PartitionResult:
    """Move gRNA, barcode, chrY and other non-genomic probes to auxiliary tables.

    Probes are classified with the experiment's ``grna_probe`` and
    ``barcode_probe`` slots (see :func:`classify_probes`). Missing
    special probes or chrY probes are reported, not treated as errors, so
    this is safe to run by default.

    Parameters
    ----------
    experiment : TapestriExperiment
        Experiment to partition; not modified
    log : logging.Logger, optional
        Logger instance

    Returns
    -------
    PartitionResult
        ``partitioned`` is False, and ``experiment`` is the input object,
        when every probe is a CNV probe
    """
    log = log or logger
    classification = classify_probes(
        experiment.row_data,
        grna_probe=experiment.grna_probe,
        barcode_probe=experiment.barcode_probe,
        log=log,
    )
    messages = list(classification.messages)
    ref = _category_name(REFERENCE_CATEGORY)

    if (classification.categories == ref).all():
        log.info(NO_OP_MESSAGE)
        messages.append(NO_OP_MESSAGE)
        return PartitionResult(experiment=experiment, partitioned=False, messages=messages)

    partitioned = split_alt_exps(experiment, classification.categories, ref=ref, log=log)

    moved: Dict[str, List[str]] = {}
    for name in pd.unique(classification.categories):
        if name == ref:
            continue
        moved[name] = classification.members(name)
        message = f"Moved {len(moved[name])} probe(s) to auxiliary table '{name}'."
        log.info(message)
        messages.append(message)

    return PartitionResult(
        experiment=partitioned,
        partitioned=True,
        moved=moved,
        messages=messages,
    )
