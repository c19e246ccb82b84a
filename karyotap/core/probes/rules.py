"""Classification rules for probe feature types.

Every probe gets exactly one FeatureCategory. A base category is set from
the chromosome, then override rules are applied in order, later rules
winning:

1. Base: chr 1-22 or X -> CNV, anything else -> otherProbeCounts
2. chr Y -> chrYCounts
3. Probe ID == gRNA probe -> grnaCounts (only when configured)
4. Probe ID == barcode probe -> barcodeCounts (only when configured)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

import numpy as np
import pandas as pd

from ..cytobands.overlaps import normalize_chromosome, strip_chromosome_prefix
from ..experiment.container import CHROMOSOME_COL

logger = logging.getLogger(__name__)


class FeatureCategory(str, Enum):
    """Feature types a probe can be assigned to."""

    CNV = "CNV"  # Genome-targeting probes used for copy number
    CHR_Y = "chrYCounts"
    GRNA = "grnaCounts"
    BARCODE = "barcodeCounts"
    OTHER = "otherProbeCounts"  # Non-genomic probes without a dedicated slot


# Category that stays in the primary table
REFERENCE_CATEGORY = FeatureCategory.CNV

CNV_CHROMOSOMES = frozenset([str(i) for i in range(1, 23)] + ["X"])
CHR_Y = "Y"


@dataclass(frozen=True)
class OverrideRule:
    """A rule that reassigns the probes it selects to a category.

    Attributes
    ----------
    name : str
        Short rule name
    category : FeatureCategory
        Category assigned to selected probes
    selects : Callable[[pd.DataFrame], np.ndarray]
        Returns a boolean mask over the rows of the probe metadata
    label : str
        Human-readable description of the selected probes, for messages
    """

    name: str
    category: FeatureCategory
    selects: Callable[[pd.DataFrame], np.ndarray]
    label: str = ""


@dataclass
class ClassificationResult:
    """Result of probe classification.

    Attributes
    ----------
    categories : pd.Series
        Category value per probe, indexed by probe ID in input order
    messages : List[str]
        Informational diagnostics produced while classifying
    """

    categories: pd.Series
    messages: List[str] = field(default_factory=list)

    def members(self, category) -> List[str]:
        """Probe IDs assigned to a category, in input order."""
        value = _category_name(category)
        return list(self.categories.index[(self.categories == value).to_numpy()])

    def counts(self) -> Dict[str, int]:
        """Number of probes per category present."""
        return {str(k): int(v) for k, v in self.categories.value_counts(sort=False).items()}


def _category_name(category) -> str:
    if isinstance(category, Enum):
        return str(category.value)
    return str(category)


def canonical_chromosomes(probes: pd.DataFrame) -> np.ndarray:
    """Chromosome names without the ``chr`` prefix (``chr7`` and ``7`` -> ``7``)."""
    if CHROMOSOME_COL not in probes.columns:
        raise ValueError(f"Probe metadata missing column: '{CHROMOSOME_COL}'")
    return np.array(
        [strip_chromosome_prefix(normalize_chromosome(c)) for c in probes[CHROMOSOME_COL]],
        dtype=object,
    )


def base_categories(probes: pd.DataFrame) -> np.ndarray:
    """Chromosome-based default category for each probe."""
    chroms = canonical_chromosomes(probes)
    is_cnv = np.isin(chroms, list(CNV_CHROMOSOMES))
    return np.where(is_cnv, FeatureCategory.CNV.value, FeatureCategory.OTHER.value).astype(object)


def _select_probe_id(probe_id: str) -> Callable[[pd.DataFrame], np.ndarray]:
    def selects(probes: pd.DataFrame) -> np.ndarray:
        return np.asarray(probes.index.astype(str) == probe_id, dtype=bool)

    return selects


def _select_chr_y(probes: pd.DataFrame) -> np.ndarray:
    return canonical_chromosomes(probes) == CHR_Y


def build_override_rules(
    grna_probe: Optional[str] = None,
    barcode_probe: Optional[str] = None,
    log: Optional[logging.Logger] = None,
) -> List[OverrideRule]:
    """Build the ordered override rules for a set of special probe IDs.

    Unset probe slots produce no rule; this is reported, not an error.

    Parameters
    ----------
    grna_probe : str, optional
        gRNA probe ID
    barcode_probe : str, optional
        Barcode probe ID
    log : logging.Logger, optional
        Logger for "not specified" messages

    Returns
    -------
    List[OverrideRule]
        Rules in application order
    """
    log = log or logger
    rules = [
        OverrideRule(
            name="chrY",
            category=FeatureCategory.CHR_Y,
            selects=_select_chr_y,
            label="chrY probe(s)",
        )
    ]

    if grna_probe is None:
        log.info("gRNA probe not specified.")
    else:
        rules.append(
            OverrideRule(
                name="grna",
                category=FeatureCategory.GRNA,
                selects=_select_probe_id(grna_probe),
                label=f"gRNA probe {grna_probe}",
            )
        )

    if barcode_probe is None:
        log.info("Barcode probe not specified.")
    else:
        rules.append(
            OverrideRule(
                name="barcode",
                category=FeatureCategory.BARCODE,
                selects=_select_probe_id(barcode_probe),
                label=f"barcode probe {barcode_probe}",
            )
        )

    return rules


def classify_probes(
    probes: pd.DataFrame,
    grna_probe: Optional[str] = None,
    barcode_probe: Optional[str] = None,
    rules: Optional[List[OverrideRule]] = None,
    log: Optional[logging.Logger] = None,
) -> ClassificationResult:
    """Assign each probe to exactly one FeatureCategory.

    Parameters
    ----------
    probes : pd.DataFrame
        Probe metadata indexed by probe ID with a ``chr`` column
    grna_probe : str, optional
        gRNA probe ID; ignored when ``rules`` is given
    barcode_probe : str, optional
        Barcode probe ID; ignored when ``rules`` is given
    rules : List[OverrideRule], optional
        Override rules to apply instead of :func:`build_override_rules`
    log : logging.Logger, optional
        Logger instance

    Returns
    -------
    ClassificationResult
        Categories indexed by probe ID plus diagnostic messages
    """
    log = log or logger
    messages: List[str] = []

    def report(message: str) -> None:
        messages.append(message)
        log.info(message)

    if grna_probe is None and rules is None:
        messages.append("gRNA probe not specified.")
    if barcode_probe is None and rules is None:
        messages.append("Barcode probe not specified.")

    if rules is None:
        rules = build_override_rules(grna_probe, barcode_probe, log=log)

    categories = base_categories(probes)

    for rule in rules:
        mask = np.asarray(rule.selects(probes), dtype=bool)
        if not mask.any():
            report(f"{rule.label or rule.name} not found in experiment.")
            continue
        categories[mask] = rule.category.value
        report(
            f"Assigning {rule.label or rule.name} {list(probes.index[mask])} "
            f"to '{rule.category.value}'."
        )

    other = categories == FeatureCategory.OTHER.value
    if other.any():
        report(
            f"Assigning other non-genomic probe(s) {list(probes.index[other])} "
            f"to '{FeatureCategory.OTHER.value}'."
        )

    series = pd.Series(
        categories, index=probes.index.astype(str), name="feature_type", dtype=object
    )
    return ClassificationResult(categories=series, messages=messages)
