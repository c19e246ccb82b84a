"""TapestriExperiment container.

Wraps an AnnData primary table (cells x probes) together with named
auxiliary tables that hold probes split out of the primary table. All
tables share the primary table's cell axis.

Probe metadata ("row data") lives in ``adata.var`` and cell metadata
("column data") in ``adata.obs``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import anndata as ad
import pandas as pd

PROBE_ID_COL = "probe.id"
CHROMOSOME_COL = "chr"
START_COL = "start.pos"
END_COL = "end.pos"

MANIFEST_COLUMNS = [PROBE_ID_COL, CHROMOSOME_COL, START_COL, END_COL]


@dataclass
class TapestriExperiment:
    """Primary probe count table plus auxiliary tables.

    Attributes
    ----------
    adata : AnnData
        Primary table; obs = cells, var = probes
    alt_exps : Dict[str, AnnData]
        Auxiliary tables keyed by name; each shares ``adata.obs_names``
    grna_probe : str, optional
        Probe ID of the gRNA probe, None if not specified
    barcode_probe : str, optional
        Probe ID of the barcode probe, None if not specified
    genome : str
        Reference genome the probe coordinates refer to
    """

    adata: ad.AnnData
    alt_exps: Dict[str, ad.AnnData] = field(default_factory=dict)
    grna_probe: Optional[str] = None
    barcode_probe: Optional[str] = None
    genome: str = "hg19"

    @property
    def row_data(self) -> pd.DataFrame:
        """Probe metadata of the primary table."""
        return self.adata.var

    @property
    def col_data(self) -> pd.DataFrame:
        """Cell metadata, shared by every table."""
        return self.adata.obs

    @property
    def probe_ids(self) -> List[str]:
        return list(self.adata.var_names)

    @property
    def cell_ids(self) -> List[str]:
        return list(self.adata.obs_names)

    @property
    def n_probes(self) -> int:
        return self.adata.n_vars

    @property
    def n_cells(self) -> int:
        return self.adata.n_obs

    @property
    def alt_exp_names(self) -> List[str]:
        return list(self.alt_exps.keys())

    def alt_exp(self, name: str) -> ad.AnnData:
        """Return an auxiliary table by name.

        Raises
        ------
        KeyError
            If no auxiliary table has that name
        """
        if name not in self.alt_exps:
            raise KeyError(
                f"No auxiliary table named '{name}'. "
                f"Available: {self.alt_exp_names}"
            )
        return self.alt_exps[name]

    def copy(self) -> "TapestriExperiment":
        """Deep copy of the primary and all auxiliary tables."""
        return TapestriExperiment(
            adata=self.adata.copy(),
            alt_exps={name: alt.copy() for name, alt in self.alt_exps.items()},
            grna_probe=self.grna_probe,
            barcode_probe=self.barcode_probe,
            genome=self.genome,
        )

    def combined_row_data(self, main_name: str = "CNV") -> pd.DataFrame:
        """Unified probe metadata across the primary and auxiliary tables.

        Parameters
        ----------
        main_name : str
            ``feature_type`` label for probes of the primary table

        Returns
        -------
        pd.DataFrame
            Primary rows first, then each auxiliary table in order, with a
            ``feature_type`` column naming the table each probe lives in
        """
        frames = []
        for name, adata in [(main_name, self.adata), *self.alt_exps.items()]:
            var = adata.var.copy()
            # Mixed category sets across tables cannot be concatenated as-is
            for col in var.columns:
                if isinstance(var[col].dtype, pd.CategoricalDtype):
                    var[col] = var[col].astype(object)
            var["feature_type"] = name
            frames.append(var)
        return pd.concat(frames, axis=0)

    def validate(self) -> None:
        """Check the cross-table invariants.

        Raises
        ------
        ValueError
            If an auxiliary table's cells differ from the primary table's
            (identity or order), or a probe ID appears in more than one table
        """
        seen = set(self.adata.var_names)
        if len(seen) != self.adata.n_vars:
            raise ValueError("Duplicate probe IDs in primary table")

        for name, alt in self.alt_exps.items():
            if not alt.obs_names.equals(self.adata.obs_names):
                raise ValueError(
                    f"Auxiliary table '{name}' does not share the primary cell axis"
                )
            overlap = seen.intersection(alt.var_names)
            if overlap:
                raise ValueError(
                    f"Probe IDs in more than one table ('{name}'): {sorted(overlap)}"
                )
            seen.update(alt.var_names)

    def __repr__(self) -> str:
        alt = ", ".join(f"{k}({v.n_vars})" for k, v in self.alt_exps.items())
        return (
            f"TapestriExperiment(n_cells={self.n_cells}, n_probes={self.n_probes}, "
            f"alt_exps=[{alt}], grna_probe={self.grna_probe!r}, "
            f"barcode_probe={self.barcode_probe!r}, genome={self.genome!r})"
        )
