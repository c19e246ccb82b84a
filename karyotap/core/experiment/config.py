"""Configuration for building a TapestriExperiment.

All parameters are configurable via YAML so the same panel layout can be
reused across runs.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from ...config import get_panel_config, normalize_probe_slot


@dataclass
class ExperimentConfig:
    """Configuration for experiment construction.

    Attributes
    ----------
    genome : str
        Reference genome for cytoband annotation (only "hg19" is supported)
    panel_id : str, optional
        Panel preset used to look up special probe IDs
    grna_probe : str, optional
        Probe ID of the gRNA probe; overrides the panel preset
    barcode_probe : str, optional
        Probe ID of the lentiviral barcode probe; overrides the panel preset
    annotate_cytobands : bool
        Whether to add cytoband/arm columns during construction
    move_non_genome_probes : bool
        Whether to move non-genomic probes to auxiliary tables
    verbose : bool
        Whether to log progress messages
    """

    genome: str = "hg19"
    panel_id: Optional[str] = None
    grna_probe: Optional[str] = None
    barcode_probe: Optional[str] = None
    annotate_cytobands: bool = True
    move_non_genome_probes: bool = True
    verbose: bool = True

    def __post_init__(self):
        self.grna_probe = normalize_probe_slot(self.grna_probe)
        self.barcode_probe = normalize_probe_slot(self.barcode_probe)
        if self.panel_id is not None:
            self.panel_id = str(self.panel_id).strip() or None

    def resolve_special_probes(self) -> Tuple[Optional[str], Optional[str]]:
        """Resolve (grna_probe, barcode_probe) from explicit IDs and panel.

        Explicit IDs take precedence over the panel preset.

        Returns
        -------
        Tuple[Optional[str], Optional[str]]
            (grna_probe, barcode_probe)

        Raises
        ------
        ValueError
            If panel_id is set but unknown
        """
        grna_probe = self.grna_probe
        barcode_probe = self.barcode_probe

        if self.panel_id is not None:
            panel = get_panel_config(self.panel_id)
            if grna_probe is None:
                grna_probe = panel.grna_probe
            if barcode_probe is None:
                barcode_probe = panel.barcode_probe

        return grna_probe, barcode_probe

    @classmethod
    def from_yaml(cls, path: Path) -> "ExperimentConfig":
        """Load configuration from YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        # Handle nested experiment section
        if "experiment" in data:
            data = data["experiment"] or {}

        return cls(**data)

    @classmethod
    def default(cls) -> "ExperimentConfig":
        """Create default configuration."""
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "genome": self.genome,
            "panel_id": self.panel_id,
            "grna_probe": self.grna_probe,
            "barcode_probe": self.barcode_probe,
            "annotate_cytobands": self.annotate_cytobands,
            "move_non_genome_probes": self.move_non_genome_probes,
            "verbose": self.verbose,
        }
