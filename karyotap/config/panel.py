"""Centralized panel-specific configuration.

Tapestri panels carry a small number of probes that do not target the
endogenous genome (a gRNA probe, a lentiviral barcode probe). This module
keeps the probe IDs for known panels in one place so experiments can be
built with ``panel_id="CO261"`` instead of spelling the IDs out.

Example
-------
>>> from karyotap.config import get_panel_config
>>> config = get_panel_config("co261")
>>> config.grna_probe
'AMPL205666'
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import yaml

NOT_SPECIFIED = "not specified"


def normalize_probe_slot(value: Optional[str]) -> Optional[str]:
    """Normalize a special-probe slot value.

    Empty strings and the legacy ``"not specified"`` sentinel map to None.

    Parameters
    ----------
    value : str, optional
        Raw slot value from configuration

    Returns
    -------
    Optional[str]
        Probe ID or None if the slot is unset
    """
    if value is None:
        return None
    value = str(value).strip()
    if not value or value.lower() == NOT_SPECIFIED:
        return None
    return value


@dataclass
class PanelConfig:
    """Configuration for a Tapestri panel.

    Attributes
    ----------
    panel_id : str
        Canonical panel identifier (e.g., "CO261")
    grna_probe : str, optional
        Probe ID of the gRNA probe, None if the panel has none
    barcode_probe : str, optional
        Probe ID of the lentiviral barcode probe, None if the panel has none
    aliases : List[str]
        Alternative names for this panel
    description : str
        Free-text description
    """

    panel_id: str
    grna_probe: Optional[str] = None
    barcode_probe: Optional[str] = None
    aliases: List[str] = field(default_factory=list)
    description: str = ""

    def __post_init__(self):
        self.grna_probe = normalize_probe_slot(self.grna_probe)
        self.barcode_probe = normalize_probe_slot(self.barcode_probe)

    @classmethod
    def from_yaml(cls, path: Path) -> "PanelConfig":
        """Load panel config from YAML file.

        Parameters
        ----------
        path : Path
            Path to YAML file

        Returns
        -------
        PanelConfig
            Loaded configuration
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        probes = data.get("probes", {})
        return cls(
            panel_id=str(data.get("panel", "")),
            grna_probe=probes.get("grna"),
            barcode_probe=probes.get("barcode"),
            aliases=[str(a) for a in data.get("aliases", [])],
            description=data.get("description", ""),
        )


# =============================================================================
# Registry
# =============================================================================

# Global registry of panel configurations, keyed by normalized panel ID
PANEL_CONFIG_REGISTRY: Dict[str, PanelConfig] = {}

# Aliases map panel aliases to normalized panel IDs
PANEL_ALIASES: Dict[str, str] = {}

_BUILTINS_LOADED = False


def _normalize_panel_id(panel_id: str) -> str:
    return str(panel_id).strip().lower().replace(" ", "_").replace("-", "_")


def register_panel_config(config: PanelConfig) -> None:
    """Register a panel configuration.

    Parameters
    ----------
    config : PanelConfig
        Configuration to register
    """
    key = _normalize_panel_id(config.panel_id)
    PANEL_CONFIG_REGISTRY[key] = config

    for alias in config.aliases:
        PANEL_ALIASES[_normalize_panel_id(alias)] = key


def get_panel_config(panel_id: str) -> PanelConfig:
    """Get panel configuration by ID or alias.

    Parameters
    ----------
    panel_id : str
        Panel ID or alias (case-insensitive)

    Returns
    -------
    PanelConfig
        Panel configuration

    Raises
    ------
    ValueError
        If the panel is not registered
    """
    _ensure_builtins_loaded()

    key = _normalize_panel_id(panel_id)
    if key in PANEL_ALIASES:
        key = PANEL_ALIASES[key]

    if key not in PANEL_CONFIG_REGISTRY:
        available = [c.panel_id for c in PANEL_CONFIG_REGISTRY.values()]
        raise ValueError(
            f"Unknown panel: '{panel_id}'. "
            f"Available: {sorted(available)}. "
            "Specify grna_probe/barcode_probe explicitly for custom panels."
        )

    return PANEL_CONFIG_REGISTRY[key]


def list_available_panels() -> List[str]:
    """List all registered panel IDs.

    Returns
    -------
    List[str]
        Registered panel IDs (canonical spelling)
    """
    _ensure_builtins_loaded()
    return sorted(c.panel_id for c in PANEL_CONFIG_REGISTRY.values())


def _ensure_builtins_loaded() -> None:
    global _BUILTINS_LOADED
    if _BUILTINS_LOADED:
        return

    _load_builtin_configs()
    _BUILTINS_LOADED = True


def _load_builtin_configs() -> None:
    """Load builtin panel configs from karyotap/data/panels/*.yaml."""
    panels_dir = Path(__file__).parent.parent / "data" / "panels"

    if not panels_dir.exists():
        return

    for yaml_path in sorted(panels_dir.glob("*.yaml")):
        try:
            config = PanelConfig.from_yaml(yaml_path)
        except (OSError, yaml.YAMLError) as e:
            import warnings
            warnings.warn(f"Failed to load panel config from {yaml_path}: {e}")
            continue
        if config.panel_id:
            register_panel_config(config)
