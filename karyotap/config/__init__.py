"""Centralized configuration for karyotap.

Panel presets map a panel ID to the IDs of its non-genomic probes
(gRNA probe, lentiviral barcode probe).

Example
-------
>>> from karyotap.config import get_panel_config, list_available_panels
>>> print(list_available_panels())
['CO261']
>>> config = get_panel_config("CO261")
>>> print(config.barcode_probe)
AMPL205334
"""

from .panel import (
    NOT_SPECIFIED,
    PanelConfig,
    get_panel_config,
    list_available_panels,
    normalize_probe_slot,
    register_panel_config,
)

__all__ = [
    "NOT_SPECIFIED",
    "PanelConfig",
    "get_panel_config",
    "list_available_panels",
    "normalize_probe_slot",
    "register_panel_config",
]
