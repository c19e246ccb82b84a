"""Command logs and run summaries for karyotap.

Every CLI command mirrors the ``karyotap`` package logger into a
timestamped file under ``<out>/logs/`` and appends a YAML document to
``<out>/run_summary.yaml`` describing the experiment it wrote.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

PathLike = Union[str, Path]

PACKAGE_LOGGER = "karyotap"
LOG_DIRNAME = "logs"
RUN_SUMMARY_FILENAME = "run_summary.yaml"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Marks handlers installed by attach_command_log so reruns replace them
_COMMAND_HANDLER_ATTR = "_karyotap_command_log"


def command_log_path(out_dir: PathLike, command: str) -> Path:
    """Timestamped log path for a command, e.g. logs/move_probes_20261017_080530.log."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    name = command.replace("-", "_")
    return Path(out_dir) / LOG_DIRNAME / f"{name}_{timestamp}.log"


def attach_command_log(
    out_dir: PathLike,
    command: str,
    level: int = logging.INFO,
) -> Path:
    """Mirror package log records into a per-command file.

    A file handler from an earlier command in the same process is closed
    and replaced; other handlers on the package logger are left alone.

    Parameters
    ----------
    out_dir : PathLike
        Output experiment directory
    command : str
        CLI command name
    level : int
        Minimum level written to the file (default: INFO)

    Returns
    -------
    Path
        Path of the log file
    """
    path = command_log_path(out_dir, command)
    path.parent.mkdir(parents=True, exist_ok=True)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        if getattr(handler, _COMMAND_HANDLER_ATTR, False):
            package_logger.removeHandler(handler)
            handler.close()

    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    setattr(handler, _COMMAND_HANDLER_ATTR, True)
    package_logger.addHandler(handler)
    if package_logger.getEffectiveLevel() > level:
        package_logger.setLevel(level)
    return path


def experiment_summary(experiment) -> Dict[str, Any]:
    """Table sizes, special probe slots and cytoband coverage of an experiment.

    Parameters
    ----------
    experiment : TapestriExperiment
        Experiment to describe

    Returns
    -------
    Dict[str, Any]
        YAML-serializable summary; ``n_without_cytoband`` is only present
        once the primary table has been annotated
    """
    summary: Dict[str, Any] = {
        "genome": experiment.genome,
        "n_cells": int(experiment.n_cells),
        "n_probes_primary": int(experiment.n_probes),
        "alt_exps": {name: int(alt.n_vars) for name, alt in experiment.alt_exps.items()},
        "grna_probe": experiment.grna_probe,
        "barcode_probe": experiment.barcode_probe,
    }
    var = experiment.row_data
    if "cytoband" in var.columns:
        unmatched = var["cytoband"].isna().to_numpy()
        summary["n_without_cytoband"] = int(unmatched.sum())
        summary["probes_without_cytoband"] = [str(p) for p in var.index[unmatched]]
    if "arm" in var.columns:
        counts = var["arm"].value_counts(sort=False)
        summary["probes_per_arm"] = {str(k): int(v) for k, v in counts.items() if v > 0}
    return summary


def write_run_summary(
    out_dir: PathLike,
    command: str,
    experiment,
    *,
    partition=None,
    extra: Optional[Dict[str, Any]] = None,
) -> Path:
    """Append a YAML run summary document to ``<out_dir>/run_summary.yaml``.

    Parameters
    ----------
    out_dir : PathLike
        Output experiment directory
    command : str
        CLI command name
    experiment : TapestriExperiment
        Experiment written by the command
    partition : PartitionResult, optional
        Result of moving non-genomic probes; recorded under ``partition``
    extra : dict, optional
        Additional fields (inputs, config, log path)

    Returns
    -------
    Path
        Path of the summary file
    """
    record: Dict[str, Any] = {
        "command": command,
        "timestamp": datetime.now().isoformat(timespec="seconds"),
    }
    record.update(extra or {})
    record["experiment"] = experiment_summary(experiment)
    if partition is not None:
        record["partition"] = partition.to_dict()

    path = Path(out_dir) / RUN_SUMMARY_FILENAME
    path.parent.mkdir(parents=True, exist_ok=True)
    yaml_text = yaml.safe_dump(record, sort_keys=False).rstrip("\n")
    with path.open("a", encoding="utf-8") as handle:
        handle.write(f"{yaml_text}\n---\n")

    logging.getLogger(__name__).info("Run summary appended to %s", path)
    return path
