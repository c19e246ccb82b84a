"""I/O utilities for karyotap.

Provides command logs and run summaries, probe manifest / count matrix
loading, and experiment directory reading and writing.
"""

from .logging import (
    attach_command_log,
    command_log_path,
    experiment_summary,
    write_run_summary,
)
from .experiment import (
    ensure_output_dir,
    load_cell_metadata,
    load_count_matrix,
    load_probe_manifest,
    read_experiment,
    write_experiment,
)

__all__ = [
    # Logging
    "attach_command_log",
    "command_log_path",
    "experiment_summary",
    "write_run_summary",
    # Experiment I/O
    "ensure_output_dir",
    "load_cell_metadata",
    "load_count_matrix",
    "load_probe_manifest",
    "read_experiment",
    "write_experiment",
]
