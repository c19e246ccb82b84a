"""Command-line interface for karyotap.

Provides CLI commands for building experiments, annotating cytobands and
moving non-genomic probes to auxiliary tables.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from karyotap import __version__


def setup_logging(verbose: bool = False, debug: bool = False) -> logging.Logger:
    """Setup logging for CLI commands."""
    level = logging.DEBUG if debug else (logging.INFO if verbose else logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    return logging.getLogger("karyotap")


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="karyotap")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, debug: bool) -> None:
    """karyotap: probe annotation for Tapestri single-cell DNA experiments.

    Examples:

        # Build an experiment from counts and a probe manifest
        karyotap build --counts counts.csv --manifest probes.csv --panel-id CO261 --out exp/

        # (Re)annotate cytobands and chromosome arms
        karyotap cytobands --input exp/ --out exp_annotated/

        # Move gRNA, barcode, chrY and other non-genomic probes
        karyotap move-probes --input exp/ --out exp_split/
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug
    ctx.obj["logger"] = setup_logging(verbose, debug)


@cli.command()
@click.option("--counts", "counts_path", required=True, type=click.Path(exists=True),
              help="Probe x cell count matrix (CSV/TSV)")
@click.option("--manifest", "manifest_path", required=True, type=click.Path(exists=True),
              help="Probe manifest with probe.id, chr, start.pos, end.pos")
@click.option("--cell-metadata", "cell_metadata_path", type=click.Path(exists=True),
              help="Cell metadata (CSV/TSV, first column = cell barcode)")
@click.option("--config", "-c", type=click.Path(exists=True),
              help="Experiment configuration file (YAML)")
@click.option("--panel-id", help="Panel preset for special probe IDs (e.g. CO261)")
@click.option("--grna-probe", help="gRNA probe ID (overrides panel preset)")
@click.option("--barcode-probe", help="Barcode probe ID (overrides panel preset)")
@click.option("--genome", help="Reference genome for cytobands (default: hg19)")
@click.option("--cytobands/--no-cytobands", default=None,
              help="Annotate probes with cytobands and arms")
@click.option("--move-probes/--no-move-probes", default=None,
              help="Move non-genomic probes to auxiliary tables")
@click.option("--out", "-o", "output_path", required=True, type=click.Path(),
              help="Output experiment directory")
@click.pass_context
def build(
    ctx: click.Context,
    counts_path: str,
    manifest_path: str,
    cell_metadata_path: Optional[str],
    config: Optional[str],
    panel_id: Optional[str],
    grna_probe: Optional[str],
    barcode_probe: Optional[str],
    genome: Optional[str],
    cytobands: Optional[bool],
    move_probes: Optional[bool],
    output_path: str,
) -> None:
    """Build a TapestriExperiment from counts and a probe manifest."""
    logger = ctx.obj["logger"]

    # Import here to avoid slow startup
    from karyotap.core.experiment import ExperimentConfig, create_tapestri_experiment
    from karyotap.core.probes import move_non_genome_probes
    from karyotap.io import (
        attach_command_log,
        ensure_output_dir,
        load_cell_metadata,
        load_count_matrix,
        load_probe_manifest,
        write_experiment,
        write_run_summary,
    )

    overrides = {
        "panel_id": panel_id,
        "grna_probe": grna_probe,
        "barcode_probe": barcode_probe,
        "genome": genome,
        "annotate_cytobands": cytobands,
        "move_non_genome_probes": move_probes,
    }

    try:
        cfg = ExperimentConfig.from_yaml(Path(config)) if config else ExperimentConfig()
        values = cfg.to_dict()
        values.update({k: v for k, v in overrides.items() if v is not None})
        cfg = ExperimentConfig(**values)
    except (TypeError, ValueError) as e:
        _fail(f"Invalid experiment configuration: {e}")

    out_dir = ensure_output_dir(output_path)
    log_path = attach_command_log(out_dir, "build")
    logger.info(f"Counts: {counts_path}")
    logger.info(f"Manifest: {manifest_path}")

    # Partition separately so the run summary can record what moved
    build_cfg = ExperimentConfig(**{**cfg.to_dict(), "move_non_genome_probes": False})
    partition = None
    try:
        counts = load_count_matrix(counts_path)
        manifest = load_probe_manifest(manifest_path)
        cell_metadata = load_cell_metadata(cell_metadata_path) if cell_metadata_path else None
        experiment = create_tapestri_experiment(counts, manifest, cell_metadata, config=build_cfg)
    except (ValueError, FileNotFoundError) as e:
        _fail(str(e))

    if cfg.move_non_genome_probes:
        partition = move_non_genome_probes(experiment)
        experiment = partition.experiment

    write_experiment(experiment, out_dir)
    write_run_summary(
        out_dir,
        "build",
        experiment,
        partition=partition,
        extra={
            "inputs": {"counts": str(counts_path), "manifest": str(manifest_path)},
            "config": cfg.to_dict(),
            "log": str(log_path),
        },
    )

    click.echo(f"Experiment built: {experiment.n_cells} cells, {experiment.n_probes} CNV probes")
    click.echo(f"Output saved to: {out_dir}")


@cli.command()
@click.option("--input", "-i", "input_path", required=True, type=click.Path(exists=True),
              help="Input experiment directory")
@click.option("--genome", default="hg19", help="Reference genome (only hg19 is supported)")
@click.option("--out", "-o", "output_path", required=True, type=click.Path(),
              help="Output experiment directory")
@click.pass_context
def cytobands(
    ctx: click.Context,
    input_path: str,
    genome: str,
    output_path: str,
) -> None:
    """Add cytoband and chromosome arm columns to probe metadata."""
    logger = ctx.obj["logger"]

    from karyotap.core.cytobands import get_cytobands, resolve_genome
    from karyotap.io import (
        attach_command_log,
        ensure_output_dir,
        experiment_summary,
        read_experiment,
        write_experiment,
        write_run_summary,
    )

    try:
        genome = resolve_genome(genome)
    except ValueError as e:
        _fail(str(e))

    out_dir = ensure_output_dir(output_path)
    log_path = attach_command_log(out_dir, "cytobands")

    logger.info("Loading experiment...")
    experiment = read_experiment(input_path)
    logger.info(f"Loaded {experiment.n_cells} cells, {experiment.n_probes} probes")

    experiment = get_cytobands(experiment, genome=genome)
    write_experiment(experiment, out_dir)
    write_run_summary(
        out_dir,
        "cytobands",
        experiment,
        extra={"input": str(input_path), "log": str(log_path)},
    )

    n_unmatched = experiment_summary(experiment)["n_without_cytoband"]
    click.echo(f"Cytobands added from {genome} ({n_unmatched} probe(s) without a band)")
    click.echo(f"Output saved to: {out_dir}")


@cli.command(name="move-probes")
@click.option("--input", "-i", "input_path", required=True, type=click.Path(exists=True),
              help="Input experiment directory")
@click.option("--grna-probe", help="Override the experiment's gRNA probe ID")
@click.option("--barcode-probe", help="Override the experiment's barcode probe ID")
@click.option("--out", "-o", "output_path", required=True, type=click.Path(),
              help="Output experiment directory")
@click.pass_context
def move_probes(
    ctx: click.Context,
    input_path: str,
    grna_probe: Optional[str],
    barcode_probe: Optional[str],
    output_path: str,
) -> None:
    """Move gRNA, barcode, chrY and other non-genomic probes to auxiliary tables."""
    logger = ctx.obj["logger"]

    from karyotap.config import normalize_probe_slot
    from karyotap.core.probes import move_non_genome_probes
    from karyotap.io import (
        attach_command_log,
        ensure_output_dir,
        read_experiment,
        write_experiment,
        write_run_summary,
    )

    out_dir = ensure_output_dir(output_path)
    log_path = attach_command_log(out_dir, "move-probes")

    experiment = read_experiment(input_path)
    logger.info(f"Loaded {experiment.n_cells} cells, {experiment.n_probes} probes")

    if grna_probe is not None:
        experiment.grna_probe = normalize_probe_slot(grna_probe)
    if barcode_probe is not None:
        experiment.barcode_probe = normalize_probe_slot(barcode_probe)

    result = move_non_genome_probes(experiment)
    write_experiment(result.experiment, out_dir)
    write_run_summary(
        out_dir,
        "move-probes",
        result.experiment,
        partition=result,
        extra={"input": str(input_path), "log": str(log_path)},
    )

    if result.partitioned:
        for name, ids in result.moved.items():
            click.echo(f"  {name}: {len(ids)} probe(s)")
    else:
        click.echo("No non-genomic probe IDs found; experiment unchanged")
    click.echo(f"Output saved to: {out_dir}")


def main() -> None:
    """Main entry point for CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
