"""Unit tests for the command-line interface."""

import pytest
import yaml
from click.testing import CliRunner

from karyotap import __version__
from karyotap.cli import cli
from karyotap.io import read_experiment


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def input_files(tmp_path, mock_counts, mock_manifest):
    counts_path = tmp_path / "counts.csv"
    manifest_path = tmp_path / "probes.tsv"
    mock_counts.to_csv(counts_path)
    mock_manifest.to_csv(manifest_path, sep="\t", index=False)
    return counts_path, manifest_path


class TestCli:
    """Tests for the karyotap command group."""

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("build", "cytobands", "move-probes"):
            assert command in result.output


class TestBuildCommand:
    """Tests for `karyotap build`."""

    def test_build_with_panel(self, runner, tmp_path, input_files):
        counts_path, manifest_path = input_files
        out = tmp_path / "exp"
        result = runner.invoke(cli, [
            "build", "--counts", str(counts_path), "--manifest", str(manifest_path),
            "--panel-id", "CO261", "--out", str(out),
        ])
        assert result.exit_code == 0, result.output
        assert "4 CNV probes" in result.output

        exp = read_experiment(out)
        assert exp.alt_exp_names == ["chrYCounts", "grnaCounts", "barcodeCounts"]

        docs = [d for d in yaml.safe_load_all((out / "run_summary.yaml").read_text()) if d]
        assert docs[-1]["command"] == "build"
        assert docs[-1]["experiment"]["alt_exps"]["grnaCounts"] == 1
        assert docs[-1]["partition"]["moved"]["grnaCounts"] == ["AMPL205666"]
        assert docs[-1]["experiment"]["n_without_cytoband"] == 0
        assert list((out / "logs").glob("build_*.log"))

    def test_build_with_config_file(self, runner, tmp_path, input_files,
                                    sample_experiment_config):
        counts_path, manifest_path = input_files
        out = tmp_path / "exp"
        result = runner.invoke(cli, [
            "build", "--counts", str(counts_path), "--manifest", str(manifest_path),
            "--config", str(sample_experiment_config), "--no-move-probes",
            "--out", str(out),
        ])
        assert result.exit_code == 0, result.output
        exp = read_experiment(out)
        assert exp.n_probes == 7
        assert exp.grna_probe == "AMPL205666"

    def test_build_unsupported_genome(self, runner, tmp_path, input_files):
        counts_path, manifest_path = input_files
        result = runner.invoke(cli, [
            "build", "--counts", str(counts_path), "--manifest", str(manifest_path),
            "--genome", "hg38", "--out", str(tmp_path / "exp"),
        ])
        assert result.exit_code == 1
        assert "hg19" in result.output

    def test_build_invalid_config_file(self, runner, tmp_path, input_files):
        counts_path, manifest_path = input_files
        config_path = tmp_path / "bad.yaml"
        config_path.write_text(yaml.safe_dump({"experiment": {"panel_id": "CO261", "bogus": 1}}))
        out = tmp_path / "exp"
        result = runner.invoke(cli, [
            "build", "--counts", str(counts_path), "--manifest", str(manifest_path),
            "--config", str(config_path), "--out", str(out),
        ])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Invalid experiment configuration" in result.output
        assert not out.exists()


class TestAnnotateAndMoveCommands:
    """Tests for `karyotap cytobands` and `karyotap move-probes`."""

    @pytest.fixture
    def raw_dir(self, runner, tmp_path, input_files):
        counts_path, manifest_path = input_files
        out = tmp_path / "raw"
        result = runner.invoke(cli, [
            "build", "--counts", str(counts_path), "--manifest", str(manifest_path),
            "--no-cytobands", "--no-move-probes", "--out", str(out),
        ])
        assert result.exit_code == 0, result.output
        return out

    def test_cytobands(self, runner, tmp_path, raw_dir):
        out = tmp_path / "annotated"
        result = runner.invoke(cli, ["cytobands", "--input", str(raw_dir), "--out", str(out)])
        assert result.exit_code == 0, result.output
        assert "2 probe(s) without a band" in result.output
        exp = read_experiment(out)
        assert exp.row_data.loc["AMPL1", "cytoband"] == "p36.33"

    def test_cytobands_unsupported_genome(self, runner, tmp_path, raw_dir):
        result = runner.invoke(cli, [
            "cytobands", "--input", str(raw_dir), "--genome", "hg38",
            "--out", str(tmp_path / "x"),
        ])
        assert result.exit_code == 1

    def test_move_probes(self, runner, tmp_path, raw_dir):
        out = tmp_path / "split"
        result = runner.invoke(cli, [
            "move-probes", "--input", str(raw_dir), "--grna-probe", "AMPL205666",
            "--barcode-probe", "AMPL205334", "--out", str(out),
        ])
        assert result.exit_code == 0, result.output
        assert "grnaCounts: 1 probe(s)" in result.output
        exp = read_experiment(out)
        assert exp.probe_ids == ["AMPL1", "AMPL2", "AMPL3", "AMPL4"]
        assert exp.grna_probe == "AMPL205666"
        assert list((out / "logs").glob("move_probes_*.log"))

    def test_move_probes_new_grna_probe_appends(self, runner, tmp_path, raw_dir):
        split = tmp_path / "split"
        runner.invoke(cli, [
            "move-probes", "--input", str(raw_dir), "--grna-probe", "AMPL205666",
            "--out", str(split),
        ])
        out = tmp_path / "again"
        result = runner.invoke(cli, [
            "move-probes", "--input", str(split), "--grna-probe", "AMPL3", "--out", str(out),
        ])
        assert result.exit_code == 0, result.output
        assert "grnaCounts: 1 probe(s)" in result.output

        exp = read_experiment(out)
        assert list(exp.alt_exp("grnaCounts").var_names) == ["AMPL205666", "AMPL3"]
        assert sorted(exp.combined_row_data().index) == sorted(
            ["AMPL1", "AMPL2", "AMPL3", "AMPL4", "AMPL5", "AMPL205666", "AMPL205334"]
        )

    def test_move_probes_no_op(self, runner, tmp_path, raw_dir):
        split = tmp_path / "split"
        runner.invoke(cli, ["move-probes", "--input", str(raw_dir), "--out", str(split)])
        result = runner.invoke(cli, [
            "move-probes", "--input", str(split), "--out", str(tmp_path / "again"),
        ])
        assert result.exit_code == 0, result.output
        assert "experiment unchanged" in result.output
