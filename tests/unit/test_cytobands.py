"""Unit tests for the reference cytoband table and the arm annotator."""

import logging

import numpy as np
import pandas as pd
import pytest

from karyotap.core.cytobands import (
    SUPPORTED_GENOMES,
    UnsupportedGenomeError,
    annotate_probes,
    build_probe_intervals,
    compute_arms,
    find_overlaps,
    get_cytoband_table,
    get_cytobands,
    load_cytoband_table,
    resolve_genome,
)


def _probes(rows):
    df = pd.DataFrame(rows, columns=["probe.id", "chr", "start.pos", "end.pos"])
    df.index = df["probe.id"].tolist()
    return df


class TestReferenceTable:
    """Tests for the bundled hg19 table."""

    def test_supported_genomes(self):
        assert SUPPORTED_GENOMES == ("hg19",)

    def test_resolve_genome_case_insensitive(self):
        assert resolve_genome("HG19") == "hg19"

    @pytest.mark.parametrize("genome", ["hg38", "mm10", ""])
    def test_unsupported_genome(self, genome):
        with pytest.raises(UnsupportedGenomeError, match="Only \"hg19\""):
            resolve_genome(genome)

    def test_unsupported_genome_is_value_error(self):
        with pytest.raises(ValueError):
            get_cytoband_table("hg38")

    def test_table_columns(self):
        table = get_cytoband_table("hg19")
        assert list(table.columns) == ["chromosome", "start", "end", "cytoband", "stain"]

    def test_table_covers_standard_chromosomes(self):
        table = get_cytoband_table("hg19")
        expected = {f"chr{i}" for i in range(1, 23)} | {"chrX", "chrY"}
        assert set(table["chromosome"]) == expected

    def test_coordinates_are_one_based_closed(self):
        table = get_cytoband_table("hg19")
        first = table.iloc[0]
        assert first["chromosome"] == "chr1"
        assert first["start"] == 1
        assert first["end"] == 2300000
        assert first["cytoband"] == "p36.33"
        assert (table["start"] <= table["end"]).all()

    def test_bands_start_with_arm(self):
        table = get_cytoband_table("hg19")
        assert table["cytoband"].str[0].isin(["p", "q"]).all()

    def test_table_is_cached(self):
        assert load_cytoband_table("hg19") is load_cytoband_table("hg19")

    def test_get_returns_copy(self):
        table = get_cytoband_table("hg19")
        table.loc[0, "cytoband"] = "modified"
        assert load_cytoband_table("hg19").loc[0, "cytoband"] == "p36.33"


class TestComputeArms:
    """Tests for compute_arms."""

    def test_arm_from_band(self):
        arms = compute_arms(
            pd.Series(["chr1", "chr1", "chrX", "chr12"]),
            pd.Series(["p36.33", "q21.1", "p22.33", "q24.31"]),
        )
        assert list(arms) == ["1p", "1q", "Xp", "12q"]

    def test_levels_in_first_encountered_order(self):
        arms = compute_arms(
            pd.Series(["chr7", "chr1", "chr7", "chr1"]),
            pd.Series(["q11.21", "p36.33", "p22.3", "p36.32"]),
        )
        assert list(arms.categories) == ["7q", "1p", "7p"]

    def test_null_band_gives_null_arm(self):
        arms = compute_arms(
            pd.Series(["chr1", "chr3"]),
            pd.Series(["p36.33", None], dtype=object),
        )
        assert arms[0] == "1p"
        assert pd.isna(arms[1])
        assert list(arms.categories) == ["1p"]

    def test_all_null(self):
        arms = compute_arms(pd.Series(["gRNA"]), pd.Series([None], dtype=object))
        assert pd.isna(arms[0])
        assert len(arms.categories) == 0


class TestBuildProbeIntervals:
    """Tests for build_probe_intervals."""

    def test_normalizes_chromosomes(self):
        queries = build_probe_intervals(_probes([
            ("P1", "1", 10, 20),
            ("P2", "chrX", 30, 40),
            ("P3", "gRNA", 1, 100),
        ]))
        assert queries["chromosome"].tolist() == ["chr1", "chrX", "gRNA"]
        assert queries["id"].tolist() == ["P1", "P2", "P3"]

    def test_skips_probes_without_coordinates(self):
        queries = build_probe_intervals(_probes([
            ("P1", "1", 10, 20),
            ("P2", "gRNA", np.nan, np.nan),
        ]))
        assert queries["id"].tolist() == ["P1"]

    def test_missing_columns(self):
        with pytest.raises(ValueError, match="missing columns"):
            build_probe_intervals(pd.DataFrame({"chr": ["1"]}))


class TestAnnotateProbes:
    """Tests for annotate_probes against an injected reference."""

    def test_probe_overlapping_band(self, small_reference):
        probes = _probes([("P1", "chr1", 1000000, 1000500)])
        overlaps = find_overlaps(build_probe_intervals(probes), small_reference)
        annotated = annotate_probes(probes, overlaps)
        assert annotated.loc["P1", "cytoband"] == "p36.33"
        assert annotated.loc["P1", "arm"] == "1p"

    def test_probe_in_reference_gap(self, small_reference):
        probes = _probes([
            ("P1", "1", 1000000, 1000500),
            ("P3", "3", 150000, 150500),
        ])
        overlaps = find_overlaps(build_probe_intervals(probes), small_reference)
        annotated = annotate_probes(probes, overlaps)
        assert pd.isna(annotated.loc["P3", "cytoband"])
        assert pd.isna(annotated.loc["P3", "arm"])

    def test_preserves_rows_and_columns(self, small_reference):
        probes = _probes([
            ("B", "Y", 100, 200),
            ("A", "1", 1000000, 1000500),
            ("C", "barcode", 1, 100),
        ])
        probes["gene"] = ["SRY", "GENE1", None]
        overlaps = find_overlaps(build_probe_intervals(probes), small_reference)
        annotated = annotate_probes(probes, overlaps)

        assert list(annotated.index) == ["B", "A", "C"]
        assert list(annotated.columns) == list(probes.columns) + ["cytoband", "arm"]
        assert annotated["arm"].tolist()[:2] == ["Yp", "1p"]
        assert "cytoband" not in probes.columns

    def test_arm_is_categorical(self, small_reference):
        probes = _probes([("P1", "1", 1000000, 1000500)])
        annotated = annotate_probes(
            probes, find_overlaps(build_probe_intervals(probes), small_reference)
        )
        assert isinstance(annotated["arm"].dtype, pd.CategoricalDtype)


class TestGetCytobands:
    """Tests for get_cytobands on an experiment."""

    def test_annotates_primary_table(self, mock_experiment):
        result = get_cytobands(mock_experiment, genome="hg19", verbose=False)
        var = result.row_data

        assert var.loc["AMPL1", "cytoband"] == "p36.33"
        assert var.loc["AMPL1", "arm"] == "1p"
        assert var.loc["AMPL2", "arm"] == "1q"
        assert var.loc["AMPL3", "cytoband"] == "p22.1"
        assert var.loc["AMPL3", "arm"] == "7p"
        assert var.loc["AMPL4", "arm"] == "Xp"
        assert var.loc["AMPL5", "arm"] == "Yp"
        assert pd.isna(var.loc["AMPL205666", "cytoband"])
        assert pd.isna(var.loc["AMPL205334", "arm"])

    def test_arm_levels(self, mock_experiment):
        result = get_cytobands(mock_experiment, verbose=False)
        arm = result.row_data["arm"]
        assert isinstance(arm.dtype, pd.CategoricalDtype)
        assert list(arm.cat.categories) == ["1p", "1q", "7p", "Xp", "Yp"]

    def test_input_not_modified(self, mock_experiment):
        get_cytobands(mock_experiment, verbose=False)
        assert "cytoband" not in mock_experiment.row_data.columns
        assert "arm" not in mock_experiment.row_data.columns

    def test_shape_and_order_preserved(self, mock_experiment):
        result = get_cytobands(mock_experiment, verbose=False)
        assert result.probe_ids == mock_experiment.probe_ids
        assert result.cell_ids == mock_experiment.cell_ids
        np.testing.assert_array_equal(result.adata.X, mock_experiment.adata.X)

    def test_unsupported_genome_fails_before_work(self, mock_experiment):
        with pytest.raises(UnsupportedGenomeError):
            get_cytobands(mock_experiment, genome="hg38")
        assert "cytoband" not in mock_experiment.row_data.columns

    def test_logs_when_verbose(self, mock_experiment, caplog):
        with caplog.at_level(logging.INFO, logger="karyotap"):
            get_cytobands(mock_experiment, verbose=True)
        assert "Adding cytobands from hg19." in caplog.text

    def test_silent_when_not_verbose(self, mock_experiment, caplog):
        with caplog.at_level(logging.INFO, logger="karyotap"):
            get_cytobands(mock_experiment, verbose=False)
        assert "Adding cytobands" not in caplog.text
