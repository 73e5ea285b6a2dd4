"""Integration tests for the CLI commands using CliRunner.

Tests:
- info shows the annotation parameters
- validate passes good inputs and fails malformed ones
- annotate writes DuckDB tables and output files
- annotate checkpoint skip and --force
- summary after annotate, and without an annotated pool
"""

import polars as pl
import pytest
from click.testing import CliRunner

from tnseq_pipeline.cli.main import cli
from tnseq_pipeline.persistence import PipelineStore

GENES = (
    "scaffold\tbegin\tend\tstrand\tdesc\told_locus_tag\tnew_locus_tag\n"
    "chr1\t100\t300\t+\tDNA polymerase\tOLD_A\tA\n"
    "chr1\t200\t400\t-\thelicase\tOLD_B\tB\n"
    "chr1\t1000\t1100\t+\t\t\tZ\n"
)

POOL = (
    "barcode\trcbarcode\tnTot\tn\tscaffold\tstrand\tpos\n"
    "AAAA\tTTTT\t10\t9\tchr1\t+\t99\n"
    "CCCC\tGGGG\t12\t12\tchr1\t-\t250\n"
    "GGGG\tCCCC\t5\t5\tchr1\t+\t350\n"
    "TTTT\tAAAA\t4\t4\tplasmid\t+\t42\n"
)


@pytest.fixture
def inputs(tmp_path):
    genes = tmp_path / "genes.tab"
    pool = tmp_path / "pool.tab"
    genes.write_text(GENES)
    pool.write_text(POOL)
    return genes, pool


@pytest.fixture
def test_config(tmp_path, inputs):
    """Create minimal config YAML pointing at the test inputs."""
    genes, pool = inputs
    config_path = tmp_path / "test_config.yaml"
    config_path.write_text(f"""
data_dir: {tmp_path}/data
duckdb_path: {tmp_path}/test.duckdb
inputs:
  feature_table: {genes}
  pool_table: {pool}
annotation:
  central_min: 0.1
  central_max: 0.9
  workers: 2
summary:
  top_n: 2
output:
  output_dir: {tmp_path}/output
  write_parquet: true
""")
    return config_path


def test_info(test_config):
    runner = CliRunner()
    result = runner.invoke(cli, ['--config', str(test_config), 'info'])

    assert result.exit_code == 0
    assert "Central Region: [0.1, 0.9]" in result.output
    assert "Workers:        2" in result.output


def test_validate_passes(test_config):
    runner = CliRunner()
    result = runner.invoke(cli, ['--config', str(test_config), 'validate'])

    assert result.exit_code == 0, result.output
    assert "PASSED: 4 barcodes" in result.output
    assert "Validation PASSED" in result.output


def test_validate_fails_on_malformed_pool(test_config, tmp_path):
    bad_pool = tmp_path / "bad_pool.tab"
    bad_pool.write_text(POOL.replace("\t250\n", "\tabc\n"))

    runner = CliRunner()
    result = runner.invoke(cli, ['--config', str(test_config), 'validate', '--pool', str(bad_pool)])

    assert result.exit_code == 1
    assert "field 'pos'" in result.output
    assert "Validation FAILED" in result.output


def test_validate_missing_input(test_config, tmp_path):
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ['--config', str(test_config), 'validate', '--features', str(tmp_path / "none.tab")],
    )

    assert result.exit_code != 0
    assert "feature table not found" in result.output


def test_annotate_writes_outputs(test_config, tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli, ['--config', str(test_config), 'annotate'])

    assert result.exit_code == 0, result.output
    assert "Matched: 2, intergenic: 2" in result.output
    assert "Scaffold plasmid has no features" in result.output
    assert "Annotation complete!" in result.output

    output_dir = tmp_path / "output"
    for name in ["annotated_pool.tsv", "annotated_pool.parquet", "annotated_pool.provenance.yaml",
                 "feature_hits.tsv", "description_hits.tsv", "top_features.tsv",
                 "summary.yaml", "annotate.provenance.json"]:
        assert (output_dir / name).exists(), name

    written = pl.read_csv(output_dir / "annotated_pool.tsv", separator="\t")
    assert written.height == 4
    assert written.filter(pl.col("barcode") == "CCCC")["new_locus_tag"].to_list() == ["A"]

    with PipelineStore(tmp_path / "test.duckdb") as store:
        assert store.has_checkpoint("features")
        assert store.has_checkpoint("annotated_pool")
        assert store.has_checkpoint("feature_hits")
        assert store.has_checkpoint("description_hits")
        annotated = store.load_dataframe("annotated_pool")
        # Four barcodes plus the never-hit gene Z
        assert annotated.height == 5
        provenance = store.conn.execute("SELECT COUNT(*) FROM _provenance").fetchone()[0]
        assert provenance == 1


def test_annotate_checkpoint_and_force(test_config):
    runner = CliRunner()
    first = runner.invoke(cli, ['--config', str(test_config), 'annotate'])
    assert first.exit_code == 0, first.output

    skipped = runner.invoke(cli, ['--config', str(test_config), 'annotate'])
    assert skipped.exit_code == 0
    assert "checkpoint exists" in skipped.output
    assert "Annotated rows: 5" in skipped.output

    forced = runner.invoke(cli, ['--config', str(test_config), 'annotate', '--force'])
    assert forced.exit_code == 0
    assert "Annotation complete!" in forced.output


def test_annotate_central_override(test_config, tmp_path):
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ['--config', str(test_config), 'annotate', '--central-min', '0.0', '--central-max', '1.0'],
    )

    assert result.exit_code == 0, result.output
    assert "Central region: [0.0, 1.0]" in result.output


def test_annotate_inverted_central_region_fails(test_config):
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ['--config', str(test_config), 'annotate', '--central-min', '0.9', '--central-max', '0.1'],
    )

    assert result.exit_code == 1
    assert "Annotate command failed" in result.output


def test_annotate_unmapped_rows(test_config, tmp_path):
    pool = tmp_path / "raw_pool.tab"
    pool.write_text(POOL + "ACGT\tACGT\t3\t3\tpastEnd\t\t\n")

    runner = CliRunner()
    failed = runner.invoke(cli, ['--config', str(test_config), 'annotate', '--pool', str(pool)])
    assert failed.exit_code == 1

    dropped = runner.invoke(
        cli,
        ['--config', str(test_config), 'annotate', '--pool', str(pool), '--drop-unmapped', '--force'],
    )
    assert dropped.exit_code == 0, dropped.output
    assert "Dropped 1 rows without a position" in dropped.output


def test_summary_after_annotate(test_config, tmp_path):
    runner = CliRunner()
    runner.invoke(cli, ['--config', str(test_config), 'annotate'])

    result = runner.invoke(cli, ['--config', str(test_config), 'summary', '--top-n', '1',
                                 '--output-dir', str(tmp_path / "summary")])

    assert result.exit_code == 0, result.output
    assert "Central:     2" in result.output
    assert "Intergenic:  2" in result.output
    assert "Hit: 2/3" in result.output
    assert "Top 1 genes by barcodes:" in result.output
    assert (tmp_path / "summary" / "feature_hits.tsv").exists()


def test_summary_without_annotation(test_config):
    runner = CliRunner()
    result = runner.invoke(cli, ['--config', str(test_config), 'summary'])

    assert result.exit_code == 1
    assert "annotated_pool table not found" in result.output
