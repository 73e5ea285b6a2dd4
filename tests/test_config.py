"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from tnseq_pipeline.config import apply_overrides, load_config, load_config_with_overrides
from tnseq_pipeline.config.schema import PipelineConfig


def test_load_valid_config():
    """Test loading valid default configuration."""
    config = load_config("config/default.yaml")

    assert isinstance(config, PipelineConfig)
    assert config.annotation.central_min == 0.1
    assert config.annotation.central_max == 0.9
    assert config.annotation.workers == 1
    assert config.annotation.drop_unmapped is False
    assert config.summary.top_n == 20
    assert config.inputs.feature_table == Path("data/genes.tab")


def test_minimal_config_uses_defaults(tmp_path):
    """Only data_dir and duckdb_path are required."""
    config_file = tmp_path / "minimal.yaml"
    config_file.write_text(f"""
data_dir: {tmp_path / "data"}
duckdb_path: {tmp_path / "test.duckdb"}
""")

    config = load_config(config_file)

    assert config.inputs.pool_table is None
    assert config.annotation.central_min == 0.1
    assert config.output.write_parquet is True


def test_invalid_config_missing_field(tmp_path):
    """Test that missing required field raises ValidationError."""
    invalid_config = tmp_path / "invalid.yaml"
    invalid_config.write_text("""
duckdb_path: data/pipeline.duckdb
annotation:
  workers: 2
""")

    with pytest.raises(ValidationError) as exc_info:
        load_config(invalid_config)

    assert "data_dir" in str(exc_info.value)


def test_inverted_central_region_rejected(tmp_path):
    """central_min above central_max raises ValidationError."""
    invalid_config = tmp_path / "inverted.yaml"
    invalid_config.write_text(f"""
data_dir: {tmp_path / "data"}
duckdb_path: {tmp_path / "test.duckdb"}
annotation:
  central_min: 0.8
  central_max: 0.2
""")

    with pytest.raises(ValidationError) as exc_info:
        load_config(invalid_config)

    assert "central_min" in str(exc_info.value)


def test_central_bound_out_of_range(tmp_path):
    invalid_config = tmp_path / "range.yaml"
    invalid_config.write_text(f"""
data_dir: {tmp_path / "data"}
duckdb_path: {tmp_path / "test.duckdb"}
annotation:
  central_max: 1.5
""")

    with pytest.raises(ValidationError):
        load_config(invalid_config)


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_overrides_apply_dotted_keys():
    config = load_config_with_overrides(
        "config/default.yaml",
        {"annotation.workers": 4, "summary.top_n": 5, "annotation.central_min": None},
    )

    assert config.annotation.workers == 4
    assert config.summary.top_n == 5
    # None leaves the file value in place
    assert config.annotation.central_min == 0.1


def test_override_unknown_section():
    config = load_config("config/default.yaml")

    with pytest.raises(KeyError):
        apply_overrides(config, {"plotting.dpi": 300})


def test_override_is_revalidated():
    config = load_config("config/default.yaml")

    with pytest.raises(ValidationError):
        apply_overrides(config, {"annotation.central_min": 0.95})


def test_config_hash_deterministic():
    """Test that config hash is deterministic and changes with config."""
    config1 = load_config("config/default.yaml")
    config2 = load_config("config/default.yaml")

    assert config1.config_hash() == config2.config_hash()
    assert len(config1.config_hash()) == 64

    config3 = load_config_with_overrides(
        "config/default.yaml",
        {"annotation.central_max": 0.8},
    )
    assert config3.config_hash() != config1.config_hash()


def test_config_creates_data_directory(tmp_path):
    """Test that loading config creates the data directory."""
    config_file = tmp_path / "test_config.yaml"
    data_dir = tmp_path / "test_data"
    config_file.write_text(f"""
data_dir: {data_dir}
duckdb_path: {tmp_path / "test.duckdb"}
""")

    assert not data_dir.exists()

    load_config(config_file)

    assert data_dir.is_dir()
