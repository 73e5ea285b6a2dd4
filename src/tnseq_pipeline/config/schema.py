"""Pydantic models for pipeline configuration."""

import hashlib
import json
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator


class InputPaths(BaseModel):
    """Default locations of the two input tables (overridable on the CLI)."""

    feature_table: Path | None = Field(
        default=None,
        description="Tab-separated gene-feature table",
    )
    pool_table: Path | None = Field(
        default=None,
        description="Tab-separated mapped barcode pool table",
    )


class AnnotationConfig(BaseModel):
    """Parameters of the overlap annotation step."""

    central_min: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Lower bound of the central gene region (inclusive)",
    )
    central_max: float = Field(
        default=0.9,
        ge=0.0,
        le=1.0,
        description="Upper bound of the central gene region (inclusive)",
    )
    workers: int = Field(
        default=1,
        ge=1,
        le=64,
        description="Threads used to annotate scaffolds in parallel",
    )
    drop_unmapped: bool = Field(
        default=False,
        description="Drop pool rows with no position instead of failing",
    )
    strict_features: bool = Field(
        default=False,
        description="Fail on rejected feature rows instead of reporting them",
    )

    @model_validator(mode="after")
    def check_central_region(self) -> "AnnotationConfig":
        """Central region bounds must be ordered."""
        if self.central_min > self.central_max:
            raise ValueError(
                f"central_min ({self.central_min}) must not exceed central_max ({self.central_max})"
            )
        return self


class SummaryConfig(BaseModel):
    """Parameters of the summary statistics."""

    top_n: int = Field(
        default=20,
        ge=0,
        description="Number of most-hit features to report",
    )
    max_rejected_rate: float = Field(
        default=0.01,
        ge=0.0,
        le=1.0,
        description="Highest tolerated fraction of rejected feature rows",
    )


class OutputConfig(BaseModel):
    """Output file settings."""

    output_dir: Path = Field(
        default=Path("output"),
        description="Directory for annotated pool and summary files",
    )
    write_parquet: bool = Field(
        default=True,
        description="Also write Parquet copies of the TSV outputs",
    )


class PipelineConfig(BaseModel):
    """Main pipeline configuration."""

    data_dir: Path = Field(
        ...,
        description="Working directory for intermediate files",
    )
    duckdb_path: Path = Field(
        ...,
        description="Path to DuckDB database file",
    )
    inputs: InputPaths = Field(
        default_factory=InputPaths,
        description="Input table locations",
    )
    annotation: AnnotationConfig = Field(
        default_factory=AnnotationConfig,
        description="Overlap annotation parameters",
    )
    summary: SummaryConfig = Field(
        default_factory=SummaryConfig,
        description="Summary statistics parameters",
    )
    output: OutputConfig = Field(
        default_factory=OutputConfig,
        description="Output settings",
    )

    @field_validator("data_dir")
    @classmethod
    def create_directory(cls, v: Path) -> Path:
        """Create directory if it doesn't exist."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    def config_hash(self) -> str:
        """
        Compute SHA-256 hash of the configuration.

        Returns a deterministic hash based on all config values,
        useful for tracking config changes between runs.
        """
        config_dict = self.model_dump(mode="python")
        # Convert Path objects to strings for JSON serialization
        config_json = json.dumps(
            config_dict,
            sort_keys=True,
            default=str,
        )
        return hashlib.sha256(config_json.encode()).hexdigest()
