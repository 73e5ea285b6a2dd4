"""TSV+Parquet writers for the annotated pool and summary tables, with YAML sidecars."""

from datetime import datetime, timezone
from pathlib import Path

import polars as pl
import structlog
import yaml

from tnseq_pipeline.annotation.merger import FEATURE_KEY_COLUMNS
from tnseq_pipeline.summary.aggregate import AnnotationSummary, central_counts

logger = structlog.get_logger()


def _write_table(df: pl.DataFrame, path_base: Path, write_parquet: bool) -> list[Path]:
    tsv_path = path_base.with_suffix(".tsv")
    df.write_csv(tsv_path, separator="\t", include_header=True)
    paths = [tsv_path]
    if write_parquet:
        parquet_path = path_base.with_suffix(".parquet")
        df.write_parquet(parquet_path, compression="snappy", use_pyarrow=True)
        paths.append(parquet_path)
    return paths


def export_columns(df: pl.DataFrame) -> list[str]:
    """Pool columns followed by annotation columns, without in-memory keys."""
    return [c for c in df.columns if c not in FEATURE_KEY_COLUMNS]


def write_annotated_pool(
    df: pl.DataFrame,
    output_dir: Path,
    filename_base: str = "annotated_pool",
    write_parquet: bool = True,
) -> dict:
    """
    Write the annotated pool file with a provenance sidecar.

    Only rows with a barcode are written: zero-hit feature rows stay in
    memory for statistics and are exported through write_summary instead.
    Row order of df is kept.

    Args:
        df: Annotated table from merge_annotations/annotate_pool
        output_dir: Directory to write output files (created if doesn't exist)
        filename_base: Base filename without extension
        write_parquet: Also write a Parquet copy

    Returns:
        Dictionary with output file paths:
        {"tsv": Path, "parquet": Path or None, "provenance": Path}
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    exported = df.filter(pl.col("barcode").is_not_null()).select(export_columns(df))
    paths = _write_table(exported, output_dir / filename_base, write_parquet)

    provenance_path = output_dir / f"{filename_base}.provenance.yaml"
    provenance = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "output_files": [p.name for p in paths],
        "statistics": {
            "total_barcodes": exported.height,
            **central_counts(df),
            "unhit_features_excluded": df.height - exported.height,
        },
        "column_count": len(exported.columns),
        "column_names": exported.columns,
    }
    with open(provenance_path, "w") as f:
        yaml.dump(provenance, f, default_flow_style=False, sort_keys=False)

    logger.info("write_annotated_pool_complete", path=str(paths[0]), row_count=exported.height)

    return {
        "tsv": paths[0],
        "parquet": paths[1] if write_parquet else None,
        "provenance": provenance_path,
    }


def write_summary(
    summary: AnnotationSummary,
    output_dir: Path,
    write_parquet: bool = False,
) -> dict:
    """
    Write Aggregator output: per-feature, per-description and top-N tables
    plus a summary.yaml with scalar statistics.

    feature_hits.tsv lists every feature, including those with zero hits.

    Returns:
        Dictionary mapping table name to TSV path, plus "summary" for the YAML
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    tables = {
        "feature_hits": summary.by_feature.drop("feature_index"),
        "description_hits": summary.by_description,
        "top_features": summary.top.drop("feature_index"),
    }

    paths: dict[str, Path] = {}
    for name, table in tables.items():
        paths[name] = _write_table(table, output_dir / name, write_parquet)[0]

    summary_path = output_dir / "summary.yaml"
    with open(summary_path, "w") as f:
        yaml.dump(summary.to_dict(), f, default_flow_style=False, sort_keys=False)
    paths["summary"] = summary_path

    logger.info("write_summary_complete", output_dir=str(output_dir), files=len(paths))

    return paths
