"""Summary statistics over the annotated pool table.

All functions are pure: they read the annotated DataFrame and return new
frames or dicts, so calling them repeatedly on the same input gives the same
result.
"""

from dataclasses import dataclass

import polars as pl
import structlog

logger = structlog.get_logger()

# Table names for DuckDB storage
FEATURE_HITS_TABLE_NAME = "feature_hits"
DESCRIPTION_HITS_TABLE_NAME = "description_hits"

# Category used for observations without a gene description
INTERGENIC = "intergenic"


def _observation_rows(df: pl.DataFrame) -> pl.DataFrame:
    return df.filter(pl.col("barcode").is_not_null())


def hits_by_description(df: pl.DataFrame) -> pl.DataFrame:
    """Count observations per gene description.

    NULL descriptions (intergenic observations and genes without a
    description) are counted under "intergenic".

    Returns:
        DataFrame with columns desc, n_barcodes sorted by count DESC, desc ASC
    """
    return (
        _observation_rows(df)
        .with_columns(pl.col("desc").fill_null(INTERGENIC))
        .group_by("desc")
        .agg(pl.len().cast(pl.Int64).alias("n_barcodes"))
        .sort(["n_barcodes", "desc"], descending=[True, False])
    )


def hits_by_feature(df: pl.DataFrame) -> pl.DataFrame:
    """Per-feature hit counts, zero-hit features included.

    Returns:
        DataFrame with one row per feature:
        feature_index, feature_id, scaffold, begin, end, desc,
        n_barcodes (distinct barcodes), n_central (distinct central barcodes),
        total_reads (sum of nTot); sorted by scaffold, begin, feature_index
    """
    return (
        df.filter(pl.col("feature_index").is_not_null())
        .group_by("feature_index")
        .agg([
            pl.col("feature_id").first(),
            pl.col("scaffold").first(),
            pl.col("begin").first(),
            pl.col("end").first(),
            pl.col("desc").first(),
            pl.col("barcode").drop_nulls().n_unique().cast(pl.Int64).alias("n_barcodes"),
            pl.col("barcode")
            .filter(pl.col("central").fill_null(False))
            .n_unique()
            .cast(pl.Int64)
            .alias("n_central"),
            pl.col("nTot").sum().cast(pl.Int64).alias("total_reads"),
        ])
        .sort(["scaffold", "begin", "feature_index"])
    )


def central_counts(df: pl.DataFrame) -> dict[str, int]:
    """Count observations in the central region, outside it, and intergenic."""
    observations = _observation_rows(df)
    matched = observations.filter(pl.col("feature_index").is_not_null())
    central = matched.filter(pl.col("central").fill_null(False)).height
    return {
        "central": central,
        "non_central": matched.height - central,
        INTERGENIC: observations.height - matched.height,
    }


def top_features(df: pl.DataFrame, n: int = 20) -> pl.DataFrame:
    """Rank features by distinct barcode count, ties by feature_id then source row."""
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    return (
        hits_by_feature(df)
        .sort(["n_barcodes", "feature_id", "feature_index"], descending=[True, False, False])
        .head(n)
    )


def gene_hit_rates(df: pl.DataFrame) -> dict[str, float | int]:
    """Fraction of features hit at least once, and at least once centrally."""
    per_feature = hits_by_feature(df)
    total = per_feature.height
    hit = per_feature.filter(pl.col("n_barcodes") > 0).height
    central_hit = per_feature.filter(pl.col("n_central") > 0).height
    return {
        "total_features": total,
        "hit_features": hit,
        "central_hit_features": central_hit,
        "hit_rate": hit / total if total else 0.0,
        "central_hit_rate": central_hit / total if total else 0.0,
    }


@dataclass
class AnnotationSummary:
    """Bundle of all summary statistics for one annotated pool."""

    by_description: pl.DataFrame
    by_feature: pl.DataFrame
    top: pl.DataFrame
    central: dict[str, int]
    hit_rates: dict[str, float | int]

    def to_dict(self) -> dict:
        """Scalar statistics plus the top-N table, for YAML export."""
        return {
            "central_counts": self.central,
            "hit_rates": self.hit_rates,
            "top_features": self.top.select(
                ["feature_id", "scaffold", "begin", "end", "desc", "n_barcodes", "n_central"]
            ).to_dicts(),
        }


def summarize(df: pl.DataFrame, top_n: int = 20) -> AnnotationSummary:
    """Compute every summary statistic for an annotated pool."""
    logger.info("summarize_start", row_count=df.height, top_n=top_n)

    summary = AnnotationSummary(
        by_description=hits_by_description(df),
        by_feature=hits_by_feature(df),
        top=top_features(df, top_n),
        central=central_counts(df),
        hit_rates=gene_hit_rates(df),
    )

    logger.info(
        "summarize_complete",
        features=summary.by_feature.height,
        descriptions=summary.by_description.height,
        central_counts=summary.central,
        hit_rate=summary.hit_rates["hit_rate"],
    )

    return summary
