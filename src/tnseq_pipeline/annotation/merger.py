"""Combine matched, intergenic and zero-hit rows into the annotated pool table."""

import polars as pl
import structlog

from tnseq_pipeline.annotation.classifier import PositionClass
from tnseq_pipeline.features.models import GeneFeature
from tnseq_pipeline.observations.models import Observation

logger = structlog.get_logger()

# Table name for DuckDB storage
ANNOTATED_TABLE_NAME = "annotated_pool"

# Feature-side columns appended to the pool columns
ANNOTATION_COLUMNS = [
    "begin",
    "end",
    "gene_strand",
    "desc",
    "old_locus_tag",
    "new_locus_tag",
    "gene_length",
    "pos_relative",
    "central",
]

# In-memory helper columns identifying the feature of each row
FEATURE_KEY_COLUMNS = ["feature_index", "feature_id"]

ANNOTATION_SCHEMA = {
    "begin": pl.Int64,
    "end": pl.Int64,
    "gene_strand": pl.Utf8,
    "desc": pl.Utf8,
    "old_locus_tag": pl.Utf8,
    "new_locus_tag": pl.Utf8,
    "gene_length": pl.Int64,
    "pos_relative": pl.Float64,
    "central": pl.Boolean,
    "feature_index": pl.Int64,
    "feature_id": pl.Utf8,
}


def _feature_columns(
    features: list[GeneFeature],
    classes: list[PositionClass | None],
) -> dict[str, list]:
    return {
        "begin": [f.begin for f in features],
        "end": [f.end for f in features],
        "gene_strand": [f.strand for f in features],
        "desc": [f.description for f in features],
        "old_locus_tag": [f.old_locus_tag for f in features],
        "new_locus_tag": [f.new_locus_tag for f in features],
        "gene_length": [f.gene_length for f in features],
        "pos_relative": [c.relative_position if c else None for c in classes],
        "central": [c.is_central if c else None for c in classes],
        "feature_index": [f.feature_index for f in features],
        "feature_id": [f.feature_id for f in features],
    }


def merge_annotations(
    pool: pl.DataFrame,
    features: list[GeneFeature],
    classified: list[tuple[Observation, GeneFeature, PositionClass]],
    intergenic: list[Observation],
) -> pl.DataFrame:
    """Build the full annotated table.

    Every pool row appears exactly once: joined with its selected feature and
    position class, or with NULL feature columns when intergenic. Every
    feature that no observation was assigned to is added once as a zero-hit
    row with NULL observation columns (scaffold taken from the feature).

    Rows are ordered by scaffold, then pos (begin for zero-hit rows), then
    barcode, then feature row, so repeated runs produce identical tables.

    Args:
        pool: Parsed pool frame; Observation.row_index refers to its rows
        features: All accepted features
        classified: (observation, feature, position class) for matched rows
        intergenic: Observations contained in no feature

    Returns:
        DataFrame with pool columns, ANNOTATION_COLUMNS and FEATURE_KEY_COLUMNS

    Raises:
        ValueError: If matched and intergenic rows do not cover the pool exactly
    """
    if len(classified) + len(intergenic) != pool.height:
        raise ValueError(
            f"Annotation covers {len(classified) + len(intergenic)} observations "
            f"but the pool has {pool.height} rows"
        )

    logger.info(
        "merge_annotations_start",
        matched=len(classified),
        intergenic=len(intergenic),
        features=len(features),
    )

    # Matched rows: join feature columns onto pool rows; the rest stay NULL
    matched_columns = _feature_columns(
        [feature for _, feature, _ in classified],
        [position_class for _, _, position_class in classified],
    )
    matched_columns["_row"] = [observation.row_index for observation, _, _ in classified]
    matched_df = pl.DataFrame(
        matched_columns,
        schema={"_row": pl.Int64, **ANNOTATION_SCHEMA},
    )

    observed = (
        pool.with_row_index("_row")
        .with_columns(pl.col("_row").cast(pl.Int64))
        .join(matched_df, on="_row", how="left")
        .drop("_row")
    )

    # Zero-hit rows: features never selected by any observation
    hit_indexes = {feature.feature_index for _, feature, _ in classified}
    unhit = [f for f in features if f.feature_index not in hit_indexes]

    unhit_columns = {
        name: pl.Series(name, [None] * len(unhit), dtype=dtype)
        for name, dtype in pool.schema.items()
    }
    unhit_columns["scaffold"] = pl.Series(
        "scaffold", [f.scaffold for f in unhit], dtype=pool.schema["scaffold"]
    )
    unhit_df = pl.DataFrame(list(unhit_columns.values())).with_columns([
        pl.Series(name, values, dtype=ANNOTATION_SCHEMA[name])
        for name, values in _feature_columns(unhit, [None] * len(unhit)).items()
    ])

    annotated = (
        pl.concat([observed, unhit_df.select(observed.columns)], how="vertical")
        .with_columns(pl.coalesce(pl.col("pos"), pl.col("begin")).alias("_sort_pos"))
        .sort(
            ["scaffold", "_sort_pos", "barcode", "feature_index"],
            nulls_last=True,
            maintain_order=True,
        )
        .drop("_sort_pos")
    )

    logger.info(
        "merge_annotations_complete",
        row_count=annotated.height,
        unhit_features=len(unhit),
    )

    return annotated
