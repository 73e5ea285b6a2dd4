"""Load and validate the gene-feature table."""

from pathlib import Path

import polars as pl
import structlog

from tnseq_pipeline.errors import ParseError
from tnseq_pipeline.features.models import (
    FEATURE_COLUMNS,
    VALID_STRANDS,
    FeatureLoadResult,
    GeneFeature,
    RejectedFeature,
)
from tnseq_pipeline.tables import blank_to_none, parse_int, read_tsv, require_columns

logger = structlog.get_logger()


def read_feature_table(path: Path | str) -> pl.DataFrame:
    """Read the tab-separated gene-feature table.

    Expected columns: scaffold, begin, end, strand, desc, old_locus_tag,
    new_locus_tag. Extra columns are ignored.

    Raises:
        FileNotFoundError: If the table doesn't exist
        ParseError: If a required column is missing
    """
    df = read_tsv(path)
    require_columns(df, FEATURE_COLUMNS, "feature")
    return df


def parse_features(df: pl.DataFrame, strict: bool = False) -> FeatureLoadResult:
    """Parse raw feature rows into GeneFeature records grouped per scaffold.

    Rows with an empty scaffold or begin > end are rejected and reported in
    the result (and logged); they are never silently dropped. Malformed
    coordinates or strands abort the whole table.

    Args:
        df: Raw feature table with string columns
        strict: If True, the first rejected row raises ParseError instead

    Returns:
        FeatureLoadResult with accepted features and rejected rows

    Raises:
        ParseError: On a coordinate that is not a positive integer, an invalid strand, or a
            rejected row when strict is set
    """
    require_columns(df, FEATURE_COLUMNS, "feature")
    logger.info("parse_features_start", row_count=df.height, strict=strict)

    result = FeatureLoadResult(total_rows=df.height)

    for row_index, row in enumerate(df.select(FEATURE_COLUMNS).iter_rows(named=True)):
        begin = parse_int(row["begin"], row_index, "begin", minimum=1)
        end = parse_int(row["end"], row_index, "end", minimum=1)
        scaffold = blank_to_none(row["scaffold"])

        reason = None
        if scaffold is None:
            reason = "empty scaffold"
        elif begin > end:
            reason = f"begin ({begin}) > end ({end})"

        if reason is not None:
            if strict:
                raise ParseError(
                    reason,
                    row_index=row_index,
                    field="scaffold" if scaffold is None else "begin",
                )
            result.rejected.append(RejectedFeature(
                row_index=row_index,
                reason=reason,
                scaffold=scaffold,
                begin=begin,
                end=end,
            ))
            logger.warning("feature_rejected", row_index=row_index, reason=reason)
            continue

        strand = blank_to_none(row["strand"])
        if strand not in VALID_STRANDS:
            raise ParseError(
                f"strand must be one of {VALID_STRANDS}, got {row['strand']!r}",
                row_index=row_index,
                field="strand",
            )

        feature = GeneFeature(
            scaffold=scaffold,
            begin=begin,
            end=end,
            strand=strand,
            description=blank_to_none(row["desc"]),
            old_locus_tag=blank_to_none(row["old_locus_tag"]),
            new_locus_tag=blank_to_none(row["new_locus_tag"]),
            feature_index=row_index,
        )
        result.features.append(feature)
        result.by_scaffold.setdefault(scaffold, []).append(feature)

    logger.info(
        "parse_features_complete",
        accepted=len(result.features),
        rejected=len(result.rejected),
        scaffolds=len(result.by_scaffold),
    )

    return result


def load_features(path: Path | str, strict: bool = False) -> FeatureLoadResult:
    """Read and parse a feature table in one step."""
    return parse_features(read_feature_table(path), strict=strict)


def features_to_dataframe(features: list[GeneFeature]) -> pl.DataFrame:
    """Tabulate accepted features for persistence and reporting."""
    return pl.DataFrame(
        {
            "feature_index": [f.feature_index for f in features],
            "feature_id": [f.feature_id for f in features],
            "scaffold": [f.scaffold for f in features],
            "begin": [f.begin for f in features],
            "end": [f.end for f in features],
            "strand": [f.strand for f in features],
            "desc": [f.description for f in features],
            "old_locus_tag": [f.old_locus_tag for f in features],
            "new_locus_tag": [f.new_locus_tag for f in features],
        },
        schema={
            "feature_index": pl.Int64,
            "feature_id": pl.Utf8,
            "scaffold": pl.Utf8,
            "begin": pl.Int64,
            "end": pl.Int64,
            "strand": pl.Utf8,
            "desc": pl.Utf8,
            "old_locus_tag": pl.Utf8,
            "new_locus_tag": pl.Utf8,
        },
    )
