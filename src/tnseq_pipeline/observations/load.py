"""Load the pooled barcode table produced by the upstream mapping step."""

from pathlib import Path

import polars as pl
import structlog

from tnseq_pipeline.errors import ParseError
from tnseq_pipeline.observations.models import (
    POOL_COLUMNS,
    POOL_INT_COLUMNS,
    Observation,
    ObservationTable,
)
from tnseq_pipeline.tables import parse_int, read_tsv, require_columns, strip_blank

logger = structlog.get_logger()

_STRIPPED_COLUMNS = ["barcode", "scaffold", "strand", "pos"]

# Insertion coordinates are 1-based
_MINIMUM = {"nTot": 0, "n": 0, "pos": 1}


def read_pool_table(path: Path | str) -> pl.DataFrame:
    """Read the tab-separated pool table.

    Required columns: barcode, rcbarcode, nTot, n, scaffold, strand, pos.
    Any additional columns are carried through to the annotated output.

    Raises:
        FileNotFoundError: If the table doesn't exist
        ParseError: If a required column is missing
    """
    df = read_tsv(path)
    require_columns(df, POOL_COLUMNS, "pool")
    return df


def parse_observations(df: pl.DataFrame, drop_unmapped: bool = False) -> ObservationTable:
    """Parse pool rows into Observations.

    Every row entering the annotation core must have a position. Rows with a
    NULL pos (e.g. barcodes that mapped past the end of the transposon) are an
    error unless drop_unmapped is set, in which case they are removed first.

    Args:
        df: Raw pool table
        drop_unmapped: Remove rows with NULL pos instead of failing

    Returns:
        ObservationTable with the typed frame and its observations

    Raises:
        ParseError: On a NULL/duplicate barcode, a NULL scaffold, NULL pos
            (unless dropped), a non-integer nTot/n/pos, or pos < 1
    """
    require_columns(df, POOL_COLUMNS, "pool")
    logger.info("parse_observations_start", row_count=df.height, drop_unmapped=drop_unmapped)

    # Surrounding whitespace stripped, blank cells read as NULL
    df = df.with_columns([
        strip_blank(column) for column in _STRIPPED_COLUMNS if df.schema[column] == pl.Utf8
    ])

    dropped = 0
    if drop_unmapped:
        mapped = df.filter(pl.col("pos").is_not_null())
        dropped = df.height - mapped.height
        df = mapped
        if dropped:
            logger.warning("unmapped_rows_dropped", count=dropped)

    observations: list[Observation] = []
    parsed: dict[str, list[int]] = {column: [] for column in POOL_INT_COLUMNS}
    seen_barcodes: dict[str, int] = {}

    columns = ["barcode", "scaffold", "strand"] + POOL_INT_COLUMNS
    for row_index, row in enumerate(df.select(columns).iter_rows(named=True)):
        barcode = row["barcode"]
        if barcode is None:
            raise ParseError("barcode is empty", row_index=row_index, field="barcode")
        if barcode in seen_barcodes:
            raise ParseError(
                f"duplicate barcode {barcode!r} (first seen at row {seen_barcodes[barcode]})",
                row_index=row_index,
                field="barcode",
            )
        seen_barcodes[barcode] = row_index

        if row["scaffold"] is None:
            raise ParseError("scaffold is empty", row_index=row_index, field="scaffold")

        values = {
            column: parse_int(row[column], row_index, column, minimum=_MINIMUM[column])
            for column in POOL_INT_COLUMNS
        }
        for column, value in values.items():
            parsed[column].append(value)

        observations.append(Observation(
            barcode=barcode,
            scaffold=row["scaffold"],
            position=values["pos"],
            strand=row["strand"],
            total_count=values["nTot"],
            distinct_position_count=values["n"],
            row_index=row_index,
        ))

    frame = df.with_columns([
        pl.Series(column, parsed[column], dtype=pl.Int64) for column in POOL_INT_COLUMNS
    ])

    logger.info(
        "parse_observations_complete",
        observations=len(observations),
        dropped_unmapped=dropped,
    )

    return ObservationTable(frame=frame, observations=observations, dropped_unmapped=dropped)


def load_pool(path: Path | str, drop_unmapped: bool = False) -> ObservationTable:
    """Read and parse a pool table in one step."""
    return parse_observations(read_pool_table(path), drop_unmapped=drop_unmapped)
