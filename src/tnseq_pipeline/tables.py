"""Shared helpers for reading tab-separated input tables."""

import re
from pathlib import Path

import polars as pl
import structlog

from tnseq_pipeline.errors import ParseError

logger = structlog.get_logger()

_DIGITS = re.compile(r"[0-9]+")


def read_tsv(path: Path | str) -> pl.DataFrame:
    """Read a tab-separated table with a header, every column as string.

    Values are parsed later so that a malformed row can be reported by index.
    Empty fields are read as NULL.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input table not found: {path}")

    df = pl.read_csv(
        path,
        separator="\t",
        has_header=True,
        infer_schema_length=0,
        quote_char=None,
    )
    logger.info("read_tsv_complete", path=str(path), row_count=df.height, columns=df.columns)
    return df


def require_columns(df: pl.DataFrame, columns: list[str], table: str) -> None:
    """Raise ParseError naming the first required column missing from df."""
    for column in columns:
        if column not in df.columns:
            raise ParseError(
                f"missing required column in {table} table (found: {df.columns})",
                field=column,
            )


def parse_int(value, row_index: int, field: str, minimum: int = 0) -> int:
    """Parse one unsigned integer cell, raising ParseError with row and field on failure.

    Only plain decimal digits are accepted (no sign, no underscores), and the
    value must be at least minimum.
    """
    if value is None:
        raise ParseError("value is empty", row_index=row_index, field=field)
    if isinstance(value, int):
        parsed = value
    else:
        text = str(value).strip()
        if not _DIGITS.fullmatch(text):
            raise ParseError(f"not an integer: {value!r}", row_index=row_index, field=field)
        parsed = int(text)
    if parsed < minimum:
        raise ParseError(
            f"must be at least {minimum}, got {parsed}",
            row_index=row_index,
            field=field,
        )
    return parsed


def blank_to_none(value: str | None) -> str | None:
    """Strip surrounding whitespace; empty strings become None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def strip_blank(column: str) -> pl.Expr:
    """Column expression: whitespace stripped, empty strings as NULL."""
    stripped = pl.col(column).str.strip_chars()
    return pl.when(stripped == "").then(None).otherwise(stripped).alias(column)
