"""Data models for the pooled barcode (observation) table."""

from dataclasses import dataclass

import polars as pl

# Columns required in the tab-separated pool table
POOL_COLUMNS = ["barcode", "rcbarcode", "nTot", "n", "scaffold", "strand", "pos"]

# Pool columns parsed as integers
POOL_INT_COLUMNS = ["nTot", "n", "pos"]


@dataclass(frozen=True)
class Observation:
    """A single barcode's mapped insertion position.

    Attributes:
        barcode: Unique barcode sequence
        scaffold: Scaffold the insertion mapped to
        position: Insertion coordinate (never NULL inside the annotation core)
        strand: Insertion strand, independent of any gene strand
        total_count: Reads supporting the barcode (nTot)
        distinct_position_count: Reads at the primary position (n)
        row_index: Row of the parsed pool frame this observation came from
    """

    barcode: str
    scaffold: str
    position: int
    strand: str | None
    total_count: int
    distinct_position_count: int
    row_index: int


@dataclass
class ObservationTable:
    """Parsed pool table.

    Attributes:
        frame: Pool rows entering the core, every input column kept,
            nTot/n/pos cast to Int64; row order matches Observation.row_index
        observations: One Observation per frame row
        dropped_unmapped: Rows removed because pos was NULL
    """

    frame: pl.DataFrame
    observations: list[Observation]
    dropped_unmapped: int = 0
