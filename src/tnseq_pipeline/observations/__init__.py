"""Pooled barcode table loading."""

from tnseq_pipeline.observations.models import (
    POOL_COLUMNS,
    Observation,
    ObservationTable,
)
from tnseq_pipeline.observations.load import (
    load_pool,
    parse_observations,
    read_pool_table,
)

__all__ = [
    "POOL_COLUMNS",
    "Observation",
    "ObservationTable",
    "load_pool",
    "parse_observations",
    "read_pool_table",
]
