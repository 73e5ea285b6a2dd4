"""Output generation: annotated pool and summary file writing."""

from tnseq_pipeline.output.writers import (
    export_columns,
    write_annotated_pool,
    write_summary,
)

__all__ = [
    "export_columns",
    "write_annotated_pool",
    "write_summary",
]
