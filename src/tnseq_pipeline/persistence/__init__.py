"""Persistence layer for annotation checkpoints and provenance tracking."""

from tnseq_pipeline.persistence.duckdb_store import PipelineStore
from tnseq_pipeline.persistence.provenance import ProvenanceTracker, file_checksum

__all__ = ["PipelineStore", "ProvenanceTracker", "file_checksum"]
