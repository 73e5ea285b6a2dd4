"""Summary statistics over annotated pools."""

from tnseq_pipeline.summary.aggregate import (
    DESCRIPTION_HITS_TABLE_NAME,
    FEATURE_HITS_TABLE_NAME,
    INTERGENIC,
    AnnotationSummary,
    central_counts,
    gene_hit_rates,
    hits_by_description,
    hits_by_feature,
    summarize,
    top_features,
)

__all__ = [
    "DESCRIPTION_HITS_TABLE_NAME",
    "FEATURE_HITS_TABLE_NAME",
    "INTERGENIC",
    "AnnotationSummary",
    "central_counts",
    "gene_hit_rates",
    "hits_by_description",
    "hits_by_feature",
    "summarize",
    "top_features",
]
