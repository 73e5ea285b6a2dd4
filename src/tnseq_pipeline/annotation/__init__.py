"""Interval-overlap annotation of insertion positions."""

from tnseq_pipeline.annotation.index import IntervalIndex, build_indexes
from tnseq_pipeline.annotation.matcher import (
    MatchResult,
    match_observations,
    select_feature,
    tie_break_key,
)
from tnseq_pipeline.annotation.classifier import (
    CENTRAL_MAX,
    CENTRAL_MIN,
    PositionClass,
    classify_position,
)
from tnseq_pipeline.annotation.merger import (
    ANNOTATED_TABLE_NAME,
    ANNOTATION_COLUMNS,
    FEATURE_KEY_COLUMNS,
    merge_annotations,
)
from tnseq_pipeline.annotation.pipeline import (
    AnnotationRun,
    annotate_pool,
    annotate_scaffold,
)

__all__ = [
    "IntervalIndex",
    "build_indexes",
    "MatchResult",
    "match_observations",
    "select_feature",
    "tie_break_key",
    "CENTRAL_MAX",
    "CENTRAL_MIN",
    "PositionClass",
    "classify_position",
    "ANNOTATED_TABLE_NAME",
    "ANNOTATION_COLUMNS",
    "FEATURE_KEY_COLUMNS",
    "merge_annotations",
    "AnnotationRun",
    "annotate_pool",
    "annotate_scaffold",
]
