"""Gene-feature table loading and validation."""

from tnseq_pipeline.features.models import (
    FEATURE_COLUMNS,
    FEATURES_TABLE_NAME,
    FeatureLoadResult,
    GeneFeature,
    RejectedFeature,
)
from tnseq_pipeline.features.load import (
    features_to_dataframe,
    load_features,
    parse_features,
    read_feature_table,
)
from tnseq_pipeline.features.validator import (
    FeatureValidator,
    ValidationResult,
    count_overlapping,
)

__all__ = [
    "FEATURE_COLUMNS",
    "FEATURES_TABLE_NAME",
    "FeatureLoadResult",
    "GeneFeature",
    "RejectedFeature",
    "features_to_dataframe",
    "load_features",
    "parse_features",
    "read_feature_table",
    "FeatureValidator",
    "ValidationResult",
    "count_overlapping",
]
