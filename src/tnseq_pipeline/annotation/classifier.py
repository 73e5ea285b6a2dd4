"""Relative position of an insertion within its gene and the central-region flag."""

from dataclasses import dataclass

import structlog

from tnseq_pipeline.features.models import GeneFeature

logger = structlog.get_logger()

# Central region: the middle 80% of the gene, bounds inclusive
CENTRAL_MIN = 0.1
CENTRAL_MAX = 0.9


@dataclass(frozen=True)
class PositionClass:
    """Geometry of one matched insertion.

    Attributes:
        gene_length: end - begin of the feature
        relative_position: (position - begin) / gene_length - NULL for zero-length features
        is_central: central_min <= relative_position <= central_max (False when NULL)
    """

    gene_length: int
    relative_position: float | None
    is_central: bool


def classify_position(
    position: int,
    feature: GeneFeature,
    central_min: float = CENTRAL_MIN,
    central_max: float = CENTRAL_MAX,
) -> PositionClass:
    """Classify an insertion position against the feature that contains it.

    A zero-length feature (begin == end) has no meaningful relative position:
    relative_position is NULL and the insertion is never central.

    Args:
        position: Insertion coordinate, begin <= position <= end
        feature: Selected containing feature
        central_min: Lower bound of the central region (inclusive)
        central_max: Upper bound of the central region (inclusive)

    Returns:
        PositionClass for the insertion
    """
    gene_length = feature.end - feature.begin
    if gene_length == 0:
        logger.debug(
            "degenerate_feature",
            feature_id=feature.feature_id,
            scaffold=feature.scaffold,
            begin=feature.begin,
        )
        return PositionClass(gene_length=0, relative_position=None, is_central=False)

    relative_position = (position - feature.begin) / gene_length
    return PositionClass(
        gene_length=gene_length,
        relative_position=relative_position,
        is_central=central_min <= relative_position <= central_max,
    )
