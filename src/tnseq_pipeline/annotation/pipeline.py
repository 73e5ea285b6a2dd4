"""End-to-end annotation of a barcode pool against a feature table."""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

import polars as pl
import structlog

from tnseq_pipeline.annotation.classifier import (
    CENTRAL_MAX,
    CENTRAL_MIN,
    PositionClass,
    classify_position,
)
from tnseq_pipeline.annotation.index import IntervalIndex
from tnseq_pipeline.annotation.matcher import MatchResult, match_observations
from tnseq_pipeline.annotation.merger import merge_annotations
from tnseq_pipeline.features.models import FeatureLoadResult, GeneFeature
from tnseq_pipeline.observations.models import Observation, ObservationTable

logger = structlog.get_logger()


@dataclass
class ScaffoldAnnotation:
    """Matched and classified observations of one scaffold."""

    scaffold: str
    match: MatchResult
    classified: list[tuple[Observation, GeneFeature, PositionClass]] = field(default_factory=list)


@dataclass
class AnnotationRun:
    """Result of annotate_pool.

    Attributes:
        annotated: Full annotated table (matched, intergenic and zero-hit rows)
        match: Combined match statistics across scaffolds
        central_min: Lower central-region bound used
        central_max: Upper central-region bound used
    """

    annotated: pl.DataFrame
    match: MatchResult
    central_min: float = CENTRAL_MIN
    central_max: float = CENTRAL_MAX

    def stats(self) -> dict:
        """Counts for logging and provenance."""
        annotated = self.annotated
        return {
            "rows": annotated.height,
            "matched": len(self.match.matched),
            "intergenic": len(self.match.intergenic),
            "unhit_features": annotated.filter(pl.col("barcode").is_null()).height,
            "central": annotated.filter(pl.col("central")).height,
            "ambiguous": self.match.ambiguous,
            "missing_scaffolds": dict(self.match.missing_scaffolds),
        }


def annotate_scaffold(
    scaffold: str,
    observations: list[Observation],
    features: list[GeneFeature],
    central_min: float = CENTRAL_MIN,
    central_max: float = CENTRAL_MAX,
) -> ScaffoldAnnotation:
    """Index one scaffold's features, then match and classify its observations.

    The index is fully built before the first query.
    """
    indexes = {scaffold: IntervalIndex(features, scaffold=scaffold)} if features else {}
    match = match_observations(observations, indexes)
    classified = [
        (observation, feature, classify_position(observation.position, feature, central_min, central_max))
        for observation, feature in match.matched
    ]
    return ScaffoldAnnotation(scaffold=scaffold, match=match, classified=classified)


def annotate_pool(
    table: ObservationTable,
    features: FeatureLoadResult,
    central_min: float = CENTRAL_MIN,
    central_max: float = CENTRAL_MAX,
    workers: int = 1,
) -> AnnotationRun:
    """Annotate every observation in a parsed pool with its containing gene.

    Scaffolds are independent: with workers > 1 they are processed on a
    thread pool, each worker producing a private ScaffoldAnnotation. Results
    are combined in sorted scaffold order, so the output does not depend on
    the number of workers.

    Args:
        table: Parsed pool table
        features: Parsed feature table
        central_min: Lower central-region bound (inclusive)
        central_max: Upper central-region bound (inclusive)
        workers: Number of scaffold worker threads

    Returns:
        AnnotationRun with the annotated table and match statistics
    """
    if not 0.0 <= central_min <= central_max <= 1.0:
        raise ValueError(
            f"Central region must satisfy 0 <= min <= max <= 1, got [{central_min}, {central_max}]"
        )

    by_scaffold: dict[str, list[Observation]] = {}
    for observation in table.observations:
        by_scaffold.setdefault(observation.scaffold, []).append(observation)
    scaffolds = sorted(by_scaffold)

    logger.info(
        "annotate_pool_start",
        observations=len(table.observations),
        features=len(features.features),
        scaffolds=len(scaffolds),
        workers=workers,
        central_min=central_min,
        central_max=central_max,
    )

    def run(scaffold: str) -> ScaffoldAnnotation:
        return annotate_scaffold(
            scaffold,
            by_scaffold[scaffold],
            features.by_scaffold.get(scaffold, []),
            central_min,
            central_max,
        )

    if workers > 1 and len(scaffolds) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(run, scaffolds))
    else:
        results = [run(scaffold) for scaffold in scaffolds]

    match = MatchResult()
    classified: list[tuple[Observation, GeneFeature, PositionClass]] = []
    for scaffold_result in results:
        match.extend(scaffold_result.match)
        classified.extend(scaffold_result.classified)

    annotated = merge_annotations(table.frame, features.features, classified, match.intergenic)

    annotation_run = AnnotationRun(
        annotated=annotated,
        match=match,
        central_min=central_min,
        central_max=central_max,
    )
    logger.info("annotate_pool_complete", **annotation_run.stats())

    return annotation_run
