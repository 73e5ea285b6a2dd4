"""Assign each observation to at most one containing feature."""

from collections import Counter
from dataclasses import dataclass, field

import structlog

from tnseq_pipeline.annotation.index import IntervalIndex
from tnseq_pipeline.features.models import GeneFeature
from tnseq_pipeline.observations.models import Observation

logger = structlog.get_logger()


@dataclass
class MatchResult:
    """Outcome of matching observations against feature indexes.

    Attributes:
        matched: (observation, selected feature) pairs, in input order
        intergenic: Observations contained in no feature, in input order
        missing_scaffolds: Observation counts per scaffold with no indexed features
        ambiguous: Number of observations that had more than one candidate
    """

    matched: list[tuple[Observation, GeneFeature]] = field(default_factory=list)
    intergenic: list[Observation] = field(default_factory=list)
    missing_scaffolds: dict[str, int] = field(default_factory=dict)
    ambiguous: int = 0

    def extend(self, other: "MatchResult") -> None:
        """Append another (e.g. per-scaffold) result to this one."""
        self.matched.extend(other.matched)
        self.intergenic.extend(other.intergenic)
        for scaffold, count in other.missing_scaffolds.items():
            self.missing_scaffolds[scaffold] = self.missing_scaffolds.get(scaffold, 0) + count
        self.ambiguous += other.ambiguous


def tie_break_key(feature: GeneFeature) -> tuple[int, str, int]:
    """Ordering used to pick one feature among overlapping candidates.

    Smallest begin wins; equal begins fall back to the lexicographically
    smallest feature identifier, then to the source row.
    """
    return (feature.begin, feature.feature_id, feature.feature_index)


def select_feature(candidates: list[GeneFeature]) -> GeneFeature | None:
    """Pick the single feature an observation is assigned to."""
    if not candidates:
        return None
    return min(candidates, key=tie_break_key)


def match_observations(
    observations: list[Observation],
    indexes: dict[str, IntervalIndex],
) -> MatchResult:
    """Match each observation to exactly one containing feature, or none.

    Only the selected feature is kept; the other candidates are discarded.
    Strand is not considered. Observations on scaffolds without indexed
    features are intergenic.

    Args:
        observations: Observations to annotate
        indexes: IntervalIndex per scaffold

    Returns:
        MatchResult with matched pairs and intergenic observations
    """
    result = MatchResult()
    missing: Counter[str] = Counter()

    for observation in observations:
        index = indexes.get(observation.scaffold)
        if index is None:
            missing[observation.scaffold] += 1
            result.intergenic.append(observation)
            continue

        candidates = index.query(observation.position)
        if len(candidates) > 1:
            result.ambiguous += 1

        feature = select_feature(candidates)
        if feature is None:
            result.intergenic.append(observation)
        else:
            result.matched.append((observation, feature))

    result.missing_scaffolds = dict(missing)
    for scaffold, count in sorted(missing.items()):
        logger.warning("scaffold_not_in_features", scaffold=scaffold, observations=count)

    logger.debug(
        "match_observations_complete",
        observations=len(observations),
        matched=len(result.matched),
        intergenic=len(result.intergenic),
        ambiguous=result.ambiguous,
    )

    return result
