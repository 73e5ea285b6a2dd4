"""Per-scaffold interval index for point-in-feature queries."""

from intervaltree import Interval, IntervalTree

from tnseq_pipeline.features.models import GeneFeature


def _feature_order(feature: GeneFeature) -> tuple[int, int, int]:
    return (feature.begin, feature.end, feature.feature_index)


class IntervalIndex:
    """Index over the features of one scaffold.

    Each feature [begin, end] is stored in an IntervalTree as the half-open
    interval [begin, end + 1), so a point query gives closed containment:
    begin <= p <= end. The tree is built once in the constructor and only
    read afterwards, so the index can be queried from several threads.
    """

    __slots__ = ("scaffold", "_features", "_tree")

    def __init__(self, features: list[GeneFeature], scaffold: str | None = None):
        ordered = sorted(features, key=_feature_order)
        if scaffold is None and ordered:
            scaffold = ordered[0].scaffold
        for feature in ordered:
            if feature.scaffold != scaffold:
                raise ValueError(
                    f"IntervalIndex for scaffold {scaffold!r} got feature on {feature.scaffold!r}"
                )
        self.scaffold = scaffold
        self._features = tuple(ordered)
        self._tree = IntervalTree(Interval(f.begin, f.end + 1, f) for f in ordered)

    def __len__(self) -> int:
        return len(self._features)

    def __iter__(self):
        return iter(self._features)

    def query(self, position: int) -> list[GeneFeature]:
        """Return every feature containing position, in (begin, end, row) order."""
        return sorted((interval.data for interval in self._tree[position]), key=_feature_order)

    def contains(self, position: int) -> bool:
        """True if any feature contains position."""
        return self._tree.overlaps(position)


def build_indexes(by_scaffold: dict[str, list[GeneFeature]]) -> dict[str, IntervalIndex]:
    """Build one IntervalIndex per scaffold."""
    return {
        scaffold: IntervalIndex(features, scaffold=scaffold)
        for scaffold, features in by_scaffold.items()
    }
