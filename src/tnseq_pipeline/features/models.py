"""Data models for the gene-feature table."""

from dataclasses import dataclass, field

# Table name for DuckDB storage
FEATURES_TABLE_NAME = "features"

# Columns required in the tab-separated feature table
FEATURE_COLUMNS = [
    "scaffold",
    "begin",
    "end",
    "strand",
    "desc",
    "old_locus_tag",
    "new_locus_tag",
]

VALID_STRANDS = ("+", "-")


@dataclass(frozen=True)
class GeneFeature:
    """A single annotated gene interval.

    Attributes:
        scaffold: Contig/chromosome identifier
        begin: First coordinate of the feature (inclusive)
        end: Last coordinate of the feature (inclusive), begin <= end
        strand: "+" or "-"
        description: Free-text annotation - NULL if absent
        old_locus_tag: Legacy locus tag - NULL if absent
        new_locus_tag: Current locus tag - NULL if absent
        feature_index: 0-based row index in the source table (unique identity)

    Locus tags are only used for reporting and tie-breaking, never for matching.
    """

    scaffold: str
    begin: int
    end: int
    strand: str
    description: str | None = None
    old_locus_tag: str | None = None
    new_locus_tag: str | None = None
    feature_index: int = 0

    @property
    def feature_id(self) -> str:
        """Reporting identifier: new tag, old tag, or a coordinate label."""
        if self.new_locus_tag:
            return self.new_locus_tag
        if self.old_locus_tag:
            return self.old_locus_tag
        return f"{self.scaffold}:{self.begin}-{self.end}({self.strand})"

    @property
    def gene_length(self) -> int:
        return self.end - self.begin


@dataclass(frozen=True)
class RejectedFeature:
    """A feature row excluded from indexing, kept for reporting."""

    row_index: int
    reason: str
    scaffold: str | None = None
    begin: int | None = None
    end: int | None = None


@dataclass
class FeatureLoadResult:
    """Outcome of parsing a feature table.

    Attributes:
        features: Accepted features in input order
        by_scaffold: Accepted features grouped per scaffold, input order kept
        rejected: Rows excluded for empty scaffold or begin > end
        total_rows: Number of data rows read
    """

    features: list[GeneFeature] = field(default_factory=list)
    by_scaffold: dict[str, list[GeneFeature]] = field(default_factory=dict)
    rejected: list[RejectedFeature] = field(default_factory=list)
    total_rows: int = 0
