"""Validation gates for the gene-feature table.

Summarizes rejected rows, duplicate locus tags, zero-length features and
overlapping annotations, and enforces a configurable rejection threshold.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from tnseq_pipeline.features.models import FeatureLoadResult, GeneFeature

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of a validation check.

    Attributes:
        passed: Whether validation passed
        messages: List of validation messages (warnings, errors)
        rejected_rate: Fraction of feature rows rejected (0-1)
        overlapping_features: Features overlapping an earlier feature on the same scaffold
        degenerate_features: Features with begin == end
    """
    passed: bool
    messages: list[str] = field(default_factory=list)
    rejected_rate: float = 0.0
    overlapping_features: int = 0
    degenerate_features: int = 0


def count_overlapping(features: list[GeneFeature]) -> int:
    """Count features that overlap any feature starting at or before them.

    Features are swept in begin order per scaffold, tracking the largest end
    seen so far (closed intervals).
    """
    by_scaffold: dict[str, list[GeneFeature]] = {}
    for feature in features:
        by_scaffold.setdefault(feature.scaffold, []).append(feature)

    overlapping = 0
    for scaffold_features in by_scaffold.values():
        max_end = None
        for feature in sorted(scaffold_features, key=lambda f: (f.begin, f.end)):
            if max_end is not None and feature.begin <= max_end:
                overlapping += 1
            max_end = feature.end if max_end is None else max(max_end, feature.end)
    return overlapping


class FeatureValidator:
    """Validator for parsed feature tables.

    Rejected rows never pass silently: any rejection produces a warning, and a
    rejection rate above max_rejected_rate fails validation.
    """

    def __init__(self, max_rejected_rate: float = 0.01):
        """Initialize feature validator.

        Args:
            max_rejected_rate: Highest tolerated fraction of rejected rows (default: 0.01)
        """
        self.max_rejected_rate = max_rejected_rate
        logger.info(f"Initialized FeatureValidator: max_rejected_rate={max_rejected_rate}")

    def validate(self, result: FeatureLoadResult) -> ValidationResult:
        """Validate a parsed feature table.

        Args:
            result: FeatureLoadResult from parse_features

        Returns:
            ValidationResult with pass/fail status and messages
        """
        messages: list[str] = []
        passed = True

        total = result.total_rows
        rejected = len(result.rejected)
        rejected_rate = rejected / total if total > 0 else 0.0

        if total == 0:
            messages.append("FAILED: Feature table has no rows")
            passed = False
        elif rejected_rate > self.max_rejected_rate:
            messages.append(
                f"FAILED: {rejected}/{total} feature rows rejected ({rejected_rate:.1%}), "
                f"above threshold {self.max_rejected_rate:.1%}"
            )
            passed = False
        elif rejected:
            messages.append(
                f"WARNING: {rejected}/{total} feature rows rejected ({rejected_rate:.1%})"
            )
        else:
            messages.append(f"PASSED: All {total} feature rows accepted")

        for rejected_row in result.rejected[:10]:
            messages.append(f"  row {rejected_row.row_index}: {rejected_row.reason}")

        # Informational checks
        tag_counts = Counter(f.feature_id for f in result.features)
        duplicates = sorted(tag for tag, count in tag_counts.items() if count > 1)
        if duplicates:
            messages.append(
                f"Duplicate feature identifiers: {len(duplicates)} (first 5: {duplicates[:5]})"
            )

        degenerate = sum(1 for f in result.features if f.gene_length == 0)
        if degenerate:
            messages.append(
                f"Zero-length features: {degenerate} (relative position will be NULL)"
            )

        overlapping = count_overlapping(result.features)
        messages.append(
            f"Overlapping features: {overlapping} across {len(result.by_scaffold)} scaffolds"
        )

        logger.info(
            f"Feature validation: {'PASSED' if passed else 'FAILED'} "
            f"({len(result.features)} accepted, {rejected} rejected)"
        )

        return ValidationResult(
            passed=passed,
            messages=messages,
            rejected_rate=rejected_rate,
            overlapping_features=overlapping,
            degenerate_features=degenerate,
        )

    def save_rejected_report(
        self,
        result: FeatureLoadResult,
        output_path: Path
    ) -> None:
        """Save rejected feature rows to a TSV file for manual review.

        Args:
            result: FeatureLoadResult containing rejected rows
            output_path: Path to output file
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        with output_path.open('w') as f:
            f.write("# Rejected feature rows\n")
            f.write(f"# Generated: {timestamp}\n")
            f.write(f"# Total rejected: {len(result.rejected)}\n")
            f.write("row_index\tscaffold\tbegin\tend\treason\n")
            for row in result.rejected:
                f.write(
                    f"{row.row_index}\t{row.scaffold or ''}\t{row.begin}\t{row.end}\t{row.reason}\n"
                )

        logger.info(
            f"Saved {len(result.rejected)} rejected feature rows to {output_path}"
        )
