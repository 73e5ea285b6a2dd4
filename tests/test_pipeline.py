"""Tests for merging and end-to-end annotation of a barcode pool."""

import polars as pl
import pytest

from tnseq_pipeline.annotation import (
    ANNOTATION_COLUMNS,
    annotate_pool,
    merge_annotations,
)
from tnseq_pipeline.features import parse_features
from tnseq_pipeline.observations import parse_observations

FEATURE_COLUMNS = ["scaffold", "begin", "end", "strand", "desc", "old_locus_tag", "new_locus_tag"]
POOL_COLUMNS = ["barcode", "rcbarcode", "nTot", "n", "scaffold", "strand", "pos"]


def features_from(rows):
    df = pl.DataFrame(
        {c: [str(r[i]) if r[i] is not None else None for r in rows] for i, c in enumerate(FEATURE_COLUMNS)},
        schema={c: pl.Utf8 for c in FEATURE_COLUMNS},
    )
    return parse_features(df)


def pool_from(rows):
    df = pl.DataFrame(
        {c: [str(r[i]) if r[i] is not None else None for r in rows] for i, c in enumerate(POOL_COLUMNS)},
        schema={c: pl.Utf8 for c in POOL_COLUMNS},
    )
    return parse_observations(df)


@pytest.fixture
def features():
    """Two chromosomes plus a plasmid; A/B overlap, Z is never hit, P is a point feature."""
    return features_from([
        ["chr1", 100, 300, "+", "DNA polymerase", "OLD_A", "A"],
        ["chr1", 200, 400, "-", "helicase", "OLD_B", "B"],
        ["chr1", 1000, 1100, "+", None, None, "Z"],
        ["chr2", 150, 150, "+", "small RNA", None, "P"],
        ["chr2", 500, 600, "-", "transporter", None, "T"],
    ])


@pytest.fixture
def pool():
    return pool_from([
        ["BC01", "RC01", 10, 9, "chr1", "+", 99],     # intergenic (just before A)
        ["BC02", "RC02", 12, 12, "chr1", "-", 250],   # A and B -> A
        ["BC03", "RC03", 5, 5, "chr1", "+", 350],     # B only
        ["BC04", "RC04", 8, 7, "chr2", "+", 150],     # P (degenerate)
        ["BC05", "RC05", 20, 19, "chr2", "-", 505],   # T, non-central
        ["BC06", "RC06", 3, 3, "chr2", "+", 550],     # T, central
        ["BC07", "RC07", 4, 4, "plasmid", "+", 42],   # scaffold without features
        ["BC08", "RC08", 6, 6, "chr1", "+", 120],     # A, central (0.1 exactly)
    ])


def test_output_columns(pool, features):
    run = annotate_pool(pool, features)

    assert run.annotated.columns[:7] == POOL_COLUMNS
    for column in ANNOTATION_COLUMNS:
        assert column in run.annotated.columns


def test_partition_of_observations(pool, features):
    """Every barcode appears exactly once, matched or intergenic."""
    run = annotate_pool(pool, features)
    observed = run.annotated.filter(pl.col("barcode").is_not_null())

    assert sorted(observed["barcode"].to_list()) == [f"BC0{i}" for i in range(1, 9)]
    intergenic = observed.filter(pl.col("feature_index").is_null())["barcode"].to_list()
    assert sorted(intergenic) == ["BC01", "BC07"]


def test_partition_of_features(pool, features):
    """Hit features appear once per barcode; unhit features exactly once with NULL observation."""
    run = annotate_pool(pool, features)
    annotated = run.annotated

    unhit = annotated.filter(pl.col("barcode").is_null())
    assert unhit["feature_id"].to_list() == ["Z"]
    assert unhit["scaffold"].to_list() == ["chr1"]
    assert unhit["pos"].to_list() == [None]
    assert unhit["central"].to_list() == [None]

    per_feature = dict(
        annotated.filter(pl.col("feature_id").is_not_null())
        .group_by("feature_id")
        .len()
        .iter_rows()
    )
    assert per_feature == {"A": 2, "B": 1, "Z": 1, "P": 1, "T": 2}


def test_tie_break_and_geometry(pool, features):
    annotated = annotate_pool(pool, features).annotated
    rows = {row["barcode"]: row for row in annotated.filter(pl.col("barcode").is_not_null()).to_dicts()}

    assert rows["BC02"]["feature_id"] == "A"
    assert rows["BC02"]["gene_strand"] == "+"
    assert rows["BC02"]["strand"] == "-"
    assert rows["BC02"]["pos_relative"] == pytest.approx(0.75)

    assert rows["BC08"]["central"] is True
    assert rows["BC08"]["pos_relative"] == pytest.approx(0.1)

    assert rows["BC04"]["feature_id"] == "P"
    assert rows["BC04"]["gene_length"] == 0
    assert rows["BC04"]["pos_relative"] is None
    assert rows["BC04"]["central"] is False

    assert rows["BC05"]["central"] is False
    assert rows["BC06"]["central"] is True

    assert rows["BC07"]["begin"] is None
    assert rows["BC07"]["desc"] is None


def test_stable_ordering(pool, features):
    annotated = annotate_pool(pool, features).annotated

    assert annotated["scaffold"].to_list() == [
        "chr1", "chr1", "chr1", "chr1", "chr1",
        "chr2", "chr2", "chr2",
        "plasmid",
    ]
    assert annotated.filter(pl.col("scaffold") == "chr1")["barcode"].to_list() == [
        "BC01", "BC08", "BC02", "BC03", None,
    ]


def test_missing_scaffolds_reported(pool, features):
    run = annotate_pool(pool, features)

    assert run.match.missing_scaffolds == {"plasmid": 1}
    assert run.stats()["ambiguous"] == 1


def test_deterministic_across_runs_and_workers(pool, features):
    single = annotate_pool(pool, features, workers=1).annotated
    again = annotate_pool(pool, features, workers=1).annotated
    threaded = annotate_pool(pool, features, workers=4).annotated

    assert single.equals(again)
    assert single.equals(threaded)


def test_round_trip_stability(tmp_path, pool, features):
    """Re-annotating the exported observations reproduces the same annotation."""
    first = annotate_pool(pool, features).annotated
    exported = first.filter(pl.col("barcode").is_not_null()).select(POOL_COLUMNS)
    path = tmp_path / "pool_again.tab"
    exported.write_csv(path, separator="\t")

    reloaded = parse_observations(pl.read_csv(path, separator="\t", infer_schema_length=0))
    second = annotate_pool(reloaded, features).annotated

    assert first.select(POOL_COLUMNS + ANNOTATION_COLUMNS).equals(
        second.select(POOL_COLUMNS + ANNOTATION_COLUMNS)
    )


def test_custom_central_region(pool, features):
    annotated = annotate_pool(pool, features, central_min=0.0, central_max=1.0).annotated
    matched = annotated.filter(pl.col("barcode").is_not_null() & pl.col("feature_index").is_not_null())

    # Only the degenerate feature stays non-central
    assert matched.filter(~pl.col("central"))["barcode"].to_list() == ["BC04"]


def test_invalid_central_region(pool, features):
    with pytest.raises(ValueError, match="Central region"):
        annotate_pool(pool, features, central_min=0.9, central_max=0.1)


def test_no_observations(features):
    run = annotate_pool(pool_from([]), features)

    assert run.annotated.height == len(features.features)
    assert run.annotated["barcode"].null_count() == run.annotated.height


def test_merge_rejects_incomplete_coverage(pool, features):
    with pytest.raises(ValueError, match="covers"):
        merge_annotations(pool.frame, features.features, [], [])


def test_padded_pool_scaffold_still_matches(features):
    pool = pool_from([["BC01", "RC01", 3, 3, "chr1 ", "+", 150]])

    annotated = annotate_pool(pool, features).annotated
    row = annotated.filter(pl.col("barcode") == "BC01").to_dicts()[0]

    assert row["scaffold"] == "chr1"
    assert row["feature_id"] == "A"
