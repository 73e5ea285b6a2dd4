"""Unit tests for relative position and central-region classification."""

import pytest

from tnseq_pipeline.annotation import CENTRAL_MAX, CENTRAL_MIN, classify_position
from tnseq_pipeline.features import GeneFeature


@pytest.fixture
def gene():
    return GeneFeature(scaffold="chr1", begin=100, end=200, strand="+", new_locus_tag="A")


def test_thresholds_are_fixed():
    assert CENTRAL_MIN == 0.1
    assert CENTRAL_MAX == 0.9


def test_lower_boundary_is_central(gene):
    """Position 110 in [100, 200] is exactly 0.10 and central."""
    result = classify_position(110, gene)

    assert result.gene_length == 100
    assert result.relative_position == pytest.approx(0.10)
    assert result.is_central is True


def test_just_below_lower_boundary(gene):
    """Position 109 in [100, 200] is 0.09 and not central."""
    result = classify_position(109, gene)

    assert result.relative_position == pytest.approx(0.09)
    assert result.is_central is False


def test_upper_boundary(gene):
    assert classify_position(190, gene).is_central is True
    assert classify_position(191, gene).is_central is False


def test_gene_ends(gene):
    start = classify_position(100, gene)
    end = classify_position(200, gene)

    assert start.relative_position == 0.0
    assert end.relative_position == 1.0
    assert not start.is_central
    assert not end.is_central


def test_degenerate_feature():
    """Zero-length feature gives NULL relative position and never central."""
    point = GeneFeature(scaffold="chr1", begin=150, end=150, strand="-")

    result = classify_position(150, point)

    assert result.gene_length == 0
    assert result.relative_position is None
    assert result.is_central is False


def test_custom_thresholds(gene):
    result = classify_position(105, gene, central_min=0.05, central_max=0.95)

    assert result.is_central is True
    assert classify_position(105, gene).is_central is False


def test_relative_position_ignores_strand():
    minus = GeneFeature(scaffold="chr1", begin=100, end=200, strand="-")

    assert classify_position(120, minus).relative_position == pytest.approx(0.2)
