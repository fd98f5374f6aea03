import pytest

from survey_engine.core.exceptions import BandConfigurationError
from survey_engine.models.schemas import BandIn
from survey_engine.services.bands import (
    average_attainable_scores, band_out, check_band_coverage, resolve_band, sum_attainable_scores,
)


def _band(lo, hi, label, dimension=None):
    return BandIn(min_score=lo, max_score=hi, label=label, dimension=dimension)


def test_resolve_band_inclusive_bounds(db, stress_instrument):
    assert resolve_band(db, stress_instrument.id, 8).label == "Moderate"
    assert resolve_band(db, stress_instrument.id, 12).label == "Moderate"
    assert resolve_band(db, stress_instrument.id, 7).label == "Low"
    assert resolve_band(db, stress_instrument.id, 13).label == "High"


def test_resolve_band_absent_is_none(db, stress_instrument):
    assert resolve_band(db, stress_instrument.id, 2) is None
    assert resolve_band(db, stress_instrument.id, 7.5) is None
    assert band_out(None) is None


def test_resolve_band_is_idempotent(db, stress_instrument):
    first = resolve_band(db, stress_instrument.id, 10)
    second = resolve_band(db, stress_instrument.id, 10)
    assert first.id == second.id


def test_resolve_band_overlap_first_stored_wins(db, make_instrument):
    instrument = make_instrument(code="OVERLAP", bands=[
        {"min_score": 5, "max_score": 10, "label": "first"},
        {"min_score": 0, "max_score": 15, "label": "second"},
    ])
    assert resolve_band(db, instrument.id, 7).label == "first"
    assert resolve_band(db, instrument.id, 12).label == "second"


def test_resolve_band_filters_on_dimension(db, attachment_instrument):
    assert resolve_band(db, attachment_instrument.id, 3, dimension="anxiety").label == "Low anxiety"
    assert resolve_band(db, attachment_instrument.id, 3, dimension="avoidance").label == "High avoidance"
    assert resolve_band(db, attachment_instrument.id, 3, dimension="unknown") is None


def test_resolve_band_scoped_to_instrument(db, stress_instrument, make_instrument):
    other = make_instrument(code="OTHER", category="other", bands=[{"min_score": 0, "max_score": 100, "label": "Other"}])
    assert resolve_band(db, stress_instrument.id, 10).label == "Moderate"
    assert resolve_band(db, other.id, 10).label == "Other"


def test_band_out_carries_presentation_fields(db, stress_instrument):
    out = band_out(resolve_band(db, stress_instrument.id, 10))
    assert out.label == "Moderate"
    assert out.description == "Stress score"
    assert out.advice == "moderate advice"
    assert (out.min_score, out.max_score) == (8, 12)


def test_sum_attainable_scores():
    assert sum_attainable_scores(3, 1, 5) == [float(t) for t in range(3, 16)]


def test_average_attainable_scores():
    assert average_attainable_scores(2, 1, 3) == [1.0, 1.5, 2.0, 2.5, 3.0]


def test_coverage_accepts_contiguous_bands():
    bands = [_band(3, 7, "low"), _band(8, 12, "mid"), _band(13, 15, "high")]
    check_band_coverage(bands, sum_attainable_scores(3, 1, 5))


def test_coverage_rejects_overlap():
    bands = [_band(3, 8, "low"), _band(8, 15, "high")]
    with pytest.raises(BandConfigurationError, match="overlap"):
        check_band_coverage(bands, sum_attainable_scores(3, 1, 5))


def test_coverage_rejects_gap():
    bands = [_band(3, 7, "low"), _band(9, 15, "high")]
    with pytest.raises(BandConfigurationError) as exc:
        check_band_coverage(bands, sum_attainable_scores(3, 1, 5))
    assert exc.value.details["unmapped"] == [8.0]


def test_coverage_rejects_inverted_range():
    with pytest.raises(BandConfigurationError, match="min_score above max_score"):
        check_band_coverage([_band(10, 3, "bad")], [])


def test_coverage_on_average_grid():
    bands = [_band(1, 3.5, "low"), _band(3.55, 5, "mid"), _band(5.05, 7, "high")]
    check_band_coverage(bands, average_attainable_scores(20, 1, 7))
    with pytest.raises(BandConfigurationError):
        check_band_coverage(bands, average_attainable_scores(40, 1, 7))
