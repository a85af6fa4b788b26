from datetime import date

import pytest

from market_insights.models.records import ComparableProperty
from market_insights.services.comps_service import summarize_comparables
from market_insights.services.confidence import calculate_confidence

AS_OF = date(2024, 6, 30)


def _comp(listing_id, price, grade, **overrides) -> ComparableProperty:
    data = {
        "listing_id": listing_id,
        "address": f"{listing_id} Main St",
        "adjusted_price": price,
        "distance_miles": 1.0,
        "comparability_grade": grade,
        "standard_status": "Closed",
        "close_date": date(2024, 5, 15),
    }
    data.update(overrides)
    return ComparableProperty(**data)


def _set():
    return [_comp("L1", 500000.0, "A"), _comp("L2", 520000.0, "B"), _comp("L3", 400000.0, "C")]


def test_top_graded_comps_drive_the_estimate():
    summary = summarize_comparables(_set(), as_of=AS_OF)
    value = summary.estimated_value

    assert summary.total_found == 3
    assert summary.top_comps_count == 2
    assert value.low == 500000.0
    assert value.high == 520000.0
    assert value.mid_unweighted == 510000.0
    assert value.mid_weighted == 509000.0
    assert value.mid == value.mid_weighted
    assert value.weight_difference == -1000.0
    assert value.weight_total == 3.5
    assert [entry.listing_id for entry in value.weight_breakdown] == ["L1", "L2"]
    assert [entry.weight for entry in value.weight_breakdown] == [2.0, 1.5]


def test_set_without_overrides_uses_grade_weights():
    comps = [_comp("L1", 480000.0, "A"), _comp("L2", 500000.0, "A"), _comp("L3", 520000.0, "A")]
    value = summarize_comparables(comps, as_of=AS_OF).estimated_value
    assert value.weight_total == 6.0
    assert value.mid == 500000.0
    assert all(entry.is_override is False for entry in value.weight_breakdown)


def test_weight_override_replaces_grade_weight():
    comps = [_comp("L1", 500000.0, "A", weight_override=1.0), _comp("L2", 520000.0, "B")]
    value = summarize_comparables(comps, as_of=AS_OF).estimated_value
    assert value.mid_weighted == 512000.0
    assert value.weight_total == 2.5
    assert value.weight_breakdown[0].is_override is True
    assert value.weight_breakdown[1].is_override is False


def test_falls_back_to_all_comps_without_top_grades():
    comps = [_comp("L1", 300000.0, "C"), _comp("L2", 340000.0, "D"), _comp("L3", 320000.0, None)]
    summary = summarize_comparables(comps, as_of=AS_OF)
    assert summary.top_comps_count == 0
    assert summary.estimated_value.low == 300000.0
    assert summary.estimated_value.high == 340000.0
    # C=1.0, D=0.5, ungraded=1.0
    assert summary.estimated_value.weight_total == 2.5
    assert summary.estimated_value.mid_weighted == 316000.0


def test_dispersion_covers_every_comp():
    summary = summarize_comparables(_set(), as_of=AS_OF)
    assert summary.avg_adjusted_price == pytest.approx(473333.0)
    assert summary.median_adjusted_price == 500000.0
    assert summary.price_std_dev == pytest.approx(52493.0, abs=1)
    assert summary.avg_distance == 1.0


def test_confidence_is_embedded():
    comps = _set()
    summary = summarize_comparables(comps, as_of=AS_OF)
    assert summary.confidence == calculate_confidence(comps, as_of=AS_OF)


def test_empty_set_has_no_summary():
    assert summarize_comparables([], as_of=AS_OF) is None
