from conftest import discharging
from powersourced.health import capacity_ratio, classify_health, has_permanent_failure
from powersourced.models import BatteryDerived, Rating, ReplacementState


def _battery(max_capacity, cycle_count=100, **overrides):
    return discharging(max_capacity=max_capacity, design_capacity=10000, cycle_count=cycle_count, **overrides)


def test_absent_battery_has_no_health():
    derived = BatteryDerived()
    assert classify_health(discharging(is_present=False), derived) == (None, None)


def test_permanent_failure_is_poor_with_good_confidence():
    reading = _battery(9000, error_condition="PermanentFailure", failure="Permanent Battery Failure")
    assert has_permanent_failure(reading)
    assert classify_health(reading, BatteryDerived()) == (Rating.POOR, Rating.GOOD)


def test_failure_without_error_condition_is_not_permanent():
    reading = _battery(9000, failure="Permanent Battery Failure")
    assert not has_permanent_failure(reading)
    assert classify_health(reading, BatteryDerived()) == (Rating.GOOD, Rating.GOOD)


def test_permanent_failure_leaves_latch_alone():
    derived = BatteryDerived(replacement_state=ReplacementState.NEEDS_REPLACEMENT_LATCHED)
    reading = _battery(9800, error_condition="PermanentFailure", failure="Permanent Battery Failure")
    classify_health(reading, derived)
    assert derived.replacement_state is ReplacementState.NEEDS_REPLACEMENT_LATCHED


def test_missing_design_capacity_is_indeterminate():
    assert classify_health(discharging(design_capacity=None), BatteryDerived()) == (None, None)
    assert classify_health(discharging(design_capacity=0), BatteryDerived()) == (None, None)


def test_ratio_includes_reserve():
    assert capacity_ratio(_battery(7800)) == 0.8


def test_healthy_battery_is_good():
    derived = BatteryDerived()
    assert classify_health(_battery(9000), derived) == (Rating.GOOD, Rating.GOOD)
    assert derived.replacement_state is ReplacementState.NORMAL


def test_worn_battery_latches_fair():
    derived = BatteryDerived()
    assert classify_health(_battery(7800), derived) == (Rating.FAIR, Rating.GOOD)
    assert derived.replacement_state is ReplacementState.NEEDS_REPLACEMENT_LATCHED


def test_worn_but_old_battery_stays_good():
    derived = BatteryDerived()
    assert classify_health(_battery(7000, cycle_count=300), derived) == (Rating.GOOD, Rating.GOOD)
    assert derived.replacement_state is ReplacementState.NORMAL


def test_hysteresis_holds_fair_until_release_threshold():
    derived = BatteryDerived()
    classify_health(_battery(7800), derived)

    # 0.82 and 0.825 are above the trip point but inside the release band
    assert classify_health(_battery(8000), derived)[0] is Rating.FAIR
    assert classify_health(_battery(8050), derived)[0] is Rating.FAIR
    assert derived.replacement_state is ReplacementState.NEEDS_REPLACEMENT_LATCHED

    assert classify_health(_battery(8200), derived)[0] is Rating.GOOD
    assert derived.replacement_state is ReplacementState.NORMAL

    # Back in the band without the latch: Good
    assert classify_health(_battery(8050), derived)[0] is Rating.GOOD


def test_latch_released_by_cycle_count():
    derived = BatteryDerived(replacement_state=ReplacementState.NEEDS_REPLACEMENT_LATCHED)
    assert classify_health(_battery(7500, cycle_count=300), derived)[0] is Rating.GOOD
    assert derived.replacement_state is ReplacementState.NORMAL


def test_ratio_at_release_threshold_keeps_latch():
    derived = BatteryDerived(replacement_state=ReplacementState.NEEDS_REPLACEMENT_LATCHED)
    assert capacity_ratio(_battery(8100)) == 0.83
    assert classify_health(_battery(8100), derived) == (Rating.FAIR, Rating.GOOD)
    assert derived.replacement_state is ReplacementState.NEEDS_REPLACEMENT_LATCHED


def test_last_young_cycle_count_still_latches():
    derived = BatteryDerived()
    assert classify_health(_battery(7800, cycle_count=299), derived) == (Rating.FAIR, Rating.GOOD)
    assert derived.replacement_state is ReplacementState.NEEDS_REPLACEMENT_LATCHED
