import math
import pytest
from dorkroom.features.camera.logic import (
    MAX_SHUTTER_SPEED,
    MIN_SHUTTER_SPEED,
    aperture_to_key,
    calculate_ev,
    calculate_exposure_value,
    compare_exposures,
    find_nearest_standard,
    format_aperture,
    format_shutter_speed,
    get_equivalent_exposures,
    get_ev_description,
    iso_to_key,
    key_to_aperture,
    key_to_iso,
    key_to_shutter_speed,
    shutter_speed_to_key,
    solve_for_aperture,
    solve_for_iso,
    solve_for_shutter_speed,
)
from dorkroom.features.camera.models import STANDARD_APERTURES, STANDARD_SHUTTER_SPEEDS


class TestExposureValue:
    def test_reference_point(self):
        # f/1, 1s, ISO 100 is EV 0 by definition
        assert calculate_ev(1, 1, 100) == 0

    def test_f8_125th(self):
        assert calculate_ev(8, 1 / 125, 100) == pytest.approx(12.966, abs=1e-3)

    def test_higher_iso_lowers_ev(self):
        assert calculate_ev(8, 1 / 125, 400) == pytest.approx(calculate_ev(8, 1 / 125, 100) - 2)

    @pytest.mark.parametrize("args", [(0, 1, 100), (8, 0, 100), (8, 1, -100)])
    def test_invalid_input_is_nan(self, args):
        assert math.isnan(calculate_ev(*args))

    def test_solvers_invert_ev(self):
        ev = calculate_ev(5.6, 1 / 60, 200)
        assert solve_for_shutter_speed(ev, 5.6, 200) == pytest.approx(1 / 60)
        assert solve_for_aperture(ev, 1 / 60, 200) == pytest.approx(5.6)
        assert solve_for_iso(ev, 5.6, 1 / 60) == pytest.approx(200)

    def test_solvers_reject_invalid(self):
        assert math.isnan(solve_for_shutter_speed(10, 0, 100))
        assert math.isnan(solve_for_aperture(10, 1, 0))
        assert math.isnan(solve_for_iso(10, 8, 0))

    def test_calculate_exposure_value(self):
        res = calculate_exposure_value(8, 1 / 125, 100)
        assert res.is_valid
        assert res.ev == 13.0
        assert res.description == "Barely visible shadows"
        assert calculate_exposure_value(8, 0, 100).is_valid is False


def test_ev_descriptions():
    assert get_ev_description(15.2) == "Bright sun, distinct shadows"
    assert get_ev_description(20) == "Extremely bright"
    assert get_ev_description(-5) == "Very dark"
    assert get_ev_description(6) == ""


def test_find_nearest_standard_uses_stops():
    # 3s is linearly equidistant from 2s and 4s but a smaller step in stops to 4s
    assert find_nearest_standard(1 / 100, STANDARD_SHUTTER_SPEEDS).label == "1/125"
    assert find_nearest_standard(6.0, STANDARD_APERTURES).label == "f/5.6"
    assert find_nearest_standard(3.0, STANDARD_SHUTTER_SPEEDS).label == '4"'


def test_format_shutter_speed():
    assert format_shutter_speed(1 / 125) == "1/125"
    assert format_shutter_speed(1 / 3) == "1/3"
    assert format_shutter_speed(2) == '2"'
    assert format_shutter_speed(2.54) == '2.5"'
    assert format_shutter_speed(0) == "—"


def test_format_aperture():
    assert format_aperture(5.6) == "f/5.6"
    assert format_aperture(8.0) == "f/8"
    assert format_aperture(-1) == "—"


class TestEquivalentExposures:
    def test_full_table_marks_current_setting(self):
        ev = calculate_ev(8, 1 / 125, 100)
        rows = get_equivalent_exposures(ev, 100, 8, 1 / 125)

        assert len(rows) == len(STANDARD_APERTURES)
        current = [r for r in rows if r.is_current_setting]
        assert len(current) == 1
        assert current[0].aperture_label == "f/8"
        assert current[0].shutter_speed_label == "1/125"
        assert all(r.is_standard_shutter_speed for r in rows)

    def test_out_of_range_shutter_speeds_dropped(self):
        rows = get_equivalent_exposures(20, 100, 8, 1 / 125)
        assert rows
        assert len(rows) < len(STANDARD_APERTURES)
        for r in rows:
            assert MIN_SHUTTER_SPEED * 0.7 <= r.shutter_speed <= MAX_SHUTTER_SPEED * 1.3

    def test_invalid_iso(self):
        assert get_equivalent_exposures(10, 0, 8, 1 / 125) == []


def test_compare_exposures():
    cmp = compare_exposures(8, 1 / 125, 100, 8, 1 / 60, 100)
    assert cmp.is_valid
    assert cmp.stops_difference == pytest.approx(1.06)
    assert cmp.ev_a == 13.0
    assert compare_exposures(8, 1 / 125, 100, 0, 1, 100).is_valid is False


class TestKeyConversion:
    def test_shutter_speed_keys(self):
        assert shutter_speed_to_key(1 / 125) == "1/125"
        assert shutter_speed_to_key(30) == '30"'
        assert shutter_speed_to_key(1 / 100) == "1/100"
        assert key_to_shutter_speed("1/125") == pytest.approx(1 / 125)
        assert key_to_shutter_speed('2"') == 2
        assert key_to_shutter_speed("1/3") == pytest.approx(1 / 3)

    def test_unknown_shutter_key_falls_back(self, caplog):
        assert key_to_shutter_speed("bogus") == pytest.approx(1 / 125)
        assert "Unrecognised shutter speed" in caplog.text

    def test_aperture_keys(self):
        assert aperture_to_key(5.6) == "f/5.6"
        assert aperture_to_key(6.3) == "f/6.3"
        assert key_to_aperture("f/5.6") == 5.6
        assert key_to_aperture("7.1") == 7.1
        assert key_to_aperture("f/x") == 8.0

    def test_iso_keys(self):
        assert iso_to_key(400) == "ISO 400"
        assert key_to_iso("ISO 400") == 400
        assert key_to_iso("fast") == 100
