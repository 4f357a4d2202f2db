import json

import pytest

from hvacsim.appliance import PerformanceRating
from hvacsim.heat_pump import (
    PANASONIC_HEAT_PUMP_RATINGS,
    AirSourceHeatPump,
    BtusPowerSetting,
    PercentPowerSetting,
    RatingPoint,
    defrost_factor,
    interpolate_performance_ratings,
)


@pytest.fixture
def pump():
    return AirSourceHeatPump(PANASONIC_HEAT_PUMP_RATINGS, elevation_feet=0)


def cooling(pump, btus, inside=80, outside=95):
    return pump.get_estimated_performance_rating(BtusPowerSetting(btus), inside, outside, 'cooling')


def test_interpolate_performance_ratings():
    a = PerformanceRating(10000, 4.0)
    b = PerformanceRating(20000, 2.0)
    assert interpolate_performance_ratings(10, a, 20, b, 10) == a
    assert interpolate_performance_ratings(10, a, 20, b, 20) == b

    for dt, btus, cop in [(11, 11000, 3.8), (15, 15000, 3.0), (19, 19000, 2.2)]:
        r = interpolate_performance_ratings(10, a, 20, b, dt)
        assert r.btus_per_hour == pytest.approx(btus)
        assert r.coefficient_of_performance == pytest.approx(cop)


def test_interpolated_cop_clamped():
    a = PerformanceRating(10000, 8.0)
    b = PerformanceRating(20000, 1.5)
    assert interpolate_performance_ratings(10, a, 20, b, 0).coefficient_of_performance == 8.5
    assert interpolate_performance_ratings(10, a, 20, b, 30).coefficient_of_performance == 1.0


def test_cooling_at_rated_conditions(pump):
    r = cooling(pump, -47400)
    assert r.btus_per_hour == pytest.approx(-47400)
    assert r.coefficient_of_performance == pytest.approx(2.42)

    r = cooling(pump, -13000)
    assert r.btus_per_hour == pytest.approx(-13000)
    assert r.coefficient_of_performance == pytest.approx(3.7)

    r = cooling(pump, -(47400 + 13000) / 2)
    assert r.btus_per_hour == pytest.approx(-(47400 + 13000) / 2)
    assert r.coefficient_of_performance == pytest.approx((2.42 + 3.7) / 2)


def test_cooling_below_min_and_above_max(pump):
    r = cooling(pump, -10000)
    assert r.btus_per_hour == pytest.approx(-13000)
    assert r.coefficient_of_performance == pytest.approx(3.7)

    r = cooling(pump, -90000)
    assert r.btus_per_hour == pytest.approx(-47400)
    assert r.coefficient_of_performance == pytest.approx(2.42)


def test_cooling_between_rated_conditions(pump):
    r = pump.get_estimated_performance_rating(PercentPowerSetting(100), 80, 90, 'cooling')
    assert r.btus_per_hour == pytest.approx(-44553.85, abs=0.01)
    assert r.coefficient_of_performance == pytest.approx(2.94, abs=0.01)


def test_delta_t_beyond_table_plateaus(pump):
    # 20F spread is beyond the widest cooling row (15F)
    r = cooling(pump, -90000, inside=70, outside=90)
    assert r.btus_per_hour == pytest.approx(-47400)
    assert r.coefficient_of_performance == pytest.approx(2.42)

    info = pump.get_cooling_performance_info(70, 90)
    assert info.btus_per_hour == pytest.approx(-47400)
    assert info.fuel_usage.electricity_kw == pytest.approx(47400 * 0.000293071 / 2.42)


def test_cooling_at_elevation():
    pump = AirSourceHeatPump(PANASONIC_HEAT_PUMP_RATINGS, elevation_feet=5300)
    r = pump.get_estimated_performance_rating(PercentPowerSetting(100), 80, 95, 'cooling')
    assert r.btus_per_hour == pytest.approx(-38915, abs=1)
    assert r.coefficient_of_performance == pytest.approx(2.38, abs=0.01)


def test_heating_with_defrost(pump):
    r = pump.get_estimated_performance_rating(BtusPowerSetting(36876), 70, 5, 'heating')
    assert r.btus_per_hour == pytest.approx(36007, abs=1)
    assert r.coefficient_of_performance == pytest.approx(1.68, abs=0.01)

    r = pump.get_estimated_performance_rating(BtusPowerSetting(12500), 70, 5, 'heating')
    assert r.btus_per_hour == pytest.approx(12500)
    assert r.coefficient_of_performance == pytest.approx(2.6, abs=0.01)


def test_heating_performance_info(pump):
    info = pump.get_heating_performance_info(70, 5)
    assert info.btus_per_hour == pytest.approx(36007, abs=1)
    assert info.fuel_usage.electricity_kw == pytest.approx(6.3, abs=0.05)
    assert info.fuel_usage.natural_gas_ccf_per_hour is None


def test_partial_power_heating(pump):
    full = pump.get_heating_performance_info(70, 47)
    part = pump.get_heating_performance_info(70, 47, percent_power=40)
    assert part.btus_per_hour == pytest.approx(full.btus_per_hour * 0.4)
    # Modulated down runs more efficiently
    assert part.btus_per_hour / part.fuel_usage.electricity_kw > full.btus_per_hour / full.fuel_usage.electricity_kw


def test_defrost_curves():
    assert defrost_factor(60, 'max') == 1.0
    assert defrost_factor(5, 'max') == defrost_factor(5, 'min')
    assert defrost_factor(40, 'max') != defrost_factor(40, 'min')


def test_cop_can_fall_below_one_in_deep_cold():
    rows = [
        RatingPoint('heating', 70, 47, PerformanceRating(10000, 1.2), PerformanceRating(20000, 1.0)),
        RatingPoint('heating', 70, -30, PerformanceRating(8000, 1.0), PerformanceRating(15000, 1.0)),
    ]
    pump = AirSourceHeatPump(rows)
    # Past max capacity the defrost-derated max rating is returned as is
    r = pump.get_estimated_performance_rating(BtusPowerSetting(1e9), 70, -30, 'heating')
    assert r.coefficient_of_performance < 1.0


def test_too_few_rows():
    with pytest.raises(ValueError):
        AirSourceHeatPump(PANASONIC_HEAT_PUMP_RATINGS[:3])  # one heating row
    with pytest.raises(ValueError):
        AirSourceHeatPump([])

    heating_only = AirSourceHeatPump(PANASONIC_HEAT_PUMP_RATINGS[2:])
    assert heating_only.supports('heating')
    assert not heating_only.supports('cooling')
    with pytest.raises(ValueError):
        heating_only.get_cooling_performance_info(75, 90)


def test_from_json(tmp_path):
    path = tmp_path / "pump.json"
    rows = [
        {
            "mode": r.mode,
            "inside_dry_bulb_f": r.inside_dry_bulb_f,
            "outside_dry_bulb_f": r.outside_dry_bulb_f,
            "min_capacity": {"btus_per_hour": r.min_capacity.btus_per_hour,
                             "coefficient_of_performance": r.min_capacity.coefficient_of_performance},
            "max_capacity": {"btus_per_hour": r.max_capacity.btus_per_hour,
                             "coefficient_of_performance": r.max_capacity.coefficient_of_performance},
        }
        for r in PANASONIC_HEAT_PUMP_RATINGS
    ]
    path.write_text("// NEEP listing\n" + json.dumps({"name": "Panasonic", "ratings": rows}))

    pump = AirSourceHeatPump.from_json(str(path))
    assert pump.name == "Panasonic"
    expected = AirSourceHeatPump(PANASONIC_HEAT_PUMP_RATINGS).get_heating_performance_info(70, 17)
    assert pump.get_heating_performance_info(70, 17) == expected
