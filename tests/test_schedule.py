import json

import pytest

from hvacsim.billing import (
    SimpleElectricalUtilityPlan,
    SimpleNaturalGasUtilityPlan,
    TimeOfUseElectricalUtilityPlan,
)
from hvacsim.schedule import (
    load_utility_plans,
    parse_time,
    time_of_use_periods_from_config,
    utility_plan_factories_from_config,
)
from hvacsim.utils import local_time

# 2023-06-05 is a Monday
MONDAY = (2023, 6, 5)
SATURDAY = (2023, 6, 10)

TOU_CONFIG = [
    {"name": "peak", "cost_per_kwh": 0.30, "months": [6, 7, 8],
     "windows": [{"weekdays": ["mon", "tue", "wed", "thu", "fri"], "start": "16:00", "end": "21:00"}]},
    {"name": "overnight", "cost_per_kwh": 0.08,
     "windows": [{"start": "22:00", "end": "06:00"}]},
    {"name": "off peak", "cost_per_kwh": 0.15},
]


def test_parse_time():
    t = parse_time("16:30")
    assert (t.hour, t.minute) == (16, 30)


def period_name(periods, ts):
    return next(p.name for p in periods if p.in_period(ts))


def test_windows_and_weekdays():
    periods = time_of_use_periods_from_config(TOU_CONFIG)
    assert [p.name for p in periods] == ["peak", "overnight", "off peak"]
    assert periods[0].cost_per_kwh == 0.30

    assert period_name(periods, local_time(*MONDAY, 16)) == "peak"
    assert period_name(periods, local_time(*MONDAY, 20, 59)) == "peak"
    # End is exclusive
    assert period_name(periods, local_time(*MONDAY, 21)) == "off peak"
    assert period_name(periods, local_time(*MONDAY, 15, 59)) == "off peak"
    # Weekend
    assert period_name(periods, local_time(*SATURDAY, 17)) == "off peak"


def test_months_filter():
    periods = time_of_use_periods_from_config(TOU_CONFIG)
    # A Monday in January
    assert period_name(periods, local_time(2023, 1, 9, 17)) == "off peak"


def test_overnight_window_wraps():
    periods = time_of_use_periods_from_config(TOU_CONFIG)
    assert period_name(periods, local_time(*MONDAY, 23)) == "overnight"
    assert period_name(periods, local_time(*MONDAY, 2)) == "overnight"
    assert period_name(periods, local_time(*MONDAY, 6)) == "off peak"


def test_bad_period_config():
    with pytest.raises(ValueError):
        time_of_use_periods_from_config([{"name": "no rate"}])
    with pytest.raises(ValueError):
        time_of_use_periods_from_config([{"name": "x", "cost_per_kwh": 0.1, "windows": [{"weekdays": ["funday"]}]}])


def test_plan_factories():
    factories = utility_plan_factories_from_config({
        "electrical": {"fixed_cost_per_month": 10, "periods": TOU_CONFIG},
        "natural_gas": {"fixed_cost_per_month": 20, "cost_per_ccf": 1.5},
    })
    assert factories["fuel_oil"] is None

    electrical = factories["electrical"]()
    assert isinstance(electrical, TimeOfUseElectricalUtilityPlan)
    assert electrical.fixed_cost_per_month == 10
    # Each call builds a new, empty plan
    assert factories["electrical"]() is not electrical

    gas = factories["natural_gas"]()
    assert isinstance(gas, SimpleNaturalGasUtilityPlan)
    assert gas.cost_per_fuel_unit == 1.5


def test_flat_electrical_plan():
    factories = utility_plan_factories_from_config({"electrical": {"cost_per_kwh": 0.12}})
    plan = factories["electrical"]()
    assert isinstance(plan, SimpleElectricalUtilityPlan)
    assert plan.fixed_cost_per_month == 0.0


def test_missing_rate():
    with pytest.raises(ValueError):
        utility_plan_factories_from_config({"natural_gas": {"fixed_cost_per_month": 20}})


def test_load_utility_plans(tmp_path):
    path = tmp_path / "tariffs.json"
    path.write_text(
        "// Summer peak pricing\n"
        + json.dumps({"electrical": {"fixed_cost_per_month": 12, "periods": TOU_CONFIG},
                      "fuel_oil": {"cost_per_gallon": 4.2}})
    )
    factories = load_utility_plans(str(path))
    assert factories["natural_gas"] is None
    assert factories["fuel_oil"]().fuel_unit == "gallons"

    plan = factories["electrical"]()
    plan.record_electricity_usage_kwh(10, local_time(*MONDAY, 17))
    plan.record_electricity_usage_kwh(5, local_time(*MONDAY, 12))
    bill = plan.get_bills(local_time(2023, 6, 1), local_time(2023, 7, 1))[0]
    assert bill.total_cost == pytest.approx(12 + 10 * 0.30 + 5 * 0.15)
