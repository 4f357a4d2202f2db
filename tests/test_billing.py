import dataclasses

import pytest

from hvacsim.appliance import FuelUsage
from hvacsim.billing import (
    FuelBilling,
    LineItem,
    SimpleElectricalUtilityPlan,
    SimpleFuelOilUtilityPlan,
    SimpleNaturalGasUtilityPlan,
    TimeOfUseElectricalUtilityPlan,
    TimeOfUsePeriod,
    month_periods,
)
from hvacsim.utils import local_time

TZ = "America/Toronto"


def day(year, month, d, hour=0):
    return local_time(year, month, d, hour, tz=TZ)


def test_month_periods():
    periods = month_periods(day(2022, 1, 1), day(2022, 5, 5))
    starts = [(s.year, s.month, s.day) for s, _ in periods]
    assert starts == [(2022, 1, 1), (2022, 2, 1), (2022, 3, 1), (2022, 4, 1), (2022, 5, 1)]
    # Restartable
    assert len(periods) == 5
    assert len(list(periods)) == 5

    first_start, first_end = next(iter(periods))
    assert (first_end.year, first_end.month, first_end.day) == (2022, 1, 31)
    assert str(first_start.tz) == TZ


def test_month_periods_mid_month_start_and_exclusive_end():
    periods = list(month_periods(day(2022, 1, 20), day(2022, 3, 1)))
    assert [(s.month, s.day) for s, _ in periods] == [(1, 1), (2, 1)]


def test_natural_gas_bills():
    plan = SimpleNaturalGasUtilityPlan(fixed_cost_per_month=20, cost_per_ccf=1.5)
    plan.record_natural_gas_usage_ccf(1, day(2022, 1, 15))
    plan.record_natural_gas_usage_ccf(2, day(2022, 1, 20))
    plan.record_natural_gas_usage_ccf(3, day(2022, 2, 1))
    plan.record_natural_gas_usage_ccf(5, day(2022, 2, 3))
    plan.record_natural_gas_usage_ccf(7, day(2022, 4, 11))
    plan.record_natural_gas_usage_ccf(11, day(2022, 4, 12))

    bills = plan.get_bills(day(2022, 1, 1), day(2022, 5, 5))
    assert len(bills) == 5

    jan = bills[0]
    assert jan.billing_period_start == day(2022, 1, 1)
    assert jan.billing_period_end.day == 31
    assert jan.fuel_type == "natural gas"
    assert jan.fuel_unit == "ccf"
    assert jan.fuel_usage == 3
    assert jan.total_cost == pytest.approx(20 + 3 * 1.5)
    assert jan.line_items == [
        LineItem("Fixed charges", 20),
        LineItem("3.00 ccf (at 1.5/ccf)", 3 * 1.5),
    ]

    assert bills[1].billing_period_end.day == 28
    assert bills[1].fuel_usage == 8
    assert bills[1].total_cost == pytest.approx(20 + 8 * 1.5)

    # No usage still pays the fixed charge
    assert bills[2].fuel_usage == 0
    assert bills[2].total_cost == pytest.approx(20)

    assert bills[3].fuel_usage == 18
    assert bills[4].fuel_usage == 0


def test_negative_usage_rejected():
    with pytest.raises(ValueError):
        SimpleElectricalUtilityPlan(10, 0.15).record_electricity_usage_kwh(-1, day(2022, 1, 1))
    with pytest.raises(ValueError):
        SimpleFuelOilUtilityPlan(0, 4.0).record_fuel_oil_usage_gallons(-0.5, day(2022, 1, 1))


def _noon_periods(after_noon=lambda t: t.hour >= 12):
    return [
        TimeOfUsePeriod("before noon", 0.1, lambda t: t.hour < 12),
        TimeOfUsePeriod("after noon", 0.2, after_noon),
    ]


def test_time_of_use_bills():
    plan = TimeOfUseElectricalUtilityPlan(fixed_cost_per_month=50, periods=_noon_periods())
    plan.record_electricity_usage_kwh(100, day(2022, 1, 15, 10))
    plan.record_electricity_usage_kwh(200, day(2022, 1, 15, 11))
    plan.record_electricity_usage_kwh(400, day(2022, 1, 15, 14))
    plan.record_electricity_usage_kwh(150, day(2022, 2, 1, 0))

    bills = plan.get_bills(day(2022, 1, 1), day(2022, 2, 28))
    assert len(bills) == 2
    assert bills[0].total_cost == pytest.approx(50 + 300 * 0.1 + 400 * 0.2)
    assert bills[1].total_cost == pytest.approx(50 + 150 * 0.1)
    assert bills[0].fuel_usage == pytest.approx(700)

    assert bills[0].line_items == [
        LineItem("Fixed charges", 50),
        LineItem("300.00 kWh (before noon, at 0.1/kWh)", 300 * 0.1),
        LineItem("400.00 kWh (after noon, at 0.2/kWh)", 400 * 0.2),
    ]


def test_time_of_use_no_matching_period():
    plan = TimeOfUseElectricalUtilityPlan(50, _noon_periods(after_noon=lambda t: t.hour > 12))
    with pytest.raises(LookupError):
        plan.record_electricity_usage_kwh(10, day(2022, 1, 15, 12))


def test_fuel_billing_routes_usage():
    electrical = SimpleElectricalUtilityPlan(10, 0.2)
    gas = SimpleNaturalGasUtilityPlan(20, 1.5)
    billing = FuelBilling(electrical=electrical, natural_gas=gas)

    billing.record(FuelUsage(electricity_kw=3.0), 0.5, day(2022, 1, 2))
    billing.record(FuelUsage(natural_gas_ccf_per_hour=0.9), 1 / 3, day(2022, 1, 2))
    billing.record(FuelUsage(), 1.0, day(2022, 1, 2))

    bills = billing.get_bills(day(2022, 1, 1), day(2022, 1, 31))
    assert [b.fuel_type for b in bills] == ["electricity", "natural gas"]
    assert bills[0].fuel_usage == pytest.approx(1.5)
    assert bills[1].fuel_usage == pytest.approx(0.3)


def test_fuel_billing_rejects_unconfigured_fuel():
    billing = FuelBilling(electrical=SimpleElectricalUtilityPlan(10, 0.2))
    with pytest.raises(ValueError):
        billing.record(FuelUsage(natural_gas_ccf_per_hour=0.5), 1.0, day(2022, 1, 2))
    # Zero usage of an unconfigured fuel is fine
    billing.record(FuelUsage(natural_gas_ccf_per_hour=0.0), 1.0, day(2022, 1, 2))


def test_bills_are_frozen():
    gas = SimpleNaturalGasUtilityPlan(20, 1.5)
    gas.record_natural_gas_usage_ccf(4, day(2022, 1, 15))
    bill = gas.get_bills(day(2022, 1, 1), day(2022, 1, 31))[0]
    with pytest.raises(dataclasses.FrozenInstanceError):
        bill.fuel_usage = 0

    tou = TimeOfUseElectricalUtilityPlan(50, _noon_periods())
    tou.record_electricity_usage_kwh(10, day(2022, 1, 15, 9))
    tou_bill = tou.get_bills(day(2022, 1, 1), day(2022, 1, 31))[0]
    assert isinstance(tou_bill.periods, tuple)
    with pytest.raises(dataclasses.FrozenInstanceError):
        tou_bill.fixed_cost = 0

    # Later recordings don't reach bills already handed out
    gas.record_natural_gas_usage_ccf(6, day(2022, 1, 20))
    tou.record_electricity_usage_kwh(5, day(2022, 1, 16, 9))
    assert bill.fuel_usage == 4
    assert tou_bill.fuel_usage == pytest.approx(10)
