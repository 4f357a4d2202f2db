import pytest

from hvacsim.billing import (
    SimpleElectricalUtilityPlan,
    SimpleFuelBill,
    SimpleFuelOilUtilityPlan,
    SimpleNaturalGasUtilityPlan,
)
from hvacsim.constants import GRAMS_CO2E_PER_CCF_NATURAL_GAS, GRAMS_CO2E_PER_GALLON_FUEL_OIL
from hvacsim.emissions import emissions_for_simulation_grams_co2e, usage_by_fuel
from hvacsim.run_model import SimulationResult
from hvacsim.utils import local_time

JAN = local_time(2023, 1, 1)
FEB = local_time(2023, 2, 1)


def bills_for(plan, amount):
    plan.record_usage(amount, local_time(2023, 1, 10))
    return plan.get_bills(JAN, FEB)


def test_usage_by_fuel():
    bills = (
        bills_for(SimpleElectricalUtilityPlan(10, 0.2), 100)
        + bills_for(SimpleNaturalGasUtilityPlan(20, 1.5), 10)
        + bills_for(SimpleElectricalUtilityPlan(0, 0.1), 50)
    )
    assert usage_by_fuel(bills) == {'electricity': 150, 'natural gas': 10, 'fuel oil': 0.0}


def test_emissions_for_simulation():
    bills = (
        bills_for(SimpleElectricalUtilityPlan(10, 0.2), 100)
        + bills_for(SimpleNaturalGasUtilityPlan(20, 1.5), 10)
        + bills_for(SimpleFuelOilUtilityPlan(0, 4.0), 2)
    )
    result = SimulationResult(name="Mixed", time_steps=[], bills=bills)

    grams = emissions_for_simulation_grams_co2e(result, grams_co2e_per_kwh=400)
    assert grams == pytest.approx(
        100 * 400 + 10 * GRAMS_CO2E_PER_CCF_NATURAL_GAS + 2 * GRAMS_CO2E_PER_GALLON_FUEL_OIL
    )
    # A ccf of gas is roughly 5.5 kg
    assert GRAMS_CO2E_PER_CCF_NATURAL_GAS == pytest.approx(5471.7)


def test_zero_carbon_grid():
    result = SimulationResult("Heat pump", [], bills_for(SimpleElectricalUtilityPlan(10, 0.2), 500))
    assert emissions_for_simulation_grams_co2e(result, grams_co2e_per_kwh=0) == 0


def test_unknown_fuel_or_unit():
    propane = SimpleFuelBill(JAN, FEB, "propane", "gallons", 3.0, 0, 2.5)
    with pytest.raises(ValueError):
        usage_by_fuel([propane])

    therms = SimpleFuelBill(JAN, FEB, "natural gas", "therms", 3.0, 0, 1.2)
    with pytest.raises(ValueError):
        usage_by_fuel([therms])
