from .billing import ELECTRICITY, NATURAL_GAS, FUEL_OIL
from .constants import GRAMS_CO2E_PER_CCF_NATURAL_GAS, GRAMS_CO2E_PER_GALLON_FUEL_OIL

EXPECTED_UNITS = {
    ELECTRICITY: 'kWh',
    NATURAL_GAS: 'ccf',
    FUEL_OIL: 'gallons',
}


def usage_by_fuel(bills):
    totals = {fuel: 0.0 for fuel in EXPECTED_UNITS}
    for bill in bills:
        if bill.fuel_type not in EXPECTED_UNITS:
            raise ValueError(f"Unimplemented fuel type: {bill.fuel_type}")
        if bill.fuel_unit != EXPECTED_UNITS[bill.fuel_type]:
            raise ValueError(f"Unexpected unit on a {bill.fuel_type} bill: {bill.fuel_unit}")
        totals[bill.fuel_type] += bill.fuel_usage
    return totals


def emissions_for_simulation_grams_co2e(simulation_result, grams_co2e_per_kwh):
    """
    Total grams CO2e for the fuel billed in a simulation.

    Grid intensity really varies by hour; a single average is used here.
    """
    totals = usage_by_fuel(simulation_result.bills)
    return (
        totals[ELECTRICITY] * grams_co2e_per_kwh
        + totals[NATURAL_GAS] * GRAMS_CO2E_PER_CCF_NATURAL_GAS
        + totals[FUEL_OIL] * GRAMS_CO2E_PER_GALLON_FUEL_OIL
    )
