import datetime
import json

import pandas as pd

from .emissions import emissions_for_simulation_grams_co2e


def to_dataframe(result):
    """One row per time step, indexed by local time."""
    rows = []
    for step in result.time_steps:
        fuel = step.hvac_response.fuel_usage
        row = {
            'local_time': step.local_time,
            'inside_air_temp_f': step.inside_air_temp_f,
            'outside_air_temp_f': step.weather.outside_air_temp_f,
            'hvac_btus_per_hour': step.hvac_response.btus_per_hour,
            'electricity_kw': fuel.electricity_kw or 0.0,
            'natural_gas_ccf_per_hour': fuel.natural_gas_ccf_per_hour or 0.0,
            'fuel_oil_gallons_per_hour': fuel.fuel_oil_gallons_per_hour or 0.0,
        }
        for load in step.passive_loads:
            row[f"{load.name}_btus_per_hour"] = load.btus_per_hour
        rows.append(row)

    df = pd.DataFrame(rows)
    if not df.empty:
        df = df.set_index('local_time')
    return df


def bills_dataframe(result):
    return pd.DataFrame([
        {
            'billing_period_start': bill.billing_period_start,
            'billing_period_end': bill.billing_period_end,
            'fuel_type': bill.fuel_type,
            'fuel_usage': bill.fuel_usage,
            'fuel_unit': bill.fuel_unit,
            'total_cost': bill.total_cost,
        }
        for bill in result.bills
    ])


def monthly_costs(result):
    """Total cost per billing month across all fuels."""
    df = bills_dataframe(result)
    if df.empty:
        return pd.Series(dtype=float)
    df['month'] = df['billing_period_start'].map(lambda ts: f"{ts.year}-{ts.month:02d}")
    return df.groupby('month')['total_cost'].sum()


def print_report(results, grams_co2e_per_kwh=None):
    for result in results:
        df = to_dataframe(result)

        print("\n" + "="*40)
        print(f"SIMULATION: {result.name}")
        print("="*40)
        if not df.empty:
            print(f"Steps:                 {len(df)}")
            print(f"Inside Temp (min/max): {df['inside_air_temp_f'].min():.1f} / {df['inside_air_temp_f'].max():.1f} F")

        for bill in result.bills:
            print(f"{bill.billing_period_start:%Y-%m} {bill.fuel_type:<12} "
                  f"{bill.fuel_usage:10.2f} {bill.fuel_unit:<8} ${bill.total_cost:9.2f}")

        print("-"*40)
        print(f"Total Cost:            ${result.bills_total_cost:.2f}")
        if grams_co2e_per_kwh is not None:
            kg = emissions_for_simulation_grams_co2e(result, grams_co2e_per_kwh) / 1000.0
            print(f"Emissions:             {kg:.0f} kg CO2e")
        print("="*40)


def print_selection_report(selection_results):
    print("\n" + "="*40)
    print("HEAT PUMP SELECTION")
    print("="*40)
    if not selection_results:
        print("No heat pump meets the design loads.")
    for rank, r in enumerate(selection_results, start=1):
        print(f"{rank}. {r.heat_pump.name}")
        print(f"   Average COP:           {r.average_coefficient_of_performance:.2f}")
        print(f"   Under-capacity hours:  {r.under_capacity_heating_hours} heating, "
              f"{r.under_capacity_cooling_hours} cooling")
    print("="*40)


def export_debug_output(filename, results):
    """Export time series and bills to JSON for automation use."""
    def step_rows(result):
        df = to_dataframe(result).reset_index()
        if not df.empty:
            df['local_time'] = df['local_time'].map(lambda ts: ts.isoformat())
        return df.to_dict(orient='records')

    debug_data = {
        "generated_at": datetime.datetime.now().isoformat(),
        "simulations": [
            {
                "name": result.name,
                "total_cost": result.bills_total_cost,
                "timeseries": step_rows(result),
                "bills": [
                    {
                        "billing_period_start": bill.billing_period_start.isoformat(),
                        "billing_period_end": bill.billing_period_end.isoformat(),
                        "fuel_type": bill.fuel_type,
                        "fuel_usage": bill.fuel_usage,
                        "fuel_unit": bill.fuel_unit,
                        "line_items": [{"description": i.description, "amount": i.amount} for i in bill.line_items],
                        "total_cost": bill.total_cost,
                    }
                    for bill in result.bills
                ],
            }
            for result in results
        ],
    }

    with open(filename, 'w') as f:
        json.dump(debug_data, f, indent=2)
    print(f"Debug output saved to: {filename}")
