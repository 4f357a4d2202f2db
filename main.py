#!/usr/bin/python3

import argparse
import logging
import os
import sys

import pandas as pd

from hvacsim import results
from hvacsim.air_conditioner import AirConditioner
from hvacsim.building import BuildingGeometry
from hvacsim.furnace import ElectricFurnace, GasFurnace
from hvacsim.heat_pump import AirSourceHeatPump
from hvacsim.hvac_system import SimpleHVACSystem, TwoStageHeatPumpWithAuxHeating
from hvacsim.load_weather import load_weather
from hvacsim.run_model import TimeStepCache, simulate_systems
from hvacsim.schedule import load_utility_plans
from hvacsim.select_heat_pump import design_temperatures, select_heat_pump
from hvacsim.thermal_loads import standard_load_sources
from hvacsim.utils import load_json_with_comments
from hvacsim.weather import BinnedTemperatures, HourlyWeatherSource

_LOGGER = logging.getLogger(__name__)


def load_building(filename):
    config = load_json_with_comments(filename)
    geometry = BuildingGeometry.from_config(config)
    load_sources = standard_load_sources(
        geometry,
        num_occupants=int(config.get('num_occupants', 2)),
        envelope_modifier=float(config.get('envelope_modifier', 0.65)),
        solar_modifier=float(config.get('solar_modifier', 1.0)),
    )
    elevation_feet = float(config.get('elevation_feet', 0.0))
    print(f"Loaded building from {filename}")
    print(f" -> {geometry.floor_space_sq_ft:.0f} sq ft, {geometry.btus_per_degree_f:.0f} BTU/F")
    return geometry, load_sources, elevation_feet


def build_appliance(config, elevation_feet, base_dir="."):
    """Builds one appliance from a `{"type": ...}` block."""
    if config is None:
        return None

    kind = config.get('type')
    name = config.get('name')
    if kind == 'gas_furnace':
        return GasFurnace(
            afue_percent=float(config['afue_percent']),
            capacity_btus_per_hour=float(config['capacity_btus_per_hour']),
            elevation_feet=elevation_feet,
            name=name,
        )
    if kind == 'electric_furnace':
        return ElectricFurnace(capacity_kw=float(config['capacity_kw']), name=name)
    if kind == 'air_conditioner':
        return AirConditioner(
            seer=float(config['seer']),
            capacity_btus_per_hour=float(config['capacity_btus_per_hour']),
            elevation_feet=elevation_feet,
            speed_settings=config.get('speed_settings', 'single-speed'),
            name=name,
        )
    if kind == 'heat_pump':
        if 'ratings_file' in config:
            path = os.path.join(base_dir, config['ratings_file'])
            pump = AirSourceHeatPump.from_json(path, elevation_feet=elevation_feet)
            if name:
                pump.name = name
            return pump
        return AirSourceHeatPump(
            ratings=config['ratings'],
            elevation_feet=elevation_feet,
            name=name or "Air Source Heat Pump",
        )
    raise ValueError(f"Unknown appliance type '{kind}'")


def build_system_factory(config, elevation_feet, base_dir="."):
    """
    Returns a zero-arg callable that builds a fresh HVAC system. Appliances
    are read-only and shared; thermostat state is not.
    """
    name = config['name']
    heating = build_appliance(config.get('heating'), elevation_feet, base_dir)
    # The same heat pump usually does both jobs
    if config.get('cooling') == config.get('heating'):
        cooling = heating
    else:
        cooling = build_appliance(config.get('cooling'), elevation_feet, base_dir)

    heating_set_point_f = float(config.get('heating_set_point_f', 70.0))
    cooling_set_point_f = float(config.get('cooling_set_point_f', 76.0))
    kind = config.get('type', 'simple')

    if kind == 'simple':
        def factory():
            return SimpleHVACSystem(name, heating_set_point_f, heating, cooling_set_point_f, cooling)
        return factory

    if kind == 'two_stage':
        aux = build_appliance(config['aux_heating'], elevation_feet, base_dir)
        options = {
            k: float(config[k])
            for k in ('stage1_max_duration_minutes', 'stage2_temperature_delta_f', 'stage1_percent_power')
            if k in config
        }

        def factory():
            return TwoStageHeatPumpWithAuxHeating(
                name, heating_set_point_f, heating, cooling_set_point_f, cooling,
                aux_heating_appliance=aux,
                aux_switchover_temp_f=float(config['aux_switchover_temp_f']),
                **options,
            )
        return factory

    raise ValueError(f"Unknown system type '{kind}'")


def load_systems(filename, elevation_feet):
    config = load_json_with_comments(filename)
    if isinstance(config, dict):
        config = config.get('systems', [])
    base_dir = os.path.dirname(os.path.abspath(filename))
    try:
        factories = [build_system_factory(c, elevation_feet, base_dir) for c in config]
    except KeyError as e:
        raise ValueError(f"Missing required system parameter in {filename}: {e}") from e
    print(f"Loaded {len(factories)} HVAC systems from {filename}")
    return factories


def _to_local(value, tz):
    ts = pd.Timestamp(value)
    # Wall-clock strings are read in the simulation's timezone
    return ts.tz_localize(tz) if ts.tz is None else ts.tz_convert(tz)


def simulation_window(entries, start, end, tz):
    """Defaults to the span of the weather data, in the requested timezone."""
    local_start = _to_local(start if start else entries[0].datetime, tz)
    local_end = _to_local(end if end else entries[-1].datetime, tz)
    return local_start, local_end


def run_selection(args, entries, load_sources, elevation_feet):
    pumps = [AirSourceHeatPump.from_json(path, elevation_feet=elevation_feet) for path in args.select]
    binned = BinnedTemperatures(entries)
    design_heating_f, design_cooling_f = design_temperatures(binned, args.aux_switchover)
    print(f"\nDesign temperatures: heating {design_heating_f:.1f} F, cooling {design_cooling_f:.1f} F")

    ranked = select_heat_pump(
        pumps,
        cooling_set_point_inside_temp_f=args.cooling_set_point,
        design_cooling_outside_air_temp_f=design_cooling_f,
        heating_set_point_inside_temp_f=args.heating_set_point,
        design_heating_outside_air_temp_f=design_heating_f,
        load_sources=load_sources,
        binned_temperatures=binned,
    )
    results.print_selection_report(ranked)
    return ranked


def run_main(args_list=None):
    parser = argparse.ArgumentParser(
        description="Building HVAC Simulator & Heat Pump Selector",
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument("--weather", help="Hourly weather dataset (JSON or CSV)")
    parser.add_argument("--building", help="Building JSON (geometry, occupants, envelope, elevation)")
    parser.add_argument("--systems", help="HVAC systems JSON to simulate and compare")
    parser.add_argument("--tariffs", help="Utility plans JSON (electrical / natural_gas / fuel_oil)")
    parser.add_argument("--select", nargs='+', metavar="HEAT_PUMP_JSON",
                        help="Rank these heat pump rating tables for the building and climate")

    parser.add_argument("--start", help="Local start time, e.g. '2023-01-01 00:00' (default: first weather hour)")
    parser.add_argument("--end", help="Local end time, exclusive (default: last weather hour)")
    parser.add_argument("--timezone", default="UTC", help="IANA timezone for billing and schedules (default: UTC)")
    parser.add_argument("--initial-temp", type=float, default=70.0, help="Starting indoor temperature (F)")

    parser.add_argument("--heating-set-point", type=float, default=70.0, help="Heating set point for selection (F)")
    parser.add_argument("--cooling-set-point", type=float, default=76.0, help="Cooling set point for selection (F)")
    parser.add_argument("--aux-switchover", type=float, help="Aux heat switchover temperature for selection (F)")

    parser.add_argument("--grams-co2e-per-kwh", type=float, help="Grid intensity for the emissions estimate")
    parser.add_argument("--workers", type=int, help="Parallel simulations (default: one per CPU)")
    parser.add_argument("--debug-output", metavar="JSON_FILE",
                        help="Export time series and bills to JSON file (for automation use)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    if args_list is None and len(sys.argv) == 1:
        parser.print_help()
        print("\nUsage Examples:")
        print("  1. Compare HVAC systems:")
        print("     python main.py --weather weather.json --building house.json --systems systems.json --tariffs tariffs.json")
        print("\n  2. Rank heat pumps:")
        print("     python main.py --weather weather.json --building house.json --select hp1.json hp2.json")
        return 1

    args = parser.parse_args(args_list)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.weather or not args.building:
        print("Error: You must provide --weather and --building.")
        return 1
    if not args.systems and not args.select:
        print("Error: Nothing to do. Provide --systems and/or --select.")
        return 1
    if args.systems and not args.tariffs:
        print("Error: --systems requires --tariffs.")
        return 1

    for path in [args.weather, args.building, args.systems, args.tariffs] + (args.select or []):
        if path and not os.path.exists(path):
            print(f"Error: File '{path}' not found.")
            return 1

    try:
        entries = load_weather(args.weather)
        if not entries:
            print(f"Error: No weather entries in {args.weather}")
            return 1
        geometry, load_sources, elevation_feet = load_building(args.building)

        if args.select:
            run_selection(args, entries, load_sources, elevation_feet)

        if args.systems:
            factories = load_systems(args.systems, elevation_feet)
            utility_plans = load_utility_plans(args.tariffs)
            local_start, local_end = simulation_window(entries, args.start, args.end, args.timezone)

            sims = simulate_systems(
                factories,
                max_workers=args.workers,
                local_start_time=local_start,
                local_end_time=local_end,
                initial_inside_air_temp_f=args.initial_temp,
                building_geometry=geometry,
                load_sources=load_sources,
                weather_source=HourlyWeatherSource(entries),
                utility_plans=utility_plans,
                cache=TimeStepCache(),
            )
            results.print_report(sims, grams_co2e_per_kwh=args.grams_co2e_per_kwh)

            if args.debug_output:
                results.export_debug_output(args.debug_output, sims)
    except (ValueError, KeyError, LookupError) as e:
        _LOGGER.debug("Run failed", exc_info=True)
        print(f"Error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(run_main())
