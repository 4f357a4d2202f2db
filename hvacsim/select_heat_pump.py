"""
Ranks candidate heat pumps for a building and climate.

Candidates must cover the design heating and cooling loads; survivors are
scored by their load-weighted average COP over a year of binned outdoor
temperatures.
"""
import logging
from dataclasses import dataclass

from .heat_pump import BtusPowerSetting
from .utils import local_time
from .weather import SolarIrradiance, WeatherSnapshot

_LOGGER = logging.getLogger(__name__)

WORST_CASE_RELATIVE_HUMIDITY_PERCENT = 90.0

# Night, overcast, no sun
_COLD_SKY = dict(
    hour=2,
    cloud_cover_percent=100.0,
    solar_irradiance=SolarIrradiance(altitude_degrees=-90.0, watts_per_square_meter=0.0),
)
# Mid-afternoon, clear, high sun
_HOT_SKY = dict(
    hour=14,
    cloud_cover_percent=0.0,
    solar_irradiance=SolarIrradiance(altitude_degrees=58.0, watts_per_square_meter=850.0),
)


@dataclass(frozen=True)
class HeatPumpSelectionResult:
    heat_pump: object
    average_coefficient_of_performance: float
    under_capacity_heating_hours: int
    under_capacity_cooling_hours: int


def worst_case_load_btus_per_hour(load_sources, inside_air_temp_f, outside_air_temp_f):
    """Net passive load under pessimistic weather for the direction heat is flowing."""
    sky = _COLD_SKY if outside_air_temp_f < inside_air_temp_f else _HOT_SKY

    when = local_time(2023, 1, 1, hour=sky['hour'], tz='UTC')
    weather = WeatherSnapshot(
        outside_air_temp_f=outside_air_temp_f,
        relative_humidity_percent=WORST_CASE_RELATIVE_HUMIDITY_PERCENT,
        wind_speed_mph=0.0,
        cloud_cover_percent=sky['cloud_cover_percent'],
        solar_irradiance=sky['solar_irradiance'],
    )
    return sum(source.get_btus_per_hour(when, inside_air_temp_f, weather) for source in load_sources)


def required_heating_btus_per_hour(load_sources, inside_air_temp_f, outside_air_temp_f):
    return max(0.0, -worst_case_load_btus_per_hour(load_sources, inside_air_temp_f, outside_air_temp_f))


def required_cooling_btus_per_hour(load_sources, inside_air_temp_f, outside_air_temp_f):
    # Negative: heat to remove
    return min(0.0, -worst_case_load_btus_per_hour(load_sources, inside_air_temp_f, outside_air_temp_f))


def design_temperatures(binned_temperatures, aux_switchover_temp_f=None):
    """
    (heating design, cooling design) outside temperatures: the 1st and 99th
    percentiles. Below the aux switchover the heat pump is not running, so
    the heating design point never goes colder than it.
    """
    heating = binned_temperatures.get_temp_at_percentile(1)
    cooling = binned_temperatures.get_temp_at_percentile(99)
    if aux_switchover_temp_f is not None:
        heating = max(heating, aux_switchover_temp_f)
    return heating, cooling


def _meets_design_loads(pump, cooling_set_point_inside_temp_f, design_cooling_outside_air_temp_f,
                        heating_set_point_inside_temp_f, design_heating_outside_air_temp_f,
                        heating_needed, cooling_needed):
    heating = pump.get_estimated_performance_rating(
        BtusPowerSetting(heating_needed), heating_set_point_inside_temp_f, design_heating_outside_air_temp_f, 'heating'
    )
    cooling = pump.get_estimated_performance_rating(
        BtusPowerSetting(cooling_needed), cooling_set_point_inside_temp_f, design_cooling_outside_air_temp_f, 'cooling'
    )
    # Cooling values are negative
    return heating.btus_per_hour >= heating_needed and -cooling.btus_per_hour >= -cooling_needed


def _score(pump, load_sources, binned_temperatures, heating_set_point_inside_temp_f, cooling_set_point_inside_temp_f):
    total_sum = 0.0
    total_weight = 0.0
    under_capacity_heating_hours = 0
    under_capacity_cooling_hours = 0

    for temp_bin in binned_temperatures.bins():
        outside = temp_bin.outside_air_temp_f

        if outside < heating_set_point_inside_temp_f:
            mode = 'heating'
            inside = heating_set_point_inside_temp_f
            needed = required_heating_btus_per_hour(load_sources, inside, outside)
        elif outside > cooling_set_point_inside_temp_f:
            mode = 'cooling'
            inside = cooling_set_point_inside_temp_f
            needed = required_cooling_btus_per_hour(load_sources, inside, outside)
        else:
            # Between set points: no load
            continue

        rating = pump.get_estimated_performance_rating(BtusPowerSetting(needed), inside, outside, mode)

        if abs(rating.btus_per_hour) < abs(needed):
            if mode == 'heating':
                under_capacity_heating_hours += temp_bin.hour_count
            else:
                under_capacity_cooling_hours += temp_bin.hour_count

        # Weighted by BTUs moved, not just hours
        weight = temp_bin.hour_count * abs(needed)
        total_sum += rating.coefficient_of_performance * weight
        total_weight += weight

    average_cop = total_sum / total_weight if total_weight > 0 else 0.0
    return HeatPumpSelectionResult(
        heat_pump=pump,
        average_coefficient_of_performance=average_cop,
        under_capacity_heating_hours=under_capacity_heating_hours,
        under_capacity_cooling_hours=under_capacity_cooling_hours,
    )


def select_heat_pump(heat_pumps, cooling_set_point_inside_temp_f, design_cooling_outside_air_temp_f,
                     heating_set_point_inside_temp_f, design_heating_outside_air_temp_f,
                     load_sources, binned_temperatures):
    heating_needed = required_heating_btus_per_hour(
        load_sources, heating_set_point_inside_temp_f, design_heating_outside_air_temp_f
    )
    cooling_needed = required_cooling_btus_per_hour(
        load_sources, cooling_set_point_inside_temp_f, design_cooling_outside_air_temp_f
    )
    _LOGGER.debug(f"Design loads: heating {heating_needed:.0f} BTU/hr, cooling {cooling_needed:.0f} BTU/hr")

    candidates = [
        pump for pump in heat_pumps
        if _meets_design_loads(
            pump, cooling_set_point_inside_temp_f, design_cooling_outside_air_temp_f,
            heating_set_point_inside_temp_f, design_heating_outside_air_temp_f,
            heating_needed, cooling_needed,
        )
    ]
    _LOGGER.info(f"{len(candidates)} of {len(heat_pumps)} heat pumps meet the design loads")

    results = [
        _score(pump, load_sources, binned_temperatures, heating_set_point_inside_temp_f, cooling_set_point_inside_temp_f)
        for pump in candidates
    ]
    results.sort(key=lambda r: r.average_coefficient_of_performance, reverse=True)
    return results
