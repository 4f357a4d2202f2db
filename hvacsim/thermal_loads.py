"""
Passive thermal loads on the building.

Every source reports an instantaneous BTU/hr. Positive values warm the
contents of the building, negative values cool it.
"""
import math
from abc import ABC, abstractmethod

from .building import BuildingGeometry
from .constants import (
    OCCUPANT_SENSIBLE_BTU_PER_HOUR,
    OCCUPANT_LATENT_BTU_PER_HOUR,
    OCCUPANT_SLEEPING_DEFLATOR,
    WALL_U_FACTOR,
    WINDOW_U_FACTOR,
    CEILING_U_FACTOR,
    FLOOR_U_FACTOR,
    WINDOW_COOLING_DEFLATOR,
    INFILTRATION_WIND_THRESHOLD_MPH,
    INFILTRATION_U_FACTOR_CALM,
    INFILTRATION_U_FACTOR_WINDY,
    INFILTRATION_HUMIDITY_THRESHOLD_PERCENT,
    INFILTRATION_HUMIDITY_GAIN,
    SOLAR_STRENGTH_UNDER_CLOUDS,
    SOLAR_FULL_HORIZONTAL_W_M2,
    SOLAR_FULL_VERTICAL_W_M2,
    CEILING_SOLAR_GAIN_PER_SQ_FT,
    WINDOW_SOLAR_GAIN_PER_SQ_FT,
    WALL_SOLAR_GAIN_PER_SQ_FT,
)
from .utils import BreakpointTable
from .weather import WeatherSnapshot


class ThermalLoadSource(ABC):
    name: str

    @abstractmethod
    def get_btus_per_hour(self, local_time, inside_air_temp_f: float, weather: WeatherSnapshot) -> float:
        ...


class OccupantsLoadSource(ThermalLoadSource):
    """Heat given off by the occupants' bodies."""
    name = "occupants"

    def __init__(self, num_occupants: int):
        self.num_occupants = num_occupants

    def get_btus_per_hour(self, local_time, inside_air_temp_f, weather):
        hour = local_time.hour

        # Out at work/school, 10:00 through 13:59
        if 9 < hour < 14:
            return 0.0

        is_awake = 6 < hour < 22
        # Reduced metabolism & breathing while asleep
        deflator = 1.0 if is_awake else OCCUPANT_SLEEPING_DEFLATOR

        return self.num_occupants * (OCCUPANT_SENSIBLE_BTU_PER_HOUR + OCCUPANT_LATENT_BTU_PER_HOUR) * deflator


class ConductionConvectionLoadSource(ThermalLoadSource):
    """Heat equilibrating through the envelope via conduction and convection."""
    name = "conduction-convection"

    def __init__(self, geometry: BuildingGeometry, envelope_modifier: float):
        self.geometry = geometry
        self.envelope_modifier = envelope_modifier  # lower is tighter

    def get_btus_per_hour(self, local_time, inside_air_temp_f, weather):
        delta_temp_f = weather.outside_air_temp_f - inside_air_temp_f
        g = self.geometry
        scale = delta_temp_f * self.envelope_modifier

        walls = WALL_U_FACTOR * g.exterior_walls_sq_ft * scale
        ceiling = CEILING_U_FACTOR * g.ceiling_sq_ft * scale
        # Treats the ground like outside air, which overstates floor losses
        floor = FLOOR_U_FACTOR * g.exterior_floor_sq_ft * scale

        window_deflator = WINDOW_COOLING_DEFLATOR if weather.outside_air_temp_f > inside_air_temp_f else 1.0
        windows = WINDOW_U_FACTOR * g.windows_sq_ft * window_deflator * scale

        return walls + windows + ceiling + floor


# seal type | envelope modifier | infiltration multiplier
# ----------+-------------------+------------------------
# tight     |              0.30 | 1.0
# average   |              0.60 | 2.7 (2.8 when colder outside)
# loose     |              1.05 | 5.6 (5.8 when colder outside)
INFILTRATION_MULTIPLIER_COLD = BreakpointTable([(0.30, 1.0), (0.60, 2.8), (1.05, 5.8)])
INFILTRATION_MULTIPLIER_WARM = BreakpointTable([(0.30, 1.0), (0.60, 2.7), (1.05, 5.6)])


class InfiltrationLoadSource(ThermalLoadSource):
    """Air exchanged through an imperfectly sealed envelope."""
    name = "infiltration"

    def __init__(self, geometry: BuildingGeometry, envelope_modifier: float):
        self.geometry = geometry
        self.envelope_modifier = envelope_modifier

    def infiltration_multiplier(self, is_colder_outside: bool) -> float:
        table = INFILTRATION_MULTIPLIER_COLD if is_colder_outside else INFILTRATION_MULTIPLIER_WARM
        return table(self.envelope_modifier)

    def get_btus_per_hour(self, local_time, inside_air_temp_f, weather):
        # Step change at the threshold, as in the reference tables
        if weather.wind_speed_mph <= INFILTRATION_WIND_THRESHOLD_MPH:
            u_factor = INFILTRATION_U_FACTOR_CALM
        else:
            u_factor = INFILTRATION_U_FACTOR_WINDY

        multiplier = self.infiltration_multiplier(weather.outside_air_temp_f < inside_air_temp_f)
        windows_sq_ft = self.geometry.windows_sq_ft

        delta_t = weather.outside_air_temp_f - inside_air_temp_f
        gain = u_factor * windows_sq_ft * delta_t * multiplier

        if weather.relative_humidity_percent > INFILTRATION_HUMIDITY_THRESHOLD_PERCENT:
            # Condensation is exothermic whether heating or cooling.
            # Not proportional to humidity; kept as in the source model.
            gain += INFILTRATION_HUMIDITY_GAIN * windows_sq_ft * multiplier

        return gain


class SolarGainLoadSource(ThermalLoadSource):
    """Sunlight hitting the house."""
    name = "solar-gain"

    def __init__(self, geometry: BuildingGeometry, solar_modifier: float):
        self.geometry = geometry
        self.solar_modifier = solar_modifier

    def get_btus_per_hour(self, local_time, inside_air_temp_f, weather):
        irradiance = weather.solar_irradiance
        if irradiance.altitude_degrees < 0:
            return 0.0

        cloud_fraction = weather.cloud_cover_percent / 100.0
        cloud_multiplier = 1 - cloud_fraction + cloud_fraction * SOLAR_STRENGTH_UNDER_CLOUDS

        altitude_rad = math.radians(irradiance.altitude_degrees)
        horizontal = irradiance.watts_per_square_meter * math.cos(altitude_rad)
        vertical = irradiance.watts_per_square_meter * math.sin(altitude_rad)

        # Fraction of "full strength" sun the per-sqft gains below assume
        horizontal_multiplier = (horizontal / SOLAR_FULL_HORIZONTAL_W_M2) * cloud_multiplier
        vertical_multiplier = (vertical / SOLAR_FULL_VERTICAL_W_M2) * cloud_multiplier

        g = self.geometry
        ceiling = CEILING_SOLAR_GAIN_PER_SQ_FT * g.ceiling_sq_ft * self.solar_modifier * vertical_multiplier
        windows = WINDOW_SOLAR_GAIN_PER_SQ_FT * g.windows_sq_ft * self.solar_modifier * horizontal_multiplier
        walls = WALL_SOLAR_GAIN_PER_SQ_FT * g.exterior_walls_sq_ft * self.solar_modifier * horizontal_multiplier

        return ceiling + windows + walls


def standard_load_sources(geometry, num_occupants=2, envelope_modifier=0.65, solar_modifier=1.0):
    """The usual four loads for a single building, sharing geometry and modifiers."""
    return [
        OccupantsLoadSource(num_occupants),
        SolarGainLoadSource(geometry, solar_modifier=solar_modifier),
        ConductionConvectionLoadSource(geometry, envelope_modifier=envelope_modifier),
        InfiltrationLoadSource(geometry, envelope_modifier=envelope_modifier),
    ]
