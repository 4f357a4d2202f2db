"""
Shared types for HVAC equipment: performance ratings, fuel usage, the
heating/cooling capability interfaces, and elevation de-rating.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from .constants import ALTITUDE_FACTOR_GUESS_ABOVE_FT
from .utils import BreakpointTable, btus_to_kwh

_LOGGER = logging.getLogger(__name__)

SPEED_SETTINGS = ('single-speed', 'dual-speed', 'variable-speed')


@dataclass(frozen=True)
class PerformanceRating:
    btus_per_hour: float  # positive heating, negative cooling
    coefficient_of_performance: float


@dataclass(frozen=True)
class FuelUsage:
    electricity_kw: Optional[float] = None
    natural_gas_ccf_per_hour: Optional[float] = None
    fuel_oil_gallons_per_hour: Optional[float] = None


@dataclass(frozen=True)
class ApplianceResponse:
    btus_per_hour: float
    fuel_usage: FuelUsage

    @classmethod
    def idle(cls):
        return cls(btus_per_hour=0.0, fuel_usage=FuelUsage())


class HeatingAppliance(ABC):
    name: str

    @abstractmethod
    def get_heating_performance_info(self, inside_air_temp_f: float, outside_air_temp_f: float,
                                     percent_power: float = 100.0) -> ApplianceResponse:
        ...


class CoolingAppliance(ABC):
    name: str

    @abstractmethod
    def get_cooling_performance_info(self, inside_air_temp_f: float, outside_air_temp_f: float,
                                     percent_power: float = 100.0) -> ApplianceResponse:
        ...


# Capacity multiplier by thousands of feet. Air is thinner up high.
# Rows above 10,000 ft are extrapolated guesses.
ALTITUDE_CORRECTION_FACTORS = BreakpointTable([
    (0, 1.0),
    (1, 0.96),
    (2, 0.93),
    (3, 0.90),
    (4, 0.86),
    (5, 0.83),
    (6, 0.80),
    (7, 0.77),
    (8, 0.74),
    (9, 0.71),
    (10, 0.69),
    (11, 0.67),
    (12, 0.65),
    (13, 0.63),
])

# Single and dual stage compressors lose more efficiency at altitude
COP_ELEVATION_SEVERITY = {
    'single-speed': 0.5,
    'dual-speed': 0.25,
    'variable-speed': 0.1,
}


def check_elevation(elevation_feet: float):
    """Logs elevations the altitude table can only guess at. Call once per appliance."""
    thousands = elevation_feet / 1000.0
    if not ALTITUDE_CORRECTION_FACTORS.contains(max(thousands, 0.0)):
        _LOGGER.warning(f"Elevation {elevation_feet:.0f} ft is above the altitude correction table. "
                        f"Holding the {ALTITUDE_CORRECTION_FACTORS.x[-1] * 1000:.0f} ft factor.")
    elif elevation_feet > ALTITUDE_FACTOR_GUESS_ABOVE_FT:
        _LOGGER.warning(f"Altitude correction above {ALTITUDE_FACTOR_GUESS_ABOVE_FT:.0f} ft is estimated "
                        f"(elevation {elevation_feet:.0f} ft).")


def altitude_correction_factor(elevation_feet: float) -> float:
    if elevation_feet < 0:
        # No bonus below sea level
        return 1.0
    return ALTITUDE_CORRECTION_FACTORS(elevation_feet / 1000.0)


def derate_for_elevation(rating: PerformanceRating, elevation_feet: float, speed_settings: str) -> PerformanceRating:
    if speed_settings not in COP_ELEVATION_SEVERITY:
        raise ValueError(f"Unknown speed settings '{speed_settings}'. Expected one of {SPEED_SETTINGS}")

    factor = altitude_correction_factor(elevation_feet)
    efficiency_factor = 1 - (1 - factor) * COP_ELEVATION_SEVERITY[speed_settings]

    return PerformanceRating(
        btus_per_hour=rating.btus_per_hour * factor,
        coefficient_of_performance=rating.coefficient_of_performance * efficiency_factor,
    )


def electricity_response(rating: PerformanceRating) -> ApplianceResponse:
    """Converts a delivered rating into electrical draw using its COP."""
    kw_needed = btus_to_kwh(abs(rating.btus_per_hour)) / rating.coefficient_of_performance
    if kw_needed < 0:
        raise ValueError(f"Negative power demand from rating {rating}")
    return ApplianceResponse(btus_per_hour=rating.btus_per_hour, fuel_usage=FuelUsage(electricity_kw=kw_needed))
