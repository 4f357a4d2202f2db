import logging
import math

from .appliance import ApplianceResponse, FuelUsage, HeatingAppliance
from .constants import (
    BTU_PER_CCF_NATURAL_GAS,
    GAS_DERATE_THRESHOLD_FT,
    GAS_DERATE_PER_THOUSAND_FT,
)
from .utils import kw_to_btus_per_hour

_LOGGER = logging.getLogger(__name__)


class GasFurnace(HeatingAppliance):
    """
    A natural gas furnace, rated by AFUE and nameplate output.
    Burners lose ~4% per 1,000 ft above 2,000 ft of elevation.
    """

    def __init__(self, afue_percent, capacity_btus_per_hour, elevation_feet=0.0, name=None):
        if not capacity_btus_per_hour > 0:
            raise ValueError(f"Furnace capacity must be positive, got {capacity_btus_per_hour}")
        if not 0 < afue_percent <= 100:
            raise ValueError(f"AFUE must be in (0, 100], got {afue_percent}")

        self.afue_percent = afue_percent
        self.capacity_btus_per_hour = capacity_btus_per_hour
        self.elevation_feet = elevation_feet
        self.name = name or f"{afue_percent:g}% AFUE Gas Furnace"

        multiplier = 1.0
        if elevation_feet > GAS_DERATE_THRESHOLD_FT:
            multiplier = 1.0 - math.floor(elevation_feet / 1000.0) * GAS_DERATE_PER_THOUSAND_FT
        self.derated_capacity_btus_per_hour = capacity_btus_per_hour * multiplier
        if multiplier < 1.0:
            _LOGGER.debug(f"{self.name}: derated to {self.derated_capacity_btus_per_hour:.0f} BTU/hr "
                          f"at {elevation_feet:.0f} ft")

    def get_fuel_usage_for_output(self, btus_per_hour):
        """Gas burned (ccf/hr) to deliver a given output."""
        input_btus_per_hour = btus_per_hour / (self.afue_percent / 100.0)
        return FuelUsage(natural_gas_ccf_per_hour=input_btus_per_hour / BTU_PER_CCF_NATURAL_GAS)

    def get_heating_performance_info(self, inside_air_temp_f, outside_air_temp_f, percent_power=100.0):
        output = min(self.capacity_btus_per_hour, self.derated_capacity_btus_per_hour) * percent_power / 100.0
        return ApplianceResponse(btus_per_hour=output, fuel_usage=self.get_fuel_usage_for_output(output))


class ElectricFurnace(HeatingAppliance):
    """Resistive heat. 100% efficient and modulates freely up to its rating."""

    def __init__(self, capacity_kw, name=None):
        if not capacity_kw > 0:
            raise ValueError(f"Furnace capacity must be positive, got {capacity_kw}")
        self.capacity_kw = capacity_kw
        self.capacity_btus_per_hour = kw_to_btus_per_hour(capacity_kw)
        self.name = name or f"{capacity_kw:g} kW Electric Furnace"

    def get_thermal_response(self, btus_per_hour_needed, inside_air_temp_f=None, outside_air_temp_f=None):
        if btus_per_hour_needed <= 0:
            return ApplianceResponse(btus_per_hour=0.0, fuel_usage=FuelUsage(electricity_kw=0.0))

        output = min(btus_per_hour_needed, self.capacity_btus_per_hour)
        kw = self.capacity_kw * output / self.capacity_btus_per_hour
        return ApplianceResponse(btus_per_hour=output, fuel_usage=FuelUsage(electricity_kw=kw))

    def get_heating_performance_info(self, inside_air_temp_f, outside_air_temp_f, percent_power=100.0):
        return self.get_thermal_response(self.capacity_btus_per_hour * percent_power / 100.0)
