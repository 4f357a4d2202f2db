"""
Thermostat control logic: decides each time step which appliance runs and
at what power.
"""
import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Optional

import pandas as pd

from .appliance import ApplianceResponse
from .constants import (
    MIN_TEMP_DIFFERENTIAL_F,
    STAGE1_PERCENT_POWER,
    STAGE2_PERCENT_POWER,
    DEFAULT_STAGE1_MAX_DURATION_MINUTES,
    DEFAULT_STAGE2_TEMPERATURE_DELTA_F,
)

_LOGGER = logging.getLogger(__name__)

OFF = 'off'
HEATING = 'heating'
COOLING = 'cooling'


@dataclass(frozen=True)
class ThermostatState:
    mode: str = OFF
    heating_started_at: Optional[pd.Timestamp] = None
    stage2_engaged: bool = False


def next_thermostat_state(state, local_time, inside_air_temp_f, heating_set_point_f, cooling_set_point_f):
    """
    Applies the hysteresis band. Equipment only engages once the inside
    temperature has drifted MIN_TEMP_DIFFERENTIAL_F past a set point, and
    runs until the set point itself is crossed.
    """
    if state.mode == HEATING:
        if inside_air_temp_f > heating_set_point_f:
            return ThermostatState(OFF)
        return state

    if state.mode == COOLING:
        if inside_air_temp_f < cooling_set_point_f:
            return ThermostatState(OFF)
        return state

    if inside_air_temp_f < heating_set_point_f - MIN_TEMP_DIFFERENTIAL_F:
        return ThermostatState(HEATING, heating_started_at=local_time)
    if inside_air_temp_f > cooling_set_point_f + MIN_TEMP_DIFFERENTIAL_F:
        return ThermostatState(COOLING)
    return state


class HVACSystem(ABC):
    name: str

    def __init__(self):
        self._state = ThermostatState()

    @property
    def state(self):
        return self._state

    @property
    def mode(self):
        return self._state.mode

    def reset(self):
        self._state = ThermostatState()

    def fresh_copy(self):
        """An independent system with the same configuration, starting from off."""
        clone = copy.copy(self)
        clone.reset()
        return clone

    @abstractmethod
    def get_thermal_response(self, local_time, inside_air_temp_f, outside_air_temp_f) -> ApplianceResponse:
        ...


class SimpleHVACSystem(HVACSystem):
    """
    A thermostat with fixed set points that treats its heating and cooling
    equipment as single stage.
    """

    def __init__(self, name, heating_set_point_f, heating_appliance, cooling_set_point_f, cooling_appliance):
        super().__init__()
        if heating_set_point_f > cooling_set_point_f:
            raise ValueError(f"Heating set point {heating_set_point_f}F is above cooling set point {cooling_set_point_f}F")
        self.name = name
        self.heating_set_point_f = heating_set_point_f
        self.heating_appliance = heating_appliance
        self.cooling_set_point_f = cooling_set_point_f
        self.cooling_appliance = cooling_appliance

    def get_thermal_response(self, local_time, inside_air_temp_f, outside_air_temp_f):
        self._state = next_thermostat_state(
            self._state, local_time, inside_air_temp_f, self.heating_set_point_f, self.cooling_set_point_f
        )

        if self.mode == HEATING and self.heating_appliance is not None:
            return self.heating_appliance.get_heating_performance_info(inside_air_temp_f, outside_air_temp_f)
        if self.mode == COOLING and self.cooling_appliance is not None:
            return self.cooling_appliance.get_cooling_performance_info(inside_air_temp_f, outside_air_temp_f)

        # Building is comfy
        return ApplianceResponse.idle()


class TwoStageHeatPumpWithAuxHeating(HVACSystem):
    """
    A heat pump that starts each heating cycle at reduced power, promotes to
    full power when the cycle runs long or the house falls too far behind,
    and hands off to an auxiliary heater when it is too cold outside.

    Pass either `aux_switchover_temp_f` or a `should_engage_aux_heating`
    callable taking (local_time, inside_air_temp_f, outside_air_temp_f).
    Any appliance may be None, in which case its mode produces no response.
    """

    def __init__(self, name, heating_set_point_f, heating_appliance, cooling_set_point_f, cooling_appliance,
                 aux_heating_appliance, aux_switchover_temp_f=None, should_engage_aux_heating=None,
                 stage1_max_duration_minutes=DEFAULT_STAGE1_MAX_DURATION_MINUTES,
                 stage2_temperature_delta_f=DEFAULT_STAGE2_TEMPERATURE_DELTA_F,
                 stage1_percent_power=STAGE1_PERCENT_POWER):
        super().__init__()
        if heating_set_point_f > cooling_set_point_f:
            raise ValueError(f"Heating set point {heating_set_point_f}F is above cooling set point {cooling_set_point_f}F")
        if (aux_switchover_temp_f is None) == (should_engage_aux_heating is None):
            raise ValueError("Exactly one of aux_switchover_temp_f and should_engage_aux_heating is required")

        self.name = name
        self.heating_set_point_f = heating_set_point_f
        self.heating_appliance = heating_appliance
        self.cooling_set_point_f = cooling_set_point_f
        self.cooling_appliance = cooling_appliance
        self.aux_heating_appliance = aux_heating_appliance
        self.aux_switchover_temp_f = aux_switchover_temp_f
        self._should_engage_aux_heating = should_engage_aux_heating
        self.stage1_max_duration = pd.Timedelta(minutes=stage1_max_duration_minutes)
        self.stage2_temperature_delta_f = stage2_temperature_delta_f
        self.stage1_percent_power = stage1_percent_power

    def should_engage_aux_heating(self, local_time, inside_air_temp_f, outside_air_temp_f):
        if self._should_engage_aux_heating is not None:
            return self._should_engage_aux_heating(local_time, inside_air_temp_f, outside_air_temp_f)
        return outside_air_temp_f < self.aux_switchover_temp_f

    def _heating_percent_power(self, local_time, inside_air_temp_f):
        state = self._state
        if not state.stage2_engaged:
            ran_too_long = local_time - state.heating_started_at > self.stage1_max_duration
            too_far_behind = self.heating_set_point_f - inside_air_temp_f > self.stage2_temperature_delta_f
            if ran_too_long or too_far_behind:
                # Stays in stage 2 for the rest of this heating cycle
                self._state = replace(state, stage2_engaged=True)
                _LOGGER.debug(f"{self.name}: stage 2 engaged at {local_time}")

        return STAGE2_PERCENT_POWER if self._state.stage2_engaged else self.stage1_percent_power

    def get_thermal_response(self, local_time, inside_air_temp_f, outside_air_temp_f):
        self._state = next_thermostat_state(
            self._state, local_time, inside_air_temp_f, self.heating_set_point_f, self.cooling_set_point_f
        )

        if self.mode == HEATING:
            if self.should_engage_aux_heating(local_time, inside_air_temp_f, outside_air_temp_f):
                if self.aux_heating_appliance is None:
                    return ApplianceResponse.idle()
                return self.aux_heating_appliance.get_heating_performance_info(inside_air_temp_f, outside_air_temp_f)

            if self.heating_appliance is None:
                return ApplianceResponse.idle()
            percent_power = self._heating_percent_power(local_time, inside_air_temp_f)
            return self.heating_appliance.get_heating_performance_info(
                inside_air_temp_f, outside_air_temp_f, percent_power=percent_power
            )

        if self.mode == COOLING and self.cooling_appliance is not None:
            return self.cooling_appliance.get_cooling_performance_info(inside_air_temp_f, outside_air_temp_f)

        return ApplianceResponse.idle()
