import logging
import threading
import time
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np
import pandas as pd

from .appliance import ApplianceResponse
from .billing import FuelBilling
from .constants import DEFAULT_TIME_STEP_MINUTES, DEFAULT_TIME_STEP_CACHE_SIZE
from .utils import timezone_name, to_timestamp
from .weather import WeatherSnapshot

_LOGGER = logging.getLogger(__name__)


class SimulationCancelled(RuntimeError):
    pass


@dataclass(frozen=True)
class PassiveLoad:
    name: str
    btus_per_hour: float


@dataclass(frozen=True)
class SimulationStep:
    """State at the *start* of a time step, and what happened during it."""
    local_time: pd.Timestamp
    inside_air_temp_f: float
    weather: WeatherSnapshot
    hvac_response: ApplianceResponse
    passive_loads: tuple

    @property
    def passive_btus_per_hour(self):
        return sum(load.btus_per_hour for load in self.passive_loads)


@dataclass
class SimulationResult:
    name: str
    time_steps: list
    bills: list

    @property
    def bills_total_cost(self):
        return sum(bill.total_cost for bill in self.bills)


@dataclass(frozen=True)
class UtilityPlanFactories:
    electrical: Optional[Callable] = None
    natural_gas: Optional[Callable] = None
    fuel_oil: Optional[Callable] = None

    @classmethod
    def coerce(cls, value):
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        unknown = set(value) - {'electrical', 'natural_gas', 'fuel_oil'}
        if unknown:
            raise ValueError(f"Unknown utility plan kinds: {sorted(unknown)}")
        return cls(**value)

    def build_billing(self):
        """One fresh set of plans per run."""
        return FuelBilling(
            electrical=self.electrical() if self.electrical else None,
            natural_gas=self.natural_gas() if self.natural_gas else None,
            fuel_oil=self.fuel_oil() if self.fuel_oil else None,
        )


def generate_time_steps(local_start_time, local_end_time, weather_source, time_step_minutes=DEFAULT_TIME_STEP_MINUTES):
    """
    (local_time, weather) pairs on a fixed grid over [start, end).
    Steps are in absolute time, so DST transitions don't stretch or skip them.
    """
    times = pd.date_range(
        start=local_start_time,
        end=local_end_time,
        freq=pd.Timedelta(minutes=time_step_minutes),
        inclusive='left',
    )
    return tuple((t, weather_source.get_weather(t)) for t in times)


class TimeStepCache:
    """
    Reuses time step grids across runs over the same window and weather.

    Keyed on (start, end, their timezones, step size, weather source identity).
    Timestamps compare equal across timezones, so the zone is part of the key:
    the same instant asked for in two zones yields two grids with different
    local times. A weather source is only ever matched by identity, never by
    equality.

    Safe to share between threads. Each key is computed by at most one thread
    at a time, and generation runs outside the cache-wide lock so lookups of
    other keys never wait on it.
    """

    def __init__(self, max_entries=DEFAULT_TIME_STEP_CACHE_SIZE):
        self.max_entries = max_entries
        self._entries = OrderedDict()
        self._key_locks = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self):
        return len(self._entries)

    def _lookup(self, key, weather_source):
        # Caller holds self._lock
        cached = self._entries.get(key)
        # id() can be reused once a source is collected; check the object itself
        if cached is not None and cached[0] is weather_source:
            self.hits += 1
            return cached[1]
        return None

    def get_time_steps(self, local_start_time, local_end_time, weather_source, time_step_minutes=DEFAULT_TIME_STEP_MINUTES):
        key = (
            local_start_time,
            local_end_time,
            timezone_name(local_start_time),
            timezone_name(local_end_time),
            time_step_minutes,
            id(weather_source),
        )

        with self._lock:
            steps = self._lookup(key, weather_source)
            if steps is not None:
                _LOGGER.debug(f"Time step cache hit for {local_start_time} - {local_end_time}")
                return steps
            key_lock = self._key_locks.setdefault(key, threading.Lock())

        with key_lock:
            # Another thread may have filled it while we waited
            with self._lock:
                steps = self._lookup(key, weather_source)
                if steps is not None:
                    return steps
                self.misses += 1
            _LOGGER.debug(f"Time step cache miss for {local_start_time} - {local_end_time}")

            try:
                steps = generate_time_steps(local_start_time, local_end_time, weather_source, time_step_minutes)
                with self._lock:
                    self._entries[key] = (weather_source, steps)
                    while len(self._entries) > self.max_entries:
                        self._entries.popitem(last=False)
            finally:
                with self._lock:
                    self._key_locks.pop(key, None)
            return steps

    def clear(self):
        with self._lock:
            self._entries.clear()


def _validate_window(local_start_time, local_end_time):
    start = to_timestamp(local_start_time)
    end = to_timestamp(local_end_time)
    if timezone_name(start) != timezone_name(end):
        raise ValueError(
            f"Given a different timezone for start and end datetimes: {timezone_name(start)} vs {timezone_name(end)}"
        )
    return start, end


def simulate_building_hvac(local_start_time, local_end_time, initial_inside_air_temp_f, building_geometry,
                           load_sources, hvac_system, weather_source, utility_plans=None,
                           time_step_minutes=DEFAULT_TIME_STEP_MINUTES, cache=None, should_cancel=None):
    """
    Steps a building and its HVAC system through time.

    Each step: read the weather, ask the HVAC system for its response, bill
    the fuel it burned, sum the passive loads, record the step, then
    integrate the net heat into the inside temperature. Recording happens
    before integration, so every recorded temperature is the one at the
    start of its step.

    Returns a SimulationResult named after the HVAC system.
    """
    start, end = _validate_window(local_start_time, local_end_time)
    if not time_step_minutes > 0:
        raise ValueError(f"Time step must be positive, got {time_step_minutes} minutes")

    billing = UtilityPlanFactories.coerce(utility_plans).build_billing()

    if cache is not None:
        time_steps = cache.get_time_steps(start, end, weather_source, time_step_minutes)
    else:
        time_steps = generate_time_steps(start, end, weather_source, time_step_minutes)

    step_hours = time_step_minutes / 60.0
    btus_per_degree_f = building_geometry.btus_per_degree_f
    inside_air_temp_f = initial_inside_air_temp_f
    results = []

    t0 = time.time()
    for local_time, weather in time_steps:
        if should_cancel is not None and should_cancel():
            raise SimulationCancelled(f"Simulation of {hvac_system.name} cancelled at {local_time}")

        hvac_response = hvac_system.get_thermal_response(local_time, inside_air_temp_f, weather.outside_air_temp_f)

        billing.record(hvac_response.fuel_usage, step_hours, local_time)

        passive_loads = tuple(
            PassiveLoad(source.name, source.get_btus_per_hour(local_time, inside_air_temp_f, weather))
            for source in load_sources
        )
        passive_btus_per_hour = sum(load.btus_per_hour for load in passive_loads)

        results.append(SimulationStep(
            local_time=local_time,
            inside_air_temp_f=inside_air_temp_f,
            weather=weather,
            hvac_response=hvac_response,
            passive_loads=passive_loads,
        ))

        # Only after recording
        inside_air_temp_f += (passive_btus_per_hour + hvac_response.btus_per_hour) * step_hours / btus_per_degree_f

    result = SimulationResult(
        name=hvac_system.name,
        time_steps=results,
        bills=billing.get_bills(start, end),
    )

    if results:
        temps = np.array([s.inside_air_temp_f for s in results])
        _LOGGER.debug(
            f"{result.name}: {len(results)} steps in {time.time() - t0:.2f}s, "
            f"inside {temps.min():.1f}F - {temps.max():.1f}F, total cost {result.bills_total_cost:.2f}"
        )
    return result


def simulate_systems(system_factories, max_workers=None, **run_options):
    """
    Runs one simulation per HVAC system factory in worker threads.

    Every factory is called to build a brand-new system, so no thermostat
    state leaks between runs. Results come back in factory order, and
    match what sequential calls to simulate_building_hvac would return.
    """
    if 'hvac_system' in run_options:
        raise ValueError("Pass system factories, not an hvac_system instance")

    def run_one(factory):
        return simulate_building_hvac(hvac_system=factory(), **run_options)

    factories = list(system_factories)
    if not factories:
        return []

    _LOGGER.info(f"Simulating {len(factories)} systems...")
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(run_one, factory) for factory in factories]
        # Re-raises the first failure
        return [future.result() for future in futures]
