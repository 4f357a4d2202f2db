import logging
import math
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass

import numpy as np
import pandas as pd

from .utils import interpolate, to_timestamp

_LOGGER = logging.getLogger(__name__)

ONE_HOUR = pd.Timedelta(hours=1)


@dataclass(frozen=True)
class SolarIrradiance:
    altitude_degrees: float
    watts_per_square_meter: float


@dataclass(frozen=True)
class WeatherSnapshot:
    """Outdoor conditions at a single instant."""
    outside_air_temp_f: float
    relative_humidity_percent: float
    wind_speed_mph: float
    cloud_cover_percent: float
    solar_irradiance: SolarIrradiance


@dataclass(frozen=True)
class WeatherEntry:
    """One row of an hourly weather dataset."""
    datetime: pd.Timestamp
    weather: WeatherSnapshot

    @classmethod
    def from_dict(cls, data):
        """
        Builds an entry from a JSON-style mapping. Accepts both the
        camelCase field names used by the published ERA5 extracts and
        this package's snake_case names.
        """
        def pick(*keys):
            for k in keys:
                if k in data:
                    return data[k]
            raise KeyError(f"Weather entry is missing '{keys[0]}': {data}")

        solar = pick('solar_irradiance', 'solarIrradiance')
        ts = pd.Timestamp(pick('datetime'))
        if ts.tz is None:
            ts = ts.tz_localize('UTC')

        return cls(
            datetime=ts,
            weather=WeatherSnapshot(
                outside_air_temp_f=float(pick('outside_air_temp_f', 'outsideAirTempF')),
                relative_humidity_percent=float(pick('relative_humidity_percent', 'relativeHumidityPercent')),
                wind_speed_mph=float(pick('wind_speed_mph', 'windSpeedMph')),
                cloud_cover_percent=float(pick('cloud_cover_percent', 'cloudCoverPercent')),
                solar_irradiance=SolarIrradiance(
                    altitude_degrees=float(solar.get('altitude_degrees', solar.get('altitudeDegrees'))),
                    watts_per_square_meter=float(solar.get('watts_per_square_meter', solar.get('wattsPerSquareMeter'))),
                ),
            ),
        )


class WeatherSource(ABC):
    @abstractmethod
    def get_weather(self, local_time) -> WeatherSnapshot:
        ...


def _hour_key(ts):
    # Always key on the UTC hour
    return ts.tz_convert('UTC').floor('h')


class HourlyWeatherSource(WeatherSource):
    """
    Weather backed by an hourly dataset resident in memory.
    Times between two hours are linearly interpolated.
    """

    def __init__(self, entries):
        self._entry_by_hour = {}
        for entry in entries:
            if not isinstance(entry, WeatherEntry):
                entry = WeatherEntry.from_dict(entry)
            self._entry_by_hour[_hour_key(entry.datetime)] = entry.weather
        _LOGGER.debug(f"Indexed {len(self._entry_by_hour)} hourly weather entries")

    def __len__(self):
        return len(self._entry_by_hour)

    def _get_weather_for_hour(self, hour_start):
        try:
            return self._entry_by_hour[hour_start]
        except KeyError:
            raise KeyError(f"No weather entry for {hour_start.isoformat()}") from None

    def get_weather(self, local_time) -> WeatherSnapshot:
        utc = to_timestamp(local_time).tz_convert('UTC')
        start_of_hour = utc.floor('h')

        start = self._get_weather_for_hour(start_of_hour)
        if utc == start_of_hour:
            return start

        # Hour plus one rather than end-of-hour, which would map back onto the same key
        end_of_hour = start_of_hour + ONE_HOUR
        end = self._get_weather_for_hour(end_of_hour)

        # Not every quantity is linear over an hour, but close enough within one
        frac = (utc - start_of_hour) / ONE_HOUR

        def lerp(a, b):
            return interpolate(0.0, a, 1.0, b, frac)

        altitude = lerp(start.solar_irradiance.altitude_degrees, end.solar_irradiance.altitude_degrees)
        intensity = lerp(start.solar_irradiance.watts_per_square_meter, end.solar_irradiance.watts_per_square_meter)
        if altitude < 0:
            # Sun below horizon
            intensity = 0.0

        return WeatherSnapshot(
            outside_air_temp_f=lerp(start.outside_air_temp_f, end.outside_air_temp_f),
            relative_humidity_percent=lerp(start.relative_humidity_percent, end.relative_humidity_percent),
            wind_speed_mph=lerp(start.wind_speed_mph, end.wind_speed_mph),
            cloud_cover_percent=lerp(start.cloud_cover_percent, end.cloud_cover_percent),
            solar_irradiance=SolarIrradiance(altitude_degrees=altitude, watts_per_square_meter=intensity),
        )


@dataclass(frozen=True)
class TemperatureBin:
    outside_air_temp_f: int
    hour_count: int


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class BinnedTemperatures:
    """
    Hourly outside temperatures reduced to a sorted array (for percentile
    queries) and a histogram of hours per whole degree.
    """

    def __init__(self, entries):
        temps = []
        for entry in entries:
            if isinstance(entry, WeatherEntry):
                temps.append(entry.weather.outside_air_temp_f)
            elif isinstance(entry, WeatherSnapshot):
                temps.append(entry.outside_air_temp_f)
            else:
                temps.append(WeatherEntry.from_dict(entry).weather.outside_air_temp_f)

        if not temps:
            raise ValueError("Cannot bin temperatures from an empty weather dataset")

        self._sorted_temps_f = np.sort(np.array(temps, dtype=float))
        self._hours_by_temp_f = Counter(round_half_up(t) for t in temps)
        self._sorted_bins = [
            TemperatureBin(outside_air_temp_f=t, hour_count=n)
            for t, n in sorted(self._hours_by_temp_f.items())
        ]

    def __len__(self):
        return len(self._sorted_temps_f)

    def get_temp_at_percentile(self, percentile: float) -> float:
        if not 0 <= percentile <= 100:
            raise ValueError(f"Percentile must be between 0 and 100, got {percentile}")
        idx = int(math.floor((percentile / 100.0) * (len(self._sorted_temps_f) - 1)))
        return float(self._sorted_temps_f[idx])

    def hours_at(self, temp_f: int) -> int:
        return self._hours_by_temp_f.get(temp_f, 0)

    def bins(self):
        return iter(self._sorted_bins)

    def __iter__(self):
        return self.bins()
