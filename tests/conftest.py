"""Pytest configuration."""
import os
import sys

import numpy as np
import pandas as pd
import pytest

# Repo root on sys.path so `main` and `hvacsim` import without installing
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from hvacsim.building import BuildingGeometry
from hvacsim.weather import SolarIrradiance, WeatherEntry, WeatherSnapshot


def make_snapshot(outside_air_temp_f, relative_humidity_percent=50.0, wind_speed_mph=3.0,
                  cloud_cover_percent=20.0, altitude_degrees=-10.0, watts_per_square_meter=0.0):
    return WeatherSnapshot(
        outside_air_temp_f=outside_air_temp_f,
        relative_humidity_percent=relative_humidity_percent,
        wind_speed_mph=wind_speed_mph,
        cloud_cover_percent=cloud_cover_percent,
        solar_irradiance=SolarIrradiance(altitude_degrees=altitude_degrees, watts_per_square_meter=watts_per_square_meter),
    )


def make_hourly_entries(start="2023-01-01 00:00", hours=72, tz="UTC", mean_f=30.0, swing_f=10.0):
    """Sinusoidal winter days: coldest at 03:00, sun up 07:00-17:00."""
    timestamps = pd.date_range(start=start, periods=hours, freq="h", tz=tz)
    entries = []
    for ts in timestamps:
        hour = ts.hour
        temp = mean_f - swing_f * np.cos((hour - 3) * np.pi / 12)
        daylight = 7 < hour < 17
        altitude = 30.0 * np.sin((hour - 7) * np.pi / 10) if daylight else -20.0
        intensity = 500.0 * np.sin((hour - 7) * np.pi / 10) if daylight else 0.0
        entries.append(WeatherEntry(
            datetime=ts,
            weather=make_snapshot(
                float(temp),
                relative_humidity_percent=60.0,
                wind_speed_mph=4.0,
                cloud_cover_percent=30.0,
                altitude_degrees=float(altitude),
                watts_per_square_meter=float(intensity),
            ),
        ))
    return entries


@pytest.fixture
def hourly_entries():
    return make_hourly_entries()


@pytest.fixture
def geometry():
    return BuildingGeometry(
        floor_space_sq_ft=3000,
        ceiling_height_ft=9,
        num_above_ground_stories=2,
        length_to_width_ratio=3,
        has_conditioned_basement=True,
    )
