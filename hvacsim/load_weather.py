import logging

import pandas as pd

from .utils import load_json_with_comments
from .weather import WeatherEntry, WeatherSnapshot, SolarIrradiance

_LOGGER = logging.getLogger(__name__)

REQUIRED_CSV_COLUMNS = [
    'datetime',
    'outside_air_temp_f',
    'relative_humidity_percent',
    'wind_speed_mph',
    'cloud_cover_percent',
    'solar_altitude_degrees',
    'solar_watts_per_square_meter',
]


def load_weather_json(filepath: str) -> list:
    """
    Loads an hourly weather dataset from JSON. The file holds either a list
    of entries or an object with the list under 'weather'.
    """
    _LOGGER.info(f"Loading weather from {filepath}...")
    data = load_json_with_comments(filepath)
    if isinstance(data, dict):
        if 'weather' not in data:
            raise ValueError(f"{filepath}: expected a list of entries or a 'weather' key")
        data = data['weather']

    entries = [WeatherEntry.from_dict(item) for item in data]
    entries.sort(key=lambda e: e.datetime)
    _LOGGER.info(f"Successfully loaded {len(entries)} hourly weather entries.")
    return entries


def load_weather_csv(filepath: str) -> list:
    """Loads an hourly weather dataset from a flat CSV export."""
    _LOGGER.info(f"Loading weather from {filepath}...")
    df = pd.read_csv(filepath)

    for col in REQUIRED_CSV_COLUMNS:
        if col not in df.columns:
            raise ValueError(f"Missing required column: {col}")

    df['datetime'] = pd.to_datetime(df['datetime'], utc=True)
    df = df.sort_values('datetime').reset_index(drop=True)

    # Night rows are often exported empty
    df['solar_watts_per_square_meter'] = df['solar_watts_per_square_meter'].fillna(0)

    missing = df[REQUIRED_CSV_COLUMNS].isna().any(axis=1)
    if missing.any():
        raise ValueError(f"{int(missing.sum())} weather rows have missing values (first at {df.loc[missing, 'datetime'].iloc[0]})")

    entries = [
        WeatherEntry(
            datetime=row.datetime,
            weather=WeatherSnapshot(
                outside_air_temp_f=float(row.outside_air_temp_f),
                relative_humidity_percent=float(row.relative_humidity_percent),
                wind_speed_mph=float(row.wind_speed_mph),
                cloud_cover_percent=float(row.cloud_cover_percent),
                solar_irradiance=SolarIrradiance(
                    altitude_degrees=float(row.solar_altitude_degrees),
                    watts_per_square_meter=float(row.solar_watts_per_square_meter),
                ),
            ),
        )
        for row in df.itertuples(index=False)
    ]
    _LOGGER.info(f"Successfully loaded {len(entries)} hourly weather entries.")
    return entries


def load_weather(filepath: str) -> list:
    if filepath.lower().endswith('.csv'):
        return load_weather_csv(filepath)
    return load_weather_json(filepath)
