import logging
from dataclasses import dataclass

from .appliance import (
    ApplianceResponse,
    CoolingAppliance,
    HeatingAppliance,
    PerformanceRating,
    check_elevation,
    derate_for_elevation,
    electricity_response,
)
from .constants import (
    MIN_INTERPOLATED_COP,
    MAX_INTERPOLATED_COP,
    DEFROST_MAX_OUTSIDE_TEMP_F,
    DEFROST_CURVE_SPLIT_TEMP_F,
)
from .utils import clamp, interpolate, interpolate_clamped, load_json_with_comments

_LOGGER = logging.getLogger(__name__)

MODES = ('heating', 'cooling')


@dataclass(frozen=True)
class RatingPoint:
    """
    One row of a manufacturer/NEEP rating table. Capacities are stored as
    positive BTU/hr for both modes.
    """
    mode: str
    inside_dry_bulb_f: float
    outside_dry_bulb_f: float
    min_capacity: PerformanceRating
    max_capacity: PerformanceRating

    @property
    def abs_delta_t(self):
        return abs(self.inside_dry_bulb_f - self.outside_dry_bulb_f)

    @classmethod
    def from_dict(cls, data):
        mode = data['mode']
        if mode not in MODES:
            raise ValueError(f"Unknown rating mode '{mode}'. Expected one of {MODES}")

        def rating(d):
            return PerformanceRating(
                btus_per_hour=float(d['btus_per_hour']),
                coefficient_of_performance=float(d['coefficient_of_performance']),
            )

        return cls(
            mode=mode,
            inside_dry_bulb_f=float(data['inside_dry_bulb_f']),
            outside_dry_bulb_f=float(data['outside_dry_bulb_f']),
            min_capacity=rating(data['min_capacity']),
            max_capacity=rating(data['max_capacity']),
        )


@dataclass(frozen=True)
class BtusPowerSetting:
    btus_per_hour_needed: float


@dataclass(frozen=True)
class PercentPowerSetting:
    percent_power: float


def interpolate_cop(x1, cop1, x2, cop2, x):
    return clamp(interpolate(x1, cop1, x2, cop2, x), MIN_INTERPOLATED_COP, MAX_INTERPOLATED_COP)


def interpolate_performance_ratings(a_delta_t, a: PerformanceRating, b_delta_t, b: PerformanceRating, delta_t):
    """
    Blends two ratings on the delta-T axis. Capacity never leaves the
    range measured in the lab; COP is held to the plausible range.
    """
    return PerformanceRating(
        btus_per_hour=interpolate_clamped(a_delta_t, a.btus_per_hour, b_delta_t, b.btus_per_hour, delta_t),
        coefficient_of_performance=interpolate_cop(
            a_delta_t, a.coefficient_of_performance, b_delta_t, b.coefficient_of_performance, delta_t
        ),
    )


def defrost_factor(outside_air_temp_f, capacity):
    """
    Empirical capacity multiplier for time lost to defrost cycles.
    `capacity` is 'min' or 'max'. Returns 1.0 where no defrost is needed.
    """
    t = outside_air_temp_f
    if t > DEFROST_MAX_OUTSIDE_TEMP_F:
        return 1.0

    t2 = t * t
    if t < DEFROST_CURVE_SPLIT_TEMP_F:
        return -0.0002022 * t2 + 0.004177 * t + 0.9606
    if capacity == 'max':
        return -0.0003917 * t2 + 0.03786 * t + 0.0849
    return -0.0001371 * t2 + 0.01273 * t + 0.7045


def derate_heat_pump_rating(rating, outside_air_temp_f, elevation_feet, capacity):
    # NEEP ccASHP listings are all variable speed
    derated = derate_for_elevation(rating, elevation_feet, 'variable-speed')

    if outside_air_temp_f > DEFROST_MAX_OUTSIDE_TEMP_F:
        return derated

    factor = defrost_factor(outside_air_temp_f, capacity)
    # Not clamped: COP may fall below 1.0 in deep cold
    cop_factor = 0.978 * factor - 0.0998
    return PerformanceRating(
        btus_per_hour=derated.btus_per_hour * factor,
        coefficient_of_performance=derated.coefficient_of_performance * cop_factor,
    )


def find_bracketing_ratings(sorted_ratings, delta_t):
    """
    First adjacent pair of rows whose delta-T range contains `delta_t`.
    Queries outside the table are clamped onto its end rows.
    """
    if len(sorted_ratings) < 2:
        raise ValueError(f"Not enough ratings. Expected a minimum of 2, got {len(sorted_ratings)}")

    lowest = sorted_ratings[0].abs_delta_t
    highest = sorted_ratings[-1].abs_delta_t
    clamped = clamp(delta_t, lowest, highest)
    if clamped != delta_t:
        _LOGGER.debug(f"Delta-T {delta_t:.1f}F outside rated range [{lowest:.1f}, {highest:.1f}]; clamping")

    for left, right in zip(sorted_ratings, sorted_ratings[1:]):
        if left.abs_delta_t <= clamped <= right.abs_delta_t:
            return left, right, clamped

    # Unreachable for a sorted table
    raise ValueError(f"No rating rows bracket delta-T {delta_t}")


class AirSourceHeatPump(HeatingAppliance, CoolingAppliance):
    """
    A variable-speed heat pump described by a table of rating points
    (min and max capacity at several indoor/outdoor temperature pairs).

    Performance is interpolated on two axes: first on delta-T to get the
    min/max capacity envelope at the current conditions, then on capacity
    to get the COP at the requested output.
    """

    def __init__(self, ratings, elevation_feet=0.0, name="Air Source Heat Pump"):
        ratings = [r if isinstance(r, RatingPoint) else RatingPoint.from_dict(r) for r in ratings]
        if not ratings:
            raise ValueError("A heat pump needs at least one rating table")

        self.name = name
        self.elevation_feet = elevation_feet
        self._sorted_ratings = {
            mode: sorted((r for r in ratings if r.mode == mode), key=lambda r: r.abs_delta_t)
            for mode in MODES
        }
        for mode, rows in self._sorted_ratings.items():
            if len(rows) == 1:
                raise ValueError(f"{name}: {mode} needs at least 2 rating rows, got 1")

        check_elevation(elevation_feet)

    @classmethod
    def from_json(cls, filepath, elevation_feet=None):
        """
        Reads `{"name": ..., "elevation_feet": ..., "ratings": [...]}`.
        An explicit elevation argument wins over the file's.
        """
        data = load_json_with_comments(filepath)
        if 'ratings' not in data:
            raise ValueError(f"{filepath}: missing 'ratings'")
        if elevation_feet is None:
            elevation_feet = data.get('elevation_feet', 0.0)
        _LOGGER.info(f"Loaded {len(data['ratings'])} rating rows from {filepath}")
        return cls(
            ratings=data['ratings'],
            elevation_feet=elevation_feet,
            name=data.get('name', "Air Source Heat Pump"),
        )

    def supports(self, mode):
        return len(self._sorted_ratings[mode]) >= 2

    def get_performance_range(self, inside_air_temp_f, outside_air_temp_f, mode):
        """Returns the (min, max) capacity ratings at these conditions, after derating."""
        delta_t = abs(inside_air_temp_f - outside_air_temp_f)
        left, right, delta_t = find_bracketing_ratings(self._sorted_ratings[mode], delta_t)

        min_capacity = interpolate_performance_ratings(
            left.abs_delta_t, left.min_capacity, right.abs_delta_t, right.min_capacity, delta_t
        )
        max_capacity = interpolate_performance_ratings(
            left.abs_delta_t, left.max_capacity, right.abs_delta_t, right.max_capacity, delta_t
        )

        return (
            derate_heat_pump_rating(min_capacity, outside_air_temp_f, self.elevation_feet, 'min'),
            derate_heat_pump_rating(max_capacity, outside_air_temp_f, self.elevation_feet, 'max'),
        )

    def get_estimated_performance_rating(self, power, inside_air_temp_f, outside_air_temp_f, mode):
        if mode not in MODES:
            raise ValueError(f"Unknown mode '{mode}'. Expected one of {MODES}")

        min_capacity, max_capacity = self.get_performance_range(inside_air_temp_f, outside_air_temp_f, mode)
        sign = -1.0 if mode == 'cooling' else 1.0

        if isinstance(power, BtusPowerSetting):
            needed = power.btus_per_hour_needed
        elif isinstance(power, PercentPowerSetting):
            needed = sign * max_capacity.btus_per_hour * (power.percent_power / 100.0)
        else:
            raise TypeError(f"Unexpected power setting: {power!r}")

        if abs(needed) > abs(max_capacity.btus_per_hour):
            # Can't supply more than max capacity
            return PerformanceRating(sign * max_capacity.btus_per_hour, max_capacity.coefficient_of_performance)

        if abs(needed) < abs(min_capacity.btus_per_hour):
            # Cycles at min capacity, no COP improvement
            return PerformanceRating(sign * min_capacity.btus_per_hour, min_capacity.coefficient_of_performance)

        cop = interpolate_cop(
            min_capacity.btus_per_hour, min_capacity.coefficient_of_performance,
            max_capacity.btus_per_hour, max_capacity.coefficient_of_performance,
            abs(needed),
        )
        return PerformanceRating(btus_per_hour=needed, coefficient_of_performance=cop)

    def _performance_info(self, mode, inside_air_temp_f, outside_air_temp_f, percent_power) -> ApplianceResponse:
        rating = self.get_estimated_performance_rating(
            PercentPowerSetting(percent_power), inside_air_temp_f, outside_air_temp_f, mode
        )
        return electricity_response(rating)

    def get_heating_performance_info(self, inside_air_temp_f, outside_air_temp_f, percent_power=100.0):
        return self._performance_info('heating', inside_air_temp_f, outside_air_temp_f, percent_power)

    def get_cooling_performance_info(self, inside_air_temp_f, outside_air_temp_f, percent_power=100.0):
        return self._performance_info('cooling', inside_air_temp_f, outside_air_temp_f, percent_power)


def _point(mode, inside, outside, min_btus, min_cop, max_btus, max_cop):
    return RatingPoint(
        mode=mode,
        inside_dry_bulb_f=inside,
        outside_dry_bulb_f=outside,
        min_capacity=PerformanceRating(min_btus, min_cop),
        max_capacity=PerformanceRating(max_btus, max_cop),
    )


# Panasonic rating rows from the NEEP ccASHP database, handy for examples
PANASONIC_HEAT_PUMP_RATINGS = [
    _point('cooling', 80, 95, 13000, 3.7, 47400, 2.42),
    _point('cooling', 80, 82, 12000, 5.58, 40000, 3.78),
    _point('heating', 70, 47, 11000, 4.67, 57200, 2.94),
    _point('heating', 70, 17, 15000, 3.57, 47000, 1.9),
    _point('heating', 70, 5, 12500, 3.05, 36876, 1.96),
    _point('heating', 70, -22, 12300, 3.05, 21500, 1.26),
]
