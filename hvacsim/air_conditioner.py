from .appliance import (
    CoolingAppliance,
    PerformanceRating,
    check_elevation,
    derate_for_elevation,
    electricity_response,
)
from .constants import (
    WATT_HOUR_PER_BTU,
    AC_BASELINE_COP_ADJUSTMENT,
    AC_DCOP_DTEMP_F,
    AC_COP_FLOOR,
)


class AirConditioner(CoolingAppliance):
    """
    Central air rated by SEER.

    SEER is a seasonal average, so the COP at a given indoor/outdoor spread
    is estimated from a linear fit of measured max-capacity COPs.
    """

    def __init__(self, seer, capacity_btus_per_hour, elevation_feet=0.0, speed_settings='single-speed', name=None):
        if not capacity_btus_per_hour > 0:
            raise ValueError(f"Air conditioner capacity must be positive, got {capacity_btus_per_hour}")
        if not seer > 0:
            raise ValueError(f"SEER must be positive, got {seer}")

        self.seer = seer
        self.capacity_btus_per_hour = capacity_btus_per_hour
        self.elevation_feet = elevation_feet
        self.speed_settings = speed_settings
        self.name = name or f"SEER {seer:g} Air Conditioner"
        check_elevation(elevation_feet)

    def get_coefficient_of_performance(self, inside_air_temp_f, outside_air_temp_f):
        nameplate_cop = self.seer * WATT_HOUR_PER_BTU
        delta_t = outside_air_temp_f - inside_air_temp_f
        cop = nameplate_cop + AC_BASELINE_COP_ADJUSTMENT + AC_DCOP_DTEMP_F * delta_t
        return max(cop, AC_COP_FLOOR)

    def get_performance_rating(self, inside_air_temp_f, outside_air_temp_f):
        rating = PerformanceRating(
            btus_per_hour=-self.capacity_btus_per_hour,
            coefficient_of_performance=self.get_coefficient_of_performance(inside_air_temp_f, outside_air_temp_f),
        )
        return derate_for_elevation(rating, self.elevation_feet, self.speed_settings)

    def get_cooling_performance_info(self, inside_air_temp_f, outside_air_temp_f, percent_power=100.0):
        rating = self.get_performance_rating(inside_air_temp_f, outside_air_temp_f)
        if percent_power != 100.0:
            rating = PerformanceRating(
                btus_per_hour=rating.btus_per_hour * percent_power / 100.0,
                coefficient_of_performance=rating.coefficient_of_performance,
            )
        return electricity_response(rating)
