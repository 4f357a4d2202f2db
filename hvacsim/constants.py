"""
Core Physics and Mathematical Constants.
These define the simulation defaults and the empirical coefficients of the
load and equipment models.
"""

# Unit Conversions
WATT_HOUR_PER_BTU = 0.293071
KWH_PER_BTU = WATT_HOUR_PER_BTU / 1000.0
BTU_PER_KWH = 1.0 / KWH_PER_BTU  # ~3412.14
BTU_PER_CCF_NATURAL_GAS = 103700.0
CUBIC_METER_PER_CCF = 2.83168
FEET_PER_METER = 3.28084

# Simulation / Control Defaults
DEFAULT_TIME_STEP_MINUTES = 20
MIN_TEMP_DIFFERENTIAL_F = 0.8     # Thermostat hysteresis before engaging equipment
STAGE1_PERCENT_POWER = 40.0
STAGE2_PERCENT_POWER = 100.0
DEFAULT_STAGE1_MAX_DURATION_MINUTES = 120
DEFAULT_STAGE2_TEMPERATURE_DELTA_F = 1.0
DEFAULT_TIME_STEP_CACHE_SIZE = 8

# COP Bounds (interpolated values are held to this range)
MIN_INTERPOLATED_COP = 1.0
MAX_INTERPOLATED_COP = 8.5
AC_COP_FLOOR = 0.01

# Air Conditioner COP vs. delta-T fit (median slope of NEEP ccASHP max-capacity COPs)
AC_BASELINE_COP_ADJUSTMENT = 0.7034
AC_DCOP_DTEMP_F = -0.0746

# Heat Pump Defrost
DEFROST_MAX_OUTSIDE_TEMP_F = 50.0
DEFROST_CURVE_SPLIT_TEMP_F = 25.0

# Elevation
GAS_DERATE_THRESHOLD_FT = 2000.0
GAS_DERATE_PER_THOUSAND_FT = 0.04
ALTITUDE_FACTOR_GUESS_ABOVE_FT = 10000.0

# Occupants
OCCUPANT_SENSIBLE_BTU_PER_HOUR = 230.0
OCCUPANT_LATENT_BTU_PER_HOUR = 200.0
OCCUPANT_SLEEPING_DEFLATOR = 0.85

# Conduction / Convection U-factors (BTU / hr / ft^2 / F)
WALL_U_FACTOR = 0.086
WINDOW_U_FACTOR = 0.751
CEILING_U_FACTOR = 0.076
FLOOR_U_FACTOR = 0.101
WINDOW_COOLING_DEFLATOR = 0.9

# Infiltration
INFILTRATION_WIND_THRESHOLD_MPH = 5.0
INFILTRATION_U_FACTOR_CALM = 47.0 / 894.0
INFILTRATION_U_FACTOR_WINDY = 87.0 / 894.0
INFILTRATION_HUMIDITY_THRESHOLD_PERCENT = 50.0
INFILTRATION_HUMIDITY_GAIN = 808.0 / 894.0

# Solar
SOLAR_STRENGTH_UNDER_CLOUDS = 0.15
SOLAR_FULL_HORIZONTAL_W_M2 = 883.0
SOLAR_FULL_VERTICAL_W_M2 = 535.0
CEILING_SOLAR_GAIN_PER_SQ_FT = 1.4
WINDOW_SOLAR_GAIN_PER_SQ_FT = 3.5
WALL_SOLAR_GAIN_PER_SQ_FT = 0.5

# Building
PERCENT_WALLS_THAT_ARE_WINDOWS = 20.0
AIR_BTU_PER_LB_F = 0.24
AIR_LBS_PER_CUBIC_FT = 0.075
FRACTION_OF_THERMAL_MASS_IN_AIR = 0.03

# Emissions
GRAMS_CO2E_PER_CCF_NATURAL_GAS = 0.054717 * 1e6 * 0.1
GRAMS_CO2E_PER_GALLON_FUEL_OIL = 10160.0
