import logging
from datetime import datetime

from .billing import (
    SimpleElectricalUtilityPlan,
    SimpleNaturalGasUtilityPlan,
    SimpleFuelOilUtilityPlan,
    TimeOfUseElectricalUtilityPlan,
    TimeOfUsePeriod,
)
from .utils import load_json_with_comments

_LOGGER = logging.getLogger(__name__)

WEEKDAYS = ['mon', 'tue', 'wed', 'thu', 'fri', 'sat', 'sun']


def parse_time(t_str):
    return datetime.strptime(t_str, "%H:%M").time()


def _parse_weekdays(days):
    if days is None:
        return set(range(7))
    parsed = set()
    for d in days:
        key = str(d).lower()[:3]
        if key not in WEEKDAYS:
            raise ValueError(f"Unknown weekday '{d}'")
        parsed.add(WEEKDAYS.index(key))
    return parsed


def _window_predicate(window):
    """
    A window matches local times on its weekdays with start <= time < end.
    An end at or before the start wraps past midnight.
    """
    weekdays = _parse_weekdays(window.get('weekdays'))
    start = parse_time(window.get('start', '00:00'))
    end = parse_time(window.get('end', '00:00'))

    def in_window(local_time):
        if local_time.weekday() not in weekdays:
            return False
        t = local_time.time()
        if start < end:
            return start <= t < end
        # Overnight (or all day when start == end)
        return t >= start or t < end

    return in_window


def _period_predicate(config):
    months = config.get('months')
    windows = [_window_predicate(w) for w in config.get('windows', [])]
    month_set = set(months) if months else None

    def in_period(local_time):
        if month_set is not None and local_time.month not in month_set:
            return False
        if not windows:
            return True
        return any(w(local_time) for w in windows)

    return in_period


def time_of_use_periods_from_config(config):
    """
    Builds tariff periods from JSON.

    Each period looks like:
        {"name": "peak", "cost_per_kwh": 0.30,
         "months": [6, 7, 8],
         "windows": [{"weekdays": ["mon", "tue"], "start": "16:00", "end": "21:00"}]}

    Periods are matched in order. One with no windows matches every time in
    its months, so it makes a good catch-all at the end of the list.
    """
    periods = []
    for item in config:
        try:
            periods.append(TimeOfUsePeriod(
                name=item['name'],
                cost_per_kwh=float(item['cost_per_kwh']),
                in_period=_period_predicate(item),
            ))
        except KeyError as e:
            raise ValueError(f"Time of use period is missing {e}: {item}") from e
    return periods


def _plan_factory(kind, config):
    if config is None:
        return None

    fixed = float(config.get('fixed_cost_per_month', 0.0))
    if kind == 'electrical':
        if 'periods' in config:
            periods = time_of_use_periods_from_config(config['periods'])
            return lambda: TimeOfUseElectricalUtilityPlan(fixed, periods)
        rate = float(config['cost_per_kwh'])
        return lambda: SimpleElectricalUtilityPlan(fixed, rate)
    if kind == 'natural_gas':
        rate = float(config['cost_per_ccf'])
        return lambda: SimpleNaturalGasUtilityPlan(fixed, rate)
    if kind == 'fuel_oil':
        rate = float(config['cost_per_gallon'])
        return lambda: SimpleFuelOilUtilityPlan(fixed, rate)
    raise ValueError(f"Unknown utility plan kind '{kind}'")


def utility_plan_factories_from_config(config):
    """
    Returns {'electrical': factory, 'natural_gas': factory, 'fuel_oil': factory}.
    Each factory builds a fresh, empty plan. Missing blocks map to None.
    """
    try:
        return {kind: _plan_factory(kind, config.get(kind)) for kind in ('electrical', 'natural_gas', 'fuel_oil')}
    except KeyError as e:
        raise ValueError(f"Utility plan is missing {e}") from e


def load_utility_plans(json_path):
    config = load_json_with_comments(json_path)
    factories = utility_plan_factories_from_config(config)
    configured = [k for k, v in factories.items() if v is not None]
    _LOGGER.info(f"Loaded utility plans from {json_path}: {', '.join(configured) or 'none'}")
    return factories
