"""
Utility plans accumulate fuel usage by calendar month and turn it into
itemized monthly bills.
"""
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable

import pandas as pd

from .utils import add_months, start_of_month, to_timestamp

_LOGGER = logging.getLogger(__name__)

ELECTRICITY = 'electricity'
NATURAL_GAS = 'natural gas'
FUEL_OIL = 'fuel oil'

ONE_NANOSECOND = pd.Timedelta(1, unit='ns')


@dataclass(frozen=True)
class LineItem:
    description: str
    amount: float


class EnergyBill(ABC):
    """
    One month of one fuel. Subclasses are frozen: a bill never changes once
    a plan has produced it.
    """
    billing_period_start: pd.Timestamp
    billing_period_end: pd.Timestamp
    fuel_type: str
    fuel_unit: str
    fuel_usage: float

    @property
    @abstractmethod
    def line_items(self) -> list:
        ...

    @property
    def total_cost(self):
        return sum(item.amount for item in self.line_items)


@dataclass(frozen=True)
class SimpleFuelBill(EnergyBill):
    billing_period_start: pd.Timestamp
    billing_period_end: pd.Timestamp
    fuel_type: str
    fuel_unit: str
    fuel_usage: float
    fixed_cost: float
    cost_per_fuel_unit: float

    @property
    def line_items(self):
        unit = self.fuel_unit
        return [
            LineItem("Fixed charges", self.fixed_cost),
            LineItem(
                f"{self.fuel_usage:.2f} {unit} (at {self.cost_per_fuel_unit}/{unit})",
                self.fuel_usage * self.cost_per_fuel_unit,
            ),
        ]


@dataclass(frozen=True)
class PeriodUsage:
    name: str
    fuel_usage: float
    cost_per_fuel_unit: float


@dataclass(frozen=True)
class TimeOfUseBill(EnergyBill):
    billing_period_start: pd.Timestamp
    billing_period_end: pd.Timestamp
    fixed_cost: float
    periods: tuple
    fuel_type: str = ELECTRICITY
    fuel_unit: str = 'kWh'

    def __post_init__(self):
        object.__setattr__(self, 'periods', tuple(self.periods))

    @property
    def fuel_usage(self):
        return sum(p.fuel_usage for p in self.periods)

    @property
    def line_items(self):
        unit = self.fuel_unit
        items = [LineItem("Fixed charges", self.fixed_cost)]
        for p in self.periods:
            items.append(LineItem(
                f"{p.fuel_usage:.2f} {unit} ({p.name}, at {p.cost_per_fuel_unit}/{unit})",
                p.fuel_usage * p.cost_per_fuel_unit,
            ))
        return items


class MonthlyPeriods:
    """
    Calendar months overlapping [start, end), in start's timezone, as
    (month_start, month_end) pairs. Can be iterated more than once.
    """

    def __init__(self, start, end):
        self.start = to_timestamp(start)
        self.end = to_timestamp(end)

    def __iter__(self):
        month_start = start_of_month(self.start)
        while month_start < self.end:
            next_month = add_months(month_start, 1)
            yield month_start, next_month - ONE_NANOSECOND
            month_start = next_month

    def __len__(self):
        return sum(1 for _ in self)


def month_periods(start, end):
    return MonthlyPeriods(start, end)


def month_key(local_time):
    return local_time.year, local_time.month


class UtilityPlan(ABC):
    @abstractmethod
    def get_bills(self, start, end) -> list:
        ...


class SimpleUtilityPlan(UtilityPlan):
    """A fixed monthly charge plus a flat rate per unit of fuel."""
    fuel_type: str
    fuel_unit: str

    def __init__(self, fixed_cost_per_month, cost_per_fuel_unit):
        self.fixed_cost_per_month = fixed_cost_per_month
        self.cost_per_fuel_unit = cost_per_fuel_unit
        self._usage_by_month = defaultdict(float)

    def record_usage(self, amount, local_time):
        if amount < 0:
            raise ValueError(f"Cannot record using negative amounts of fuel. Received: {amount} {self.fuel_unit}")
        self._usage_by_month[month_key(local_time)] += amount

    def get_bills(self, start, end):
        # Months with no usage still get a bill for the fixed charge
        return [
            SimpleFuelBill(
                billing_period_start=month_start,
                billing_period_end=month_end,
                fuel_type=self.fuel_type,
                fuel_unit=self.fuel_unit,
                fuel_usage=self._usage_by_month.get(month_key(month_start), 0.0),
                fixed_cost=self.fixed_cost_per_month,
                cost_per_fuel_unit=self.cost_per_fuel_unit,
            )
            for month_start, month_end in month_periods(start, end)
        ]


class SimpleElectricalUtilityPlan(SimpleUtilityPlan):
    fuel_type = ELECTRICITY
    fuel_unit = 'kWh'

    def __init__(self, fixed_cost_per_month, cost_per_kwh):
        super().__init__(fixed_cost_per_month, cost_per_kwh)

    def record_electricity_usage_kwh(self, kwh, local_time):
        self.record_usage(kwh, local_time)


class SimpleNaturalGasUtilityPlan(SimpleUtilityPlan):
    fuel_type = NATURAL_GAS
    fuel_unit = 'ccf'

    def __init__(self, fixed_cost_per_month, cost_per_ccf):
        super().__init__(fixed_cost_per_month, cost_per_ccf)

    def record_natural_gas_usage_ccf(self, ccf, local_time):
        self.record_usage(ccf, local_time)


class SimpleFuelOilUtilityPlan(SimpleUtilityPlan):
    fuel_type = FUEL_OIL
    fuel_unit = 'gallons'

    def __init__(self, fixed_cost_per_month, cost_per_gallon):
        super().__init__(fixed_cost_per_month, cost_per_gallon)

    def record_fuel_oil_usage_gallons(self, gallons, local_time):
        self.record_usage(gallons, local_time)


@dataclass(frozen=True)
class TimeOfUsePeriod:
    name: str
    cost_per_kwh: float
    in_period: Callable[[pd.Timestamp], bool]


class TimeOfUseElectricalUtilityPlan(UtilityPlan):
    """
    Electricity priced by when it is used. Each recording lands in the
    first period whose predicate matches its local time.
    """
    fuel_type = ELECTRICITY
    fuel_unit = 'kWh'

    def __init__(self, fixed_cost_per_month, periods):
        if not periods:
            raise ValueError("A time of use plan needs at least one period")
        self.fixed_cost_per_month = fixed_cost_per_month
        self.periods = list(periods)
        self._usage_by_month = defaultdict(lambda: defaultdict(float))

    def period_for(self, local_time):
        for period in self.periods:
            if period.in_period(local_time):
                return period
        raise LookupError(f"No time of use period applied for {local_time}")

    def record_electricity_usage_kwh(self, kwh, local_time):
        if kwh < 0:
            raise ValueError(f"Cannot record using negative amounts of electricity. Received: {kwh} kWh")
        period = self.period_for(local_time)
        self._usage_by_month[month_key(local_time)][period.name] += kwh

    def get_bills(self, start, end):
        bills = []
        for month_start, month_end in month_periods(start, end):
            usage = self._usage_by_month.get(month_key(month_start), {})
            bills.append(TimeOfUseBill(
                billing_period_start=month_start,
                billing_period_end=month_end,
                fixed_cost=self.fixed_cost_per_month,
                periods=[PeriodUsage(p.name, usage.get(p.name, 0.0), p.cost_per_kwh) for p in self.periods],
            ))
        return bills


class FuelBilling:
    """
    Routes appliance fuel usage to whichever utility plans are configured.
    Burning a fuel with no plan is a configuration error.
    """

    def __init__(self, electrical=None, natural_gas=None, fuel_oil=None):
        self.electrical = electrical
        self.natural_gas = natural_gas
        self.fuel_oil = fuel_oil

    def _plan_for(self, plan, fuel_type, amount):
        if plan is None:
            raise ValueError(f"Used {amount} of {fuel_type} but no {fuel_type} utility plan is configured")
        return plan

    def record(self, fuel_usage, hours, local_time):
        if fuel_usage.electricity_kw:
            self._plan_for(self.electrical, ELECTRICITY, fuel_usage.electricity_kw).record_electricity_usage_kwh(
                fuel_usage.electricity_kw * hours, local_time
            )
        if fuel_usage.natural_gas_ccf_per_hour:
            self._plan_for(self.natural_gas, NATURAL_GAS, fuel_usage.natural_gas_ccf_per_hour).record_natural_gas_usage_ccf(
                fuel_usage.natural_gas_ccf_per_hour * hours, local_time
            )
        if fuel_usage.fuel_oil_gallons_per_hour:
            self._plan_for(self.fuel_oil, FUEL_OIL, fuel_usage.fuel_oil_gallons_per_hour).record_fuel_oil_usage_gallons(
                fuel_usage.fuel_oil_gallons_per_hour * hours, local_time
            )

    def get_bills(self, start, end):
        bills = []
        for plan in (self.electrical, self.natural_gas, self.fuel_oil):
            if plan is not None:
                bills.extend(plan.get_bills(start, end))
        _LOGGER.debug(f"Built {len(bills)} bills for {start} to {end}")
        return bills
