# backend/lib/home_energy_core/estimator.py
from datetime import datetime
from typing import Optional, Tuple

from .models import UsageRecord

DEFAULT_RATE_PER_UNIT = 8.0


def compute_kwh_and_cost(watts: float, hours_per_day: float, days: float,
                         rate_per_unit: float = DEFAULT_RATE_PER_UNIT) -> Tuple[float, float]:
    """
    Energy for one appliance over a period and what it costs.

    kwh = watts * hours_per_day * days / 1000
    cost = kwh * rate_per_unit

    Inputs are not validated here; the request parser rejects missing
    and non-finite values before this is called.
    """
    kwh = watts * hours_per_day * days / 1000
    cost = kwh * rate_per_unit
    return kwh, cost


class EnergyCalculator:
    def __init__(self, rate_per_unit: float = DEFAULT_RATE_PER_UNIT):
        """
        rate_per_unit: flat tariff in currency units per kWh (e.g. INR/kWh)
        """
        self.rate = float(rate_per_unit)

    def compute(self, watts: float, hours_per_day: float, days: float) -> Tuple[float, float]:
        return compute_kwh_and_cost(watts, hours_per_day, days, self.rate)

    def build_record(self, owner_key: str, date: datetime, appliance_name: str,
                     watts: float, hours_per_day: float, days: float,
                     record_id: Optional[str] = None) -> UsageRecord:
        """
        Returns a UsageRecord with kwh and cost filled in at this calculator's rate.
        """
        kwh, cost = self.compute(watts, hours_per_day, days)
        return UsageRecord(
            owner_key=owner_key,
            date=date,
            appliance_name=appliance_name,
            watts=watts,
            hours_per_day=hours_per_day,
            days=days,
            kwh=kwh,
            cost=cost,
            record_id=record_id,
        )
