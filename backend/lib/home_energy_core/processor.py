from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, Iterable, List

from .models import Summary, UsageRecord

# Calendar used for date and month grouping keys.
GROUPING_TZ = timezone.utc


def date_key(dt: datetime) -> str:
    """
    'YYYY-MM-DD' of the UTC calendar date. Naive datetimes are taken as UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=GROUPING_TZ)
    return dt.astimezone(GROUPING_TZ).strftime("%Y-%m-%d")


def month_key(dt: datetime) -> str:
    return date_key(dt)[:7]  # YYYY-MM


class UsageAggregator:
    def __init__(self, records: Iterable[UsageRecord]):
        self.records: List[UsageRecord] = list(records)

    def summary(self) -> Summary:
        """
        Folds the records once into per-appliance kWh, per-date kWh,
        per-month cost and the grand totals.

        Stored kwh/cost values are summed as-is.
        """
        per_appliance = defaultdict(float)
        per_date = defaultdict(float)
        per_month_cost = defaultdict(float)
        total_kwh = 0.0
        total_cost = 0.0
        for r in self.records:
            day = date_key(r.date)
            per_appliance[r.appliance_name] += r.kwh
            per_date[day] += r.kwh
            per_month_cost[day[:7]] += r.cost
            total_kwh += r.kwh
            total_cost += r.cost
        return Summary(
            per_appliance=dict(per_appliance),
            per_date=dict(per_date),
            per_month_cost=dict(per_month_cost),
            total_kwh=total_kwh,
            total_cost=total_cost,
        )


def monthly_cost(records: Iterable[UsageRecord]) -> Dict[str, float]:
    """
    Total cost per 'YYYY-MM', keyed the same way summarize() keys perMonthCost.
    """
    monthly = defaultdict(float)
    for r in records:
        monthly[month_key(r.date)] += r.cost
    return dict(monthly)


def summarize(records: Iterable[UsageRecord]) -> Summary:
    return UsageAggregator(records).summary()
