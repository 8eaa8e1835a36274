# backend/lib/home_energy_core/predictor.py
from typing import Dict, Iterable

from .models import BudgetStatus, Prediction, UsageRecord
from .processor import monthly_cost

PREDICTION_WINDOW = 3


class BillPredictor:
    def __init__(self, window: int = PREDICTION_WINDOW):
        """
        window: how many of the most recent months feed the average
        """
        if window < 1:
            raise ValueError("window must be >= 1")
        self.window = window

    def predict(self, records: Iterable[UsageRecord]) -> Prediction:
        """
        Next bill = mean cost of the last `window` months that have usage.

        Months are sorted as 'YYYY-MM' strings, which is chronological.
        No records -> empty months/costs and a predicted cost of 0.
        """
        by_month = monthly_cost(records)
        months = sorted(by_month)
        costs = [by_month[m] for m in months]

        predicted = 0.0
        if costs:
            recent = costs[-self.window:]
            predicted = sum(recent) / len(recent)

        return Prediction(months=months, costs=costs, predicted_cost=predicted)


def predict(records: Iterable[UsageRecord]) -> Prediction:
    return BillPredictor().predict(records)


def next_month_key(month: str) -> str:
    """
    '2025-12' -> '2026-01', '2025-04' -> '2025-05'
    """
    year, mon = (int(part) for part in month.split("-"))
    if mon == 12:
        return f"{year + 1}-01"
    return f"{year}-{mon + 1:02d}"


def budget_status(per_month_cost: Dict[str, float], budget: float) -> BudgetStatus:
    """
    Compares the latest month that has recorded usage against the budget.
    """
    if not per_month_cost:
        return BudgetStatus(month=None, current_month_cost=0.0, budget=budget, over_budget=False)
    latest = max(per_month_cost)
    current = per_month_cost[latest]
    return BudgetStatus(month=latest, current_month_cost=current, budget=budget,
                        over_budget=current > budget)
