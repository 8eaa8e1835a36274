# backend/lib/home_energy_core/models.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional


@dataclass(frozen=True)
class UsageRecord:
    owner_key: str
    date: datetime
    appliance_name: str
    watts: float
    hours_per_day: float
    days: float
    kwh: float
    cost: float
    record_id: Optional[str] = None


@dataclass
class Summary:
    per_appliance: Dict[str, float] = field(default_factory=dict)
    per_date: Dict[str, float] = field(default_factory=dict)
    per_month_cost: Dict[str, float] = field(default_factory=dict)
    total_kwh: float = 0.0
    total_cost: float = 0.0

    def to_dict(self) -> dict:
        """Dashboard JSON shape. Date and month keys come out in ascending order."""
        return {
            "perAppliance": dict(self.per_appliance),
            "perDate": {k: self.per_date[k] for k in sorted(self.per_date)},
            "perMonthCost": {k: self.per_month_cost[k] for k in sorted(self.per_month_cost)},
            "totalKWh": self.total_kwh,
            "totalCost": self.total_cost,
        }


@dataclass
class Prediction:
    months: List[str] = field(default_factory=list)
    costs: List[float] = field(default_factory=list)
    predicted_cost: float = 0.0

    def to_dict(self) -> dict:
        return {
            "months": list(self.months),
            "costs": list(self.costs),
            "predictedCost": self.predicted_cost,
        }


@dataclass(frozen=True)
class BudgetStatus:
    month: Optional[str]
    current_month_cost: float
    budget: float
    over_budget: bool

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "currentMonthCost": self.current_month_cost,
            "budget": self.budget,
            "overBudget": self.over_budget,
        }


@dataclass(frozen=True)
class User:
    name: str
    email: str
    password_hash: str
