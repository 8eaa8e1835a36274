# backend/lib/home_energy_core/io.py
import csv
import math
import uuid
from datetime import datetime, timezone
from io import StringIO
from typing import Any, Dict, List, Mapping

from .estimator import DEFAULT_RATE_PER_UNIT, EnergyCalculator
from .models import UsageRecord

REQUIRED_FIELDS = ("userEmail", "date", "applianceName", "watts", "hoursPerDay", "days")
CSV_COLUMNS = ("date", "applianceName", "watts", "hoursPerDay", "days")


def normalize_owner_key(email: str) -> str:
    return email.strip().lower()


def parse_date(text: str) -> datetime:
    """
    Parse 'YYYY-MM-DD' or an ISO8601 timestamp into a UTC-aware datetime.

    A bare date is midnight UTC. Naive timestamps are taken as UTC,
    timestamps with an offset are converted to UTC.
    """
    if not isinstance(text, str):
        raise ValueError(f"Invalid date: {text!r}")
    try:
        dt = datetime.fromisoformat(text.strip().replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"Invalid date: {text!r}")
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_number(name: str, value: Any, positive: bool = True) -> float:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number")
    if not math.isfinite(number):
        raise ValueError(f"{name} must be finite")
    if positive and number <= 0:
        raise ValueError(f"{name} must be > 0")
    if number < 0:
        raise ValueError(f"{name} must be >= 0")
    return number


def parse_usage_request(payload: Mapping[str, Any],
                        default_rate: float = DEFAULT_RATE_PER_UNIT) -> Dict[str, Any]:
    """
    Validate a usage creation payload (dashboard field names) and
    return normalized python values.

    Raises ValueError with a user-facing message on any bad field.
    """
    missing = [name for name in REQUIRED_FIELDS if _is_blank(payload.get(name))]
    if missing:
        raise ValueError(f"Missing required fields: {', '.join(missing)}")

    rate = payload.get("ratePerUnit")
    return {
        "owner_key": normalize_owner_key(str(payload["userEmail"])),
        "date": parse_date(payload["date"]),
        "appliance_name": str(payload["applianceName"]).strip(),
        "watts": parse_number("watts", payload["watts"]),
        "hours_per_day": parse_number("hoursPerDay", payload["hoursPerDay"]),
        "days": parse_number("days", payload["days"]),
        "rate_per_unit": default_rate if _is_blank(rate) else parse_number("ratePerUnit", rate, positive=False),
    }


def record_from_request(payload: Mapping[str, Any],
                        default_rate: float = DEFAULT_RATE_PER_UNIT) -> UsageRecord:
    fields = parse_usage_request(payload, default_rate)
    calculator = EnergyCalculator(fields.pop("rate_per_unit"))
    record = calculator.build_record(record_id=uuid.uuid4().hex, **fields)
    # finite inputs can still overflow once multiplied
    if not (math.isfinite(record.kwh) and math.isfinite(record.cost)):
        raise ValueError("watts * hoursPerDay * days is too large")
    return record


def parse_csv_string(csv_text: str, owner_key: str,
                     default_rate: float = DEFAULT_RATE_PER_UNIT) -> List[UsageRecord]:
    """
    Parse CSV text with header: date,applianceName,watts,hoursPerDay,days[,ratePerUnit]
    Every row belongs to owner_key. One bad row rejects the whole file.
    """
    f = StringIO(csv_text.strip())
    reader = csv.DictReader(f)
    if reader.fieldnames is None:
        return []
    absent = [c for c in CSV_COLUMNS if c not in reader.fieldnames]
    if absent:
        raise ValueError(f"CSV is missing columns: {', '.join(absent)}")

    records = []
    # header is line 1
    for line_no, row in enumerate(reader, start=2):
        payload = dict(row, userEmail=owner_key)
        try:
            records.append(record_from_request(payload, default_rate))
        except ValueError as e:
            raise ValueError(f"Row {line_no}: {e}") from e
    return records


def record_to_dict(record: UsageRecord) -> Dict[str, Any]:
    return {
        "id": record.record_id,
        "userEmail": record.owner_key,
        "date": record.date.isoformat().replace("+00:00", "Z"),
        "applianceName": record.appliance_name,
        "watts": record.watts,
        "hoursPerDay": record.hours_per_day,
        "days": record.days,
        "kWh": record.kwh,
        "cost": record.cost,
    }


def record_from_dict(obj: Mapping[str, Any]) -> UsageRecord:
    """Inverse of record_to_dict; stored kWh and cost are kept, not recomputed."""
    return UsageRecord(
        owner_key=obj["userEmail"],
        date=parse_date(obj["date"]),
        appliance_name=obj["applianceName"],
        watts=float(obj["watts"]),
        hours_per_day=float(obj["hoursPerDay"]),
        days=float(obj["days"]),
        kwh=float(obj["kWh"]),
        cost=float(obj["cost"]),
        record_id=obj.get("id"),
    )
