"""
=============================================================================
LOCAL RECORD STORE - JSON Lines file storage for usage records
=============================================================================
Used when DynamoDB is not enabled. Each usage record is one JSON object per
line in <data_dir>/usage.jsonl, in the same shape the API returns.

Example line:
{"id": "3f2c...", "userEmail": "asha@example.com", "date": "2025-01-15T00:00:00Z",
 "applianceName": "Fridge", "watts": 150, "hoursPerDay": 24, "days": 30,
 "kWh": 108.0, "cost": 864.0}
=============================================================================
"""

import json
from pathlib import Path
from typing import Iterable, List

from backend.lib.home_energy_core.io import (
    normalize_owner_key,
    record_from_dict,
    record_to_dict,
)
from backend.lib.home_energy_core.models import UsageRecord


class LocalRecordStore:
    """
    File-backed record store.

    Offers the same methods as DynamoDBService so the app can use either:
    - insert(record)
    - insert_many(records)
    - find_all_by_owner(owner_key)
    """

    def __init__(self, data_dir):
        self.data_dir = Path(data_dir)
        # parents=True creates parent folders
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.path = self.data_dir / "usage.jsonl"

    def insert(self, record: UsageRecord) -> UsageRecord:
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record_to_dict(record)) + "\n")
        return record

    def insert_many(self, records: Iterable[UsageRecord]) -> int:
        count = 0
        with self.path.open("a", encoding="utf-8") as f:
            for r in records:
                f.write(json.dumps(record_to_dict(r)) + "\n")
                count += 1
        return count

    def find_all_by_owner(self, owner_key: str) -> List[UsageRecord]:
        """
        All records for one owner, oldest first.
        Records with the same date keep the order they were written in.
        """
        if not self.path.exists():
            return []  # No data yet

        owner_key = normalize_owner_key(owner_key)
        records = []
        with self.path.open("r", encoding="utf-8") as f:
            for line in f:
                if not line.strip():
                    continue
                obj = json.loads(line)
                if obj.get("userEmail") != owner_key:
                    continue
                records.append(record_from_dict(obj))
        records.sort(key=lambda r: r.date)
        return records
