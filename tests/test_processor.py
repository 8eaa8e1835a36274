# tests/test_processor.py
import math
from datetime import datetime, timedelta, timezone

from hypothesis import given, strategies as st

from backend.lib.home_energy_core.models import UsageRecord
from backend.lib.home_energy_core.processor import date_key, month_key, summarize


def make_record(date, appliance, kwh, cost, owner="asha@example.com"):
    return UsageRecord(owner, date, appliance, 0, 0, 0, kwh, cost)


def make_records():
    utc = timezone.utc
    return [
        make_record(datetime(2025, 1, 10, tzinfo=utc), "Fridge", 110.5, 884.0),
        make_record(datetime(2025, 1, 10, tzinfo=utc), "AC", 180.0, 1440.0),
        make_record(datetime(2025, 2, 5, tzinfo=utc), "Fridge", 100.25, 802.0),
        make_record(datetime(2025, 3, 2, tzinfo=utc), "fridge", 60.0, 480.0),
    ]


def test_summary_groups_by_appliance_date_and_month():
    summary = summarize(make_records())
    assert summary.per_appliance == {"Fridge": 210.75, "AC": 180.0, "fridge": 60.0}
    assert summary.per_date == {"2025-01-10": 290.5, "2025-02-05": 100.25, "2025-03-02": 60.0}
    assert summary.per_month_cost == {"2025-01": 2324.0, "2025-02": 802.0, "2025-03": 480.0}
    assert summary.total_kwh == 450.75
    assert summary.total_cost == 3606.0


def test_appliance_names_are_not_trimmed_or_case_folded():
    utc = timezone.utc
    records = [
        make_record(datetime(2025, 1, 1, tzinfo=utc), "TV", 1.0, 8.0),
        make_record(datetime(2025, 1, 1, tzinfo=utc), "TV ", 2.0, 16.0),
        make_record(datetime(2025, 1, 1, tzinfo=utc), "tv", 3.0, 24.0),
    ]
    assert summarize(records).per_appliance == {"TV": 1.0, "TV ": 2.0, "tv": 3.0}


def test_empty_input_gives_zero_summary():
    summary = summarize([])
    assert summary.to_dict() == {
        "perAppliance": {},
        "perDate": {},
        "perMonthCost": {},
        "totalKWh": 0,
        "totalCost": 0,
    }


def test_dates_are_grouped_by_utc_calendar_day():
    # 23:30 at UTC-5 on Jan 31 is Feb 1 in UTC
    eastern = timezone(timedelta(hours=-5))
    late_evening = datetime(2025, 1, 31, 23, 30, tzinfo=eastern)
    assert date_key(late_evening) == "2025-02-01"
    assert month_key(late_evening) == "2025-02"
    # naive timestamps are already UTC
    assert date_key(datetime(2025, 1, 31, 23, 30)) == "2025-01-31"


def test_year_boundary_months_stay_apart():
    utc = timezone.utc
    records = [
        make_record(datetime(2025, 12, 31, tzinfo=utc), "Heater", 10.0, 80.0),
        make_record(datetime(2026, 1, 1, tzinfo=utc), "Heater", 12.0, 96.0),
    ]
    summary = summarize(records)
    assert summary.per_month_cost == {"2025-12": 80.0, "2026-01": 96.0}


def test_to_dict_sorts_date_and_month_keys():
    utc = timezone.utc
    records = [
        make_record(datetime(2025, 3, 1, tzinfo=utc), "AC", 1.0, 8.0),
        make_record(datetime(2025, 1, 1, tzinfo=utc), "AC", 1.0, 8.0),
        make_record(datetime(2025, 2, 1, tzinfo=utc), "AC", 1.0, 8.0),
    ]
    body = summarize(records).to_dict()
    assert list(body["perDate"]) == ["2025-01-01", "2025-02-01", "2025-03-01"]
    assert list(body["perMonthCost"]) == ["2025-01", "2025-02", "2025-03"]


def test_summarize_is_idempotent():
    records = make_records()
    assert summarize(records) == summarize(records)


record_strategy = st.builds(
    make_record,
    st.datetimes(min_value=datetime(2000, 1, 1), max_value=datetime(2100, 1, 1),
                 timezones=st.just(timezone.utc)),
    st.sampled_from(["Fridge", "AC", "TV", "Geyser"]),
    st.floats(min_value=0, max_value=10000, allow_nan=False),
    st.floats(min_value=0, max_value=100000, allow_nan=False),
)


@given(st.lists(record_strategy, max_size=50))
def test_every_grouping_partitions_the_totals(records):
    summary = summarize(records)
    assert math.isclose(sum(summary.per_appliance.values()), summary.total_kwh, rel_tol=1e-9, abs_tol=1e-6)
    assert math.isclose(sum(summary.per_date.values()), summary.total_kwh, rel_tol=1e-9, abs_tol=1e-6)
    assert math.isclose(sum(summary.per_month_cost.values()), summary.total_cost, rel_tol=1e-9, abs_tol=1e-6)
