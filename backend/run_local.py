# backend/run_local.py
from backend.lib.home_energy_core.estimator import DEFAULT_RATE_PER_UNIT
from backend.lib.home_energy_core.io import parse_csv_string
from backend.lib.home_energy_core.predictor import next_month_key, predict
from backend.lib.home_energy_core.processor import summarize
import sys
from pathlib import Path

def main(csv_path, email="local@example.com", rate=DEFAULT_RATE_PER_UNIT):
    text = Path(csv_path).read_text()
    records = parse_csv_string(text, email, rate)
    print(f"Parsed {len(records)} usage records:")
    for r in records:
        print(f" - {r.date.date().isoformat()} {r.appliance_name}: {r.kwh:.2f} kWh, {r.cost:.2f}")

    summary = summarize(records)
    print("\nPer appliance:")
    for name, kwh in summary.per_appliance.items():
        print(f" - {name}: {kwh:.2f} kWh")
    print("\nPer month:")
    for month in sorted(summary.per_month_cost):
        print(f" - {month}: {summary.per_month_cost[month]:.2f}")
    print(f"\nTotal: {summary.total_kwh:.2f} kWh, {summary.total_cost:.2f}")

    prediction = predict(records)
    if prediction.months:
        print(f"Predicted bill for {next_month_key(prediction.months[-1])}: {prediction.predicted_cost:.2f}")

if __name__ == "__main__":
    csv = sys.argv[1] if len(sys.argv) > 1 else "tests/sample_usage.csv"
    email = sys.argv[2] if len(sys.argv) > 2 else "local@example.com"
    rate = float(sys.argv[3]) if len(sys.argv) > 3 else DEFAULT_RATE_PER_UNIT
    main(csv, email, rate)
