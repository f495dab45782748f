"""Demo script for insights-engine."""

import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from insights_engine.adapters.csv_adapter import parse, parse_inventory
from insights_engine.pipeline import build_report
from insights_engine.schema import Period


def main() -> None:
    events = parse("examples/sample_events.csv")
    inventory = parse_inventory("examples/sample_inventory.csv")
    period = Period(start=datetime(2025, 1, 1), end=datetime(2025, 1, 31, 23, 59, 59))
    report = build_report(events, inventory, period=period, site_key="demo")
    print("Demand vs supply:", report.to_dict()["demandVsSupply"])
    print("Opportunities:", [(g.category, round(g.gap_score, 1)) for g in report.opportunities])
    print("Oversupply:", [(g.category, round(g.gap_score, 1)) for g in report.oversupply])
    for rec in report.recommendations:
        print(f"[{rec.label}] {rec.title} -> {rec.link}")


if __name__ == "__main__":
    main()
