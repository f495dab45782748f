"""Build an insights report from event and inventory files."""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from insights_engine.adapters import csv_adapter, json_adapter
from insights_engine.config import load_config
from insights_engine.log import setup_logging
from insights_engine.pipeline import build_report
from insights_engine.schema import Period


def _adapter(path: Path):
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return csv_adapter
    if suffix == ".json":
        return json_adapter
    raise ValueError("Unsupported input format, expected .csv or .json")


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the real-estate insights engine")
    parser.add_argument("--events", required=True, help="Path to CSV/JSON events file")
    parser.add_argument("--inventory", required=True, help="Path to CSV/JSON inventory file")
    parser.add_argument("--start", required=True, help="Period start (ISO date or datetime)")
    parser.add_argument("--end", required=True, help="Period end (ISO date or datetime)")
    parser.add_argument("--site-key", default=None)
    parser.add_argument("--config", default=None, help="Optional YAML config file")
    parser.add_argument("--env", default=None, help="Optional .env file")
    parser.add_argument("--output", default="outputs/insights_report.json")
    args = parser.parse_args()

    config = load_config(args.config, args.env)
    setup_logging(config.log_level, config.log_file)

    events_path = Path(args.events)
    inventory_path = Path(args.inventory)
    events = _adapter(events_path).parse(str(events_path))
    inventory = _adapter(inventory_path).parse_inventory(str(inventory_path))

    end = datetime.fromisoformat(args.end)
    if "T" not in args.end:
        end = end.replace(hour=23, minute=59, second=59, microsecond=999999)
    period = Period(start=datetime.fromisoformat(args.start), end=end)

    report = build_report(
        events,
        inventory,
        period=period,
        dimension=config.dimension,
        top_n=config.top_n,
        site_key=args.site_key,
    )
    payload = report.to_dict()

    print(json.dumps(payload, indent=2, ensure_ascii=False))

    out_path = Path(args.output)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    print(f"Saved insights report to {out_path}")


if __name__ == "__main__":
    main()
