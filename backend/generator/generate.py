"""CLI entry point: loads the trial snapshot, derives the reports, writes JSON.

Usage:
    cd backend && python -m generator.generate [--as-of YYYY-MM-DD] [--data PATH]
"""

import argparse
import json
import math
import sys
from datetime import date
from pathlib import Path

import numpy as np

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import GENERATED_DIR, TRIAL_DATA_FILE, load_trial_config
from generator.view_dataframes import (
    build_feed_log,
    build_growth_table,
    build_weighing_log,
    to_records,
)
from services.snapshot_store import SnapshotStore
from services.trial.performance import (
    conversion_table,
    summarize_all_groups,
    trial_overview,
)


def _sanitize(obj):
    """Replace NaN/Inf with None, convert numpy types to Python types."""
    if isinstance(obj, (np.integer,)):
        return int(obj)
    if isinstance(obj, (np.bool_,)):
        return bool(obj)
    if isinstance(obj, (float, np.floating)):
        val = float(obj)
        return None if (math.isnan(val) or math.isinf(val)) else val
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {k: _sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize(v) for v in obj]
    return obj


def _write_json(path: Path, data):
    """Write sanitized JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(_sanitize(data), f, indent=2)
    print(f"  wrote {path.name} ({_count(data)} items)")


def _count(data) -> str:
    if isinstance(data, list):
        return str(len(data))
    return "1"


def generate(data_file: Path, as_of: date, out_dir: Path = GENERATED_DIR, config_file: str | None = None) -> dict:
    """Run the full report pipeline for one snapshot file."""
    print(f"=== Generating trial reports from {data_file} (as of {as_of}) ===")
    config = load_trial_config(config_file)
    snapshot = SnapshotStore(data_file).load()

    overview = trial_overview(snapshot.animals, snapshot.weighings, config)
    growth = to_records(build_growth_table(snapshot, as_of))
    groups = summarize_all_groups(
        snapshot.animals, snapshot.weighings, snapshot.feed_records, as_of, config,
    )
    conversion = conversion_table(snapshot.animals, snapshot.weighings, snapshot.feed_records, config)
    weighings = to_records(build_weighing_log(snapshot, config))
    feed = to_records(build_feed_log(snapshot))

    _write_json(out_dir / "trial_overview.json", overview)
    _write_json(out_dir / "growth_table.json", growth)
    _write_json(out_dir / "group_summaries.json", groups)
    _write_json(out_dir / "conversion_table.json", conversion)
    _write_json(out_dir / "weighing_log.json", weighings)
    _write_json(out_dir / "feed_log.json", feed)

    print(f"=== Done: {overview['total_animals']} animals, {len(weighings)} weighings ===")
    return {
        "overview": overview,
        "growth": growth,
        "groups": groups,
        "conversion": conversion,
    }


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(description="Generate feeding-trial report JSON")
    parser.add_argument("--data", type=Path, default=TRIAL_DATA_FILE, help="Snapshot JSON file")
    parser.add_argument("--as-of", type=date.fromisoformat, default=None, help="Reference date (YYYY-MM-DD)")
    parser.add_argument("--out", type=Path, default=GENERATED_DIR, help="Output directory")
    parser.add_argument("--config", default=None, help="Trial config YAML")
    args = parser.parse_args(argv)

    if not args.data.exists():
        print(f"ERROR: snapshot file '{args.data}' not found")
        sys.exit(1)
    generate(args.data, args.as_of or date.today(), args.out, args.config)


if __name__ == "__main__":
    main()
