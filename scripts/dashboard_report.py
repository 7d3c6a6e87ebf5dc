#!/usr/bin/env python3
"""
Print the derived dashboard for a snapshot as JSON.

Reads the snapshot from --file (a saved Apps Script response) or, without it,
fetches it from KURA_SHEET_SCRIPT_URL.
"""

from __future__ import annotations

import argparse
import json
import os
import sys

# Ensure repo root on sys.path before importing app.*
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from app.infra.settings import settings  # noqa: E402
from app.services.sheet_client import SheetClient, SnapshotFetchError  # noqa: E402
from app.services.snapshot import MalformedSnapshotError, build_dashboard  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description="Derive the dashboard from a snapshot and print it.")
    parser.add_argument("--file", type=str, help="Path to a snapshot JSON file. Defaults to fetching the sheet.")
    parser.add_argument(
        "--grouping",
        choices=["individual", "name", "owner"],
        default=settings.kura_default_grouping,
        help="Assets table grouping (default: KURA_DEFAULT_GROUPING)",
    )
    parser.add_argument("--focus", type=str, help="Instrument to show alone in the trend chart.")
    parser.add_argument(
        "--summary-only",
        action="store_true",
        help="Print only the portfolio totals.",
    )
    args = parser.parse_args()

    try:
        if args.file:
            with open(args.file, "r", encoding="utf-8") as f:
                payload = json.load(f)
        else:
            client = SheetClient()
            try:
                payload = client.fetch_snapshot()
            finally:
                client.close()
        dashboard = build_dashboard(
            payload,
            grouping=args.grouping,
            focus=args.focus,
            top_n=settings.kura_trend_top_n,
        )
    except (OSError, ValueError, RuntimeError) as e:
        # MalformedSnapshotError / SnapshotFetchError land here too
        kind = "malformed snapshot" if isinstance(e, MalformedSnapshotError) else "error"
        if isinstance(e, SnapshotFetchError):
            kind = "fetch failed"
        print(f"{kind}: {e}", file=sys.stderr)
        return 1

    out = dashboard.summary.to_dict() if args.summary_only else dashboard.to_dict()
    print(json.dumps(out, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
