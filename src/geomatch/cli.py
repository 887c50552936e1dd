"""
GeoMatch CLI entrypoint.

Subcommands:
- `match`: attribute events from a CSV file to POIs read from a JSON file.
- `serve`: run the HTTP API with uvicorn.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter

from geomatch.config.settings import get_settings
from geomatch.core.env import resolve_project_path
from geomatch.core.geo import METRICS, get_metric
from geomatch.core.logging import configure_logging
from geomatch.domain.models import PointOfInterest
from geomatch.ingestion.csv_loader import CsvEventSource, CsvFormatError
from geomatch.ingestion.events import SourceUnavailableError
from geomatch.matching.engine import GeoMatcher

_POIS_ADAPTER = TypeAdapter(list[PointOfInterest])


def load_pois(path: str | Path) -> list[PointOfInterest]:
    """Load POIs from a JSON list, or an object with a `points_of_interest` list."""
    payload: Any = json.loads(resolve_project_path(path).read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = payload.get("points_of_interest", [])
    return _POIS_ADAPTER.validate_python(payload)


def _cmd_match(args: argparse.Namespace) -> int:
    """Handle the `match` subcommand."""
    settings = get_settings()
    metric_name = args.metric or settings.matching.metric
    csv_path = args.events or settings.events.csv_path

    source = CsvEventSource(csv_path)
    try:
        pois = load_pois(args.pois)
    except (OSError, ValueError) as e:
        print(f"error: invalid POI file {args.pois}: {e}", file=sys.stderr)
        return 1
    try:
        source.load()
        results = GeoMatcher(source, get_metric(metric_name)).match(pois)
    except (CsvFormatError, SourceUnavailableError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps([r.model_dump(mode="json") for r in results], ensure_ascii=False, indent=2))
        return 0

    if not results:
        print("No matches (no POIs or no events).")
        return 0

    print(f"Matched {len(pois)} POIs against {csv_path} (metric={metric_name}):")
    for i, r in enumerate(results, start=1):
        print(
            f"{i:>2}. {r.poi.name} ({r.poi.lat:.4f}, {r.poi.lon:.4f})  "
            f"impressions={r.impressions} clicks={r.clicks}"
        )
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "geomatch.api.app:app",
        host=args.host or settings.server.host,
        port=int(args.port or settings.server.port),
        log_config=None,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the GeoMatch CLI."""
    parser = argparse.ArgumentParser(prog="geomatch")
    parser.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Overrides app.log_level from settings",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    m = sub.add_parser("match", help="Attribute events to their nearest POI and print per-POI counts.")
    m.add_argument("--pois", required=True, help="JSON file: list of {name, lat, lon}")
    m.add_argument("--events", default=None, help="Events CSV (lat,lon,event_type). Defaults to settings.")
    m.add_argument("--metric", default=None, choices=sorted(METRICS), help="Distance metric")
    m.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    m.set_defaults(func=_cmd_match)

    s = sub.add_parser("serve", help="Run the HTTP API.")
    s.add_argument("--host", default=None)
    s.add_argument("--port", type=int, default=None)
    s.set_defaults(func=_cmd_serve)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m geomatch.cli`."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
