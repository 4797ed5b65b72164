#!/usr/bin/env python3
"""
Log Investigation Engine - Root-cause analysis from log events.
Replays recorded query results through the investigation pipeline, clusters raw events,
or compares two windows of events.
"""

import argparse
import json
import logging
import sys

from logrca.config import SUPPORTED_ASSET_SEVERITIES, load_config

#
# NOTE: Keep pipeline imports lazy (inside functions) so `--help` stays cheap.
#


def replay(fixture_path: str, *, generate_assets: bool = False, severity: str = "", dump_json: bool = False) -> int:
    """Run one investigation from a replay fixture and print the report (or JSON) to stdout."""
    from logrca.dump import result_to_json_dict
    from logrca.pipeline.pipeline import run_investigation
    from logrca.replay import FixtureExecutor, fixture_now, load_fixture
    from logrca.report import render_report

    try:
        fixture = load_fixture(fixture_path)
        now = fixture_now(fixture)
    except (OSError, ValueError) as e:
        print(f"Error: cannot read fixture {fixture_path}: {e}", file=sys.stderr)
        return 2

    params = dict(fixture.get("params") or {})
    if severity:
        params["severity"] = severity

    result = run_investigation(
        params,
        FixtureExecutor(fixture.get("results") or {}),
        generate_assets=True if generate_assets else None,
        now=now,
    )

    if dump_json:
        print(json.dumps(result_to_json_dict(result), indent=2, sort_keys=False))
    else:
        print(render_report(result))
    return 0


def cluster(events_path: str, *, dump_json: bool = False) -> int:
    """Cluster a JSON list of raw events and print the clusters."""
    from logrca.dump import clusters_to_json_list
    from logrca.logs.clustering import cluster_logs

    try:
        with open(events_path, "r", encoding="utf-8") as f:
            events = json.load(f)
    except (OSError, ValueError) as e:
        print(f"Error: cannot read events {events_path}: {e}", file=sys.stderr)
        return 2
    if isinstance(events, dict):
        events = events.get("events") or []
    if not isinstance(events, list):
        events = []

    clusters = cluster_logs(events)
    if dump_json:
        print(json.dumps(clusters_to_json_list(clusters), indent=2, sort_keys=False))
        return 0

    print(f"{len(clusters)} clusters from {len(events)} events")
    for c in clusters:
        sev = c.severity_name or "-"
        print(f"{c.count:>6}  {sev:<8} {c.root_cause.value:<18} {c.template}")
    return 0


def delta(before_path: str, after_path: str, *, dump_json: bool = False) -> int:
    """Compare clusters from two event files (e.g. before vs. during an incident)."""
    from logrca.analysis.delta import analyze_delta, generate_causal_hypotheses
    from logrca.logs.clustering import cluster_logs

    windows = []
    for path in (before_path, after_path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                events = json.load(f)
        except (OSError, ValueError) as e:
            print(f"Error: cannot read events {path}: {e}", file=sys.stderr)
            return 2
        if isinstance(events, dict):
            events = events.get("events") or []
        if not isinstance(events, list):
            events = []
        windows.append(cluster_logs(events))

    result = analyze_delta(windows[0], windows[1])
    hypotheses = generate_causal_hypotheses(result)
    if dump_json:
        payload = {
            "delta": result.model_dump(mode="json"),
            "hypotheses": [h.model_dump(mode="json") for h in hypotheses],
        }
        print(json.dumps(payload, indent=2, sort_keys=False))
        return 0

    print(
        f"new={len(result.new_patterns)} spiking={len(result.spiking_patterns)} "
        f"stable={len(result.stable_patterns)} disappeared={len(result.disappeared_patterns)}"
    )
    for s in result.spiking_patterns:
        print(f"  spiking {s.ratio:>6.1f}x  {s.before_count} -> {s.after_count}  {s.pattern.template}")
    for c in result.new_patterns:
        print(f"  new     {c.count:>6}   {c.template}")
    print("Hypotheses:")
    for h in hypotheses:
        print(f"  [{h.strength}] {h.category.value}: {h.description}")
    return 0


def main():
    """CLI entry point."""
    cfg = load_config()
    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    parser = argparse.ArgumentParser(
        description="Investigate incidents from log events",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Replay recorded query results and print a markdown report
  python main.py replay tests/fixtures/component_payment_api.json

  # Same, with alert/dashboard/SOP generation, as JSON
  python main.py replay fixture.json --generate-assets --severity critical --json

  # Cluster a JSON list of raw events by message template
  python main.py cluster events.json

  # Compare a quiet window with the incident window
  python main.py delta before.json after.json
        """,
    )
    sub = parser.add_subparsers(dest="command")

    p_replay = sub.add_parser("replay", help="Run an investigation against a recorded fixture")
    p_replay.add_argument("fixture", help="Path to a replay fixture (JSON)")
    p_replay.add_argument(
        "--generate-assets", action="store_true", help="Generate alert/dashboard/SOP assets when findings exist"
    )
    p_replay.add_argument(
        "--severity",
        choices=list(SUPPORTED_ASSET_SEVERITIES),
        help="Alert severity for generated assets (default: LOGRCA_ASSET_SEVERITY or high)",
    )
    p_replay.add_argument("--json", action="store_true", help="Print JSON instead of the markdown report")

    p_cluster = sub.add_parser("cluster", help="Cluster raw events by message template")
    p_cluster.add_argument("events", help="Path to a JSON list of events")
    p_cluster.add_argument("--json", action="store_true", help="Print clusters as JSON")

    p_delta = sub.add_parser("delta", help="Compare clusters from two windows of events")
    p_delta.add_argument("before", help="Path to a JSON list of events from the baseline window")
    p_delta.add_argument("after", help="Path to a JSON list of events from the incident window")
    p_delta.add_argument("--json", action="store_true", help="Print delta and hypotheses as JSON")

    args = parser.parse_args()

    try:
        if args.command == "replay":
            sys.exit(
                replay(
                    args.fixture,
                    generate_assets=args.generate_assets,
                    severity=args.severity or "",
                    dump_json=args.json,
                )
            )
        if args.command == "cluster":
            sys.exit(cluster(args.events, dump_json=args.json))
        if args.command == "delta":
            sys.exit(delta(args.before, args.after, dump_json=args.json))

        parser.print_help()
    except Exception as e:
        print(f"Error during investigation: {e}", file=sys.stderr)
        raise


if __name__ == "__main__":
    main()
