"""Main CLI entry point."""

import argparse
import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

from sales_kpi.errors import SalesKpiError

WEEK_START_ENV_VAR = "SALES_KPI_WEEK_START"


def _add_snapshot_args(parser: argparse.ArgumentParser) -> None:
    """Options shared by every command that reads a record snapshot."""
    parser.add_argument(
        "--input",
        required=True,
        help="Path or http(s) URL of a JSON or CSV export",
    )
    parser.add_argument(
        "--source",
        default="attendance",
        choices=["attendance", "pipeline"],
        help="Schema of the export (default: attendance)",
    )
    parser.add_argument(
        "--period",
        default="month",
        help="today, week, biweekly, month, quarter, semester, year or custom (default: month)",
    )
    parser.add_argument(
        "--reference",
        type=str,
        default=None,
        help="Reference date YYYY-MM-DD (default: now)",
    )
    parser.add_argument("--start", type=str, default=None, help="Custom period start YYYY-MM-DD")
    parser.add_argument("--end", type=str, default=None, help="Custom period end YYYY-MM-DD")
    parser.add_argument(
        "--taxonomy",
        type=Path,
        default=None,
        help="Status taxonomy YAML (default: $SALES_KPI_TAXONOMY or built-in)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write JSON result to file (default: stdout)",
    )


def main() -> None:
    """Parse args and dispatch to subcommands."""
    parser = argparse.ArgumentParser(prog="sales-kpi", description="Sales operations KPI engine")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # classify
    classify_parser = subparsers.add_parser("classify", help="Show the category of a status or stage")
    classify_parser.add_argument("value", help="Raw status text or stage code")
    classify_parser.add_argument(
        "--stage",
        action="store_true",
        help="Treat value as a pipeline stage code",
    )
    classify_parser.add_argument("--taxonomy", type=Path, default=None, help="Status taxonomy YAML")

    # metrics / funnel / compare / report
    metrics_parser = subparsers.add_parser("metrics", help="KPI bundle for a period")
    _add_snapshot_args(metrics_parser)

    funnel_parser = subparsers.add_parser("funnel", help="Conversion funnel for a period")
    _add_snapshot_args(funnel_parser)

    compare_parser = subparsers.add_parser("compare", help="Compare a period with the previous one")
    _add_snapshot_args(compare_parser)

    report_parser = subparsers.add_parser("report", help="Full dashboard report for a period")
    _add_snapshot_args(report_parser)
    report_parser.add_argument("--roster", type=Path, default=None, help="Roster YAML")

    # rank
    rank_parser = subparsers.add_parser("rank", help="Rank closers, SDRs or teams")
    _add_snapshot_args(rank_parser)
    rank_parser.add_argument("--roster", type=Path, required=True, help="Roster YAML")
    rank_parser.add_argument(
        "--group-by",
        default="closer",
        choices=["closer", "sdr", "team"],
        help="Entity to rank (default: closer)",
    )
    rank_parser.add_argument(
        "--sort-by",
        default="revenue",
        choices=["revenue", "volume"],
        help="Ranking order (default: revenue)",
    )

    # goals
    goals_parser = subparsers.add_parser("goals", help="Progress against sales/revenue goals")
    _add_snapshot_args(goals_parser)
    goals_parser.add_argument("--roster", type=Path, required=True, help="Roster YAML")
    goals_parser.add_argument("--goals", type=Path, required=True, help="Goals YAML")
    goals_parser.add_argument(
        "--group-by",
        default="closer",
        choices=["closer", "sdr"],
        help="Whose goals to report (default: closer)",
    )

    # commissions
    commissions_parser = subparsers.add_parser(
        "commissions",
        help="Commission and goal bonus per closer and SDR",
    )
    _add_snapshot_args(commissions_parser)
    commissions_parser.add_argument("--roster", type=Path, required=True, help="Roster YAML")
    commissions_parser.add_argument(
        "--goals",
        type=Path,
        default=None,
        help="Goals YAML (rates and bonuses here override the roster's)",
    )

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    handlers = {
        "classify": _run_classify,
        "metrics": _run_metrics,
        "funnel": _run_funnel,
        "compare": _run_compare,
        "report": _run_report,
        "rank": _run_rank,
        "goals": _run_goals,
        "commissions": _run_commissions,
    }
    try:
        handlers[args.command](args)
    except SalesKpiError as e:
        raise SystemExit(f"Error: {e}")


def _parse_day(value: str, flag: str) -> datetime:
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise SystemExit(f"Invalid {flag} format. Use YYYY-MM-DD.")


def _week_start() -> int:
    raw = os.environ.get(WEEK_START_ENV_VAR)
    if raw is None or raw == "":
        from sales_kpi.periods import DEFAULT_WEEK_START

        return DEFAULT_WEEK_START
    try:
        value = int(raw)
    except ValueError:
        raise SystemExit(f"{WEEK_START_ENV_VAR} must be an integer 0-6 (Monday=0)")
    if not 0 <= value <= 6:
        raise SystemExit(f"{WEEK_START_ENV_VAR} must be an integer 0-6 (Monday=0)")
    return value


def _resolve_window(args: argparse.Namespace):
    from sales_kpi.periods import end_of_day, resolve_period

    reference = end_of_day(_parse_day(args.reference, "--reference")) if args.reference else datetime.now()
    return resolve_period(
        args.period,
        reference,
        custom_start=_parse_day(args.start, "--start") if args.start else None,
        custom_end=_parse_day(args.end, "--end") if args.end else None,
        week_starts_on=_week_start(),
    )


def _load_snapshot(args: argparse.Namespace):
    from sales_kpi.models.taxonomy import load_taxonomy
    from sales_kpi.sources import SourceRegistry

    source = SourceRegistry.get(args.source)
    rows = source.fetch_rows(args.input)
    records = source.normalize_many(rows)
    # An empty export is a valid (all-zero) snapshot; an export whose rows were all rejected is not
    if rows and not records:
        print(f"No usable records in {args.input}: all {len(rows)} rows were skipped", file=sys.stderr)
        raise SystemExit(1)
    return records, load_taxonomy(args.taxonomy)


def _emit(data: Any, output: Path | None) -> None:
    text = json.dumps(data, indent=2, default=str)
    if output:
        output.write_text(text, encoding="utf-8")
        print(f"Wrote result to {output}")
    else:
        print(text)


def _run_classify(args: argparse.Namespace) -> None:
    """Run classify command."""
    from sales_kpi.classification import classify_stage, classify_status
    from sales_kpi.models.taxonomy import load_taxonomy

    taxonomy = load_taxonomy(args.taxonomy)
    rule = classify_stage if args.stage else classify_status
    category, explanation = rule(args.value, taxonomy)
    print(f"{category.value}\t{explanation}")


def _run_metrics(args: argparse.Namespace) -> None:
    """Run metrics command."""
    from sales_kpi.metrics import aggregate

    records, taxonomy = _load_snapshot(args)
    window = _resolve_window(args)
    _emit(aggregate(records, window, taxonomy).model_dump(mode="json"), args.output)


def _run_funnel(args: argparse.Namespace) -> None:
    """Run funnel command."""
    from sales_kpi.metrics import build_funnel, filter_window

    records, taxonomy = _load_snapshot(args)
    window = _resolve_window(args)
    funnel = build_funnel(filter_window(records, window), taxonomy)
    _emit(funnel.model_dump(mode="json"), args.output)


def _run_compare(args: argparse.Namespace) -> None:
    """Run compare command."""
    from sales_kpi.metrics import compare

    records, taxonomy = _load_snapshot(args)
    window = _resolve_window(args)
    result = compare(records, window, taxonomy)
    _emit({name: delta.model_dump(mode="json") for name, delta in result.items()}, args.output)


def _run_report(args: argparse.Namespace) -> None:
    """Run report command."""
    from sales_kpi.dashboard import build_dashboard
    from sales_kpi.models.roster import Roster

    records, taxonomy = _load_snapshot(args)
    window = _resolve_window(args)
    roster = Roster.from_yaml(args.roster) if args.roster else None
    report = build_dashboard(records, window, roster=roster, taxonomy=taxonomy)
    _emit(report.model_dump(mode="json"), args.output)


def _roster_entities(roster, group_by: str):
    return {"closer": roster.closers, "sdr": roster.sdrs, "team": roster.teams}[group_by]


def _run_rank(args: argparse.Namespace) -> None:
    """Run rank command."""
    from sales_kpi.metrics import build_team_lookup, rank
    from sales_kpi.models.roster import Roster

    records, taxonomy = _load_snapshot(args)
    window = _resolve_window(args)
    roster = Roster.from_yaml(args.roster)
    ranking = rank(
        records,
        _roster_entities(roster, args.group_by),
        window,
        args.group_by,
        closer_teams=build_team_lookup(roster.closers),
        taxonomy=taxonomy,
        sort_by=args.sort_by,
    )
    if not ranking:
        print(f"No active {args.group_by} in roster {args.roster}", file=sys.stderr)
    _emit([s.model_dump(mode="json") for s in ranking], args.output)


def _run_goals(args: argparse.Namespace) -> None:
    """Run goals command."""
    from sales_kpi.metrics.goals import goal_progress, load_goals
    from sales_kpi.models.roster import Roster

    records, taxonomy = _load_snapshot(args)
    window = _resolve_window(args)
    roster = Roster.from_yaml(args.roster)
    progress = goal_progress(
        records,
        _roster_entities(roster, args.group_by),
        load_goals(args.goals),
        window,
        args.group_by,
        taxonomy,
    )
    _emit([p.model_dump(mode="json") for p in progress], args.output)


def _run_commissions(args: argparse.Namespace) -> None:
    """Run commissions command."""
    from sales_kpi.metrics.commission import commission_report
    from sales_kpi.metrics.goals import load_goals
    from sales_kpi.models.roster import Roster

    records, taxonomy = _load_snapshot(args)
    window = _resolve_window(args)
    roster = Roster.from_yaml(args.roster)
    goals = load_goals(args.goals) if args.goals else []
    report = commission_report(records, roster, goals, window, taxonomy)
    _emit(report.model_dump(mode="json"), args.output)


if __name__ == "__main__":
    main()
