"""
RITE Command Line Interface (CLI)
=================================

Batch steps and an interactive explorer:

    python -m rite.cli build --data ./roster
    python -m rite.cli export --out timeline.json
    python -m rite.cli report --out roster.docx
    python -m rite.cli explore

`merge` pairs the age and house snapshots and writes one merged file per
merge point, `combine` concatenates those into all_merged_data.json, and
`build` runs both. The remaining commands read the combined file only.
"""

from __future__ import annotations
import argparse, logging, shlex
from typing import List, Optional

from .config import Settings, load_settings
from .engine import RosterTimeline, load_timeline
from .gamecal import format_game_month
from .merge import combine_merged_files, merge_all_pairs
from .series import social_legend_order

log = logging.getLogger(__name__)

HELP = """
Commands:
  help
  stats
  dates
  affiliations
  classes
  members "<Affiliation>"          (example: members "Ayrin")
  series affiliation|social        (latest counts per group)
  compare <date-index>             (example: compare -1)
  breakdown <date-index> "<Class>" [nowanderers]
  game <YYYY-MM-DD>                (example: game 2025-04-19)
  export json "<out.json>"
  export csv "<out.csv>" [affiliation|social]
  report "<out.docx>"
  quit
"""


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="rite", description="Roster Intelligence Timeline Engine")
    ap.add_argument("--data", default=None, help="Root data folder (default: $RITE_DATA_DIR or .)")
    ap.add_argument("--year", type=int, default=None, help="Year of the 'Month Day' snapshot names")
    ap.add_argument("-v", "--verbose", action="store_true")
    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("merge", help="Pair age/house snapshots and write daily merged files")
    sub.add_parser("combine", help="Concatenate daily merged files into the combined file")
    sub.add_parser("build", help="merge + combine")

    ex = sub.add_parser("export", help="Export the chart data")
    ex.add_argument("--out", required=True)
    ex.add_argument("--format", choices=("json", "csv"), default="json")
    ex.add_argument("--group", choices=("affiliation", "social"), default="affiliation")

    rp = sub.add_parser("report", help="Write a DOCX report with charts")
    rp.add_argument("--out", required=True)

    sub.add_parser("explore", help="Interactive explorer")
    return ap


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the RITE CLI."""
    args = _build_parser().parse_args(argv)
    _setup_logging(args.verbose)
    settings = load_settings(args.data, args.year)
    log.debug("Using %s", settings)

    if args.command in ("merge", "build"):
        written = merge_all_pairs(settings.age_dir, settings.house_dir, settings.merged_dir,
                                  settings.reference_year)
        print(f"Wrote {len(written)} merged files to {settings.merged_dir}")
    if args.command in ("combine", "build"):
        combined = combine_merged_files(settings.merged_dir, settings.combined_file)
        print(f"Saved {len(combined)} combined records to {settings.combined_file}")
    if args.command in ("merge", "combine", "build"):
        return

    timeline = _load(settings)
    if args.command == "export":
        if args.format == "json":
            timeline.export_json(args.out)
        else:
            timeline.export_csv(args.out, args.group)
        print(f"Exported {args.format.upper()} to {args.out}")
    elif args.command == "report":
        from .report import generate_docx_report
        generate_docx_report(timeline, args.out)
        print(f"Report written to {args.out}")
    elif args.command == "explore":
        repl(timeline)


def _load(settings: Settings) -> RosterTimeline:
    print("Loading combined data...")
    timeline = load_timeline(settings.combined_file)
    print(f"Loaded {len(timeline.records)} records over {len(timeline.dates)} dates.")
    return timeline


def repl(timeline: RosterTimeline) -> None:
    """Read-eval-print loop over one timeline."""
    print("Type 'help' for commands.")
    command_log: List[str] = []
    while True:
        try:
            line = input("rite> ")
        except EOFError:
            break
        line = line.strip()
        if not line:
            continue
        if line.lower() in ("quit", "exit"):
            break
        if line.lower() == "help":
            print(HELP); continue
        try:
            handle(timeline, line, command_log)
            command_log.append(line)
        except ValueError as e:
            print(f"Error: {e}")


def handle(timeline: RosterTimeline, line: str, command_log: Optional[List[str]] = None) -> None:
    """Handle one explorer command line."""
    parts = shlex.split(line)
    cmd = parts[0].lower()

    if cmd == "help":
        print(HELP)
        return

    if cmd == "stats":
        print(f"Records: {len(timeline.records)} | Dates: {len(timeline.dates)} | "
              f"Affiliations: {len(timeline.affiliations)} | Classes: {len(timeline.social_classes)}")
        if timeline.index.dropped:
            print(f"Records without a date (left out): {timeline.index.dropped}")
        return

    if cmd == "dates":
        for i, (d, label) in enumerate(zip(timeline.dates, timeline.game_labels())):
            print(f"[{i}] {d}  {label}  ({len(timeline.index[d].all)} characters)")
        return

    if cmd == "affiliations":
        for a in timeline.affiliations:
            print(a)
        return

    if cmd == "classes":
        for c in social_legend_order(timeline.social_classes):
            print(c)
        return

    if cmd == "members":
        _need(parts, 2, 'members "<Affiliation>"')
        label = timeline.canonical.canonicalize(parts[1])
        print(f"{label}: {', '.join(timeline.canonical.members_of(label))}")
        return

    if cmd == "series":
        _need(parts, 2, "series affiliation|social")
        if not timeline.dates:
            raise ValueError("Timeline has no dates")
        for s in timeline.series(parts[1]):
            first, last = s.counts[0], s.counts[-1]
            print(f"{s.key}: {first} -> {last} (peak {max(s.counts)})")
        return

    if cmd == "compare":
        _need(parts, 2, "compare <date-index>")
        i = _int(parts[1])
        date = timeline.date_at(i)
        print(f"{date} ({format_game_month(timeline.game_index_of(date))})")
        for cls, values in timeline.compare(i):
            shown = ", ".join(f"{a}={n}" for a, n in values if n)
            print(f"  {cls}: {shown or '-'}")
        return

    if cmd == "breakdown":
        _need(parts, 3, 'breakdown <date-index> "<Class>" [nowanderers]')
        date = timeline.date_at(_int(parts[1]))
        include = not (len(parts) >= 4 and parts[3].lower() == "nowanderers")
        total, listed = timeline.class_breakdown(date, parts[2], include)
        print(f"{parts[2]} on {date}: {total}")
        for a, n in listed:
            print(f"  {a}: {n}")
        return

    if cmd == "game":
        _need(parts, 2, "game <YYYY-MM-DD>")
        try:
            idx = timeline.calendar.month_index_for(parts[1])
        except ValueError:
            raise ValueError(f"Not a date: {parts[1]!r}") from None
        print(f"{parts[1]} -> {format_game_month(idx)} (index {idx})")
        return

    if cmd == "export":
        _need(parts, 3, 'export json "<out.json>"  OR  export csv "<out.csv>" [affiliation|social]')
        fmt, out_path = parts[1].lower(), parts[2]
        if fmt == "json":
            timeline.export_json(out_path)
        elif fmt == "csv":
            timeline.export_csv(out_path, parts[3] if len(parts) >= 4 else "affiliation")
        else:
            raise ValueError("Unknown export format. Use: csv or json")
        print(f"Exported {fmt.upper()} to {out_path}")
        return

    if cmd == "report":
        _need(parts, 2, 'report "<out.docx>"')
        from .report import generate_docx_report, ReportConfig
        cfg = ReportConfig(command_log=list(command_log or []))
        generate_docx_report(timeline, parts[1], config=cfg)
        print(f"Report written to {parts[1]}")
        return

    raise ValueError("Unknown command. Type 'help'.")


def _need(parts: List[str], n: int, usage: str) -> None:
    if len(parts) < n:
        raise ValueError(f"Usage: {usage}")


def _int(s: str) -> int:
    try:
        return int(s)
    except ValueError:
        raise ValueError(f"Expected an integer, got {s!r}") from None


if __name__ == "__main__":
    main()
