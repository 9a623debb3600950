from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List


def _ensure_backend_on_path() -> None:
    backend_dir = Path(__file__).resolve().parents[1]
    if str(backend_dir) not in sys.path:
        sys.path.insert(0, str(backend_dir))


def _load_json(path: Path):
    with path.open() as handle:
        return json.load(handle)


def _format_updated(millis) -> str:
    if not millis:
        return ""
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


def _render_markdown(school_year: str, tab, rows, counts) -> str:
    from common.course_status.badges import derive_badge

    lines: List[str] = [
        f"# Course status queue: {tab.value} ({school_year})",
        "",
        " | ".join(f"{k.value}: {v}" for k, v in counts.items()),
        "",
    ]
    if not rows:
        lines.append("_No courses in this queue._")
        return "\n".join(lines) + "\n"

    lines.append("| Student | Course | Code | Status | Mark | Last updated |")
    lines.append("|---|---|---|---|---|---|")
    for row in rows:
        mark = "" if row.final_mark is None else f"{row.final_mark:g}"
        lines.append(
            "| {student} | {course} | {code} | {badge} | {mark} | {updated} |".format(
                student=row.student_name or row.student_id,
                course=row.course_name or row.course_id or "",
                code=row.course_code or "",
                badge=derive_badge(row).value,
                mark=mark,
                updated=_format_updated(row.last_updated),
            )
        )
    return "\n".join(lines) + "\n"


def build_report(store, school_year: str, tab_name: str, *, search: str | None = None, output_format: str = "md") -> str:
    from common.course_status.dashboard import tab_counts
    from common.course_status.engine import CourseStatusEngine
    from common.course_status.models import DashboardTab

    engine = CourseStatusEngine(store)
    tab = DashboardTab(tab_name)
    summaries = engine.load_summaries(school_year)
    rows = engine.filter_for_dashboard(summaries, tab, search=search)
    counts = tab_counts(summaries)

    if output_format == "json":
        payload = {
            "school_year": school_year,
            "tab": tab.value,
            "counts": {k.value: v for k, v in counts.items()},
            "rows": [r.model_dump(mode="json") for r in rows],
        }
        return json.dumps(payload, indent=2)
    return _render_markdown(school_year, tab, rows, counts)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Print the registrar's PASI course queue for a school year."
    )
    parser.add_argument("--school-year", required=True, help="School year, e.g. 25/26 or 25_26.")
    parser.add_argument(
        "--tab",
        default="add-to-pasi",
        choices=("add-to-pasi", "completed", "all"),
        help="Dashboard queue to print (default: add-to-pasi).",
    )
    parser.add_argument("--search", default=None, help="Case-insensitive search over student and course.")
    parser.add_argument(
        "--source",
        default="fixture",
        choices=("fixture", "firebase"),
        help="Where summary rows come from (default: fixture).",
    )
    parser.add_argument(
        "--fixture",
        default=None,
        help="JSON file holding the courseStatusSummary node (summary key -> row).",
    )
    parser.add_argument("--format", default="md", choices=("md", "json"), dest="output_format")
    parser.add_argument("--output", default=None, help="Write to this file instead of stdout.")
    args = parser.parse_args(argv)

    _ensure_backend_on_path()
    from common.logging_config import setup_logging
    from pipelines import paths
    from pipelines.record_store import InMemoryRecordStore, get_record_store

    setup_logging()

    if args.source == "firebase":
        store = get_record_store("firebase")
    else:
        if not args.fixture:
            raise SystemExit("Fixture mode requires --fixture.")
        store = InMemoryRecordStore()
        store.set(paths.COURSE_STATUS_SUMMARY_ROOT, _load_json(Path(args.fixture)))

    text = build_report(store, args.school_year, args.tab, search=args.search, output_format=args.output_format)
    if args.output:
        out = Path(args.output).resolve()
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text)
        print(f"Wrote {out}")
    else:
        print(text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
