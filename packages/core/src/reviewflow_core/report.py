"""Render confirmed issues as a JSON report."""

from __future__ import annotations

import json
from pathlib import Path

from reviewflow_core.models import Issue

FORMATS = ("json", "json-pretty")


def format_issues(issues: list[Issue], fmt: str = "json-pretty") -> str:
    data = [issue.to_dict() for issue in issues]
    if fmt == "json":
        return json.dumps(data, separators=(",", ":"))
    if fmt == "json-pretty":
        return json.dumps(data, indent=2)
    raise ValueError(f"Unknown format {fmt!r}. Choose one of: {', '.join(FORMATS)}.")


def make_report(issues: list[Issue], fmt: str = "json-pretty", output: str | None = None) -> str:
    """Return the formatted report, or write it to ``output`` and return a notice."""
    report = format_issues(issues, fmt)
    if output:
        Path(output).write_text(report + "\n", encoding="utf-8")
        return f"Done! {len(issues)} issues written to {output}"
    return report
