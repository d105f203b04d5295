from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from xml.sax.saxutils import quoteattr

import orjson
from jinja2 import Environment, select_autoescape
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .changes import APIChanges, render
from .types import ChangeRow, ReportStats

_jinja_env = Environment(autoescape=select_autoescape(enabled_extensions=("html",), default_for_string=True))


@dataclass(slots=True)
class DiffReport:
    changes: APIChanges
    prev_label: str = "previous"
    current_label: str = "current"

    @property
    def ok(self) -> bool:
        return not self.changes.is_breaking()

    @property
    def stats(self) -> ReportStats:
        breaking = len(self.changes.breaking_changes())
        non_breaking = len(self.changes.non_breaking_changes())
        return {
            "packages": len(self.changes),
            "changes": breaking + non_breaking,
            "breaking": breaking,
            "non_breaking": non_breaking,
        }

    def rows(self) -> list[ChangeRow]:
        rows: list[ChangeRow] = []
        for package, change in self.changes.breaking_changes():
            rows.append({"package": package.path, "level": "BREAKING", "summary": render(change)})
        for package, change in self.changes.non_breaking_changes():
            rows.append({"package": package.path, "level": "COMPATIBLE", "summary": render(change)})
        return rows

    def as_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "from": self.prev_label,
            "to": self.current_label,
            "stats": dict(self.stats),
            **self.changes.as_dict(),
        }

    def to_json(self) -> str:
        return orjson.dumps(self.as_dict(), option=orjson.OPT_INDENT_2).decode()

    def to_html(self) -> str:
        template = _jinja_env.from_string(_HTML_TEMPLATE)
        return template.render(
            ok=self.ok,
            rows=self.rows(),
            stats=self.stats,
            prev_label=self.prev_label,
            current_label=self.current_label,
            generated_at=datetime.now(timezone.utc).isoformat(),
        )

    def _repr_html_(self) -> str:
        return self.to_html()

    def to_rich_console(self, console: Console | None = None) -> None:
        console = console or Console()
        header = "API COMPATIBLE" if self.ok else "BREAKING CHANGES"
        console.rule(header)
        stats = self.stats
        console.print(
            f"{escape(self.prev_label)} -> {escape(self.current_label)}  "
            f"Packages: {stats['packages']}  Breaking: {stats['breaking']}  Compatible: {stats['non_breaking']}"
        )
        rows = self.rows()
        if not rows:
            console.print("No API changes detected.")
            return
        table = Table(title="API changes")
        table.add_column("Level")
        table.add_column("Package")
        table.add_column("Change")
        for row in rows:
            style = "bold red" if row["level"] == "BREAKING" else "green"
            table.add_row(f"[{style}]{row['level']}[/{style}]", escape(row["package"]), escape(row["summary"]))
        console.print(table)

    def to_junit(self) -> str:
        rows = self.rows()
        failures = sum(1 for row in rows if row["level"] == "BREAKING")
        timestamp = datetime.now(timezone.utc).isoformat()
        xml_lines = [
            "<?xml version=\"1.0\" encoding=\"UTF-8\"?>",
            f"<testsuite name=\"api-semver\" tests=\"{len(rows)}\" failures=\"{failures}\" timestamp=\"{timestamp}\">",
        ]
        for row in rows:
            xml_lines.append(
                f"  <testcase classname={quoteattr(row['package'])} name={quoteattr(row['summary'])}>"
            )
            if row["level"] == "BREAKING":
                xml_lines.append(f"    <failure message={quoteattr(row['summary'])}>breaking change</failure>")
            xml_lines.append("  </testcase>")
        xml_lines.append("</testsuite>")
        return "\n".join(xml_lines)

    def format_for_github_pr(self) -> str:
        rows = self.rows()
        if not rows:
            return "✅ No API changes."
        lines = [f"## api-semver report: {self.prev_label} → {self.current_label}", ""]
        breaking = [row for row in rows if row["level"] == "BREAKING"]
        compatible = [row for row in rows if row["level"] == "COMPATIBLE"]
        if breaking:
            lines.append("### Breaking changes")
            for row in breaking:
                lines.append(f"- `{row['package']}`: {row['summary']}")
            lines.append("")
        if compatible:
            lines.append("### Compatible changes")
            for row in compatible:
                lines.append(f"- `{row['package']}`: {row['summary']}")
        return "\n".join(lines).rstrip("\n")


_HTML_TEMPLATE = """
<!DOCTYPE html>
<html>
<head>
  <meta charset=\"utf-8\">
  <title>api-semver report</title>
  <style>
    body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif; margin: 2rem; }
    table { border-collapse: collapse; width: 100%; margin-top: 1rem; }
    th, td { border: 1px solid #ddd; padding: 8px; }
    th { background: #f2f2f2; }
    .ok { color: #2e8540; }
    .fail { color: #b10e1e; }
    .level-BREAKING { background: #ffe6e6; }
    .level-COMPATIBLE { background: #eef8ee; }
  </style>
</head>
<body>
  <h1>api-semver report</h1>
  <p>Status: <strong class="{{ 'ok' if ok else 'fail' }}">{{ 'COMPATIBLE' if ok else 'BREAKING' }}</strong></p>
  <p>{{ prev_label }} &rarr; {{ current_label }} &middot; Packages: {{ stats['packages'] }} &middot; Breaking: {{ stats['breaking'] }} &middot; Compatible: {{ stats['non_breaking'] }} &middot; Generated: {{ generated_at }}</p>
  {% if rows %}
  <table>
    <thead>
      <tr>
        <th>Level</th>
        <th>Package</th>
        <th>Change</th>
      </tr>
    </thead>
    <tbody>
      {% for row in rows %}
      <tr class="level-{{ row['level'] }}">
        <td>{{ row['level'] }}</td>
        <td>{{ row['package'] }}</td>
        <td>{{ row['summary'] }}</td>
      </tr>
      {% endfor %}
    </tbody>
  </table>
  {% else %}
  <p>No API changes detected.</p>
  {% endif %}
</body>
</html>
"""
