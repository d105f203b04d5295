from __future__ import annotations

import json

from rich.console import Console

from api_semver import API, DiffReport, diff


def test_report_serialisation(prev_api: API, current_api: API) -> None:
    report = DiffReport(diff(prev_api, current_api), prev_label="v1.2.0", current_label="v1.3.0")
    assert not report.ok
    assert report.stats == {"packages": 3, "changes": 9, "breaking": 5, "non_breaking": 4}
    payload = json.loads(report.to_json())
    assert payload["ok"] is False
    assert payload["from"] == "v1.2.0"
    assert [package["path"] for package in payload["packages"]] == [
        "example.com/shop/catalog",
        "example.com/shop/internal/legacy",
        "example.com/shop/payments",
    ]
    html = report.to_html()
    assert "api-semver report" in html
    assert "function Deprecated: was removed" in html
    assert "&#34;ID&#34;" in html
    junit = report.to_junit()
    assert "testsuite" in junit
    assert 'failures="5"' in junit
    markdown = report.format_for_github_pr()
    assert "### Breaking changes" in markdown
    assert "### Compatible changes" in markdown


def test_rich_console_output(prev_api: API, current_api: API) -> None:
    console = Console(record=True, width=200)
    DiffReport(diff(prev_api, current_api)).to_rich_console(console=console)
    text = console.export_text()
    assert "BREAKING CHANGES" in text
    assert "struct Store: function Put: was added" in text


def test_empty_report(prev_api: API) -> None:
    report = DiffReport(diff(prev_api, prev_api))
    assert report.ok
    assert report.rows() == []
    assert report.format_for_github_pr() == "✅ No API changes."
    console = Console(record=True, width=120)
    report.to_rich_console(console=console)
    assert "No API changes detected." in console.export_text()
