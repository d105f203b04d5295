from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import LintConfig, load_config
from .diff import diff as diff_apis
from .errors import ApiSemverError
from .logging import configure_logging
from .report import DiffReport
from .schema import load_api
from .versions import check_bump, list_versions, required_bump

app = typer.Typer(help="api-semver command line interface")
console = Console()
err_console = Console(stderr=True)


class CLIState:
    def __init__(self) -> None:
        self.config_path: Path | None = None
        self._config: LintConfig | None = None

    @property
    def config(self) -> LintConfig:
        if self._config is None:
            self._config = load_config(self.config_path)
            configure_logging(level=self._config.log_level, json_format=self._config.log_format == "json")
        return self._config


def get_state(ctx: typer.Context) -> CLIState:
    root = ctx.find_root()
    if root.obj is None:
        root.obj = CLIState()
    return root.obj


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, help="Configuration file (TOML)"),
) -> None:
    get_state(ctx).config_path = config


def _fail(exc: ApiSemverError) -> typer.Exit:
    err_console.print(f"[bold red]error:[/bold red] {escape(str(exc))}")
    return typer.Exit(code=2)


@app.command()
def diff(
    ctx: typer.Context,
    old: Path,
    new: Path,
    json: Optional[Path] = typer.Option(None, help="Write diff JSON to path"),
    html: Optional[Path] = typer.Option(None, help="Write HTML report to path"),
    junit: Optional[Path] = typer.Option(None, help="JUnit XML output"),
    pr_md: Optional[Path] = typer.Option(None, help="GitHub PR markdown output"),
    ignore: Optional[List[str]] = typer.Option(None, help="Package path pattern to skip (repeatable)"),
    fail_on_breaking: Optional[bool] = typer.Option(
        None, "--fail-on-breaking/--no-fail-on-breaking", help="Exit with error on breaking changes"
    ),
) -> None:
    try:
        config = get_state(ctx).config
        prev_api = load_api(old)
        current_api = load_api(new)
    except ApiSemverError as exc:
        raise _fail(exc) from exc
    patterns = [*config.ignore_packages, *(ignore or [])]
    changes = diff_apis(prev_api, current_api, ignore=patterns)
    report = DiffReport(
        changes,
        prev_label=prev_api.version or old.name,
        current_label=current_api.version or new.name,
    )
    report.to_rich_console(console=console)
    if json:
        json.write_text(report.to_json())
    if html:
        html.write_text(report.to_html())
    if junit:
        junit.write_text(report.to_junit())
    if pr_md:
        pr_md.write_text(report.format_for_github_pr())
    should_fail = config.fail_on_breaking if fail_on_breaking is None else fail_on_breaking
    if should_fail and not report.ok:
        raise typer.Exit(code=1)


@app.command()
def versions(ctx: typer.Context, repo: Path = typer.Argument(Path("."), help="Repository path")) -> None:
    try:
        config = get_state(ctx).config
        found = list_versions(repo, head=config.head_name)
    except ApiSemverError as exc:
        raise _fail(exc) from exc
    table = Table(title=f"Versions of {escape(str(repo))}")
    table.add_column("Version")
    table.add_column("Commit")
    for version in found:
        table.add_row(escape(version.name), version.commit[:12])
    console.print(table)


@app.command("check-bump")
def check_bump_command(
    ctx: typer.Context,
    old: Path,
    new: Path,
    from_version: str = typer.Option(..., help="Version of the old snapshot"),
    to_version: str = typer.Option(..., help="Proposed version of the new snapshot"),
) -> None:
    try:
        config = get_state(ctx).config
        prev_api = load_api(old)
        current_api = load_api(new)
    except ApiSemverError as exc:
        raise _fail(exc) from exc
    changes = diff_apis(prev_api, current_api, ignore=config.ignore_packages)
    try:
        sufficient = check_bump(from_version, to_version, changes)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    needed = required_bump(changes)
    if sufficient:
        console.print(f"[green]{escape(from_version)} -> {escape(to_version)} covers the API changes ({needed} bump).[/green]")
        return
    console.print(f"[bold red]{escape(from_version)} -> {escape(to_version)} is not enough: a {needed} bump is required.[/bold red]")
    for package, change in changes.breaking_changes():
        console.print(f"- {escape(package.path)}: {escape(str(change))}")
    raise typer.Exit(code=1)


if __name__ == "__main__":  # pragma: no cover
    app()
