from __future__ import annotations

from pathlib import Path

import orjson
import pytest

from .changes import APIChanges, render
from .diff import diff
from .schema import API, load_api


class PluginState:
    def __init__(self, *, json_path: Path | None) -> None:
        self.json_path = json_path
        self.results: list[tuple[str, APIChanges]] = []

    def record(self, name: str, changes: APIChanges) -> None:
        self.results.append((name, changes))

    def write_all(self) -> None:
        if not self.results or not self.json_path:
            return
        payload = {"runs": [{"name": name, "changes": changes.as_dict()} for name, changes in self.results]}
        self.json_path.write_text(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode())


class ApiSemverHelper:
    def __init__(self, state: PluginState) -> None:
        self._state = state

    def load(self, api_or_path: API | str | Path) -> API:
        if isinstance(api_or_path, API):
            return api_or_path
        return load_api(api_or_path)

    def compare(
        self,
        prev: API | str | Path,
        current: API | str | Path,
        *,
        name: str | None = None,
    ) -> APIChanges:
        prev_api = self.load(prev)
        current_api = self.load(current)
        changes = diff(prev_api, current_api)
        label = name or f"{prev_api.version or 'previous'}..{current_api.version or 'current'}"
        self._state.record(label, changes)
        return changes

    def must_be_compatible(
        self,
        prev: API | str | Path,
        current: API | str | Path,
        *,
        name: str | None = None,
    ) -> APIChanges:
        changes = self.compare(prev, current, name=name)
        breaking = changes.breaking_changes()
        if breaking:
            lines = [f"- {package.path}: {render(change)}" for package, change in breaking]
            raise AssertionError("API has breaking changes:\n" + "\n".join(lines))
        return changes

    def write_report(self, path: Path) -> None:
        self._state.json_path = path
        self._state.write_all()


@pytest.fixture
def api_semver(request: pytest.FixtureRequest) -> ApiSemverHelper:
    state: PluginState = request.config._api_semver_state  # type: ignore[attr-defined]
    return ApiSemverHelper(state)


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption("--api-semver-report", action="store", default=None, help="Aggregate JSON report path")


def pytest_configure(config: pytest.Config) -> None:
    report_opt = config.getoption("--api-semver-report")
    json_path = Path(report_opt) if report_opt else None
    config._api_semver_state = PluginState(json_path=json_path)  # type: ignore[attr-defined]


def pytest_unconfigure(config: pytest.Config) -> None:
    state: PluginState | None = getattr(config, "_api_semver_state", None)
    if state is not None:
        state.write_all()
