from __future__ import annotations

from typing import Literal, TypedDict


class ReportStats(TypedDict):
    packages: int
    changes: int
    breaking: int
    non_breaking: int


class ChangeRow(TypedDict):
    package: str
    level: Literal["BREAKING", "COMPATIBLE"]
    summary: str
