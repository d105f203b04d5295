"""Change records produced by comparing two API snapshots.

Every record is an immutable node; ``DeclChange``, ``FieldChanged``,
``ArgumentChanged`` and ``ResultChanged`` nest further records. ``render``
and ``is_breaking`` match on every variant, so a new record type must be
handled in both before it can be emitted.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Union

from .typesys import TypeRef, type_string


class DeclKind(str, Enum):
    VARIABLE = "variable"
    CONSTANT = "constant"
    FUNCTION = "function"
    INTERFACE = "interface"
    STRUCT = "struct"
    TYPE_DEFINITION = "type-definition"
    PACKAGE = "package"

    @property
    def label(self) -> str:
        return _KIND_LABELS[self]


_KIND_LABELS = {
    DeclKind.VARIABLE: "package-level variable",
    DeclKind.CONSTANT: "package-level constant",
    DeclKind.FUNCTION: "function",
    DeclKind.INTERFACE: "interface",
    DeclKind.STRUCT: "struct",
    DeclKind.TYPE_DEFINITION: "type definition",
    DeclKind.PACKAGE: "package",
}


class _Node:
    __slots__ = ()

    def __str__(self) -> str:
        return render(self)  # type: ignore[arg-type]


@dataclass(frozen=True, slots=True)
class Removed(_Node):
    pass


@dataclass(frozen=True, slots=True)
class Added(_Node):
    pass


@dataclass(frozen=True, slots=True)
class ValueChanged(_Node):
    old: str
    new: str


@dataclass(frozen=True, slots=True)
class TypeChanged(_Node):
    old: TypeRef
    new: TypeRef


@dataclass(frozen=True, slots=True)
class PositionChanged(_Node):
    old: int
    new: int


@dataclass(frozen=True, slots=True)
class AliasChanged(_Node):
    old: bool
    new: bool


@dataclass(frozen=True, slots=True)
class FieldChanged(_Node):
    pos: int
    name: str
    changes: tuple[Change, ...]


@dataclass(frozen=True, slots=True)
class ArgumentChanged(_Node):
    pos: int
    name: str
    type: TypeRef
    changes: tuple[Change, ...]


@dataclass(frozen=True, slots=True)
class ResultChanged(_Node):
    pos: int
    type: TypeRef
    changes: tuple[Change, ...]


@dataclass(frozen=True, slots=True)
class DeclChange(_Node):
    name: str
    kind: DeclKind
    changes: tuple[Change, ...]


Change = Union[
    Removed,
    Added,
    ValueChanged,
    TypeChanged,
    PositionChanged,
    AliasChanged,
    FieldChanged,
    ArgumentChanged,
    ResultChanged,
    DeclChange,
]


def render(change: Change) -> str:
    match change:
        case DeclChange(name=name, kind=kind, changes=children):
            return f"{kind.label} {name}: {_join(children)}"
        case ArgumentChanged(pos=pos, name=name, type=typ, changes=children):
            return f"argument {name} with type {type_string(typ)} at position {pos}: {_join(children)}"
        case ResultChanged(pos=pos, type=typ, changes=children):
            return f"result with type {type_string(typ)} at position {pos}: {_join(children)}"
        case FieldChanged(pos=pos, name=name, changes=children):
            return f'field "{name}" at position {pos}: {_join(children)}'
        case TypeChanged(old=old, new=new):
            return f'type changed from "{type_string(old)}" to "{type_string(new)}"'
        case PositionChanged(old=old, new=new):
            return f"position changed from {old} to {new}"
        case ValueChanged(old=old, new=new):
            return f"value changed from {old} to {new}"
        case AliasChanged(old=True):
            return "changed from alias to defined type"
        case AliasChanged():
            return "changed from defined type to alias"
        case Removed():
            return "was removed"
        case Added():
            return "was added"
    raise TypeError(f"unknown change record: {change!r}")


def is_breaking(change: Change) -> bool:
    """Report whether ``change`` can break code built against the old API.

    Additions and constant value edits keep every existing use compiling, so
    on their own they never break. A declaration change breaks when any of its
    children does.
    """

    match change:
        case Removed() | PositionChanged() | TypeChanged() | AliasChanged():
            return True
        case FieldChanged() | ResultChanged() | ArgumentChanged():
            return True
        case DeclChange(changes=children):
            return any(is_breaking(child) for child in children)
        case Added() | ValueChanged():
            return False
    raise TypeError(f"unknown change record: {change!r}")


def _join(children: tuple[Change, ...]) -> str:
    return ", ".join(render(child) for child in children)


def change_to_dict(change: Change) -> dict[str, Any]:
    payload: dict[str, Any]
    match change:
        case DeclChange(name=name, kind=kind, changes=children):
            payload = {"change": "decl", "name": name, "kind": kind.value, "changes": _dicts(children)}
        case ArgumentChanged(pos=pos, name=name, type=typ, changes=children):
            payload = {
                "change": "argument",
                "pos": pos,
                "name": name,
                "type": type_string(typ),
                "changes": _dicts(children),
            }
        case ResultChanged(pos=pos, type=typ, changes=children):
            payload = {"change": "result", "pos": pos, "type": type_string(typ), "changes": _dicts(children)}
        case FieldChanged(pos=pos, name=name, changes=children):
            payload = {"change": "field", "pos": pos, "name": name, "changes": _dicts(children)}
        case TypeChanged(old=old, new=new):
            payload = {"change": "type", "from": type_string(old), "to": type_string(new)}
        case PositionChanged(old=old, new=new):
            payload = {"change": "position", "from": old, "to": new}
        case ValueChanged(old=old, new=new):
            payload = {"change": "value", "from": old, "to": new}
        case AliasChanged(old=old, new=new):
            payload = {"change": "alias", "from": old, "to": new}
        case Removed():
            payload = {"change": "removed"}
        case Added():
            payload = {"change": "added"}
        case _:
            raise TypeError(f"unknown change record: {change!r}")
    payload["breaking"] = is_breaking(change)
    payload["summary"] = render(change)
    return payload


def _dicts(children: tuple[Change, ...]) -> list[dict[str, Any]]:
    return [change_to_dict(child) for child in children]


@dataclass(frozen=True, slots=True)
class PackageChanges:
    name: str
    path: str
    changes: tuple[Change, ...] = ()

    def is_breaking(self) -> bool:
        return any(is_breaking(change) for change in self.changes)

    def lines(self) -> list[str]:
        return [f"{self.path}: {render(change)}" for change in self.changes]

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "breaking": self.is_breaking(),
            "changes": _dicts(self.changes),
        }


@dataclass(frozen=True, slots=True)
class APIChanges:
    """Every package found in either snapshot, ordered by path."""

    packages: tuple[PackageChanges, ...] = ()

    def __iter__(self) -> Iterator[PackageChanges]:
        return iter(self.packages)

    def __len__(self) -> int:
        return len(self.packages)

    def is_breaking(self) -> bool:
        return any(package.is_breaking() for package in self.packages)

    def is_empty(self) -> bool:
        return not any(package.changes for package in self.packages)

    def has_additions(self) -> bool:
        return any(
            _contains_addition(change) for package in self.packages for change in package.changes
        )

    def breaking_changes(self) -> list[tuple[PackageChanges, Change]]:
        return [
            (package, change)
            for package in self.packages
            for change in package.changes
            if is_breaking(change)
        ]

    def non_breaking_changes(self) -> list[tuple[PackageChanges, Change]]:
        return [
            (package, change)
            for package in self.packages
            for change in package.changes
            if not is_breaking(change)
        ]

    def lines(self) -> list[str]:
        return [line for package in self.packages for line in package.lines()]

    def as_dict(self) -> dict[str, Any]:
        return {
            "breaking": self.is_breaking(),
            "packages": [package.as_dict() for package in self.packages],
        }


def _contains_addition(change: Change) -> bool:
    if isinstance(change, Added):
        return True
    children = getattr(change, "changes", ())
    return any(_contains_addition(child) for child in children)
