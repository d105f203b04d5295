from __future__ import annotations

import logging
from fnmatch import fnmatchcase
from typing import Callable, Iterable, Sequence, TypeVar

import structlog

from .changes import (
    Added,
    AliasChanged,
    APIChanges,
    ArgumentChanged,
    Change,
    DeclChange,
    DeclKind,
    FieldChanged,
    PackageChanges,
    PositionChanged,
    Removed,
    ResultChanged,
    TypeChanged,
    ValueChanged,
)
from .schema import API, Const, Func, Interface, Package, Param, Struct, TypeDef, Var
from .typesys import TypeRef, identical

logger = structlog.wrap_logger(logging.getLogger(__name__))

D = TypeVar("D", Const, Var, Func, Struct, Interface, TypeDef)


def diff(prev: API, current: API, *, ignore: Iterable[str] = ()) -> APIChanges:
    """Compare two snapshots of a project's exported surface.

    Packages are matched by path. A package missing from ``current`` is
    reported as removed, a new one as added; packages in both are compared
    category by category.
    """

    patterns = tuple(ignore)
    prev_packages = _package_index(prev, patterns)
    current_packages = _package_index(current, patterns)
    results: list[PackageChanges] = []
    for path in sorted(prev_packages.keys() | current_packages.keys()):
        old = prev_packages.get(path)
        new = current_packages.get(path)
        if new is None:
            results.append(
                PackageChanges(old.name, old.path, (DeclChange(old.name, DeclKind.PACKAGE, (Removed(),)),))
            )
        elif old is None:
            results.append(
                PackageChanges(new.name, new.path, (DeclChange(new.name, DeclKind.PACKAGE, (Added(),)),))
            )
        else:
            results.append(package_diff(old, new))
    return APIChanges(tuple(results))


def package_diff(prev: Package, current: Package) -> PackageChanges:
    changes: list[Change] = []
    changes.extend(_decls_diff(prev.consts, current.consts, DeclKind.CONSTANT, const_changes))
    changes.extend(_decls_diff(prev.vars, current.vars, DeclKind.VARIABLE, var_changes))
    changes.extend(_decls_diff(prev.funcs, current.funcs, DeclKind.FUNCTION, func_changes))
    changes.extend(_decls_diff(prev.structs, current.structs, DeclKind.STRUCT, struct_changes))
    changes.extend(_decls_diff(prev.interfaces, current.interfaces, DeclKind.INTERFACE, interface_changes))
    changes.extend(_decls_diff(prev.typedefs, current.typedefs, DeclKind.TYPE_DEFINITION, typedef_changes))
    logger.debug("package_compared", path=current.path, changes=len(changes))
    return PackageChanges(current.name, current.path, tuple(changes))


def _package_index(api: API, patterns: Sequence[str]) -> dict[str, Package]:
    return {
        package.path: package
        for package in api.packages
        if not any(fnmatchcase(package.path, pattern) for pattern in patterns)
    }


def _decls_diff(
    prev: Sequence[D],
    current: Sequence[D],
    kind: DeclKind,
    detect: Callable[[D, D], list[Change]],
) -> list[Change]:
    prev_index = {decl.name: decl for decl in prev}
    current_index = {decl.name: decl for decl in current}
    changes: list[Change] = []
    for name in sorted(prev_index.keys() | current_index.keys()):
        old = prev_index.get(name)
        new = current_index.get(name)
        if new is None:
            changes.append(DeclChange(name, kind, (Removed(),)))
        elif old is None:
            changes.append(DeclChange(name, kind, (Added(),)))
        else:
            found = detect(old, new)
            if found:
                changes.append(DeclChange(name, kind, tuple(found)))
    return changes


def _type_change(old: TypeRef, new: TypeRef) -> list[Change]:
    if identical(old, new):
        return []
    return [TypeChanged(old, new)]


def const_changes(prev: Const, current: Const) -> list[Change]:
    changes = _type_change(prev.type, current.type)
    if prev.value != current.value:
        changes.append(ValueChanged(prev.value, current.value))
    return changes


def var_changes(prev: Var, current: Var) -> list[Change]:
    return _type_change(prev.type, current.type)


def typedef_changes(prev: TypeDef, current: TypeDef) -> list[Change]:
    changes = _type_change(prev.type, current.type)
    if prev.alias != current.alias:
        changes.append(AliasChanged(prev.alias, current.alias))
    return changes


def func_changes(prev: Func, current: Func) -> list[Change]:
    """Compare two signatures of the same function or method.

    Arguments are paired by name where both signatures name them. The rest
    pair in order of position. Results have no names and pair by position only.
    """

    changes: list[Change] = []
    current_positions = {arg.name: pos for pos, arg in enumerate(current.args) if _is_named(arg)}
    pairs: dict[int, int] = {}
    taken: set[int] = set()
    for pos, arg in enumerate(prev.args):
        target = current_positions.get(arg.name) if _is_named(arg) else None
        if target is not None and target not in taken:
            pairs[pos] = target
            taken.add(target)
    leftover_prev = [pos for pos in range(len(prev.args)) if pos not in pairs]
    leftover_current = [pos for pos in range(len(current.args)) if pos not in taken]
    for pos, target in zip(leftover_prev, leftover_current):
        pairs[pos] = target
        taken.add(target)

    for pos, arg in enumerate(prev.args):
        if pos not in pairs:
            changes.append(ArgumentChanged(pos, arg.name, arg.type, (Removed(),)))
            continue
        new_pos = pairs[pos]
        found: list[Change] = []
        if new_pos != pos:
            found.append(PositionChanged(pos, new_pos))
        found.extend(_type_change(arg.type, current.args[new_pos].type))
        if found:
            changes.append(ArgumentChanged(pos, arg.name, arg.type, tuple(found)))
    for pos, arg in enumerate(current.args):
        if pos not in taken:
            changes.append(ArgumentChanged(pos, arg.name, arg.type, (Added(),)))

    for pos, (old, new) in enumerate(zip(prev.results, current.results)):
        found = _type_change(old, new)
        if found:
            changes.append(ResultChanged(pos, old, tuple(found)))
    for pos in range(len(current.results), len(prev.results)):
        changes.append(ResultChanged(pos, prev.results[pos], (Removed(),)))
    for pos in range(len(prev.results), len(current.results)):
        changes.append(ResultChanged(pos, current.results[pos], (Added(),)))
    return changes


def _is_named(arg: Param) -> bool:
    return bool(arg.name) and arg.name != "_"


def _methods_diff(prev: Sequence[Func], current: Sequence[Func]) -> list[Change]:
    return _decls_diff(prev, current, DeclKind.FUNCTION, func_changes)


def struct_changes(prev: Struct, current: Struct) -> list[Change]:
    changes: list[Change] = []
    current_fields = {field.name: (pos, field) for pos, field in enumerate(current.fields)}
    prev_names = {field.name for field in prev.fields}
    for pos, field in enumerate(prev.fields):
        counterpart = current_fields.get(field.name)
        if counterpart is None:
            changes.append(FieldChanged(pos, field.name, (Removed(),)))
            continue
        new_pos, new_field = counterpart
        found: list[Change] = []
        if new_pos != pos:
            found.append(PositionChanged(pos, new_pos))
        found.extend(_type_change(field.type, new_field.type))
        if found:
            changes.append(FieldChanged(pos, field.name, tuple(found)))
    for pos, field in enumerate(current.fields):
        if field.name not in prev_names:
            changes.append(FieldChanged(pos, field.name, (Added(),)))
    changes.extend(_methods_diff(prev.methods, current.methods))
    return changes


def interface_changes(prev: Interface, current: Interface) -> list[Change]:
    return _methods_diff(prev.methods, current.methods)
