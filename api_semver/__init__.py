from __future__ import annotations

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
    is_breaking,
    render,
)
from .diff import diff
from .report import DiffReport
from .schema import API, Const, Field, Func, Interface, Package, Param, Struct, TypeDef, Var, load_api, save_api
from .typesys import identical, parse_type, type_string
from .versions import SemVer, Version, check_bump, list_versions, required_bump, sort_versions

__all__ = [
    "API",
    "APIChanges",
    "Added",
    "AliasChanged",
    "ArgumentChanged",
    "Change",
    "Const",
    "DeclChange",
    "DeclKind",
    "DiffReport",
    "Field",
    "FieldChanged",
    "Func",
    "Interface",
    "Package",
    "PackageChanges",
    "Param",
    "PositionChanged",
    "Removed",
    "ResultChanged",
    "SemVer",
    "Struct",
    "TypeChanged",
    "TypeDef",
    "ValueChanged",
    "Var",
    "Version",
    "check_bump",
    "diff",
    "identical",
    "is_breaking",
    "list_versions",
    "load_api",
    "parse_type",
    "render",
    "required_bump",
    "save_api",
    "sort_versions",
    "type_string",
]
