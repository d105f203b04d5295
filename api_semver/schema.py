from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Optional

import orjson
from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from tomli import loads as load_toml
from tomli_w import dumps as dump_toml

from .errors import IntrospectionError, SnapshotIOError
from .typesys import TypeRef, coerce_type


class _Decl(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str


class _TypedDecl(_Decl):
    type: TypeRef

    @field_validator("type", mode="before")
    @classmethod
    def _parse_type(cls, value: Any) -> Any:
        return coerce_type(value)


class Const(_TypedDecl):
    value: str

    @field_validator("value", mode="before")
    @classmethod
    def _stringify_value(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return str(value).lower()
        if isinstance(value, (int, float)):
            return str(value)
        return value


class Var(_TypedDecl):
    pass


class Field(_TypedDecl):
    pass


class TypeDef(_TypedDecl):
    alias: bool = False


class Param(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = ""
    type: TypeRef

    @field_validator("type", mode="before")
    @classmethod
    def _parse_type(cls, value: Any) -> Any:
        return coerce_type(value)


class Func(_Decl):
    args: tuple[Param, ...] = ()
    results: tuple[TypeRef, ...] = ()

    @field_validator("args", mode="before")
    @classmethod
    def _parse_args(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return [{"type": arg} if isinstance(arg, str) else arg for arg in value]
        return value

    @field_validator("results", mode="before")
    @classmethod
    def _parse_results(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return [coerce_type(result) for result in value]
        return value


class Struct(_Decl):
    fields: tuple[Field, ...] = ()
    methods: tuple[Func, ...] = ()

    @field_validator("methods")
    @classmethod
    def _merge_method_sets(cls, methods: tuple[Func, ...]) -> tuple[Func, ...]:
        # Value and pointer receiver method sets overlap; keep one copy of each.
        merged: list[Func] = []
        for method in methods:
            if method not in merged:
                merged.append(method)
        return tuple(merged)

    @model_validator(mode="after")
    def _unique_members(self) -> "Struct":
        _ensure_unique(self.fields, f"field of struct {self.name}")
        _ensure_unique(self.methods, f"method of struct {self.name}")
        return self


class Interface(_Decl):
    methods: tuple[Func, ...] = ()

    @model_validator(mode="after")
    def _unique_members(self) -> "Interface":
        _ensure_unique(self.methods, f"method of interface {self.name}")
        return self


class Package(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    path: str
    consts: tuple[Const, ...] = ()
    vars: tuple[Var, ...] = ()
    funcs: tuple[Func, ...] = ()
    structs: tuple[Struct, ...] = ()
    interfaces: tuple[Interface, ...] = ()
    typedefs: tuple[TypeDef, ...] = ()

    @model_validator(mode="after")
    def _unique_decls(self) -> "Package":
        for category in ("consts", "vars", "funcs", "structs", "interfaces", "typedefs"):
            _ensure_unique(getattr(self, category), f"{category} entry of package {self.path}")
        return self


class API(BaseModel):
    """Exported surface of a project at one version."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: Optional[str] = None
    packages: tuple[Package, ...] = ()

    @model_validator(mode="after")
    def _unique_paths(self) -> "API":
        seen: set[str] = set()
        for package in self.packages:
            if package.path in seen:
                raise ValueError(f"duplicate package path {package.path!r}")
            seen.add(package.path)
        return self

    def package_map(self) -> dict[str, Package]:
        return {package.path: package for package in self.packages}

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

    def to_json(self) -> str:
        return orjson.dumps(self.to_dict(), option=orjson.OPT_INDENT_2).decode()

    def to_toml(self) -> str:
        return dump_toml(self.to_dict())


def _ensure_unique(decls: Iterable[_Decl], what: str) -> None:
    seen: set[str] = set()
    for decl in decls:
        if decl.name in seen:
            raise ValueError(f"duplicate {what}: {decl.name!r}")
        seen.add(decl.name)


def load_api(path: str | Path) -> API:
    file_path = Path(path)
    try:
        raw = file_path.read_bytes()
    except OSError as exc:
        raise SnapshotIOError(str(exc)) from exc
    suffix = file_path.suffix.lower()
    try:
        if suffix == ".json":
            data = orjson.loads(raw)
        elif suffix == ".toml":
            data = load_toml(raw.decode())
        else:
            raise SnapshotIOError(f"Unsupported snapshot extension: {file_path.suffix}")
        return API.model_validate(data)
    except ValueError as exc:
        raise IntrospectionError(str(file_path), exc) from exc


def save_api(api: API, path: str | Path) -> None:
    file_path = Path(path)
    suffix = file_path.suffix.lower()
    if suffix == ".json":
        payload = api.to_json()
    elif suffix == ".toml":
        payload = api.to_toml()
    else:
        raise SnapshotIOError(f"Unsupported snapshot extension: {file_path.suffix}")
    try:
        file_path.write_text(payload)
    except OSError as exc:
        raise SnapshotIOError(str(exc)) from exc
