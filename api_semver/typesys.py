"""Type descriptors of exported declarations and the type identity predicate.

Named types are compared nominally by declaring package path and name.
Every other kind is structural: two descriptors of the same kind are
identical when their constituent types are, and their length, direction or
variadic flag match where the kind has one.

Descriptors have a canonical text form (``str(t)``) that ``parse_type``
reads back, so snapshot files can spell a type as ``"map[string]*pkg.T"``
instead of the nested object.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

import regex
from pydantic import BaseModel, ConfigDict, Field, field_validator


class TypeSyntaxError(ValueError):
    """Raised when a textual type expression cannot be parsed."""


def coerce_type(value: Any) -> Any:
    if isinstance(value, str):
        return parse_type(value)
    return value


def coerce_types(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [coerce_type(item) for item in value]
    return value


class _TypeBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    def __str__(self) -> str:
        return type_string(self)  # type: ignore[arg-type]


class NamedType(_TypeBase):
    """A declared type. Predeclared types such as ``int`` have an empty path."""

    kind: Literal["named"] = "named"
    name: str
    path: str = ""


class PointerType(_TypeBase):
    kind: Literal["pointer"] = "pointer"
    elem: TypeRef

    @field_validator("elem", mode="before")
    @classmethod
    def _parse_elem(cls, value: Any) -> Any:
        return coerce_type(value)


class SliceType(_TypeBase):
    kind: Literal["slice"] = "slice"
    elem: TypeRef

    @field_validator("elem", mode="before")
    @classmethod
    def _parse_elem(cls, value: Any) -> Any:
        return coerce_type(value)


class ArrayType(_TypeBase):
    kind: Literal["array"] = "array"
    length: int = Field(ge=0)
    elem: TypeRef

    @field_validator("elem", mode="before")
    @classmethod
    def _parse_elem(cls, value: Any) -> Any:
        return coerce_type(value)


class MapType(_TypeBase):
    kind: Literal["map"] = "map"
    key: TypeRef
    elem: TypeRef

    @field_validator("key", "elem", mode="before")
    @classmethod
    def _parse_types(cls, value: Any) -> Any:
        return coerce_type(value)


class ChanType(_TypeBase):
    kind: Literal["chan"] = "chan"
    dir: Literal["both", "send", "recv"] = "both"
    elem: TypeRef

    @field_validator("elem", mode="before")
    @classmethod
    def _parse_elem(cls, value: Any) -> Any:
        return coerce_type(value)


class SignatureType(_TypeBase):
    """A function type. When variadic, the last parameter is a slice."""

    kind: Literal["signature"] = "signature"
    params: tuple[TypeRef, ...] = ()
    results: tuple[TypeRef, ...] = ()
    variadic: bool = False

    @field_validator("params", "results", mode="before")
    @classmethod
    def _parse_lists(cls, value: Any) -> Any:
        return coerce_types(value)


TypeRef = Annotated[
    Union[NamedType, PointerType, SliceType, ArrayType, MapType, ChanType, SignatureType],
    Field(discriminator="kind"),
]

for _model in (PointerType, SliceType, ArrayType, MapType, ChanType, SignatureType):
    _model.model_rebuild()


def identical(a: TypeRef, b: TypeRef) -> bool:
    """Report whether ``a`` and ``b`` denote the same type."""

    if a is b:
        return True
    if a.kind != b.kind:
        return False
    match a:
        case NamedType():
            return a.path == b.path and a.name == b.name
        case PointerType() | SliceType():
            return identical(a.elem, b.elem)
        case ArrayType():
            return a.length == b.length and identical(a.elem, b.elem)
        case MapType():
            return identical(a.key, b.key) and identical(a.elem, b.elem)
        case ChanType():
            return a.dir == b.dir and identical(a.elem, b.elem)
        case SignatureType():
            return (
                a.variadic == b.variadic
                and _all_identical(a.params, b.params)
                and _all_identical(a.results, b.results)
            )
    raise TypeError(f"unknown type descriptor: {a!r}")


def _all_identical(xs: tuple[TypeRef, ...], ys: tuple[TypeRef, ...]) -> bool:
    return len(xs) == len(ys) and all(identical(x, y) for x, y in zip(xs, ys))


_CHAN_PREFIX = {"both": "chan ", "send": "chan<- ", "recv": "<-chan "}


def type_string(t: TypeRef) -> str:
    match t:
        case NamedType(path=""):
            return t.name
        case NamedType():
            return f"{t.path}.{t.name}"
        case PointerType():
            return "*" + type_string(t.elem)
        case SliceType():
            return "[]" + type_string(t.elem)
        case ArrayType():
            return f"[{t.length}]{type_string(t.elem)}"
        case MapType():
            return f"map[{type_string(t.key)}]{type_string(t.elem)}"
        case ChanType():
            return _CHAN_PREFIX[t.dir] + type_string(t.elem)
        case SignatureType():
            return "func" + _signature_string(t)
    raise TypeError(f"unknown type descriptor: {t!r}")


def _signature_string(sig: SignatureType) -> str:
    params = [type_string(p) for p in sig.params]
    if sig.variadic and sig.params:
        last = sig.params[-1]
        elem = last.elem if isinstance(last, SliceType) else last
        params[-1] = "..." + type_string(elem)
    text = f"({', '.join(params)})"
    if len(sig.results) == 1:
        text += " " + type_string(sig.results[0])
    elif sig.results:
        text += f" ({', '.join(type_string(r) for r in sig.results)})"
    return text


_NAME = regex.compile(r"[\p{L}\p{N}_][\p{L}\p{N}_./\-]*")
_LENGTH = regex.compile(r"\d+")


def parse_type(text: str) -> TypeRef:
    """Parse the canonical text form of a type descriptor."""

    return _TypeParser(text).parse()


class _TypeParser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def parse(self) -> TypeRef:
        result = self._type()
        self._skip_space()
        if self.pos != len(self.text):
            raise self._error("unexpected trailing input")
        return result

    def _error(self, message: str) -> TypeSyntaxError:
        return TypeSyntaxError(f"{message} at offset {self.pos} in {self.text!r}")

    def _skip_space(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def _accept(self, token: str) -> bool:
        self._skip_space()
        if self.text.startswith(token, self.pos):
            self.pos += len(token)
            return True
        return False

    def _expect(self, token: str) -> None:
        if not self._accept(token):
            raise self._error(f"expected {token!r}")

    def _keyword(self, word: str) -> bool:
        self._skip_space()
        end = self.pos + len(word)
        if not self.text.startswith(word, self.pos):
            return False
        if end < len(self.text) and _NAME.match(self.text[end]):
            return False
        self.pos = end
        return True

    def _type(self) -> TypeRef:
        if self._accept("*"):
            return PointerType(elem=self._type())
        if self._accept("<-"):
            if not self._keyword("chan"):
                raise self._error("expected 'chan'")
            return ChanType(dir="recv", elem=self._type())
        if self._accept("["):
            if self._accept("]"):
                return SliceType(elem=self._type())
            self._skip_space()
            match = _LENGTH.match(self.text, self.pos)
            if match is None:
                raise self._error("expected array length")
            self.pos = match.end()
            self._expect("]")
            return ArrayType(length=int(match.group()), elem=self._type())
        if self._keyword("map"):
            self._expect("[")
            key = self._type()
            self._expect("]")
            return MapType(key=key, elem=self._type())
        if self._keyword("chan"):
            if self._accept("<-"):
                return ChanType(dir="send", elem=self._type())
            return ChanType(elem=self._type())
        if self._keyword("func"):
            return self._signature()
        return self._named()

    def _named(self) -> NamedType:
        self._skip_space()
        match = _NAME.match(self.text, self.pos)
        if match is None:
            raise self._error("expected type")
        self.pos = match.end()
        qualified = match.group()
        dot = qualified.rfind(".")
        if dot > qualified.rfind("/"):
            return NamedType(path=qualified[:dot], name=qualified[dot + 1 :])
        return NamedType(name=qualified)

    def _signature(self) -> SignatureType:
        self._expect("(")
        params: list[TypeRef] = []
        variadic = False
        if not self._accept(")"):
            while True:
                if self._accept("..."):
                    variadic = True
                    params.append(SliceType(elem=self._type()))
                    self._expect(")")
                    break
                params.append(self._type())
                if self._accept(","):
                    continue
                self._expect(")")
                break
        results: list[TypeRef] = []
        self._skip_space()
        if self._accept("("):
            if not self._accept(")"):
                while True:
                    results.append(self._type())
                    if self._accept(","):
                        continue
                    self._expect(")")
                    break
        elif self.pos < len(self.text) and self.text[self.pos] not in ",)]":
            results.append(self._type())
        return SignatureType(params=tuple(params), results=tuple(results), variadic=variadic)
