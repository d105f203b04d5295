from __future__ import annotations

import random

from api_semver import API, Const, Field, Func, Interface, Package, Param, Struct, TypeDef, Var, diff
from api_semver.changes import (
    Added,
    AliasChanged,
    ArgumentChanged,
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
)
from api_semver.typesys import parse_type

PATH = "example.com/lib"


def api(**decls) -> API:
    return API(packages=[Package(name="lib", path=PATH, **decls)])


def only_changes(prev: API, current: API) -> tuple:
    result = diff(prev, current)
    assert len(result) == 1
    return result.packages[0].changes


def test_identical_snapshots_have_no_changes(prev_api: API, current_api: API) -> None:
    for snapshot in (prev_api, current_api):
        result = diff(snapshot, snapshot)
        assert len(result) == len(snapshot.packages)
        assert result.is_empty()
        assert all(package.changes == () for package in result)


def test_fixture_snapshots(prev_api: API, current_api: API) -> None:
    result = diff(prev_api, current_api)
    assert [package.path for package in result] == [
        "example.com/shop/catalog",
        "example.com/shop/internal/legacy",
        "example.com/shop/payments",
    ]
    assert result.lines() == [
        "example.com/shop/catalog: package-level constant Legacy: was removed",
        "example.com/shop/catalog: package-level constant MaxItems: value changed from 100 to 200",
        "example.com/shop/catalog: function Deprecated: was removed",
        "example.com/shop/catalog: function NewStore: "
        "argument dir with type string at position 0: position changed from 0 to 1, "
        "argument size with type int at position 1: position changed from 1 to 0",
        "example.com/shop/catalog: function Search: was added",
        'example.com/shop/catalog: struct Item: field "ID" at position 0: position changed from 0 to 1, '
        'field "Name" at position 1: position changed from 1 to 0',
        "example.com/shop/catalog: struct Store: function Put: was added",
        "example.com/shop/internal/legacy: package legacy: was removed",
        "example.com/shop/payments: package payments: was added",
    ]
    assert len(result.breaking_changes()) == 5
    assert len(result.non_breaking_changes()) == 4


def test_removed_declaration_is_not_compared_further() -> None:
    prev = api(consts=[Const(name="C", type="int", value="1")])
    current = api(consts=[])
    (change,) = only_changes(prev, current)
    assert change == DeclChange("C", DeclKind.CONSTANT, (Removed(),))
    assert is_breaking(change)


def test_added_declaration() -> None:
    (change,) = only_changes(api(), api(vars=[Var(name="V", type="string")]))
    assert change == DeclChange("V", DeclKind.VARIABLE, (Added(),))
    assert not is_breaking(change)


def test_function_added_and_removed() -> None:
    changes = only_changes(api(funcs=[Func(name="F")]), api(funcs=[Func(name="G")]))
    assert changes == (
        DeclChange("F", DeclKind.FUNCTION, (Removed(),)),
        DeclChange("G", DeclKind.FUNCTION, (Added(),)),
    )
    assert is_breaking(changes[0])
    assert not is_breaking(changes[1])


def test_constant_value_change_is_not_breaking() -> None:
    prev = api(consts=[Const(name="C", type="int", value="1")])
    current = api(consts=[Const(name="C", type="int", value="2")])
    (change,) = only_changes(prev, current)
    assert change == DeclChange("C", DeclKind.CONSTANT, (ValueChanged("1", "2"),))
    assert not is_breaking(change)


def test_constant_type_change_is_breaking() -> None:
    prev = api(consts=[Const(name="C", type="int", value="1")])
    same_value = api(consts=[Const(name="C", type="int64", value="1")])
    new_value = api(consts=[Const(name="C", type="int64", value="2")])
    (change,) = only_changes(prev, same_value)
    assert change.changes == (TypeChanged(parse_type("int"), parse_type("int64")),)
    assert is_breaking(change)
    (change,) = only_changes(prev, new_value)
    assert change.changes == (
        TypeChanged(parse_type("int"), parse_type("int64")),
        ValueChanged("1", "2"),
    )
    assert is_breaking(change)


def test_variable_type_change() -> None:
    prev = api(vars=[Var(name="V", type="*example.com/lib.T")])
    current = api(vars=[Var(name="V", type="example.com/lib.T")])
    (change,) = only_changes(prev, current)
    assert change.changes == (TypeChanged(parse_type("*example.com/lib.T"), parse_type("example.com/lib.T")),)


def test_struct_field_reorder() -> None:
    prev = api(structs=[Struct(name="S", fields=[Field(name="A", type="int"), Field(name="B", type="string")])])
    current = api(structs=[Struct(name="S", fields=[Field(name="B", type="string"), Field(name="A", type="int")])])
    (change,) = only_changes(prev, current)
    assert change == DeclChange(
        "S",
        DeclKind.STRUCT,
        (
            FieldChanged(0, "A", (PositionChanged(0, 1),)),
            FieldChanged(1, "B", (PositionChanged(1, 0),)),
        ),
    )
    assert all(is_breaking(field) for field in change.changes)


def test_struct_field_type_added_and_removed() -> None:
    prev = api(structs=[Struct(name="S", fields=[Field(name="A", type="int"), Field(name="B", type="int")])])
    current = api(structs=[Struct(name="S", fields=[Field(name="A", type="uint"), Field(name="C", type="int")])])
    (change,) = only_changes(prev, current)
    assert change.changes == (
        FieldChanged(0, "A", (TypeChanged(parse_type("int"), parse_type("uint")),)),
        FieldChanged(1, "B", (Removed(),)),
        FieldChanged(1, "C", (Added(),)),
    )


def test_struct_methods() -> None:
    prev = api(
        structs=[
            Struct(
                name="S",
                methods=[Func(name="Close", results=["error"]), Func(name="Len", results=["int"])],
            )
        ]
    )
    current = api(
        structs=[
            Struct(
                name="S",
                methods=[Func(name="Len", results=["int64"]), Func(name="Reset")],
            )
        ]
    )
    (change,) = only_changes(prev, current)
    assert change.changes == (
        DeclChange("Close", DeclKind.FUNCTION, (Removed(),)),
        DeclChange(
            "Len",
            DeclKind.FUNCTION,
            (ResultChanged(0, parse_type("int"), (TypeChanged(parse_type("int"), parse_type("int64")),)),),
        ),
        DeclChange("Reset", DeclKind.FUNCTION, (Added(),)),
    )
    assert is_breaking(change)


def test_interface_method_addition_alone_is_not_breaking() -> None:
    prev = api(interfaces=[Interface(name="I", methods=[Func(name="M")])])
    current = api(interfaces=[Interface(name="I", methods=[Func(name="M"), Func(name="N")])])
    (change,) = only_changes(prev, current)
    assert change == DeclChange("I", DeclKind.INTERFACE, (DeclChange("N", DeclKind.FUNCTION, (Added(),)),))
    assert not is_breaking(change)


def test_argument_type_change_at_position() -> None:
    prev = api(funcs=[Func(name="F", args=[Param(name="a", type="int"), Param(name="b", type="int")])])
    current = api(funcs=[Func(name="F", args=[Param(name="a", type="int"), Param(name="b", type="string")])])
    (change,) = only_changes(prev, current)
    assert change.changes == (
        ArgumentChanged(1, "b", parse_type("int"), (TypeChanged(parse_type("int"), parse_type("string")),)),
    )


def test_moved_argument_is_a_position_change() -> None:
    prev = api(funcs=[Func(name="F", args=[Param(name="a", type="int"), Param(name="b", type="string")])])
    current = api(funcs=[Func(name="F", args=[Param(name="b", type="string"), Param(name="a", type="int")])])
    (change,) = only_changes(prev, current)
    assert change.changes == (
        ArgumentChanged(0, "a", parse_type("int"), (PositionChanged(0, 1),)),
        ArgumentChanged(1, "b", parse_type("string"), (PositionChanged(1, 0),)),
    )


def test_argument_removed_and_remaining_one_moves() -> None:
    prev = api(funcs=[Func(name="F", args=[Param(name="a", type="int"), Param(name="b", type="int")])])
    current = api(funcs=[Func(name="F", args=[Param(name="b", type="int")])])
    (change,) = only_changes(prev, current)
    assert change.changes == (
        ArgumentChanged(0, "a", parse_type("int"), (Removed(),)),
        ArgumentChanged(1, "b", parse_type("int"), (PositionChanged(1, 0),)),
    )


def test_unnamed_arguments_pair_by_position() -> None:
    prev = api(funcs=[Func(name="F", args=["int", "string"], results=["error"])])
    current = api(funcs=[Func(name="F", args=["int", "bool", "string"], results=["int", "error"])])
    (change,) = only_changes(prev, current)
    assert change.changes == (
        ArgumentChanged(1, "", parse_type("string"), (TypeChanged(parse_type("string"), parse_type("bool")),)),
        ArgumentChanged(2, "", parse_type("string"), (Added(),)),
        ResultChanged(0, parse_type("error"), (TypeChanged(parse_type("error"), parse_type("int")),)),
        ResultChanged(1, parse_type("error"), (Added(),)),
    )
    assert is_breaking(change)


def test_unmatched_arguments_pair_in_order() -> None:
    prev = api(funcs=[Func(name="F", args=[Param(name="_", type="int"), Param(name="a", type="int")])])
    current = api(funcs=[Func(name="F", args=[Param(name="a", type="int"), Param(name="_", type="int")])])
    (change,) = only_changes(prev, current)
    assert change.changes == (
        ArgumentChanged(0, "_", parse_type("int"), (PositionChanged(0, 1),)),
        ArgumentChanged(1, "a", parse_type("int"), (PositionChanged(1, 0),)),
    )


def test_renamed_argument_with_same_type_is_not_a_change() -> None:
    prev = api(funcs=[Func(name="F", args=[Param(name="n", type="int")])])
    current = api(funcs=[Func(name="F", args=[Param(name="count", type="int")])])
    assert only_changes(prev, current) == ()


def test_result_removed() -> None:
    prev = api(funcs=[Func(name="F", results=["int", "error"])])
    current = api(funcs=[Func(name="F", results=["int"])])
    (change,) = only_changes(prev, current)
    assert change.changes == (ResultChanged(1, parse_type("error"), (Removed(),)),)


def test_typedef_changes() -> None:
    prev = api(typedefs=[TypeDef(name="ID", type="int"), TypeDef(name="Names", type="[]string", alias=True)])
    current = api(typedefs=[TypeDef(name="ID", type="string"), TypeDef(name="Names", type="[]string")])
    changes = only_changes(prev, current)
    assert changes == (
        DeclChange("ID", DeclKind.TYPE_DEFINITION, (TypeChanged(parse_type("int"), parse_type("string")),)),
        DeclChange("Names", DeclKind.TYPE_DEFINITION, (AliasChanged(True, False),)),
    )


def test_package_removed_and_added() -> None:
    prev = API(packages=[Package(name="old", path="example.com/old", funcs=[Func(name="F")])])
    current = API(packages=[Package(name="new", path="example.com/new")])
    result = diff(prev, current)
    assert result.packages == (
        PackageChanges("new", "example.com/new", (DeclChange("new", DeclKind.PACKAGE, (Added(),)),)),
        PackageChanges("old", "example.com/old", (DeclChange("old", DeclKind.PACKAGE, (Removed(),)),)),
    )
    assert result.packages[1].is_breaking()
    assert not result.packages[0].is_breaking()


def test_categories_follow_canonical_order() -> None:
    prev = api()
    current = api(
        typedefs=[TypeDef(name="A", type="int")],
        interfaces=[Interface(name="B")],
        structs=[Struct(name="C")],
        funcs=[Func(name="D")],
        vars=[Var(name="E", type="int")],
        consts=[Const(name="F", type="int", value="0")],
    )
    kinds = [change.kind for change in only_changes(prev, current)]
    assert kinds == [
        DeclKind.CONSTANT,
        DeclKind.VARIABLE,
        DeclKind.FUNCTION,
        DeclKind.STRUCT,
        DeclKind.INTERFACE,
        DeclKind.TYPE_DEFINITION,
    ]


def test_output_does_not_depend_on_input_order(prev_api: API, current_api: API) -> None:
    expected = diff(prev_api, current_api).lines()
    rng = random.Random(7)
    for _ in range(5):
        shuffled = []
        for snapshot in (prev_api, current_api):
            packages = []
            for package in snapshot.packages:
                update = {}
                for category in ("consts", "vars", "funcs", "structs", "interfaces", "typedefs"):
                    decls = list(getattr(package, category))
                    rng.shuffle(decls)
                    update[category] = tuple(decls)
                packages.append(package.model_copy(update=update))
            rng.shuffle(packages)
            shuffled.append(API(version=snapshot.version, packages=packages))
        assert diff(*shuffled).lines() == expected


def test_ignore_patterns_skip_packages(prev_api: API, current_api: API) -> None:
    result = diff(prev_api, current_api, ignore=["example.com/shop/internal/*", "*/payments"])
    assert [package.path for package in result] == ["example.com/shop/catalog"]
