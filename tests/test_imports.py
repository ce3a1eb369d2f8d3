"""Tests for import parsing, resolution and the dependency graph."""

from __future__ import annotations

import textwrap

from umlscope.imports import (
    build_dependency_graph,
    collect_related_entities,
    iter_reachable_files,
    parse_imports,
    resolve_import_paths,
    resolve_path,
)
from umlscope.models import ImportInfo, SourceFile
from tests._fixtures.entities import make_class


def test_parse_imports_covers_every_form() -> None:
    source = textwrap.dedent(
        """
        import React from 'react';
        import { Person as P, Employee } from "./models";
        import * as utils from '../utils';
        import type { Config } from './config';
        import './polyfills';
        import Store, { useStore } from './store';

        export class App {}
        """
    ).lstrip("\n")

    imports = parse_imports(source, "src/App.ts")

    assert [info.import_path for info in imports] == [
        "react",
        "./models",
        "../utils",
        "./config",
        "./polyfills",
        "./store",
    ]
    react, models, utils, config, polyfills, store = imports
    assert react.imported_names == ("default",)
    assert models.imported_names == ("Person", "Employee")
    assert utils.is_namespace_import and utils.imported_names == ()
    assert config.is_type_only and config.imported_names == ("Config",)
    assert not models.is_type_only
    assert polyfills.imported_names == ()
    assert store.imported_names == ("default", "useStore")
    assert [info.line_number for info in imports] == [1, 2, 3, 4, 5, 6]
    assert all(info.resolved_file_id is None for info in imports)


def test_parse_imports_on_empty_source() -> None:
    assert parse_imports("", "a.ts") == []
    assert parse_imports("export class A {}", "a.ts") == []


def test_resolve_path_folds_relative_segments() -> None:
    assert resolve_path("src/models", "./person") == "src/models/person"
    assert resolve_path("src/models", "../utils/strings") == "src/utils/strings"
    assert resolve_path("/src/a/b", "../../c") == "/src/c"
    assert resolve_path("", "./top") == "top"


def test_resolve_import_paths_matches_project_files() -> None:
    imports = [
        ImportInfo(import_path="./Person"),
        ImportInfo(import_path="../shared/Base.ts"),
        ImportInfo(import_path="./Missing"),
        ImportInfo(import_path="lodash"),
    ]
    table = {"src/models/Person.ts": "person", "src/shared/Base.ts": "base"}

    resolved = resolve_import_paths(imports, "src/models/Employee.ts", table)

    assert [(info.resolved_path, info.resolved_file_id) for info in resolved] == [
        ("src/models/Person.ts", "person"),
        ("src/shared/Base.ts", "base"),
        (None, None),
        (None, None),
    ]
    # Inputs are left untouched.
    assert imports[0].resolved_file_id is None


def test_resolve_import_paths_is_idempotent() -> None:
    imports = [ImportInfo(import_path="./Person"), ImportInfo(import_path="react")]
    table = {"/project/Person.ts": "person"}

    once = resolve_import_paths(imports, "/project/Employee.ts", table)
    twice = resolve_import_paths(imports, "/project/Employee.ts", table)
    again = resolve_import_paths(once, "/project/Employee.ts", table)

    assert once == twice == again
    assert once[0].resolved_path == "/project/Person.ts"


def test_resolve_import_paths_tries_configured_extensions_in_order() -> None:
    imports = [ImportInfo(import_path="./Panel")]
    table = {"ui/Panel.tsx": "panel"}

    assert resolve_import_paths(imports, "ui/App.ts", table)[0].resolved_file_id is None
    resolved = resolve_import_paths(imports, "ui/App.ts", table, extensions=(".ts", ".tsx"))
    assert resolved[0].resolved_file_id == "panel"


def test_parse_dart_imports() -> None:
    source = textwrap.dedent(
        """
        import 'dart:async';
        import 'package:flutter/material.dart';
        import 'person.dart';
        import '../shared/base.dart' show Base, Entity;
        import 'utils.dart' as utils;

        class Employee extends Person {}
        """
    ).lstrip("\n")

    imports = parse_imports(source, "lib/models/employee.dart")

    assert [info.import_path for info in imports] == [
        "dart:async",
        "package:flutter/material.dart",
        "person.dart",
        "../shared/base.dart",
        "utils.dart",
    ]
    assert imports[3].imported_names == ("Base", "Entity")
    assert imports[4].is_namespace_import
    assert [info.line_number for info in imports] == [1, 2, 3, 4, 5]


def test_resolve_dart_imports_relative_to_the_importing_file() -> None:
    imports = [
        ImportInfo(import_path="person.dart"),
        ImportInfo(import_path="../shared/base.dart"),
        ImportInfo(import_path="package:app/models/person.dart"),
        ImportInfo(import_path="dart:core"),
    ]
    table = {"lib/models/person.dart": "person", "lib/shared/base.dart": "base"}

    resolved = resolve_import_paths(imports, "lib/models/employee.dart", table)

    assert [info.resolved_file_id for info in resolved] == ["person", "base", None, None]


def _source(file_id: str, path: str, content: str) -> SourceFile:
    return SourceFile(id=file_id, path=path, content=textwrap.dedent(content))


def test_build_dependency_graph() -> None:
    files = [
        _source("person", "src/Person.ts", "export class Person {}"),
        _source(
            "employee",
            "src/Employee.ts",
            """
            import { Person } from './Person';
            import { v4 } from 'uuid';
            export class Employee extends Person {}
            """,
        ),
    ]
    person = make_class("Person", "person")
    employee = make_class("Employee", "employee", parent="Person")

    graph = build_dependency_graph(files, {"person": [person], "employee": [employee]})

    assert set(graph) == {"person", "employee"}
    assert graph["employee"].imported_file_ids == {"person"}
    assert graph["employee"].file_path == "src/Employee.ts"
    assert len(graph["employee"].imports) == 2
    assert graph["employee"].entities == [employee]
    assert graph["person"].imported_file_ids == set()


def _cycle_graph():
    files = [
        _source("a", "a.ts", "import { B } from './b';\nexport class A {}"),
        _source("b", "b.ts", "import { A } from './a';\nexport class B {}"),
    ]
    entities = {"a": [make_class("A", "a")], "b": [make_class("B", "b")]}
    return build_dependency_graph(files, entities)


def test_collect_related_entities_terminates_on_cycles() -> None:
    graph = _cycle_graph()

    names = [entity.name for entity in collect_related_entities("a", graph)]

    assert names == ["A", "B"]


def test_collect_related_entities_respects_depth() -> None:
    files = [
        _source(str(index), f"f{index}.ts", f"import {{ X }} from './f{index + 1}';")
        for index in range(8)
    ]
    entities = {str(index): [make_class(f"C{index}", str(index))] for index in range(8)}
    graph = build_dependency_graph(files, entities)

    shallow = collect_related_entities("0", graph, max_depth=2)
    default = collect_related_entities("0", graph)

    assert [entity.name for entity in shallow] == ["C0", "C1", "C2"]
    assert [entity.name for entity in default] == ["C0", "C1", "C2", "C3", "C4", "C5"]


def test_collect_related_entities_unknown_start() -> None:
    assert collect_related_entities("missing", _cycle_graph()) == []


def test_reachable_files_ordered_by_depth_then_path() -> None:
    files = [
        _source("root", "root.ts", "import './z';\nimport './a';"),
        _source("z", "z.ts", "import './deep';"),
        _source("a", "a.ts", ""),
        _source("deep", "deep.ts", ""),
    ]
    graph = build_dependency_graph(files, {})

    order = [(node.file_path, depth) for node, depth in iter_reachable_files("root", graph)]

    assert order == [("root.ts", 0), ("a.ts", 1), ("z.ts", 1), ("deep.ts", 2)]
