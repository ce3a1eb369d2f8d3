"""Tests for umlscope.relationships."""

from __future__ import annotations

import pytest

from umlscope.models import RelationshipType
from umlscope.relationships import analyze, analyze_entities
from tests._fixtures.entities import make_class, make_interface, method, param, prop


def _summary(relationships):
    return [(rel.type, rel.source_id, rel.target_id) for rel in relationships]


def test_class_inheritance_single_edge_to_parent() -> None:
    person = make_class("Person")
    employee = make_class("Employee", parent="Person")

    relationships = analyze([person, employee], [])

    assert _summary(relationships) == [
        (RelationshipType.INHERITANCE, employee.id, person.id)
    ]
    assert relationships[0].id == "rel_Employee_Person_inheritance"


def test_unknown_parent_produces_nothing() -> None:
    assert analyze([make_class("Widget", parent="React.Component")], []) == []


def test_interface_extending_many_interfaces_emits_one_edge_each() -> None:
    named = make_interface("Named")
    aged = make_interface("Aged")
    staff = make_interface("Staff", extends=["Named", "Aged", "Unknown"])

    relationships = analyze([], [named, aged, staff])

    assert _summary(relationships) == [
        (RelationshipType.INHERITANCE, staff.id, named.id),
        (RelationshipType.INHERITANCE, staff.id, aged.id),
    ]


def test_realization_for_known_interfaces() -> None:
    printable = make_interface("Printable")
    report = make_class("Report", implements=["Printable", "Serializable"])

    relationships = analyze([report], [printable])

    assert _summary(relationships) == [
        (RelationshipType.REALIZATION, report.id, printable.id)
    ]
    assert relationships[0].id == "rel_Report_Printable_realization"


@pytest.mark.parametrize(
    ("type_string", "expected"),
    [
        ("Employee", RelationshipType.ASSOCIATION),
        ("Employee | null", RelationshipType.ASSOCIATION),
        ("Employee[]", RelationshipType.AGGREGATION),
        ("Array<Employee>", RelationshipType.AGGREGATION),
        ("Set<Employee>", RelationshipType.AGGREGATION),
    ],
)
def test_property_types_produce_association_or_aggregation(
    type_string: str, expected: RelationshipType
) -> None:
    employee = make_class("Employee")
    team = make_class("Team", properties=[prop("members", type_string)])

    relationships = analyze([employee, team], [])

    assert _summary(relationships) == [(expected, team.id, employee.id)]
    assert relationships[0].id == f"rel_Team_Employee_{expected.value}"


@pytest.mark.parametrize(
    "type_string",
    ["string", "number", "boolean", "Date", "Promise<string>", "Map<string, number>", "any"],
)
def test_built_in_property_types_never_relate(type_string: str) -> None:
    holder = make_class("Holder", properties=[prop("value", type_string)])
    other = make_class("Other")

    assert analyze([holder, other], []) == []


def test_generic_property_points_at_outer_type() -> None:
    repository = make_class("Repository")
    user = make_class("User")
    service = make_class("Service", properties=[prop("repo", "Repository<User>")])

    relationships = analyze_entities([service, repository, user])

    assert _summary(relationships) == [
        (RelationshipType.ASSOCIATION, service.id, repository.id)
    ]


def test_built_in_wrapper_hides_its_argument() -> None:
    employee = make_class("Employee")
    team = make_class("Team", properties=[prop("lead", "Promise<Employee>")])

    assert analyze([team, employee], []) == []


def test_collection_of_generic_aggregates_outer_type() -> None:
    repository = make_class("Repository")
    registry = make_class("Registry", properties=[prop("repos", "Array<Repository<User>>")])

    assert _summary(analyze([registry, repository], [])) == [
        (RelationshipType.AGGREGATION, registry.id, repository.id)
    ]


@pytest.mark.parametrize(
    ("type_string", "expected"),
    [
        ("Employee", RelationshipType.ASSOCIATION),
        ("Employee?", RelationshipType.ASSOCIATION),
        ("List<Employee>", RelationshipType.AGGREGATION),
        ("Map<String, Employee>", RelationshipType.AGGREGATION),
    ],
)
def test_dart_property_types(type_string: str, expected: RelationshipType) -> None:
    employee = make_class("Employee", "team.dart", language="dart")
    team = make_class(
        "Team", "team.dart", properties=[prop("members", type_string)], language="dart"
    )

    assert _summary(analyze([employee, team], [])) == [(expected, team.id, employee.id)]


def test_dart_framework_types_never_relate() -> None:
    widget = make_class("Widget", "app.dart", language="dart")
    screen = make_class(
        "Screen",
        "app.dart",
        properties=[prop("child", "Widget"), prop("loaded", "Future<bool>")],
        language="dart",
    )

    assert analyze([widget, screen], []) == []


def test_dart_mixin_is_a_realization() -> None:
    payable = make_interface("Payable", "staff.dart", language="dart")
    employee = make_class("Employee", "staff.dart", implements=["Payable"], language="dart")

    assert _summary(analyze([employee], [payable])) == [
        (RelationshipType.REALIZATION, employee.id, payable.id)
    ]


def test_built_in_names_are_ignored_even_when_declared() -> None:
    # A project class shadowing a built-in name is still not linked.
    shadow = make_class("Date")
    event = make_class("Event", properties=[prop("when", "Date")])

    assert analyze([shadow, event], []) == []


def test_interface_properties_produce_associations() -> None:
    address = make_class("Address")
    located = make_interface("Located", properties=[prop("address", "Address")])

    relationships = analyze([address], [located])

    assert _summary(relationships) == [
        (RelationshipType.ASSOCIATION, located.id, address.id)
    ]


def test_dependency_from_method_signatures() -> None:
    user = make_class("User")
    audit = make_interface("AuditLog")
    service = make_class(
        "UserService",
        methods=[
            method("find", "Promise<Array<User> | null>", param("id", "string")),
            method("record", "void", param("log", "AuditLog")),
        ],
    )

    relationships = analyze([user, service], [audit])

    assert _summary(relationships) == [
        (RelationshipType.DEPENDENCY, service.id, user.id),
        (RelationshipType.DEPENDENCY, service.id, audit.id),
    ]


def test_dependency_suppressed_when_property_relationship_exists() -> None:
    employee = make_class("Employee")
    team = make_class(
        "Team",
        properties=[prop("members", "Employee[]")],
        methods=[method("lead", "Employee"), method("add", "void", param("e", "Employee"))],
    )

    relationships = analyze([employee, team], [])

    assert _summary(relationships) == [
        (RelationshipType.AGGREGATION, team.id, employee.id)
    ]


def test_self_reference_produces_no_dependency() -> None:
    node = make_class("Node", methods=[method("clone", "Node")])

    assert analyze([node], []) == []


def test_self_referencing_property_is_an_association() -> None:
    node = make_class("Node", properties=[prop("next", "Node | null")])

    assert _summary(analyze([node], [])) == [
        (RelationshipType.ASSOCIATION, node.id, node.id)
    ]


def test_duplicate_relationships_are_removed() -> None:
    employee = make_class("Employee")
    team = make_class(
        "Team",
        properties=[prop("lead", "Employee"), prop("deputy", "Employee")],
    )

    relationships = analyze([employee, team], [])

    assert len(relationships) == 1
    assert len({rel.id for rel in relationships}) == len(relationships)


def test_different_types_between_same_pair_coexist() -> None:
    person = make_class("Person")
    manager = make_class("Manager", parent="Person", properties=[prop("mentor", "Person")])

    types = [rel.type for rel in analyze([person, manager], [])]

    assert types == [RelationshipType.INHERITANCE, RelationshipType.ASSOCIATION]


def test_analysis_is_deterministic() -> None:
    entities = [
        make_class("A", parent="B", properties=[prop("cs", "C[]")]),
        make_class("B", methods=[method("make", "C")]),
        make_class("C", implements=["I"]),
        make_interface("I", properties=[prop("owner", "A")]),
    ]

    assert analyze_entities(entities) == analyze_entities(list(entities))


def test_analyze_entities_splits_by_kind() -> None:
    printable = make_interface("Printable")
    report = make_class("Report", implements=["Printable"])

    assert analyze_entities([printable, report]) == analyze([report], [printable])


def test_empty_input() -> None:
    assert analyze([], []) == []
    assert analyze_entities([]) == []
