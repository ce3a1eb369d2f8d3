"""Core data models shared across umlscope components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set


class EntityKind(str, Enum):
    """Discriminant carried by every extracted type entity."""

    CLASS = "class"
    INTERFACE = "interface"


class RelationshipType(str, Enum):
    INHERITANCE = "inheritance"
    REALIZATION = "realization"
    ASSOCIATION = "association"
    AGGREGATION = "aggregation"
    DEPENDENCY = "dependency"


class ScopeMode(str, Enum):
    PROJECT = "project"
    FILE = "file"


class InclusionType(str, Enum):
    LOCAL = "local"
    IMPORTED = "imported"
    PROJECT_VIEW = "project-view"
    TRANSITIVE = "transitive"


@dataclass(frozen=True)
class SourceFile:
    """A project file supplied by the external file store."""

    id: str
    path: str
    content: str


@dataclass
class Parameter:
    name: str
    type: str = "any"
    is_optional: bool = False
    default_value: Optional[str] = None


@dataclass
class Property:
    """A class field or interface property signature."""

    name: str
    type: str = "any"
    visibility: str = "public"
    is_static: bool = False
    is_readonly: bool = False
    is_optional: bool = False
    default_value: Optional[str] = None


@dataclass
class Method:
    """A class method, constructor or interface method signature."""

    name: str
    return_type: str = "void"
    parameters: List[Parameter] = field(default_factory=list)
    visibility: str = "public"
    is_static: bool = False
    is_abstract: bool = False
    is_async: bool = False


@dataclass
class TypeEntity:
    """A class- or interface-like declaration extracted from one file.

    Type references (parent, implemented and extended names, member types) are
    raw strings; they are resolved by name in the relationship analyzer.
    """

    name: str
    file_id: str
    kind: EntityKind
    properties: List[Property] = field(default_factory=list)
    methods: List[Method] = field(default_factory=list)
    type_parameters: List[str] = field(default_factory=list)
    parent_class_name: Optional[str] = None
    implemented_interface_names: List[str] = field(default_factory=list)
    extended_interface_names: List[str] = field(default_factory=list)
    is_abstract: bool = False
    is_exported: bool = False
    line_number: int = 0
    language: str = "typescript"

    @property
    def id(self) -> str:
        return entity_id(self.file_id, self.name)

    @property
    def is_class(self) -> bool:
        return self.kind is EntityKind.CLASS

    @property
    def is_interface(self) -> bool:
        return self.kind is EntityKind.INTERFACE

    def heritage_names(self) -> List[str]:
        """Names this entity extends or implements, depending on its kind."""
        if self.kind is EntityKind.CLASS:
            names = [self.parent_class_name] if self.parent_class_name else []
            return names + list(self.implemented_interface_names)
        if self.kind is EntityKind.INTERFACE:
            return list(self.extended_interface_names)
        raise ValueError(f"Unknown entity kind: {self.kind!r}")


def entity_id(file_id: str, name: str) -> str:
    return f"{file_id}::{name}"


@dataclass(frozen=True)
class ParseError:
    """Structured syntax diagnostic surfaced to the editor."""

    line: int
    column: int
    message: str
    severity: str = "error"

    def to_formatted_string(self) -> str:
        return f"[{self.severity.upper()}] Line {self.line}, Column {self.column}: {self.message}"


@dataclass
class ExtractionResult:
    entities: List[TypeEntity] = field(default_factory=list)
    errors: List[ParseError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not any(error.severity == "error" for error in self.errors)


@dataclass(frozen=True)
class Relationship:
    """Directed edge: the source uses or extends the target."""

    id: str
    type: RelationshipType
    source_id: str
    target_id: str
    label: Optional[str] = None


@dataclass(frozen=True)
class ImportInfo:
    import_path: str
    imported_names: tuple[str, ...] = ()
    is_type_only: bool = False
    is_namespace_import: bool = False
    line_number: int = 0
    resolved_path: Optional[str] = None
    resolved_file_id: Optional[str] = None


@dataclass
class DependencyNode:
    """One file's imports and the project files they resolve to."""

    file_id: str
    file_path: str
    imports: List[ImportInfo] = field(default_factory=list)
    imported_file_ids: Set[str] = field(default_factory=set)
    entities: List[TypeEntity] = field(default_factory=list)


DependencyGraph = Dict[str, DependencyNode]


@dataclass(frozen=True)
class Scope:
    """Requested viewing scope; built fresh for every diagram update."""

    mode: ScopeMode
    active_file_id: Optional[str] = None
    import_graph: Optional[DependencyGraph] = None


@dataclass(frozen=True)
class InclusionReason:
    type: InclusionType
    file_id: Optional[str] = None
    imported_by: Optional[str] = None
    has_relationship: bool = False


@dataclass
class FilteredEntitySet:
    entities: List[TypeEntity]
    inclusion_reasons: Dict[str, InclusionReason]
    total_before_filter: int
    filter_time_ms: float


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0


@dataclass
class NodeData:
    """Display payload of a diagram node."""

    name: str
    properties: List[str] = field(default_factory=list)
    methods: List[str] = field(default_factory=list)
    stereotype: Optional[str] = None
    file_id: str = ""


@dataclass
class DiagramNode:
    id: str
    kind: EntityKind
    data: NodeData
    position: Position = field(default_factory=Position)
    width: float = 0.0
    height: float = 0.0


@dataclass
class DiagramEdge:
    id: str
    source: str
    target: str
    type: str
    label: Optional[str] = None


@dataclass
class DiagramDiff:
    nodes_added: List[DiagramNode] = field(default_factory=list)
    nodes_removed: List[DiagramNode] = field(default_factory=list)
    nodes_modified: List[DiagramNode] = field(default_factory=list)
    nodes_unchanged: List[DiagramNode] = field(default_factory=list)
    edges_added: List[DiagramEdge] = field(default_factory=list)
    edges_removed: List[DiagramEdge] = field(default_factory=list)
    edges_modified: List[DiagramEdge] = field(default_factory=list)
    edges_unchanged: List[DiagramEdge] = field(default_factory=list)
