"""Import parsing, relative path resolution and the file dependency graph."""

from __future__ import annotations

import dataclasses
from typing import Iterable, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

import tree_sitter

from .extractors.base import file_extension
from .extractors.syntax import (
    TSX_LANGUAGE,
    TYPESCRIPT_LANGUAGE,
    child_of_type,
    dart_language,
    has_token,
    iter_nodes,
    line_of,
    node_text,
    parse_source,
)
from .logging import get_logger
from .models import DependencyGraph, DependencyNode, ImportInfo, SourceFile, TypeEntity

logger = get_logger("imports")

DEFAULT_EXTENSIONS: Tuple[str, ...] = (".ts",)
DEFAULT_MAX_DEPTH = 5

# Sentinel recorded for `import Foo from "./foo"`.
DEFAULT_IMPORT_NAME = "default"


def parse_imports(source: str, file_path: str) -> List[ImportInfo]:
    """Return the import declarations of ``source`` in document order."""
    if not source or not source.strip():
        return []
    extension = file_extension(file_path)
    if extension == "dart":
        return _parse_dart_imports(source)
    language = TSX_LANGUAGE if extension == "tsx" else TYPESCRIPT_LANGUAGE
    tree, source_bytes = parse_source(source, language)

    imports: List[ImportInfo] = []
    for node in iter_nodes(tree.root_node):
        if node.type != "import_statement":
            continue
        info = _import_info(node, source_bytes)
        if info is not None:
            imports.append(info)
    return imports


def _import_info(node: tree_sitter.Node, source_bytes: bytes) -> Optional[ImportInfo]:
    source_node = node.child_by_field_name("source")
    if source_node is None or source_node.type != "string":
        return None
    import_path = _string_value(source_node, source_bytes)

    names: List[str] = []
    is_namespace = False
    for clause in node.named_children:
        if clause.type != "import_clause":
            continue
        for child in clause.named_children:
            if child.type == "identifier":
                names.append(DEFAULT_IMPORT_NAME)
            elif child.type == "namespace_import":
                is_namespace = True
            elif child.type == "named_imports":
                for specifier in child.named_children:
                    if specifier.type != "import_specifier":
                        continue
                    # The exported name, not the local alias.
                    name_node = specifier.child_by_field_name("name")
                    if name_node is None and specifier.named_children:
                        name_node = specifier.named_children[0]
                    if name_node is not None:
                        names.append(node_text(name_node, source_bytes))

    return ImportInfo(
        import_path=import_path,
        imported_names=tuple(names),
        is_type_only=has_token(node, "type"),
        is_namespace_import=is_namespace,
        line_number=line_of(node),
    )


def _parse_dart_imports(source: str) -> List[ImportInfo]:
    tree, source_bytes = parse_source(source, dart_language())
    imports: List[ImportInfo] = []
    for node in iter_nodes(tree.root_node):
        if node.type != "import_specification":
            continue
        uri = child_of_type(node, "configurable_uri", "uri")
        # The first literal is the default URI; `if (...)` alternatives follow it.
        literal = next(
            (child for child in iter_nodes(uri) if child.type == "string_literal"), None
        ) if uri is not None else None
        if literal is None:
            continue
        # Only `show` narrows what is visible; `hide` still imports the rest.
        names: List[str] = []
        for combinator in node.named_children:
            if combinator.type == "combinator" and has_token(combinator, "show"):
                names.extend(
                    node_text(child, source_bytes)
                    for child in combinator.named_children
                    if child.type == "identifier"
                )
        imports.append(
            ImportInfo(
                import_path=node_text(literal, source_bytes).strip("'\""),
                imported_names=tuple(names),
                is_namespace_import=has_token(node, "as"),
                line_number=line_of(node),
            )
        )
    return imports


def _is_relative(import_path: str) -> bool:
    if import_path.startswith("."):
        return True
    # Dart writes sibling files as `person.dart`; `package:` and `dart:` URIs are not files.
    return import_path.endswith(".dart") and ":" not in import_path and not import_path.startswith("/")


def _string_value(node: tree_sitter.Node, source_bytes: bytes) -> str:
    fragments = [child for child in node.named_children if child.type == "string_fragment"]
    if fragments:
        return "".join(node_text(fragment, source_bytes) for fragment in fragments)
    return node_text(node, source_bytes).strip("'\"`")


def resolve_import_paths(
    imports: Iterable[ImportInfo],
    current_file_path: str,
    path_to_file_id: Mapping[str, str],
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
) -> List[ImportInfo]:
    """Resolve relative specifiers against ``path_to_file_id``.

    Returns new records; non-relative and unmatched specifiers come back with
    ``resolved_path`` and ``resolved_file_id`` set to ``None``. Calling this
    again on its own output gives the same result.
    """
    current_dir = current_file_path.rsplit("/", 1)[0] if "/" in current_file_path else ""
    resolved: List[ImportInfo] = []
    for info in imports:
        if not _is_relative(info.import_path):
            resolved.append(dataclasses.replace(info, resolved_path=None, resolved_file_id=None))
            continue
        base_path = resolve_path(current_dir, info.import_path)
        match_path: Optional[str] = None
        for candidate in _candidates(base_path, extensions):
            if candidate in path_to_file_id:
                match_path = candidate
                break
        resolved.append(
            dataclasses.replace(
                info,
                resolved_path=match_path,
                resolved_file_id=path_to_file_id[match_path] if match_path else None,
            )
        )
    return resolved


def _candidates(base_path: str, extensions: Sequence[str]) -> List[str]:
    candidates = [base_path]
    for ext in extensions:
        if not base_path.endswith(ext):
            candidates.append(f"{base_path}{ext}")
    return candidates


def resolve_path(base_dir: str, relative_path: str) -> str:
    """Join ``relative_path`` onto ``base_dir``, folding ``.`` and ``..`` segments."""
    is_absolute = base_dir.startswith("/")
    parts = [part for part in base_dir.split("/") if part]
    for segment in relative_path.split("/"):
        if not segment or segment == ".":
            continue
        if segment == "..":
            if parts:
                parts.pop()
        else:
            parts.append(segment)
    joined = "/".join(parts)
    return f"/{joined}" if is_absolute else joined


def build_dependency_graph(
    files: Iterable[SourceFile],
    entities_by_file: Mapping[str, List[TypeEntity]],
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
) -> DependencyGraph:
    """One ``DependencyNode`` per file; cycles between files are allowed."""
    files = list(files)
    path_to_file_id = {source_file.path: source_file.id for source_file in files}

    graph: DependencyGraph = {}
    for source_file in files:
        imports = resolve_import_paths(
            parse_imports(source_file.content, source_file.path),
            source_file.path,
            path_to_file_id,
            extensions,
        )
        imported_ids = {info.resolved_file_id for info in imports if info.resolved_file_id}
        graph[source_file.id] = DependencyNode(
            file_id=source_file.id,
            file_path=source_file.path,
            imports=imports,
            imported_file_ids=imported_ids,
            entities=list(entities_by_file.get(source_file.id, [])),
        )
    logger.debug("Built dependency graph for %d files", len(graph))
    return graph


def iter_reachable_files(
    start_file_id: str, graph: DependencyGraph, max_depth: int = DEFAULT_MAX_DEPTH
) -> Iterator[Tuple[DependencyNode, int]]:
    """Breadth-first ``(node, depth)`` pairs from ``start_file_id``, each file once.

    Files are visited level by level and, within a level, in file path order,
    so the walk is the same for every run over the same graph.
    """
    visited: Set[str] = {start_file_id}
    frontier = [start_file_id]
    depth = 0
    while frontier and depth <= max_depth:
        next_ids: Set[str] = set()
        for file_id in _sorted_by_path(frontier, graph):
            node = graph.get(file_id)
            if node is None:
                continue
            yield node, depth
            next_ids.update(node.imported_file_ids - visited)
        visited.update(next_ids)
        frontier = list(next_ids)
        depth += 1


def _sorted_by_path(file_ids: Iterable[str], graph: DependencyGraph) -> List[str]:
    def key(file_id: str) -> Tuple[str, str]:
        node = graph.get(file_id)
        return (node.file_path if node else "", file_id)

    return sorted(file_ids, key=key)


def collect_related_entities(
    start_file_id: str, graph: DependencyGraph, max_depth: int = DEFAULT_MAX_DEPTH
) -> List[TypeEntity]:
    """Entities of every file reachable within ``max_depth`` imports, each file once."""
    entities: List[TypeEntity] = []
    for node, _depth in iter_reachable_files(start_file_id, graph, max_depth):
        entities.extend(node.entities)
    return entities


__all__ = [
    "DEFAULT_EXTENSIONS",
    "DEFAULT_IMPORT_NAME",
    "DEFAULT_MAX_DEPTH",
    "build_dependency_graph",
    "collect_related_entities",
    "iter_reachable_files",
    "parse_imports",
    "resolve_import_paths",
    "resolve_path",
]
