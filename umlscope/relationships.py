"""Relationship inference between extracted classes and interfaces.

Everything here is matched by name over the entities handed in; nothing is
resolved across modules. The passes run in a fixed order so that repeated
analysis of unchanged input yields the same list.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .logging import get_logger
from .models import Relationship, RelationshipType, TypeEntity
from .type_strings import is_built_in, referenced_type_names, rules_for, unwrap_type

logger = get_logger("relationships")

_Pair = Tuple[str, str]


def analyze(
    classes: Sequence[TypeEntity], interfaces: Sequence[TypeEntity]
) -> List[Relationship]:
    """Return inheritance, realization, association/aggregation and dependency edges."""
    # Later declarations with the same name win, as in a plain dict build.
    class_map: Dict[str, TypeEntity] = {cls.name: cls for cls in classes}
    interface_map: Dict[str, TypeEntity] = {iface.name: iface for iface in interfaces}

    relationships: List[Relationship] = []
    relationships.extend(_class_inheritance(classes, class_map))
    relationships.extend(_interface_inheritance(interfaces, interface_map))
    relationships.extend(_realization(classes, interface_map))

    structural = _property_relationships(
        list(classes) + list(interfaces), class_map, interface_map
    )
    relationships.extend(structural)

    owned_pairs: Set[_Pair] = {(rel.source_id, rel.target_id) for rel in structural}
    relationships.extend(
        _dependencies(list(classes) + list(interfaces), class_map, interface_map, owned_pairs)
    )

    unique = _dedupe(relationships)
    logger.debug(
        "Analyzed %d classes and %d interfaces: %d relationships",
        len(classes),
        len(interfaces),
        len(unique),
    )
    return unique


def analyze_entities(entities: Iterable[TypeEntity]) -> List[Relationship]:
    """Convenience wrapper for a mixed list of classes and interfaces."""
    classes: List[TypeEntity] = []
    interfaces: List[TypeEntity] = []
    for entity in entities:
        if entity.is_class:
            classes.append(entity)
        elif entity.is_interface:
            interfaces.append(entity)
        else:
            raise ValueError(f"Unknown entity kind: {entity.kind!r}")
    return analyze(classes, interfaces)


def relationship_id(source: TypeEntity, target: TypeEntity, rel_type: RelationshipType) -> str:
    return f"rel_{source.name}_{target.name}_{rel_type.value}"


def _relationship(
    source: TypeEntity, target: TypeEntity, rel_type: RelationshipType
) -> Relationship:
    return Relationship(
        id=relationship_id(source, target, rel_type),
        type=rel_type,
        source_id=source.id,
        target_id=target.id,
    )


def _class_inheritance(
    classes: Sequence[TypeEntity], class_map: Dict[str, TypeEntity]
) -> List[Relationship]:
    edges: List[Relationship] = []
    for cls in classes:
        if not cls.parent_class_name:
            continue
        parent = class_map.get(cls.parent_class_name)
        if parent is not None:
            edges.append(_relationship(cls, parent, RelationshipType.INHERITANCE))
    return edges


def _interface_inheritance(
    interfaces: Sequence[TypeEntity], interface_map: Dict[str, TypeEntity]
) -> List[Relationship]:
    edges: List[Relationship] = []
    for iface in interfaces:
        for name in iface.extended_interface_names:
            parent = interface_map.get(name)
            if parent is not None:
                edges.append(_relationship(iface, parent, RelationshipType.INHERITANCE))
    return edges


def _realization(
    classes: Sequence[TypeEntity], interface_map: Dict[str, TypeEntity]
) -> List[Relationship]:
    edges: List[Relationship] = []
    for cls in classes:
        for name in cls.implemented_interface_names:
            iface = interface_map.get(name)
            if iface is not None:
                edges.append(_relationship(cls, iface, RelationshipType.REALIZATION))
    return edges


def _property_relationships(
    entities: Sequence[TypeEntity],
    class_map: Dict[str, TypeEntity],
    interface_map: Dict[str, TypeEntity],
) -> List[Relationship]:
    edges: List[Relationship] = []
    for entity in entities:
        rules = rules_for(entity.language)
        for prop in entity.properties:
            base, is_collection = unwrap_type(prop.type, rules)
            if not base or is_built_in(base, rules):
                continue
            target = _lookup(base, class_map, interface_map)
            if target is None:
                continue
            rel_type = (
                RelationshipType.AGGREGATION if is_collection else RelationshipType.ASSOCIATION
            )
            edges.append(_relationship(entity, target, rel_type))
    return edges


def _dependencies(
    entities: Sequence[TypeEntity],
    class_map: Dict[str, TypeEntity],
    interface_map: Dict[str, TypeEntity],
    owned_pairs: Set[_Pair],
) -> List[Relationship]:
    edges: List[Relationship] = []
    for entity in entities:
        rules = rules_for(entity.language)
        for method in entity.methods:
            signature_types = [method.return_type] + [param.type for param in method.parameters]
            for type_string in signature_types:
                for name in referenced_type_names(type_string, rules):
                    target = _lookup(name, class_map, interface_map)
                    if target is None or target.id == entity.id:
                        continue
                    if (entity.id, target.id) in owned_pairs:
                        continue
                    edges.append(_relationship(entity, target, RelationshipType.DEPENDENCY))
    return edges


def _lookup(
    name: str, class_map: Dict[str, TypeEntity], interface_map: Dict[str, TypeEntity]
) -> Optional[TypeEntity]:
    target = class_map.get(name)
    if target is None:
        target = interface_map.get(name)
    return target


def _dedupe(relationships: Iterable[Relationship]) -> List[Relationship]:
    seen: Set[str] = set()
    unique: List[Relationship] = []
    for rel in relationships:
        if rel.id in seen:
            continue
        seen.add(rel.id)
        unique.append(rel)
    return unique


__all__ = ["analyze", "analyze_entities", "relationship_id"]
