"""NetworkX graph construction from extracted entities."""

from __future__ import annotations

from typing import Iterable

import networkx as nx

from .models import Entity


NODE_FILE = "File"
NODE_ENTITY = "Entity"

EDGE_DEFINES = "DEFINES"
EDGE_IMPORTS = "IMPORTS"
EDGE_REALIZES = "REALIZES"
EDGE_ASSOCIATES = "ASSOCIATES"


def file_node_id(path: str) -> str:
    return f"file:{path}"


def entity_node_id(path: str | None, name: str) -> str:
    if path:
        return f"entity:{path}:{name}"
    return f"entity:external:{name}"


def build_graph(entities: Iterable[Entity]) -> nx.DiGraph:
    entities = list(entities)
    graph = nx.DiGraph()
    index = _EntityIndex()

    for entity in entities:
        file_id = file_node_id(entity.relative_path)
        _ensure_node(
            graph,
            file_id,
            type=NODE_FILE,
            name=entity.relative_path,
            path=entity.absolute_path,
        )
        node_id = entity_node_id(entity.relative_path, entity.name)
        _ensure_node(
            graph,
            node_id,
            type=NODE_ENTITY,
            name=entity.name,
            stereotype=entity.stereotype.value,
            path=entity.relative_path,
        )
        graph.add_edge(file_id, node_id, type=EDGE_DEFINES)
        index.add(entity, node_id)

    files_by_path = {entity.absolute_path: entity.relative_path for entity in entities}
    for entity in entities:
        file_id = file_node_id(entity.relative_path)
        for imported in entity.imported_paths:
            target_id = file_node_id(files_by_path.get(imported, imported))
            _ensure_node(graph, target_id, type=NODE_FILE, name=imported, path=imported)
            graph.add_edge(file_id, target_id, type=EDGE_IMPORTS)

        source_id = entity_node_id(entity.relative_path, entity.name)
        for target, association in entity.associations.items():
            target_id = index.resolve(entity.relative_path, target)
            if target_id is None:
                target_id = entity_node_id(None, target)
                _ensure_node(
                    graph,
                    target_id,
                    type=NODE_ENTITY,
                    name=target,
                    path=None,
                    external=True,
                )
            graph.add_edge(
                source_id,
                target_id,
                type=EDGE_REALIZES if association.realization else EDGE_ASSOCIATES,
                reference_type=association.reference_type.value,
                realization=association.realization,
            )

    return graph


def entities_connected_to(
    entities: Iterable[Entity], base_names: Iterable[str]
) -> list[Entity]:
    """Keep the entities reachable from the named base contracts, in input order."""
    entities = list(entities)
    graph = build_graph(entities)
    wanted = set(base_names)

    reachable: set[str] = set()
    for entity in entities:
        if entity.name not in wanted:
            continue
        node_id = entity_node_id(entity.relative_path, entity.name)
        reachable.add(node_id)
        reachable.update(
            target
            for target in nx.descendants(graph, node_id)
            if graph.nodes[target].get("type") == NODE_ENTITY
        )

    return [
        entity
        for entity in entities
        if entity_node_id(entity.relative_path, entity.name) in reachable
    ]


def _ensure_node(graph: nx.DiGraph, node_id: str, **attrs) -> None:
    if node_id not in graph:
        graph.add_node(node_id, **attrs)


class _EntityIndex:
    def __init__(self) -> None:
        self._by_path_name: dict[tuple[str, str], str] = {}
        self._by_name: dict[str, list[str]] = {}

    def add(self, entity: Entity, node_id: str) -> None:
        self._by_path_name.setdefault((entity.relative_path, entity.name), node_id)
        self._by_name.setdefault(entity.name, []).append(node_id)

    def resolve(self, path: str, name: str) -> str | None:
        if (path, name) in self._by_path_name:
            return self._by_path_name[(path, name)]
        candidates = self._by_name.get(name)
        if not candidates:
            return None
        return candidates[0]
