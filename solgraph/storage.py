"""JSON serialization helpers for entity graphs and entity lists."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

import networkx as nx
from networkx.readwrite import json_graph

from .models import Entity


def stamp_snapshot(graph: nx.DiGraph, source_root: str | Path | None) -> nx.DiGraph:
    graph.graph["snapshot"] = {
        "source_root": str(source_root) if source_root is not None else None,
        "generated_at": datetime.now(timezone.utc).isoformat(),
    }
    return graph


def save_graph(graph: nx.DiGraph, path: str | Path) -> None:
    data = json_graph.node_link_data(graph)
    Path(path).write_text(json.dumps(data, indent=2), encoding="utf-8")


def load_graph(path: str | Path) -> nx.DiGraph:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return json_graph.node_link_graph(data, directed=True)


def entities_to_data(entities: Iterable[Entity]) -> list[dict[str, Any]]:
    return [entity.to_dict() for entity in entities]


def save_entities(entities: Iterable[Entity], path: str | Path) -> None:
    Path(path).write_text(json.dumps(entities_to_data(entities), indent=2), encoding="utf-8")
