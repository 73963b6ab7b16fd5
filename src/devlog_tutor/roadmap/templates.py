"""Built-in roadmap templates and normalisation of generated graphs."""

from typing import Any

from devlog_tutor.config import load_templates
from devlog_tutor.errors import NotFoundError
from devlog_tutor.models.roadmap import RoadmapEdge, RoadmapNode, RoadmapPayload


class RoadmapTemplate:
    """A static roadmap users can start from without calling the AI service."""

    def __init__(self, key: str, data: dict[str, Any]):
        self.key = key
        self.title = data.get("title", key)
        self.description = data.get("description", "")
        payload = parse_roadmap_payload(data)
        self.nodes: list[RoadmapNode] = payload.nodes
        self.edges: list[RoadmapEdge] = payload.edges


def get_templates() -> dict[str, RoadmapTemplate]:
    return {key: RoadmapTemplate(key, data) for key, data in load_templates().items()}


def get_template(key: str) -> RoadmapTemplate:
    templates = get_templates()
    if key not in templates:
        raise NotFoundError(f"Template not found: {key}")
    return templates[key]


def _flatten_node(raw: dict[str, Any]) -> dict[str, Any]:
    # Graph-library shape keeps label/status/description under "data"
    node = {k: v for k, v in raw.items() if k not in ("data", "type")}
    node.update(raw.get("data") or {})
    node["id"] = str(node.get("id", ""))
    return node


def parse_roadmap_payload(data: dict[str, Any]) -> RoadmapPayload:
    """Build a graph from either the flat or the graph-library node shape."""
    nodes = [_flatten_node(n) for n in data.get("nodes", [])]
    edges = []
    for index, raw in enumerate(data.get("edges", [])):
        source, target = str(raw.get("source", "")), str(raw.get("target", ""))
        edges.append({
            "id": str(raw.get("id") or f"e{source}-{target}-{index}"),
            "source": source,
            "target": target,
            "animated": raw.get("animated", True),
        })
    return RoadmapPayload(nodes=nodes, edges=edges)
