"""Roadmap collection with a single checked-out working copy."""

from dataclasses import dataclass, field

import structlog

from devlog_tutor.errors import RoadmapNotFoundError
from devlog_tutor.models.roadmap import (
    NodeStatus,
    Roadmap,
    RoadmapEdge,
    RoadmapNode,
    RoadmapOrigin,
)
from devlog_tutor.roadmap.progression import ProgressionEngine, calculate_progress
from devlog_tutor.storage.blob_store import BlobStore
from devlog_tutor.storage.roadmaps import load_roadmaps, save_roadmaps

logger = structlog.get_logger()


@dataclass
class Checkout:
    """Live copy of one roadmap's graph, detached from the stored record."""

    roadmap_id: str
    nodes: list[RoadmapNode]
    edges: list[RoadmapEdge]
    engine: ProgressionEngine = field(init=False)

    def __post_init__(self) -> None:
        self.engine = ProgressionEngine(self.nodes, self.edges)

    @classmethod
    def of(cls, roadmap: Roadmap) -> "Checkout":
        return cls(
            roadmap_id=roadmap.id,
            nodes=[n.model_copy(deep=True) for n in roadmap.nodes],
            edges=[e.model_copy(deep=True) for e in roadmap.edges],
        )


def initial_statuses(nodes: list[RoadmapNode]) -> list[RoadmapNode]:
    """Fresh copies of ``nodes`` with only the first one unlocked."""
    prepared = []
    for index, node in enumerate(nodes):
        status = NodeStatus.UNLOCKED if index == 0 else NodeStatus.LOCKED
        prepared.append(node.model_copy(update={"status": status}, deep=True))
    return prepared


class RoadmapRepository:
    """Owns saved roadmaps and the one roadmap currently being worked on.

    Edits made through the checkout's engine reach the stored record only
    when ``save_active`` is called.

    Args:
        store: Blob store holding the serialized roadmap collection.
    """

    def __init__(self, store: BlobStore):
        self.store = store
        self._roadmaps: list[Roadmap] = load_roadmaps(store)
        self._active: Checkout | None = None

    @property
    def active(self) -> Checkout | None:
        return self._active

    @property
    def roadmaps(self) -> list[Roadmap]:
        return list(self._roadmaps)

    def get(self, roadmap_id: str) -> Roadmap:
        for roadmap in self._roadmaps:
            if roadmap.id == roadmap_id:
                return roadmap
        raise RoadmapNotFoundError(roadmap_id)

    def create(
        self,
        title: str,
        description: str,
        nodes: list[RoadmapNode],
        edges: list[RoadmapEdge],
        origin: RoadmapOrigin,
        template_id: str | None = None,
    ) -> Roadmap:
        """Store a new roadmap first in the list and check it out."""
        roadmap = Roadmap(
            title=title,
            description=description,
            nodes=initial_statuses(nodes),
            edges=[e.model_copy(deep=True) for e in edges],
            origin=origin,
            template_id=template_id,
        )
        self._roadmaps.insert(0, roadmap)
        self._persist()
        self._active = Checkout.of(roadmap)
        logger.info(
            "roadmap_created",
            roadmap_id=roadmap.id,
            origin=origin.value,
            node_count=len(roadmap.nodes),
        )
        return roadmap

    def delete(self, roadmap_id: str) -> None:
        roadmap = self.get(roadmap_id)
        self._roadmaps.remove(roadmap)
        self._persist()
        if self._active and self._active.roadmap_id == roadmap_id:
            self._active = None
        logger.info("roadmap_deleted", roadmap_id=roadmap_id)

    def open(self, roadmap_id: str) -> Checkout:
        roadmap = self.get(roadmap_id)
        self._active = Checkout.of(roadmap)
        logger.info("roadmap_opened", roadmap_id=roadmap_id)
        return self._active

    def save_active(self, document: str | None = None) -> Roadmap | None:
        """Write the live graph and its progress back to the stored record.

        Args:
            document: New portfolio page. The cached one is kept when omitted.

        Returns:
            The updated record, or None when nothing is checked out.
        """
        if self._active is None:
            return None
        roadmap = self.get(self._active.roadmap_id)
        roadmap.nodes = [n.model_copy(deep=True) for n in self._active.nodes]
        roadmap.edges = [e.model_copy(deep=True) for e in self._active.edges]
        roadmap.progress = calculate_progress(roadmap.nodes)
        if document is not None:
            roadmap.project_html = document
        self._persist()
        logger.info(
            "roadmap_saved",
            roadmap_id=roadmap.id,
            progress=roadmap.progress,
            has_document=roadmap.project_html is not None,
        )
        return roadmap

    commit = save_active

    def discard(self) -> None:
        """Drop the working copy without saving it."""
        if self._active is not None:
            logger.info("roadmap_discarded", roadmap_id=self._active.roadmap_id)
        self._active = None

    def _persist(self) -> None:
        save_roadmaps(self.store, self._roadmaps)
