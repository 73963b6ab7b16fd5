"""Roadmap collection persistence. Each roadmap inlines its whole graph."""

from ..models.roadmap import Roadmap
from .blob_store import ROADMAPS_BLOB, BlobStore


def load_roadmaps(store: BlobStore) -> list[Roadmap]:
    """Read the saved roadmaps. Returns an empty list if none were saved."""
    data = store.read(ROADMAPS_BLOB)
    if not data:
        return []
    return [Roadmap(**item) for item in data]


def save_roadmaps(store: BlobStore, roadmaps: list[Roadmap]) -> None:
    store.write(ROADMAPS_BLOB, [r.model_dump(mode="json") for r in roadmaps])
