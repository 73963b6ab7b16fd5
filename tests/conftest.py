"""Shared fixtures: a scripted chat-completions client and a workspace on tmp_path."""

from types import SimpleNamespace

import pytest

from devlog_tutor.ai.client import AIService
from devlog_tutor.config import Settings
from devlog_tutor.models.roadmap import Position, RoadmapEdge, RoadmapNode
from devlog_tutor.models.user_profile import DeveloperRole, ExperienceLevel, UserProfile
from devlog_tutor.storage.blob_store import BlobStore
from devlog_tutor.workspace import Workspace


class FakeStream:
    def __init__(self, pieces: list[str]):
        self.pieces = pieces
        self.closed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for piece in self.pieces:
            yield SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=piece))])

    async def close(self):
        self.closed = True


class FakeCompletions:
    """Returns queued replies in order; a list reply is served as a stream."""

    def __init__(self):
        self.replies: list = []
        self.calls: list[dict] = []
        self.streams: list[FakeStream] = []

    def queue(self, *replies) -> None:
        self.replies.extend(replies)

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if kwargs.get("stream"):
            stream = FakeStream(reply)
            self.streams.append(stream)
            return stream
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def completions():
    return FakeCompletions()


@pytest.fixture
def ai(completions):
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return AIService(api_key="test-key", model="test-model", language="English", client=client)


@pytest.fixture
def profile():
    return UserProfile(
        name="Ada",
        role=DeveloperRole.BACKEND,
        level=ExperienceLevel.MID,
        goal="Design reliable APIs",
    )


@pytest.fixture
def settings(tmp_path):
    return Settings(
        openai_api_key="test-key",
        project_root=tmp_path,
        portfolio_pacing_seconds=0.0,
    )


@pytest.fixture
def store(tmp_path):
    return BlobStore(tmp_path / "data")


@pytest.fixture
def workspace(settings, store, ai):
    return Workspace(settings, store=store, ai=ai)


def make_graph(count: int = 3, chain: bool = True) -> tuple[list[RoadmapNode], list[RoadmapEdge]]:
    nodes = [
        RoadmapNode(
            id=str(i),
            label=f"Topic {i}",
            description=f"About topic {i}",
            position=Position(x=250, y=150 * (i - 1)),
        )
        for i in range(1, count + 1)
    ]
    edges = []
    if chain:
        edges = [
            RoadmapEdge(id=f"e{i}-{i + 1}", source=str(i), target=str(i + 1))
            for i in range(1, count)
        ]
    return nodes, edges
