"""Roadmap graph models: nodes, edges and chat messages."""

import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(StrEnum):
    """Author of a chat message."""

    USER = "user"
    MODEL = "model"


class Message(BaseModel):
    """A single chat message. Messages are never edited in place."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    text: str
    timestamp: datetime = Field(default_factory=datetime.now)


class NodeStatus(StrEnum):
    """Progression states of a topic node, in forward order."""

    LOCKED = "locked"
    UNLOCKED = "unlocked"
    ACTIVE = "active"
    COMPLETED = "completed"

    @property
    def rank(self) -> int:
        return list(NodeStatus).index(self)


class RoadmapOrigin(StrEnum):
    AI = "ai"
    TEMPLATE = "template"


class Position(BaseModel):
    x: float = 0.0
    y: float = 0.0


class RoadmapNode(BaseModel):
    """One topic of a roadmap with its private tutoring transcript."""

    id: str
    label: str
    description: str = ""
    status: NodeStatus = NodeStatus.LOCKED
    chat_history: list[Message] = Field(default_factory=list)
    summary_html: str | None = None
    position: Position = Field(default_factory=Position)


class RoadmapEdge(BaseModel):
    """Completing ``source`` unlocks ``target``."""

    id: str
    source: str
    target: str
    animated: bool = True


class Roadmap(BaseModel):
    """A saved roadmap with its full graph and cached portfolio page."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    description: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    progress: int = 0  # 0-100, derived on save
    origin: RoadmapOrigin = RoadmapOrigin.TEMPLATE
    template_id: str | None = None
    nodes: list[RoadmapNode] = Field(default_factory=list)
    edges: list[RoadmapEdge] = Field(default_factory=list)
    project_html: str | None = None

    @property
    def completed_count(self) -> int:
        return sum(1 for n in self.nodes if n.status == NodeStatus.COMPLETED)


class RoadmapPayload(BaseModel):
    """Graph returned by the roadmap generator."""

    nodes: list[RoadmapNode]
    edges: list[RoadmapEdge] = Field(default_factory=list)
