"""Standalone (roadmap-less) chat session."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from devlog_tutor.models.roadmap import Message, MessageRole

DEFAULT_SESSION_TITLE = "New Session"
TITLE_MAX_CHARS = 30


def derive_title(text: str, max_chars: int = TITLE_MAX_CHARS) -> str:
    """Title from a first message: verbatim, or truncated with an ellipsis."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."


class ChatSession(BaseModel):
    """Conversation with the general mentor, not tied to any roadmap."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str = DEFAULT_SESSION_TITLE
    messages: list[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)
    include_errors: bool = False
    generated_html: str | None = None

    @property
    def user_messages(self) -> list[Message]:
        return [m for m in self.messages if m.role == MessageRole.USER]
