"""Streams tutor replies into either the general session or a node's chat."""

from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import Any, assert_never

import structlog

from devlog_tutor.ai import prompts
from devlog_tutor.ai.client import AIService, ChatContext, ContextScope
from devlog_tutor.errors import (
    NodeLockedError,
    NotInitializedError,
    PreconditionError,
    StaleContextError,
)
from devlog_tutor.models.roadmap import Message, MessageRole, NodeStatus
from devlog_tutor.models.session import ChatSession, derive_title
from devlog_tutor.models.user_profile import UserProfile
from devlog_tutor.roadmap.progression import ProgressionEngine
from devlog_tutor.roadmap.repository import RoadmapRepository

logger = structlog.get_logger()


class CancellationToken:
    """Flag checked between streamed chunks; once set, writes stop."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class TutoringOrchestrator:
    """Keeps exactly one live chat context and writes its turns to history.

    Starting a new context cancels the previous one, so a stream still
    running against the old context stops before its next write.

    Args:
        ai: AI service client.
        repository: Roadmap repository providing the checked-out graph.
    """

    def __init__(self, ai: AIService, repository: RoadmapRepository):
        self.ai = ai
        self.repository = repository
        self._context: ChatContext | None = None
        self._session: ChatSession | None = None

    @property
    def context(self) -> ChatContext | None:
        return self._context

    # --- General session ---

    @property
    def session(self) -> ChatSession | None:
        return self._session

    def update_session(self, **updates: Any) -> ChatSession:
        """Merge ``updates`` into the current session, creating it if absent."""
        if self._session is None:
            self._session = ChatSession(**updates)
            logger.info("chat_session_created", session_id=self._session.id)
        else:
            self._session = self._session.model_copy(update=updates)
        return self._session

    def start_general(self, profile: UserProfile) -> ChatContext:
        session = self._session or self.update_session()
        context = self.ai.start_general_context(session.messages, profile)
        return self._activate(context)

    # --- Topic tutoring ---

    def _engine(self) -> ProgressionEngine:
        checkout = self.repository.active
        if checkout is None:
            raise PreconditionError("No roadmap is open")
        return checkout.engine

    def start_topic(self, node_id: str, profile: UserProfile) -> ChatContext:
        """Open the tutor for a node; first open seeds a welcome and marks it active."""
        engine = self._engine()
        node = engine.get(node_id)
        if node.status == NodeStatus.LOCKED:
            raise NodeLockedError(node_id)

        if not node.chat_history:
            context = self.ai.start_topic_context([], node.label, profile, node_id)
            welcome = Message(role=MessageRole.MODEL, text=prompts.topic_welcome(node.label))
            engine.set_chat_history(node_id, [welcome])
            engine.mark_active(node_id)
        else:
            context = self.ai.start_topic_context(
                node.chat_history, node.label, profile, node_id
            )
        return self._activate(context)

    # --- Turns ---

    def _activate(self, context: ChatContext) -> ChatContext:
        if self._context is not None:
            self._context.cancel()
        self._context = context
        logger.info(
            "chat_context_started",
            context_id=context.id,
            scope=context.scope.value,
            node_id=context.node_id,
        )
        return context

    def cancel(self) -> None:
        """Stop the live context, e.g. when the user navigates away."""
        if self._context is not None:
            self._context.cancel()
            logger.info("chat_context_cancelled", context_id=self._context.id)
            self._context = None

    def _read_history(self, context: ChatContext) -> list[Message]:
        match context.scope:
            case ContextScope.TOPIC:
                return list(self._engine().get(context.node_id).chat_history)
            case ContextScope.GENERAL:
                return list(self._session.messages if self._session else [])
            case _:
                assert_never(context.scope)

    def _write_history(
        self, context: ChatContext, messages: list[Message], title: str | None = None
    ) -> None:
        match context.scope:
            case ContextScope.TOPIC:
                self._engine().set_chat_history(context.node_id, messages)
            case ContextScope.GENERAL:
                updates: dict[str, Any] = {"messages": messages}
                if title is not None:
                    updates["title"] = title
                self.update_session(**updates)
            case _:
                assert_never(context.scope)

    async def send_message(
        self,
        context: ChatContext | None,
        text: str,
        cancel_token: CancellationToken | None = None,
    ) -> AsyncIterator[str]:
        """Send ``text`` and yield the accumulated reply after each write.

        The user message is written first; then the model message is
        rewritten with progressively longer text for every chunk.

        Raises:
            NotInitializedError: No context was ever started.
            StaleContextError: ``context`` is not the live context.
        """
        if self._context is None or context is None:
            raise NotInitializedError("Chat not initialized")
        if context is not self._context or context.cancelled:
            raise StaleContextError(f"Chat context {context.id} is no longer active")

        history = self._read_history(context)
        title = None
        if context.scope == ContextScope.GENERAL and not history:
            title = derive_title(text)
        user_message = Message(role=MessageRole.USER, text=text)
        history.append(user_message)
        self._write_history(context, history, title)

        placeholder = Message(role=MessageRole.MODEL, text="")
        reply = ""
        async with aclosing(self.ai.stream_reply(context, text)) as chunks:
            async for chunk in chunks:
                if context.cancelled or (cancel_token and cancel_token.cancelled):
                    logger.info("chat_stream_cancelled", context_id=context.id)
                    return
                reply += chunk
                message = placeholder.model_copy(update={"text": reply})
                self._write_history(context, [*history, message])
                yield reply
        logger.info("chat_turn_complete", context_id=context.id, reply_chars=len(reply))

