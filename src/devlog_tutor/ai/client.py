"""Chat-completions client for every AI request the tutor makes."""

import uuid
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, assert_never

import openai
import structlog
from openai import AsyncOpenAI
from pydantic import ValidationError

from devlog_tutor.ai import prompts
from devlog_tutor.ai.llm_utils import parse_json_reply, parse_model_reply, strip_code_fence
from devlog_tutor.errors import AIServiceError, GenerationError
from devlog_tutor.models.exam import ExamQuestion, ExamResult
from devlog_tutor.models.roadmap import Message, MessageRole, RoadmapPayload
from devlog_tutor.models.session import ChatSession
from devlog_tutor.models.user_profile import UserProfile
from devlog_tutor.roadmap.templates import parse_roadmap_payload

logger = structlog.get_logger()


class ContextScope(StrEnum):
    GENERAL = "general"
    TOPIC = "topic"


def to_api_role(role: MessageRole) -> str:
    match role:
        case MessageRole.USER:
            return "user"
        case MessageRole.MODEL:
            return "assistant"
        case _:
            assert_never(role)


@dataclass
class ChatContext:
    """One conversation with the model: system prompt plus running history."""

    scope: ContextScope
    system_prompt: str
    history: list[dict[str, str]] = field(default_factory=list)
    node_id: str | None = None
    topic: str | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    cancelled: bool = False

    @classmethod
    def seeded(
        cls,
        scope: ContextScope,
        system_prompt: str,
        messages: list[Message],
        **kwargs: Any,
    ) -> "ChatContext":
        history = [{"role": to_api_role(m.role), "content": m.text} for m in messages]
        return cls(scope=scope, system_prompt=system_prompt, history=history, **kwargs)

    def cancel(self) -> None:
        self.cancelled = True

    def api_messages(self, text: str) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.system_prompt},
            *self.history,
            {"role": "user", "content": text},
        ]


class AIService:
    """Thin wrapper over the chat-completions API.

    Args:
        api_key: OpenAI API key.
        model: Chat model used for every request.
        language: Language the model answers in.
        base_url: Optional OpenAI-compatible endpoint.
        client: Preconfigured client (used in tests).
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        language: str = "Spanish",
        base_url: str | None = None,
        client: AsyncOpenAI | None = None,
    ):
        self.client = client or AsyncOpenAI(api_key=api_key or "missing", base_url=base_url)
        self.model = model
        self.language = language

    async def _complete(self, prompt: str, json_mode: bool = False) -> str:
        kwargs: dict[str, Any] = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                **kwargs,
            )
        except openai.OpenAIError as e:
            logger.exception("ai_request_failed", json_mode=json_mode)
            raise AIServiceError(str(e)) from e
        return response.choices[0].message.content or ""

    # --- Roadmaps ---

    async def generate_roadmap(self, profile: UserProfile) -> RoadmapPayload:
        text = await self._complete(
            prompts.roadmap_prompt(profile, self.language), json_mode=True
        )
        data = parse_json_reply(text)
        if not isinstance(data.get("nodes"), list) or not data["nodes"]:
            raise GenerationError("Roadmap reply has no nodes")
        try:
            payload = parse_roadmap_payload(data)
        except ValidationError as e:
            logger.warning("roadmap_reply_invalid", errors=e.error_count())
            raise GenerationError("Roadmap reply does not describe a valid graph") from e
        logger.info("roadmap_generated", node_count=len(payload.nodes))
        return payload

    # --- Tutoring ---

    def start_general_context(
        self, history: list[Message], profile: UserProfile
    ) -> ChatContext:
        return ChatContext.seeded(
            ContextScope.GENERAL,
            prompts.mentor_prompt(profile, self.language),
            history,
        )

    def start_topic_context(
        self,
        history: list[Message],
        topic: str,
        profile: UserProfile,
        node_id: str,
    ) -> ChatContext:
        return ChatContext.seeded(
            ContextScope.TOPIC,
            prompts.topic_tutor_prompt(topic, profile, self.language),
            history,
            node_id=node_id,
            topic=topic,
        )

    async def stream_reply(self, context: ChatContext, text: str) -> AsyncIterator[str]:
        """Yield reply fragments for ``text``; records the turn in ``context``.

        The turn is only recorded when the stream runs to completion.
        """
        try:
            stream = await self.client.chat.completions.create(
                model=self.model,
                messages=context.api_messages(text),
                stream=True,
            )
        except openai.OpenAIError as e:
            logger.exception("ai_stream_failed", context_id=context.id)
            raise AIServiceError(str(e)) from e

        reply = ""
        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    reply += delta
                    yield delta
        except openai.OpenAIError as e:
            logger.exception("ai_stream_interrupted", context_id=context.id)
            raise AIServiceError(str(e)) from e
        finally:
            await stream.close()

        context.history.append({"role": "user", "content": text})
        context.history.append({"role": "assistant", "content": reply})

    # --- Exams ---

    async def generate_exam(self, topic: str, profile: UserProfile) -> ExamQuestion:
        text = await self._complete(
            prompts.exam_prompt(topic, profile, self.language), json_mode=True
        )
        return parse_model_reply(text, ExamQuestion)

    async def grade_exam(self, topic: str, question: str, answer: str) -> ExamResult:
        text = await self._complete(
            prompts.grade_prompt(topic, question, answer, self.language), json_mode=True
        )
        return parse_model_reply(text, ExamResult)

    # --- Portfolio ---

    async def generate_module_summary(self, topic: str, transcript: str) -> str:
        text = await self._complete(
            prompts.module_summary_prompt(topic, transcript, self.language)
        )
        return strip_code_fence(text)

    async def assemble_portfolio(
        self,
        profile: UserProfile,
        modules_html: str,
        completed: int,
        total: int,
    ) -> str:
        text = await self._complete(
            prompts.portfolio_prompt(profile, modules_html, completed, total, self.language)
        )
        return strip_code_fence(text)

    async def generate_session_document(self, session: ChatSession) -> str:
        transcript = prompts.format_transcript(session.messages)
        text = await self._complete(
            prompts.session_document_prompt(transcript, session.include_errors, self.language)
        )
        return strip_code_fence(text)
