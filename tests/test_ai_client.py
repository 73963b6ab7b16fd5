"""Tests for the AI service wrapper against a scripted completions client."""

import json

import openai
import pytest

from devlog_tutor.ai.client import ChatContext, ContextScope
from devlog_tutor.errors import AIServiceError, GenerationError
from devlog_tutor.models.exam import ExamKind
from devlog_tutor.models.roadmap import Message, MessageRole, NodeStatus
from devlog_tutor.models.session import ChatSession

GRAPH_REPLY = {
    "nodes": [
        {"id": "1", "type": "custom", "data": {"label": "HTTP", "status": "unlocked",
                                               "description": "Verbs"},
         "position": {"x": 250, "y": 0}},
        {"id": 2, "label": "REST", "status": "locked", "description": "Resources",
         "position": {"x": 250, "y": 250}},
    ],
    "edges": [{"id": "e1-2", "source": "1", "target": 2, "animated": True}],
}


class TestRoadmapGeneration:
    async def test_parses_fenced_graph(self, ai, completions, profile):
        completions.queue("```json\n" + json.dumps(GRAPH_REPLY) + "\n```")

        payload = await ai.generate_roadmap(profile)

        assert [n.label for n in payload.nodes] == ["HTTP", "REST"]
        assert payload.nodes[0].status == NodeStatus.UNLOCKED
        assert payload.nodes[1].id == "2"
        assert payload.edges[0].target == "2"
        call = completions.calls[0]
        assert call["response_format"] == {"type": "json_object"}
        assert "Design reliable APIs" in call["messages"][0]["content"]

    async def test_unparseable_reply(self, ai, completions, profile):
        completions.queue("I cannot do that")
        with pytest.raises(GenerationError):
            await ai.generate_roadmap(profile)

    async def test_node_without_label(self, ai, completions, profile):
        completions.queue(json.dumps({"nodes": [{"id": "1"}], "edges": []}))
        with pytest.raises(GenerationError):
            await ai.generate_roadmap(profile)

    async def test_integer_edge_ids_stringified(self, ai, completions, profile):
        reply = {
            "nodes": [{"id": 1, "label": "HTTP"}, {"id": 2, "label": "REST"}],
            "edges": [{"id": 1, "source": 1, "target": 2}],
        }
        completions.queue(json.dumps(reply))

        payload = await ai.generate_roadmap(profile)

        assert payload.edges[0].id == "1"
        assert (payload.edges[0].source, payload.edges[0].target) == ("1", "2")

    @pytest.mark.parametrize("reply", [{"roadmap": []}, {"nodes": []}, {"nodes": "none"}])
    async def test_reply_without_nodes(self, ai, completions, profile, reply):
        completions.queue(json.dumps(reply))
        with pytest.raises(GenerationError):
            await ai.generate_roadmap(profile)


class TestExams:
    async def test_generate_exam(self, ai, completions, profile):
        completions.queue('{"question": "Write a middleware", "type": "code"}')
        question = await ai.generate_exam("Express", profile)
        assert question.question == "Write a middleware"
        assert question.kind == ExamKind.CODE

    async def test_grade_exam(self, ai, completions):
        completions.queue('```json\n{"passed": true, "feedback": "Great"}\n```')
        result = await ai.grade_exam("Express", "Write a middleware", "app.use(...)")
        assert result.passed is True
        assert "app.use(...)" in completions.calls[0]["messages"][0]["content"]

    async def test_grade_exam_missing_verdict(self, ai, completions):
        completions.queue('{"feedback": "hmm"}')
        with pytest.raises(GenerationError):
            await ai.grade_exam("t", "q", "a")

    async def test_transport_error_wrapped(self, ai, completions, profile):
        completions.queue(openai.OpenAIError("boom"))
        with pytest.raises(AIServiceError):
            await ai.generate_exam("t", profile)


class TestStreaming:
    def test_context_seeded_with_history(self, ai, profile):
        history = [
            Message(role=MessageRole.USER, text="hi"),
            Message(role=MessageRole.MODEL, text="hello"),
        ]
        context = ai.start_topic_context(history, "Closures", profile, node_id="3")

        assert context.scope == ContextScope.TOPIC
        assert context.history == [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello"},
        ]
        assert "Closures" in context.system_prompt

    async def test_stream_records_turn(self, ai, completions):
        completions.queue(["Hel", "lo"])
        context = ChatContext(scope=ContextScope.GENERAL, system_prompt="be nice")

        pieces = [p async for p in ai.stream_reply(context, "hey")]

        assert pieces == ["Hel", "lo"]
        assert context.history[-2:] == [
            {"role": "user", "content": "hey"},
            {"role": "assistant", "content": "Hello"},
        ]
        sent = completions.calls[0]["messages"]
        assert sent[0] == {"role": "system", "content": "be nice"}
        assert sent[-1] == {"role": "user", "content": "hey"}
        assert completions.streams[0].closed


class TestDocuments:
    async def test_module_summary_strips_fence(self, ai, completions):
        completions.queue("```html\n<div>card</div>\n```")
        html = await ai.generate_module_summary("REST", "USER: hi")
        assert html == "<div>card</div>"

    async def test_session_document_mentions_errors(self, ai, completions):
        completions.queue("<html></html>")
        session = ChatSession(
            messages=[Message(role=MessageRole.USER, text="why?")], include_errors=True
        )
        await ai.generate_session_document(session)
        prompt = completions.calls[0]["messages"][0]["content"]
        assert "Mistakes & lessons" in prompt
        assert "USER: why?" in prompt
