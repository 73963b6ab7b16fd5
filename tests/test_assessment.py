"""Tests for the exam cycle and its effect on node progression."""

import pytest

from conftest import make_graph
from devlog_tutor.assessment.exam import AssessmentOrchestrator
from devlog_tutor.errors import GenerationError, NodeLockedError, NodeNotFoundError
from devlog_tutor.models.exam import ExamKind
from devlog_tutor.models.roadmap import NodeStatus, RoadmapOrigin
from devlog_tutor.roadmap.repository import RoadmapRepository


@pytest.fixture
def repo(store):
    repo = RoadmapRepository(store)
    nodes, edges = make_graph(3)
    repo.create("Backend", "d", nodes, edges, RoadmapOrigin.TEMPLATE)
    return repo


@pytest.fixture
def exams(ai, repo):
    return AssessmentOrchestrator(ai, repo)


class TestStartExam:
    async def test_question_held_on_attempt(self, exams, completions, profile):
        completions.queue('{"question": "What is idempotency?", "type": "concept"}')

        attempt = await exams.start_exam("1", profile)

        assert attempt.node_id == "1"
        assert attempt.topic == "Topic 1"
        assert attempt.question.kind == ExamKind.CONCEPT
        assert attempt.result is None
        assert exams.attempt_for("1") is attempt
        assert '"Topic 1"' in completions.calls[0]["messages"][0]["content"]

    async def test_unparseable_question(self, exams, completions, profile):
        completions.queue("no json here")
        with pytest.raises(GenerationError):
            await exams.start_exam("1", profile)
        assert exams.attempt_for("1") is None

    async def test_locked_node_refused(self, exams, completions, repo, profile):
        with pytest.raises(NodeLockedError):
            await exams.start_exam("3", profile)
        assert completions.calls == []
        assert exams.attempt_for("3") is None
        assert repo.active.engine.get("3").status == NodeStatus.LOCKED

    async def test_unknown_node(self, exams, completions, profile):
        with pytest.raises(NodeNotFoundError):
            await exams.start_exam("99", profile)
        assert completions.calls == []


class TestSubmit:
    async def test_pass_completes_and_unlocks(self, exams, completions, repo, profile):
        completions.queue(
            '{"question": "Q", "type": "code"}',
            '{"passed": true, "feedback": "Well done"}',
        )
        attempt = await exams.start_exam("1", profile)

        result = await exams.submit(attempt, "my answer")

        assert result.passed
        engine = repo.active.engine
        assert engine.get("1").status == NodeStatus.COMPLETED
        assert engine.get("2").status == NodeStatus.UNLOCKED
        assert engine.get("3").status == NodeStatus.LOCKED
        assert exams.attempt_for("1") is None

    async def test_fail_then_retry_same_question(self, exams, completions, repo, profile):
        completions.queue(
            '{"question": "Explain caching", "type": "concept"}',
            '{"passed": false, "feedback": "Too vague"}',
            '{"passed": true, "feedback": "Better"}',
        )
        attempt = await exams.start_exam("1", profile)

        failed = await exams.submit(attempt, "it is fast")
        assert not failed.passed
        assert attempt.result == failed
        assert repo.active.engine.get("1").status == NodeStatus.UNLOCKED

        attempt.reset()
        assert attempt.result is None
        passed = await exams.submit(attempt, "it stores computed results close to the reader")

        assert passed.passed
        assert len(completions.calls) == 3
        assert "Explain caching" in completions.calls[2]["messages"][0]["content"]
        assert repo.active.engine.get("1").status == NodeStatus.COMPLETED

    async def test_unparseable_grade(self, exams, completions, repo, profile):
        completions.queue('{"question": "Q", "type": "code"}', "PASS!")
        attempt = await exams.start_exam("1", profile)
        with pytest.raises(GenerationError):
            await exams.submit(attempt, "a")
        assert repo.active.engine.get("1").status == NodeStatus.UNLOCKED
