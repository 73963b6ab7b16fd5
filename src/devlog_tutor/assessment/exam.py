"""One-question exams that complete a roadmap node when passed."""

from dataclasses import dataclass

import structlog

from devlog_tutor.ai.client import AIService
from devlog_tutor.errors import NodeLockedError, PreconditionError
from devlog_tutor.models.exam import ExamQuestion, ExamResult
from devlog_tutor.models.roadmap import NodeStatus
from devlog_tutor.models.user_profile import UserProfile
from devlog_tutor.roadmap.progression import ProgressionEngine
from devlog_tutor.roadmap.repository import RoadmapRepository

logger = structlog.get_logger()


@dataclass
class ExamAttempt:
    """Question for one node plus the latest grading result, if any."""

    node_id: str
    topic: str
    question: ExamQuestion
    answer: str | None = None
    result: ExamResult | None = None

    def reset(self) -> None:
        """Forget the last result so the same question can be answered again."""
        self.answer = None
        self.result = None


class AssessmentOrchestrator:
    """Runs question/answer/grade cycles against the checked-out roadmap.

    Args:
        ai: AI service client.
        repository: Roadmap repository providing the checked-out graph.
    """

    def __init__(self, ai: AIService, repository: RoadmapRepository):
        self.ai = ai
        self.repository = repository
        self._attempts: dict[str, ExamAttempt] = {}

    def _engine(self) -> ProgressionEngine:
        checkout = self.repository.active
        if checkout is None:
            raise PreconditionError("No roadmap is open")
        return checkout.engine

    def attempt_for(self, node_id: str) -> ExamAttempt | None:
        return self._attempts.get(node_id)

    async def start_exam(self, node_id: str, profile: UserProfile) -> ExamAttempt:
        """Request a fresh question for a node, replacing any earlier attempt."""
        node = self._engine().get(node_id)
        if node.status == NodeStatus.LOCKED:
            raise NodeLockedError(node_id)
        question = await self.ai.generate_exam(node.label, profile)
        attempt = ExamAttempt(node_id=node_id, topic=node.label, question=question)
        self._attempts[node_id] = attempt
        logger.info("exam_started", node_id=node_id, kind=question.kind.value)
        return attempt

    async def submit(self, attempt: ExamAttempt, answer: str) -> ExamResult:
        """Grade ``answer``; a pass completes the node and unlocks its successors."""
        engine = self._engine()
        engine.get(attempt.node_id)
        result = await self.ai.grade_exam(attempt.topic, attempt.question.question, answer)
        attempt.answer = answer
        attempt.result = result
        logger.info("exam_graded", node_id=attempt.node_id, passed=result.passed)
        if result.passed:
            engine.set_status(attempt.node_id, NodeStatus.COMPLETED)
            self._attempts.pop(attempt.node_id, None)
        return result

    def discard(self, node_id: str) -> None:
        self._attempts.pop(node_id, None)
