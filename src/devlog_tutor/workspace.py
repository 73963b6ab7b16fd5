"""Per-user application state: profile, roadmaps and the orchestrators."""

import functools

import structlog

from devlog_tutor.ai.client import AIService
from devlog_tutor.assessment.exam import AssessmentOrchestrator
from devlog_tutor.config import Settings, get_settings
from devlog_tutor.errors import PreconditionError
from devlog_tutor.models.roadmap import Roadmap, RoadmapOrigin
from devlog_tutor.models.session import derive_title
from devlog_tutor.models.user_profile import UserProfile
from devlog_tutor.portfolio.assembler import PortfolioAssembler
from devlog_tutor.roadmap.repository import RoadmapRepository
from devlog_tutor.roadmap.templates import get_template
from devlog_tutor.storage.blob_store import BlobStore
from devlog_tutor.storage.user_profile import load_profile, save_profile
from devlog_tutor.tutoring.orchestrator import TutoringOrchestrator

logger = structlog.get_logger()


class Workspace:
    """Everything one user works with, loaded from the blob store at startup.

    Args:
        settings: Application settings.
        store: Blob store; defaults to one under ``settings.data_dir``.
        ai: AI service; defaults to one built from ``settings``.
    """

    def __init__(
        self,
        settings: Settings,
        store: BlobStore | None = None,
        ai: AIService | None = None,
    ):
        if not settings.openai_api_key:
            logger.warning("missing_api_key", hint="set OPENAI_API_KEY")
        self.settings = settings
        self.store = store or BlobStore(settings.data_dir)
        self.ai = ai or AIService(
            api_key=settings.openai_api_key,
            model=settings.tutor_model,
            language=settings.tutor_language,
            base_url=settings.openai_base_url,
        )
        self._profile = load_profile(self.store)
        self.roadmaps = RoadmapRepository(self.store)
        self.tutoring = TutoringOrchestrator(self.ai, self.roadmaps)
        self.assessment = AssessmentOrchestrator(self.ai, self.roadmaps)
        self.portfolio = PortfolioAssembler(
            self.ai,
            self.roadmaps,
            char_limit=settings.summary_char_limit,
            pacing_seconds=settings.portfolio_pacing_seconds,
        )
        logger.info(
            "workspace_loaded",
            has_profile=self._profile is not None,
            roadmap_count=len(self.roadmaps.roadmaps),
        )

    @property
    def profile(self) -> UserProfile | None:
        return self._profile

    def set_profile(self, profile: UserProfile) -> UserProfile:
        """Store the onboarding answers, replacing any previous profile."""
        self._profile = profile
        save_profile(self.store, profile)
        logger.info("profile_saved", role=profile.role.value, level=profile.level.value)
        return profile

    def require_profile(self) -> UserProfile:
        if self._profile is None:
            raise PreconditionError("Profile not found")
        return self._profile

    def create_from_template(self, key: str) -> Roadmap:
        template = get_template(key)
        return self.roadmaps.create(
            template.title,
            template.description,
            template.nodes,
            template.edges,
            RoadmapOrigin.TEMPLATE,
            template_id=key,
        )

    async def create_from_goal(self, goal: str) -> Roadmap:
        """Ask the AI service for a roadmap towards ``goal`` and check it out."""
        goal = goal.strip()
        if not goal:
            raise PreconditionError("Goal must not be empty")
        profile = self.require_profile().model_copy(update={"goal": goal})
        payload = await self.ai.generate_roadmap(profile)
        return self.roadmaps.create(
            derive_title(goal),
            f"AI generated roadmap for: {goal}",
            payload.nodes,
            payload.edges,
            RoadmapOrigin.AI,
        )

    def leave_roadmap(self) -> Roadmap | None:
        """Navigate away from the graph: stop chat streams and save."""
        self.tutoring.cancel()
        return self.roadmaps.save_active()


@functools.lru_cache
def get_workspace() -> Workspace:
    """Get the process-wide workspace singleton."""
    return Workspace(get_settings())
