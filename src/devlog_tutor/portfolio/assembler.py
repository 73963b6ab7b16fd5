"""Builds the downloadable portfolio page from completed roadmap nodes."""

import asyncio
import re

import structlog

from devlog_tutor.ai import prompts
from devlog_tutor.ai.client import AIService
from devlog_tutor.errors import PreconditionError
from devlog_tutor.models.roadmap import Roadmap
from devlog_tutor.models.user_profile import UserProfile
from devlog_tutor.roadmap.progression import ProgressionEngine
from devlog_tutor.roadmap.repository import RoadmapRepository

logger = structlog.get_logger()


def download_filename(roadmap: Roadmap) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", roadmap.title.lower()).strip("-")
    return f"{slug or 'portfolio'}.html"


class PortfolioAssembler:
    """Summarises completed nodes one by one, then stitches the final page.

    Per-node summaries are cached on the node, so a retry after a failure
    only requests the ones still missing.

    Args:
        ai: AI service client.
        repository: Roadmap repository; the page is saved on the active roadmap.
        char_limit: Maximum transcript characters sent per summary request.
        pacing_seconds: Flat pause between fresh summary requests.
    """

    def __init__(
        self,
        ai: AIService,
        repository: RoadmapRepository,
        char_limit: int = 15000,
        pacing_seconds: float = 0.8,
    ):
        self.ai = ai
        self.repository = repository
        self.char_limit = char_limit
        self.pacing_seconds = pacing_seconds

    def _engine(self) -> ProgressionEngine:
        checkout = self.repository.active
        if checkout is None:
            raise PreconditionError("No roadmap is open")
        return checkout.engine

    async def summarize_node(self, node_id: str) -> str:
        """Return the node's summary, requesting it only if none is cached."""
        engine = self._engine()
        node = engine.get(node_id)
        if node.summary_html:
            return node.summary_html
        transcript = prompts.format_transcript(node.chat_history, self.char_limit)
        html = await self.ai.generate_module_summary(node.label, transcript)
        engine.set_summary(node_id, html)
        logger.info("module_summary_cached", node_id=node_id, chars=len(html))
        return html

    async def assemble(self, profile: UserProfile | None) -> str:
        """Generate the portfolio page and save it on the active roadmap.

        Raises:
            PreconditionError: No profile, no open roadmap or no completed node.
        """
        if profile is None:
            raise PreconditionError("Profile not found")
        engine = self._engine()
        completed = engine.completed_nodes()
        if not completed:
            raise PreconditionError("No completed modules to build the portfolio from")

        pending = [n for n in completed if not n.summary_html]
        for index, node in enumerate(pending):
            if index > 0:
                await asyncio.sleep(self.pacing_seconds)
            await self.summarize_node(node.id)

        modules_html = "\n\n".join(
            f"<!-- MODULE: {n.label} -->\n{n.summary_html}" for n in completed
        )
        document = await self.ai.assemble_portfolio(
            profile, modules_html, completed=len(completed), total=len(engine.nodes)
        )
        roadmap = self.repository.save_active(document)
        logger.info(
            "portfolio_assembled",
            roadmap_id=roadmap.id if roadmap else None,
            modules=len(completed),
            generated=len(pending),
        )
        return document
