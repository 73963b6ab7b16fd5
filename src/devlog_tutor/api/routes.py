"""REST API routes for profile, roadmaps, exams, portfolio and session."""

import structlog
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel

from devlog_tutor.errors import (
    AIServiceError,
    DevlogError,
    GenerationError,
    NotFoundError,
    NotInitializedError,
    PreconditionError,
    StaleContextError,
)
from devlog_tutor.models.exam import ExamResult
from devlog_tutor.models.roadmap import Roadmap
from devlog_tutor.models.session import ChatSession
from devlog_tutor.models.user_profile import UserProfile
from devlog_tutor.portfolio.assembler import download_filename
from devlog_tutor.roadmap.templates import get_templates
from devlog_tutor.workspace import Workspace, get_workspace

logger = structlog.get_logger()
router = APIRouter(prefix="/api")

ERROR_STATUS: list[tuple[type[DevlogError], int]] = [
    (NotFoundError, 404),
    (PreconditionError, 409),
    (NotInitializedError, 409),
    (StaleContextError, 409),
    (GenerationError, 502),
    (AIServiceError, 502),
]


def status_for(error: DevlogError) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return 500


async def devlog_error_handler(request: Request, exc: DevlogError) -> JSONResponse:
    status = status_for(exc)
    logger.warning("request_failed", path=request.url.path, error=str(exc), status=status)
    return JSONResponse({"error": type(exc).__name__, "detail": str(exc)}, status_code=status)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DevlogError, devlog_error_handler)


class TemplateRequest(BaseModel):
    template_id: str


class GoalRequest(BaseModel):
    goal: str


class AnswerRequest(BaseModel):
    answer: str


class SaveRequest(BaseModel):
    document: str | None = None


class SessionUpdate(BaseModel):
    title: str | None = None
    include_errors: bool | None = None


def _active_graph(workspace: Workspace) -> dict:
    checkout = workspace.roadmaps.active
    if checkout is None:
        return {"roadmap_id": None, "nodes": [], "edges": []}
    return {
        "roadmap_id": checkout.roadmap_id,
        "nodes": [n.model_dump(mode="json") for n in checkout.nodes],
        "edges": [e.model_dump(mode="json") for e in checkout.edges],
    }


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


# --- Profile ---

@router.get("/profile")
async def get_profile(workspace: Workspace = Depends(get_workspace)) -> UserProfile | None:
    return workspace.profile


@router.put("/profile")
async def put_profile(
    profile: UserProfile, workspace: Workspace = Depends(get_workspace)
) -> UserProfile:
    return workspace.set_profile(profile)


# --- Roadmaps ---

@router.get("/templates")
async def list_templates() -> list[dict]:
    return [
        {"id": t.key, "title": t.title, "description": t.description, "node_count": len(t.nodes)}
        for t in get_templates().values()
    ]


@router.get("/roadmaps")
async def list_roadmaps(workspace: Workspace = Depends(get_workspace)) -> list[dict]:
    """Dashboard summaries, newest first."""
    return [
        {
            "id": r.id,
            "title": r.title,
            "description": r.description,
            "created_at": r.created_at.isoformat(),
            "progress": r.progress,
            "origin": r.origin.value,
            "node_count": len(r.nodes),
            "has_portfolio": r.project_html is not None,
        }
        for r in workspace.roadmaps.roadmaps
    ]


@router.post("/roadmaps/template")
async def create_from_template(
    body: TemplateRequest, workspace: Workspace = Depends(get_workspace)
) -> Roadmap:
    return workspace.create_from_template(body.template_id)


@router.post("/roadmaps/generate")
async def create_from_goal(
    body: GoalRequest, workspace: Workspace = Depends(get_workspace)
) -> Roadmap:
    return await workspace.create_from_goal(body.goal)


@router.get("/roadmaps/active")
async def get_active(workspace: Workspace = Depends(get_workspace)) -> dict:
    return _active_graph(workspace)


@router.post("/roadmaps/active/save")
async def save_active(
    body: SaveRequest | None = None, workspace: Workspace = Depends(get_workspace)
) -> Roadmap | None:
    return workspace.roadmaps.save_active(body.document if body else None)


@router.post("/roadmaps/active/discard")
async def discard_active(workspace: Workspace = Depends(get_workspace)) -> dict:
    workspace.tutoring.cancel()
    workspace.roadmaps.discard()
    return {"status": "discarded"}


@router.post("/roadmaps/{roadmap_id}/open")
async def open_roadmap(roadmap_id: str, workspace: Workspace = Depends(get_workspace)) -> dict:
    workspace.tutoring.cancel()
    workspace.roadmaps.open(roadmap_id)
    return _active_graph(workspace)


@router.delete("/roadmaps/{roadmap_id}")
async def delete_roadmap(roadmap_id: str, workspace: Workspace = Depends(get_workspace)) -> dict:
    workspace.roadmaps.delete(roadmap_id)
    return {"status": "deleted"}


# --- Exams ---

@router.post("/nodes/{node_id}/exam")
async def start_exam(node_id: str, workspace: Workspace = Depends(get_workspace)) -> dict:
    attempt = await workspace.assessment.start_exam(node_id, workspace.require_profile())
    return {"node_id": node_id, **attempt.question.model_dump(by_alias=True)}


@router.post("/nodes/{node_id}/exam/submit")
async def submit_exam(
    node_id: str, body: AnswerRequest, workspace: Workspace = Depends(get_workspace)
) -> ExamResult:
    attempt = workspace.assessment.attempt_for(node_id)
    if attempt is None:
        raise NotFoundError(f"No exam in progress for node {node_id}")
    return await workspace.assessment.submit(attempt, body.answer)


@router.post("/nodes/{node_id}/exam/retry")
async def retry_exam(node_id: str, workspace: Workspace = Depends(get_workspace)) -> dict:
    attempt = workspace.assessment.attempt_for(node_id)
    if attempt is None:
        raise NotFoundError(f"No exam in progress for node {node_id}")
    attempt.reset()
    return {"node_id": node_id, **attempt.question.model_dump(by_alias=True)}


# --- Portfolio ---

@router.post("/portfolio")
async def build_portfolio(workspace: Workspace = Depends(get_workspace)) -> dict:
    document = await workspace.portfolio.assemble(workspace.profile)
    return {"html": document}


@router.get("/portfolio/{roadmap_id}/download")
async def download_portfolio(
    roadmap_id: str, workspace: Workspace = Depends(get_workspace)
) -> HTMLResponse:
    roadmap = workspace.roadmaps.get(roadmap_id)
    if not roadmap.project_html:
        raise NotFoundError(f"No portfolio generated for roadmap {roadmap_id}")
    filename = download_filename(roadmap)
    return HTMLResponse(
        roadmap.project_html,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# --- General session ---

@router.get("/session")
async def get_session(workspace: Workspace = Depends(get_workspace)) -> ChatSession | None:
    return workspace.tutoring.session


@router.patch("/session")
async def patch_session(
    body: SessionUpdate, workspace: Workspace = Depends(get_workspace)
) -> ChatSession:
    return workspace.tutoring.update_session(**body.model_dump(exclude_none=True))


@router.post("/session/document")
async def session_document(workspace: Workspace = Depends(get_workspace)) -> dict:
    session = workspace.tutoring.session
    if session is None or not session.messages:
        raise PreconditionError("The session has no messages yet")
    document = await workspace.ai.generate_session_document(session)
    workspace.tutoring.update_session(generated_html=document)
    return {"html": document}
