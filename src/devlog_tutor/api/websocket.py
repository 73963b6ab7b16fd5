"""Browser WebSocket handler streaming tutor replies."""

import asyncio

import structlog
from fastapi import WebSocket, WebSocketDisconnect

from devlog_tutor.ai.client import ChatContext
from devlog_tutor.errors import DevlogError
from devlog_tutor.models.session import DEFAULT_SESSION_TITLE
from devlog_tutor.tutoring.orchestrator import CancellationToken
from devlog_tutor.workspace import Workspace

logger = structlog.get_logger()


class ChatConnection:
    """One browser chat panel: the live context and at most one running turn.

    Args:
        workspace: User workspace.
        browser_ws: WebSocket connection to the browser.
    """

    def __init__(self, workspace: Workspace, browser_ws: WebSocket):
        self.workspace = workspace
        self.browser_ws = browser_ws
        self.context: ChatContext | None = None
        self._turn: asyncio.Task | None = None
        self._token: CancellationToken | None = None

    async def start_topic(self, node_id: str) -> None:
        await self.cancel_turn()
        profile = self.workspace.require_profile()
        self.context = self.workspace.tutoring.start_topic(node_id, profile)
        node = self.workspace.roadmaps.active.engine.get(node_id)
        await self._send_to_browser({
            "type": "chat_started",
            "scope": self.context.scope.value,
            "node_id": node_id,
            "status": node.status.value,
            "messages": [m.model_dump(mode="json") for m in node.chat_history],
        })

    async def start_general(self) -> None:
        await self.cancel_turn()
        profile = self.workspace.require_profile()
        self.context = self.workspace.tutoring.start_general(profile)
        session = self.workspace.tutoring.session
        await self._send_to_browser({
            "type": "chat_started",
            "scope": self.context.scope.value,
            "title": session.title if session else DEFAULT_SESSION_TITLE,
            "messages": [m.model_dump(mode="json") for m in session.messages] if session else [],
        })

    async def send(self, text: str) -> None:
        if self._turn and not self._turn.done():
            await self.send_error("A reply is still streaming")
            return
        self._token = CancellationToken()
        self._turn = asyncio.create_task(self._run_turn(text, self._token))

    async def _run_turn(self, text: str, token: CancellationToken) -> None:
        reply = ""
        try:
            async for reply in self.workspace.tutoring.send_message(self.context, text, token):
                await self._send_to_browser({"type": "chunk", "text": reply})
            await self._send_to_browser({"type": "done", "text": reply})
        except DevlogError as e:
            await self.send_error(str(e))
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("chat_turn_error")
            await self.send_error("The tutor could not be reached. Please try again.")

    async def cancel_turn(self) -> None:
        if self._token:
            self._token.cancel()
        if self._turn and not self._turn.done():
            self._turn.cancel()
            await asyncio.gather(self._turn, return_exceptions=True)
        self._turn = None

    async def close(self) -> None:
        """Stop streaming and persist the working graph."""
        await self.cancel_turn()
        self.workspace.leave_roadmap()

    async def send_error(self, message: str) -> None:
        await self._send_to_browser({"type": "error", "message": message})

    async def _send_to_browser(self, data: dict) -> None:
        """Send a message to the browser WebSocket."""
        try:
            await self.browser_ws.send_json(data)
        except Exception:
            logger.warning("browser_send_failed")


async def handle_chat_websocket(websocket: WebSocket, workspace: Workspace) -> None:
    """Handle a browser chat WebSocket connection."""
    await websocket.accept()
    connection = ChatConnection(workspace, websocket)

    try:
        while True:
            data = await websocket.receive_json()
            msg_type = data.get("type", "")

            try:
                if msg_type == "start_topic":
                    await connection.start_topic(str(data.get("node_id", "")))
                elif msg_type == "start_general":
                    await connection.start_general()
                elif msg_type == "message":
                    await connection.send(str(data.get("text", "")))
                elif msg_type == "cancel":
                    await connection.cancel_turn()
                else:
                    await connection.send_error(f"Unknown message type: {msg_type}")
            except DevlogError as e:
                await connection.send_error(str(e))

    except WebSocketDisconnect:
        logger.info("browser_disconnected")
    except Exception:
        logger.exception("websocket_handler_error")
    finally:
        await connection.close()
