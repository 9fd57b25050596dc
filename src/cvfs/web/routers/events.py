"""WebSocket endpoint for live folder listings and change events."""

import asyncio
from typing import Any, cast

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from cvfs.app import App
from cvfs.core.modules.broadcast.models import Connection
from cvfs.core.modules.session.models import AuthToken
from cvfs.errors import AuthenticationError, UserError

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["events"])


@router.websocket("/ws")
async def events(websocket: WebSocket, token: str | None = None) -> None:
    """Live updates for the token's user.

    Client messages: `{type: "subscribe", path}` and `{type: "unsubscribe"}`.
    Server messages: `{type: "file-list", path, items}`, `{event: "file-change", path}`,
    `{type: "error", message}` and `{type: "session-expired"}`.
    """
    app = cast(App, websocket.app.state.app)
    await websocket.accept()

    send_lock = asyncio.Lock()

    async def send(message: dict[str, Any]) -> None:
        async with send_lock:
            await websocket.send_json(message)

    try:
        connection = await app.connect(AuthToken(token or ""), send)
    except AuthenticationError as e:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=str(e))
        return

    log_context = structlog.contextvars.bound_contextvars(user_id=str(connection.user_id), connection_id=str(connection.id))
    try:
        with log_context:
            logger.debug("websocket_connected")
            while True:
                try:
                    message = await websocket.receive_json()
                except ValueError:
                    await send({"type": "error", "message": "Messages must be JSON objects"})
                    continue
                if not await handle_message(app, connection, message, send):
                    await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Invalid or expired session")
                    break
    except WebSocketDisconnect:
        pass
    finally:
        await app.disconnect(connection)


async def handle_message(app: App, connection: Connection, message: Any, send: Any) -> bool:
    """Apply one client message. Returns False when the session is no longer valid."""
    if not isinstance(message, dict):
        await send({"type": "error", "message": "Messages must be JSON objects"})
        return True

    message_type = message.get("type")
    try:
        if message_type == "subscribe":
            path = message.get("path", "/")
            if not isinstance(path, str):
                await send({"type": "error", "message": "Subscription path must be a string"})
                return True
            watched = await app.subscribe(connection, path)
            logger.debug("connection_subscribed", path=watched)
        elif message_type == "unsubscribe":
            await app.unsubscribe(connection)
        else:
            await send({"type": "error", "message": f"Unknown message type: {message_type!r}"})
    except AuthenticationError:
        await send({"type": "session-expired"})
        return False
    except UserError as e:
        await send({"type": "error", "message": str(e)})
    return True
