import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, WebSocket, WebSocketDisconnect, status
from sqlmodel import Session

from app.db.session import get_session
from app.routers.auth import user_from_token
from app.services.realtime import ConnectionRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


def get_connection_registry(request: Request) -> ConnectionRegistry:
    return request.app.state.connections


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    session: Session = Depends(get_session),
):
    """
    Live notification channel.

    The client connects with ``/ws?token=<jwt>`` and is joined to its own
    room; new notifications arrive as ``{"event": "notification", "data": ...}``.
    """
    user = user_from_token(token, session)
    user_id = user.id if user else None
    # Release the connection; the socket may stay open for hours
    session.close()
    if user_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    connections: ConnectionRegistry = websocket.app.state.connections
    # Pushes before the handshake completes would fail and drop the socket
    await websocket.accept()
    connections.register(user_id, websocket)
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                logger.debug(f"Ignoring non-JSON frame from user {user_id}")
                continue
            if isinstance(message, dict) and message.get("event") == "ping":
                await websocket.send_json({"event": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        connections.unregister(user_id, websocket)
