"""WebSocket channel pushing new notifications to connected users."""

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from libs.auth.dependencies import user_from_token
from services.communications_service.realtime import hub

router = APIRouter(tags=["realtime"])


@router.websocket("/ws/notifications")
async def notifications_socket(websocket: WebSocket, token: str = Query(...)):
    """
    Authenticate with ``?token=<jwt>`` and stay connected.

    Clients may send "ping" to keep the connection alive; anything else they
    send is ignored.
    """
    try:
        user = user_from_token(token)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await hub.connect(user.id, websocket)
    try:
        while True:
            message = await websocket.receive_text()
            if message == "ping":
                await websocket.send_json({"event": "pong", "data": {}})
    except WebSocketDisconnect:
        pass
    finally:
        await hub.disconnect(user.id, websocket)
