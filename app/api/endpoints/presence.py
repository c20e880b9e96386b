from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.services.presence import presence_tracker

router = APIRouter(tags=["presence"])


@router.websocket("/api/online")
async def online_users(websocket: WebSocket):
    """Pushes {"onlineUsers": n} to every client whenever someone connects or leaves."""
    await presence_tracker.connect(websocket)
    try:
        # Clients never send anything; this only waits for the disconnect
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await presence_tracker.disconnect(websocket)
