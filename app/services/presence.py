from fastapi import WebSocket
from loguru import logger


class PresenceTracker:
    """Counts connected browsers and tells each of them the current total.

    Process-local: the count starts at zero on every restart.
    """

    def __init__(self):
        self.sockets: list[WebSocket] = []

    @property
    def online_users(self) -> int:
        return len(self.sockets)

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.sockets.append(websocket)
        logger.debug(f"Client connected ({self.online_users} online)")
        await self.broadcast()

    async def disconnect(self, websocket: WebSocket):
        if websocket in self.sockets:
            self.sockets.remove(websocket)
            logger.debug(f"Client disconnected ({self.online_users} online)")
            await self.broadcast()

    async def broadcast(self):
        message = {"onlineUsers": self.online_users}
        dead = []
        for ws in list(self.sockets):
            try:
                await ws.send_json(message)
            except Exception:
                dead.append(ws)

        for ws in dead:
            if ws in self.sockets:
                self.sockets.remove(ws)


presence_tracker = PresenceTracker()
