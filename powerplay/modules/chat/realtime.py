"""
WebSocket connection manager for the chat feed.

Keeps the open sockets of each user and pushes new messages to both room
participants. Clients skip messages they already hold, so a message may be
delivered more than once and in any order.
"""

import asyncio
import json
import logging
from datetime import datetime, timedelta
from typing import Dict, Set, Optional
from fastapi import WebSocket
from powerplay.core.timezone import utcnow

logger = logging.getLogger(__name__)

# Connections without any activity for this long are dropped
CONNECTION_TIMEOUT_SECONDS = 30


class ChatConnectionManager:
    def __init__(self):
        self.active_connections: Dict[str, Set[WebSocket]] = {}
        self.connection_timestamps: Dict[WebSocket, datetime] = {}
        self._lock = asyncio.Lock()

    async def connect(self, user_id: str, websocket: WebSocket):
        async with self._lock:
            self.active_connections.setdefault(user_id, set()).add(websocket)
            self.connection_timestamps[websocket] = utcnow()
            logger.info(f"Chat socket connected for user {user_id} (total connections: {len(self.active_connections[user_id])})")

    async def disconnect(self, user_id: str, websocket: WebSocket):
        async with self._lock:
            if user_id in self.active_connections:
                self.active_connections[user_id].discard(websocket)
                if not self.active_connections[user_id]:
                    del self.active_connections[user_id]
            self.connection_timestamps.pop(websocket, None)
            logger.info(f"Chat socket disconnected for user {user_id}")

    async def send_to_user(self, user_id: str, message: dict) -> bool:
        """Send to every socket of the user; returns True if at least one accepted it"""
        async with self._lock:
            connections = set(self.active_connections.get(user_id, ()))
        if not connections:
            return False

        sent = False
        dead = []
        payload = json.dumps(message, default=str)
        for websocket in connections:
            try:
                await websocket.send_text(payload)
                async with self._lock:
                    self.connection_timestamps[websocket] = utcnow()
                sent = True
            except Exception as e:
                logger.warning(f"Error sending chat message to user {user_id}: {e}")
                dead.append(websocket)

        if dead:
            async with self._lock:
                if user_id in self.active_connections:
                    for websocket in dead:
                        self.active_connections[user_id].discard(websocket)
                        self.connection_timestamps.pop(websocket, None)
                    if not self.active_connections[user_id]:
                        del self.active_connections[user_id]
        return sent

    async def broadcast_message(self, user_ids, message: dict) -> int:
        reached = 0
        for user_id in dict.fromkeys(user_ids):
            if await self.send_to_user(user_id, {"type": "message", "message": message}):
                reached += 1
        return reached

    async def get_connection_count(self, user_id: str) -> int:
        async with self._lock:
            return len(self.active_connections.get(user_id, ()))

    async def update_activity(self, websocket: WebSocket):
        """Called on every frame received from the client"""
        async with self._lock:
            if websocket in self.connection_timestamps:
                self.connection_timestamps[websocket] = utcnow()

    async def cleanup_stale_connections(self, now: Optional[datetime] = None) -> int:
        now = now or utcnow()
        threshold = now - timedelta(seconds=CONNECTION_TIMEOUT_SECONDS)
        async with self._lock:
            stale = [ws for ws, last in self.connection_timestamps.items() if last < threshold]
            owners = {}
            for user_id, sockets in self.active_connections.items():
                for websocket in sockets:
                    if websocket in stale:
                        owners[websocket] = user_id

        for websocket in stale:
            user_id = owners.get(websocket)
            try:
                await websocket.close(code=1000, reason="Connection timeout")
            except Exception as e:
                logger.debug(f"Closing stale chat socket failed: {e}")
            if user_id is not None:
                await self.disconnect(user_id, websocket)
            else:
                async with self._lock:
                    self.connection_timestamps.pop(websocket, None)
        if stale:
            logger.info(f"Cleaned up {len(stale)} stale chat sockets")
        return len(stale)


_manager: Optional[ChatConnectionManager] = None


def get_chat_manager() -> ChatConnectionManager:
    global _manager
    if _manager is None:
        _manager = ChatConnectionManager()
    return _manager
