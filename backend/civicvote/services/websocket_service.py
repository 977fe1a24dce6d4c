"""
WebSocket connection management service
"""

from fastapi import WebSocket
from typing import Dict, List
import json
import logging

logger = logging.getLogger(__name__)

class WebSocketManager:
    """Observer connections per race"""

    def __init__(self):
        # race observers
        self.race_connections: Dict[str, List[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, race_id: str):
        """Accept an observer connection"""
        await websocket.accept()
        if race_id not in self.race_connections:
            self.race_connections[race_id] = []

        if websocket not in self.race_connections[race_id]:
            self.race_connections[race_id].append(websocket)
            logger.info("Observer joined race %s, %d connection(s)", race_id, len(self.race_connections[race_id]))

    def disconnect(self, websocket: WebSocket, race_id: str):
        """Drop an observer connection"""
        if race_id in self.race_connections:
            if websocket in self.race_connections[race_id]:
                self.race_connections[race_id].remove(websocket)
                logger.info("Observer left race %s, %d connection(s)", race_id, len(self.race_connections[race_id]))
            if not self.race_connections[race_id]:
                del self.race_connections[race_id]

    async def send_personal_message(self, message: dict, websocket: WebSocket):
        """Send to a single connection"""
        try:
            await websocket.send_text(json.dumps(message, ensure_ascii=False))
        except Exception as e:
            logger.warning("Failed to send message: %s", e)

    async def broadcast_to_race(self, message: dict, race_id: str) -> int:
        """Send to every observer of a race; returns how many received it"""
        connections = list(self.race_connections.get(race_id, []))
        if not connections:
            return 0

        message_text = json.dumps(message, ensure_ascii=False)
        failed_connections = []
        success_count = 0

        for connection in connections:
            try:
                await connection.send_text(message_text)
                success_count += 1
            except Exception as e:
                logger.warning("Broadcast to race %s failed: %s", race_id, e)
                failed_connections.append(connection)

        # remove dead connections
        for failed_connection in failed_connections:
            self.disconnect(failed_connection, race_id)

        logger.debug("Broadcast %s to race %s: %d ok, %d failed",
                     message.get("type", "unknown"), race_id, success_count, len(failed_connections))
        return success_count
