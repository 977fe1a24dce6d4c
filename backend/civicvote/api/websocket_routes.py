"""
WebSocket API routes
"""

import json
import logging
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Depends
from sqlalchemy.orm import Session
from civicvote.core.database import get_db
from civicvote.core.exceptions import ConventionError
from civicvote.services.websocket_service import WebSocketManager

logger = logging.getLogger(__name__)

router = APIRouter()

# global connection manager
_manager = None

def get_websocket_manager():
    """The shared WebSocket manager"""
    global _manager
    if _manager is None:
        _manager = WebSocketManager()
    return _manager

@router.websocket("/race/{race_id}")
async def websocket_race_endpoint(
    websocket: WebSocket,
    race_id: str,
    db: Session = Depends(get_db)
):
    """Observer connection for one race's live voting events"""
    from civicvote.services.voting_service import VotingService

    manager = get_websocket_manager()
    await manager.connect(websocket, race_id)

    try:
        await manager.send_personal_message({
            "type": "connected",
            "raceId": race_id,
        }, websocket)

        while True:
            data = await websocket.receive_text()
            try:
                message_data = json.loads(data)
            except json.JSONDecodeError:
                logger.info("Ignoring invalid JSON from race %s observer", race_id)
                continue

            if message_data.get("type") == "ping":
                await manager.send_personal_message({
                    "type": "pong",
                    "timestamp": message_data.get("timestamp")
                }, websocket)

            elif message_data.get("type") == "get_tallies":
                try:
                    tallies = await VotingService(db).tally(race_id)
                    await manager.send_personal_message({
                        "type": "tallies",
                        "raceId": race_id,
                        "tallies": tallies.model_dump(mode="json", by_alias=True),
                    }, websocket)
                except ConventionError as e:
                    await manager.send_personal_message({"type": "error", "message": str(e)}, websocket)

    except WebSocketDisconnect:
        manager.disconnect(websocket, race_id)
    except Exception:
        logger.exception("WebSocket error on race %s", race_id)
        manager.disconnect(websocket, race_id)
