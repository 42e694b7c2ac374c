"""
Monitor routes
WebSocket live event stream
"""
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)
router = APIRouter()


@router.websocket("/ws/events")
async def websocket_events(websocket: WebSocket):
    """
    WebSocket endpoint streaming new alerts and status refreshes as JSON.

    On connect the client receives a hello message followed by the last
    events, then every new event as it happens.
    """
    ws_manager = websocket.app.state.ws_manager
    await ws_manager.connect(websocket)
    try:
        # Keep the connection open; events are pushed by the engine
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        ws_manager.disconnect(websocket)
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
        ws_manager.disconnect(websocket)
