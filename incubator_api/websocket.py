"""
WebSocket module
Manages WebSocket connections for the live alert and status stream
"""
import json
import logging
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class WebSocketManager:
    """Broadcasts engine events to connected clients"""

    def __init__(self, history_size: int = 20):
        self.active_connections: List[WebSocket] = []
        self.history: Deque[str] = deque(maxlen=history_size)  # Circular buffer for last N events

    async def connect(self, websocket: WebSocket):
        """Accept and register a new WebSocket connection and send history"""
        await websocket.accept()
        self.active_connections.append(websocket)
        logger.info(f"WebSocket client connected. Total clients: {len(self.active_connections)}")

        await websocket.send_text(json.dumps({
            "type": "hello",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "history": len(self.history)
        }))

        for historical_message in list(self.history):
            await websocket.send_text(historical_message)

    def disconnect(self, websocket: WebSocket):
        """Unregister a WebSocket connection"""
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)
            logger.info(f"WebSocket client disconnected. Total clients: {len(self.active_connections)}")

    async def broadcast(self, event: Dict[str, Any]):
        """
        Broadcast an event to all connected WebSocket clients and store it in history

        Args:
            event: JSON-serializable engine event (alert or status)
        """
        message = json.dumps(event)
        self.history.append(message)

        # Copy list to avoid modification during iteration
        for connection in self.active_connections[:]:
            try:
                await connection.send_text(message)
            except Exception as e:
                logger.error(f"Error sending to WebSocket client: {e}")
                self.disconnect(connection)
