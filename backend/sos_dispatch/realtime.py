"""
Live dispatch feed. Every event is a JSON object with a `type` key:

    snapshot          full fleet and incident list, sent once on connect
    incident:update   one incident after an SOS, assign, progress or resolve
    ambulance:update  fleet rows whose status changed
    fleet:positions   ambulances the simulator just moved
    pong              reply to a console's "ping"
"""

import json
import logging
from typing import Any, Dict, Iterable, List

from fastapi import WebSocket

from .models import AmbulanceRead, IncidentRead

logger = logging.getLogger(__name__)


def incident_event(incident: IncidentRead) -> Dict[str, Any]:
    return {"type": "incident:update", "incident": incident.model_dump(mode="json")}


def fleet_event(ambulances: Iterable[AmbulanceRead], kind: str = "ambulance:update") -> Dict[str, Any]:
    return {"type": kind, "ambulances": [a.model_dump(mode="json") for a in ambulances]}


def snapshot_event(state: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "snapshot", **state}


class ConnectionManager:
    """Fan-out of live dispatch events to connected dispatcher consoles."""

    def __init__(self):
        self.active: List[WebSocket] = []

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active.append(websocket)
        logger.info("Console connected (%d open)", len(self.active))

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active:
            self.active.remove(websocket)
            logger.info("Console disconnected (%d open)", len(self.active))

    async def send(self, websocket: WebSocket, message: Dict[str, Any]):
        await websocket.send_text(json.dumps(message))

    async def broadcast(self, message: Dict[str, Any]):
        data = json.dumps(message)
        for ws in list(self.active):
            try:
                await ws.send_text(data)
            except Exception as e:
                logger.warning("Dropping console after failed send: %s", e)
                self.disconnect(ws)

    async def publish_incident(self, incident: IncidentRead, fleet: Iterable[AmbulanceRead]):
        """An incident change, then the fleet it touched, in that order."""
        await self.broadcast(incident_event(incident))
        await self.broadcast(fleet_event(fleet))

    async def publish_fleet(self, ambulances: Iterable[AmbulanceRead]):
        await self.broadcast(fleet_event(ambulances))

    async def publish_positions(self, moved: List[AmbulanceRead]):
        await self.broadcast(fleet_event(moved, kind="fleet:positions"))
