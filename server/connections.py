"""WebSocket connections keyed by player id, and room fan-out."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect

from lobby.models import Room
from lobby.views import room_summary
from truco.service import game_view, hand_view, view_to_dict

logger = logging.getLogger(__name__)


class ConnectionManager:
    """One live socket per player; a newer socket replaces the older one."""

    def __init__(self) -> None:
        self._sockets: Dict[str, WebSocket] = {}

    def register(self, player_id: str, websocket: WebSocket) -> Optional[WebSocket]:
        previous = self._sockets.get(player_id)
        self._sockets[player_id] = websocket
        logger.info("Player %s connected", player_id)
        return previous

    def unregister(self, player_id: str, websocket: WebSocket) -> bool:
        """Drop ``websocket`` if it is still the player's current socket."""
        if self._sockets.get(player_id) is not websocket:
            return False
        del self._sockets[player_id]
        logger.info("Player %s disconnected", player_id)
        return True

    def __len__(self) -> int:
        return len(self._sockets)

    async def send(self, player_id: str, event_type: str, payload: Any) -> None:
        websocket = self._sockets.get(player_id)
        if websocket is None:
            return
        try:
            await websocket.send_json({"type": event_type, "data": payload})
        except (WebSocketDisconnect, RuntimeError, OSError) as exc:
            # The socket closed between lookup and send; its endpoint cleans up.
            logger.warning("Dropping %s for %s: %s", event_type, player_id, exc)

    async def broadcast_room(self, room: Room) -> None:
        """Push the room, the public game and each member's own hand."""
        summary = room_summary(room)
        public = view_to_dict(game_view(room.game)) if room.game is not None else None
        for player in room.players:
            await self.send(player.id, "room:update", summary)
            if room.game is None:
                continue
            await self.send(player.id, "game:update", public)
            await self.send(player.id, "game:hand", view_to_dict(hand_view(room.game, player.id)))

    async def notify_match(self, room: Room) -> None:
        summary = room_summary(room)
        for player in room.players:
            await self.send(player.id, "match:found", summary)

    async def notify_ended(self, room: Room) -> None:
        """Announce the winner and final scores to every seat."""
        if room.game is None or room.game.winner_id is None:
            return
        payload = {"winner_id": room.game.winner_id, "scores": dict(room.game.scores)}
        for player in room.players:
            await self.send(player.id, "game:ended", payload)

    async def notify_message(self, room: Room, kind: str, text: str) -> None:
        payload = {"type": kind, "text": text, "timestamp": time.time()}
        for player in room.players:
            await self.send(player.id, "game:message", payload)
