"""Room summaries safe to send to any client."""

from __future__ import annotations

from typing import Dict, List

from .models import Room


def room_summary(room: Room) -> Dict[str, object]:
    """Public description of a room; never contains cards."""
    return {
        "id": room.id,
        "code": room.code,
        "status": room.status.value,
        "players": [
            {"id": player.id, "name": player.name, "connected": player.connected}
            for player in room.players
        ],
        "player_count": len(room.players),
        "created_at": room.created_at,
        "config": room.config.model_dump(),
    }


def waiting_rooms_listing(rooms: List[Room]) -> List[Dict[str, object]]:
    return [room_summary(room) for room in rooms]
