"""Room and player records held by the room manager."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from truco.rules_schema import GameConfig
from truco.state import GameState

MAX_SEATS = 2


class RoomStatus(Enum):
    WAITING = "waiting"
    PLAYING = "playing"
    ENDED = "ended"


@dataclass
class Player:
    id: str
    name: str
    last_seen: float
    connected: bool = True


@dataclass
class Room:
    id: str
    code: str
    config: GameConfig
    created_at: float
    last_activity: float
    players: List[Player] = field(default_factory=list)
    status: RoomStatus = RoomStatus.WAITING
    game: Optional[GameState] = None

    def find_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def is_full(self) -> bool:
        return len(self.players) >= MAX_SEATS

    def connected_players(self) -> List[Player]:
        return [player for player in self.players if player.connected]

    def is_abandoned(self) -> bool:
        return all(not player.connected for player in self.players)


@dataclass(frozen=True)
class QueueEntry:
    player_id: str
    player_name: str
    config: GameConfig
    enqueued_at: float
