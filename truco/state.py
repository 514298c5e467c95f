"""Game state value types for Truco.

A ``GameState`` is never modified in place: every engine transition builds a
new instance with ``dataclasses.replace`` and fresh containers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from .cards import Card
from .errors import InvalidActor, InvalidStateError
from .rules_schema import GameConfig
from .trick import Trick


class GamePhase(Enum):
    FLOR = "flor"
    ENVIDO = "envido"
    TRUCO = "truco"
    PLAYING = "playing"


class CallType(Enum):
    TRUCO = "truco"
    ENVIDO = "envido"
    REAL_ENVIDO = "real_envido"
    FALTA_ENVIDO = "falta_envido"
    FLOR = "flor"

    @property
    def is_envido(self) -> bool:
        return self in ENVIDO_CALLS


ENVIDO_CALLS = frozenset({CallType.ENVIDO, CallType.REAL_ENVIDO, CallType.FALTA_ENVIDO})

# Phase each pending call belongs to.
CALL_PHASES: Dict[CallType, Tuple[GamePhase, ...]] = {
    CallType.FLOR: (GamePhase.FLOR,),
    CallType.ENVIDO: (GamePhase.ENVIDO,),
    CallType.REAL_ENVIDO: (GamePhase.ENVIDO,),
    CallType.FALTA_ENVIDO: (GamePhase.ENVIDO,),
    CallType.TRUCO: (GamePhase.TRUCO, GamePhase.PLAYING),
}

MAX_TRUCO_LEVEL = 4
MAX_ROUNDS = 3


@dataclass(frozen=True)
class Call:
    type: CallType
    level: int
    by: str
    points: Optional[int] = None


@dataclass(frozen=True)
class GameState:
    players: Tuple[str, str]
    hands: Dict[str, Tuple[Card, ...]]
    stock: Tuple[Card, ...]
    turn_player_id: str
    hand_starter_id: str
    phase: GamePhase
    config: GameConfig
    table: Trick = field(default_factory=Trick)
    won_tricks: Dict[str, int] = field(default_factory=dict)
    scores: Dict[str, int] = field(default_factory=dict)
    round_number: int = 1
    call: Optional[Call] = None
    accepted: bool = False
    winner_id: Optional[str] = None
    envido_points: Dict[str, int] = field(default_factory=dict)
    flor_called: bool = False
    envido_called: bool = False
    truco_rejected: bool = False
    hand_number: int = 1
    last_trick: Optional[Trick] = None
    trick_history: Tuple[Trick, ...] = ()

    def __post_init__(self) -> None:
        if self.call is not None and self.phase not in CALL_PHASES[self.call.type]:
            raise InvalidStateError(f"A {self.call.type.value} call cannot be active in the {self.phase.value} phase.")

    def opponent(self, player_id: str) -> str:
        self.require_player(player_id)
        first, second = self.players
        return second if player_id == first else first

    def require_player(self, player_id: str) -> None:
        if player_id not in self.players:
            raise InvalidActor(f"Player {player_id!r} is not part of this game.")

    def require_in_progress(self) -> None:
        if self.winner_id is not None:
            raise InvalidStateError("Game already finished.")

    def pending_call(self) -> Optional[Call]:
        """Return the call awaiting a response, if any."""
        if self.call is not None and not self.accepted:
            return self.call
        return None

    def hand_of(self, player_id: str) -> Tuple[Card, ...]:
        return self.hands.get(player_id, ())

    def is_finished(self) -> bool:
        return self.winner_id is not None
