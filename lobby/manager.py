"""Registry of live rooms, player seats and the quick-match queue.

Every mutation of a room runs under that room's own lock, so two intents for
the same room never interleave while intents for different rooms proceed in
parallel. The registry maps (id → room, code → id, player → id) sit behind a
separate short-lived lock that is always taken after a room lock, never
before.
"""

from __future__ import annotations

import logging
import secrets
import string
import threading
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, replace
from random import Random
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from truco.errors import InvalidActor, InvalidStateError, NotFoundError
from truco.game import Intent, apply_intent, initialize_game
from truco.rules_schema import DEFAULT_CONFIG, GameConfig
from truco.state import GameState

from .locks import KeyedLock
from .matchmaking import MatchmakingQueue
from .models import MAX_SEATS, Player, Room, RoomStatus

logger = logging.getLogger(__name__)

ROOM_IDLE_TIMEOUT = 5 * 60
QUEUE_TIMEOUT = 2 * 60
WAITING_ROOMS_LIMIT = 20
CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6
MAX_ID_ATTEMPTS = 100


def random_room_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


@dataclass(frozen=True)
class SweepReport:
    rooms_removed: List[str]
    queue_removed: List[str]


class RoomManager:
    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        rng: Optional[Random] = None,
        code_factory: Callable[[], str] = random_room_code,
        room_idle_timeout: float = ROOM_IDLE_TIMEOUT,
        queue_timeout: float = QUEUE_TIMEOUT,
    ) -> None:
        self._rooms: Dict[str, Room] = {}
        self._codes: Dict[str, str] = {}
        self._player_rooms: Dict[str, str] = {}
        self._registry = threading.RLock()
        self._room_locks = KeyedLock()
        self.queue = MatchmakingQueue()
        self._clock = clock
        self._rng = rng
        self._code_factory = code_factory
        self.room_idle_timeout = room_idle_timeout
        self.queue_timeout = queue_timeout

    # Room lifecycle ----------------------------------------------------

    def create_room(self, player_id: str, player_name: str, config: Optional[GameConfig] = None) -> Room:
        """Open a waiting room with ``player_id`` in the first seat."""
        room = self._open_room([(player_id, player_name)], config or DEFAULT_CONFIG)
        logger.info("Room %s (code %s) created by %s", room.id, room.code, player_id)
        return room

    def join_room(self, room_id: str, player_id: str, player_name: str) -> Room:
        """Take the free seat, or reclaim the seat ``player_id`` already holds."""
        previous = self._room_of(player_id)
        with self._locked_room(room_id) as room:
            now = self._clock()
            seat = room.find_player(player_id)
            if seat is not None:
                seat.connected = True
                seat.last_seen = now
            else:
                if room.is_full():
                    raise InvalidStateError("Room is full.")
                if room.status is not RoomStatus.WAITING:
                    raise InvalidStateError("Game already started.")
                room.players.append(Player(id=player_id, name=player_name, last_seen=now))
            room.last_activity = now
            with self._registry:
                self._player_rooms[player_id] = room.id
            snapshot = _snapshot(room)

        self.queue.withdraw(player_id)
        if previous is not None and previous != room_id:
            self.leave_room(player_id, previous)
        logger.info("Player %s %s room %s", player_id, "rejoined" if seat is not None else "joined", room_id)
        return snapshot

    def join_room_by_code(self, code: str, player_id: str, player_name: str) -> Room:
        with self._registry:
            room_id = self._codes.get(code.strip().upper())
        if room_id is None:
            raise NotFoundError("Room code not found.")
        return self.join_room(room_id, player_id, player_name)

    def leave_room(self, player_id: str, room_id: Optional[str] = None) -> Optional[Room]:
        """Mark the player disconnected; a waiting room nobody is left in is deleted.

        Leaving twice, or leaving a room that no longer exists, is a no-op.
        Returns the updated room, or None when there is no room left.
        """
        self.queue.withdraw(player_id)
        if room_id is None:
            room_id = self._room_of(player_id)
        if room_id is None or self._peek(room_id) is None:
            return None

        with self._room_under_lock(room_id) as room:
            if room is None:
                return None
            player = room.find_player(player_id)
            if player is None:
                return _snapshot(room)
            now = self._clock()
            player.connected = False
            player.last_seen = now
            room.last_activity = now
            if room.status is RoomStatus.WAITING and room.is_abandoned():
                self._delete_room(room)
                return None
            return _snapshot(room)

    def start_game(self, room_id: str, requested_by: Optional[str] = None) -> Room:
        with self._locked_room(room_id) as room:
            if requested_by is not None and room.find_player(requested_by) is None:
                raise InvalidActor("Only seated players can start the game.")
            if room.status is not RoomStatus.WAITING:
                raise InvalidStateError("Game already started.")
            if len(room.players) != MAX_SEATS or len(room.connected_players()) != MAX_SEATS:
                raise InvalidStateError(f"Need exactly {MAX_SEATS} connected players to start.")
            room.game = initialize_game([player.id for player in room.players], room.config, rng=self._rng)
            room.status = RoomStatus.PLAYING
            room.last_activity = self._clock()
            logger.info("Game started in room %s, %s leads", room.id, room.game.turn_player_id)
            return _snapshot(room)

    def apply_intent(self, room_id: str, player_id: str, intent: Intent) -> Room:
        """Run one player intent through the engine and store the new state."""
        _, room = self.apply_intent_with_previous(room_id, player_id, intent)
        return room

    def apply_intent_with_previous(self, room_id: str, player_id: str, intent: Intent) -> Tuple[GameState, Room]:
        """Like :meth:`apply_intent`, also returning the game as it was before."""
        with self._locked_room(room_id) as room:
            if room.game is None:
                raise NotFoundError("Game not found.")
            player = room.find_player(player_id)
            if player is None:
                raise InvalidActor("Player is not seated in this room.")
            if room.status is RoomStatus.ENDED:
                raise InvalidStateError("Game already finished.")

            previous = room.game
            room.game = apply_intent(previous, player_id, intent, rng=self._rng)
            now = self._clock()
            room.last_activity = now
            player.last_seen = now
            if room.game.winner_id is not None:
                room.status = RoomStatus.ENDED
                logger.info("Room %s ended, winner %s", room.id, room.game.winner_id)
            return previous, _snapshot(room)

    # Lookups -----------------------------------------------------------

    def get_room(self, room_id: str) -> Optional[Room]:
        if self._peek(room_id) is None:
            return None
        with self._room_under_lock(room_id) as room:
            return _snapshot(room) if room is not None else None

    def get_player_room(self, player_id: str) -> Optional[Room]:
        room_id = self._room_of(player_id)
        return self.get_room(room_id) if room_id is not None else None

    def list_waiting_rooms(self, limit: int = WAITING_ROOMS_LIMIT) -> List[Room]:
        """Newest waiting rooms that still have someone connected."""
        with self._registry:
            rooms = list(self._rooms.values())
        waiting = [
            _snapshot(room)
            for room in rooms
            if room.status is RoomStatus.WAITING and room.connected_players()
        ]
        waiting.sort(key=lambda room: room.created_at, reverse=True)
        return waiting[:limit]

    def is_code_in_use(self, code: str) -> bool:
        with self._registry:
            return code.strip().upper() in self._codes

    def __len__(self) -> int:
        with self._registry:
            return len(self._rooms)

    # Quick match -------------------------------------------------------

    def request_quick_match(
        self,
        player_id: str,
        player_name: str,
        config: Optional[GameConfig] = None,
    ) -> Optional[Room]:
        """Pair with a queued player sharing ``config`` or wait in the queue.

        Returns the new room when a partner was found, None when queued.
        """
        config = config or DEFAULT_CONFIG
        partner = self.queue.pop_match_or_enqueue(player_id, player_name, config, self._clock())
        if partner is None:
            logger.info("Player %s queued for quick match (%s)", player_id, config.model_dump())
            return None
        room = self._open_room(
            [(partner.player_id, partner.player_name), (player_id, player_name)],
            config,
        )
        logger.info("Quick match paired %s and %s in room %s", partner.player_id, player_id, room.id)
        return room

    def withdraw_from_queue(self, player_id: str) -> bool:
        return self.queue.withdraw(player_id)

    # Reclamation -------------------------------------------------------

    def sweep(self, now: Optional[float] = None) -> SweepReport:
        """Delete idle ended or abandoned rooms and stale queue entries."""
        if now is None:
            now = self._clock()
        with self._registry:
            candidates = list(self._rooms)

        removed: List[str] = []
        for room_id in candidates:
            with self._room_under_lock(room_id) as room:
                if room is None or now - room.last_activity <= self.room_idle_timeout:
                    continue
                if room.status is RoomStatus.ENDED or (room.status is RoomStatus.WAITING and room.is_abandoned()):
                    self._delete_room(room)
                    removed.append(room_id)

        expired = self.queue.expire(now, self.queue_timeout)
        if removed or expired:
            logger.info("Sweep removed %d rooms and %d queue entries", len(removed), len(expired))
        return SweepReport(rooms_removed=removed, queue_removed=[entry.player_id for entry in expired])

    # Helpers -----------------------------------------------------------

    def _open_room(self, seats: Sequence[Tuple[str, str]], config: GameConfig) -> Room:
        now = self._clock()
        previous = {player_id: self._room_of(player_id) for player_id, _ in seats}
        with self._registry:
            room = Room(
                id=self._new_room_id(),
                code=self._new_code(),
                config=config,
                created_at=now,
                last_activity=now,
                players=[Player(id=player_id, name=name, last_seen=now) for player_id, name in seats],
            )
            self._rooms[room.id] = room
            self._codes[room.code] = room.id
            for player_id, _ in seats:
                self._player_rooms[player_id] = room.id
            snapshot = _snapshot(room)

        for player_id, previous_room in previous.items():
            self.queue.withdraw(player_id)
            if previous_room is not None:
                self.leave_room(player_id, previous_room)
        return snapshot

    def _new_room_id(self) -> str:
        for _ in range(MAX_ID_ATTEMPTS):
            room_id = uuid.uuid4().hex[:8]
            if room_id not in self._rooms:
                return room_id
        raise RuntimeError("Could not allocate a unique room id.")

    def _new_code(self) -> str:
        for _ in range(MAX_ID_ATTEMPTS):
            code = self._code_factory().upper()
            if not self.is_code_in_use(code):
                return code
        raise RuntimeError("Could not allocate a unique room code.")

    @contextmanager
    def _locked_room(self, room_id: str) -> Iterator[Room]:
        if self._peek(room_id) is None:
            raise NotFoundError("Room not found.")
        with self._room_under_lock(room_id) as room:
            if room is None:
                raise NotFoundError("Room not found.")
            yield room

    @contextmanager
    def _room_under_lock(self, room_id: str) -> Iterator[Optional[Room]]:
        """Hold the lock of ``room_id`` and yield the room, or None once deleted."""
        with self._room_locks.hold(room_id):
            room = self._peek(room_id)
            if room is None:
                # Deleted while we waited; drop the lock hold() recreated.
                self._room_locks.discard(room_id)
            yield room

    def _peek(self, room_id: str) -> Optional[Room]:
        with self._registry:
            return self._rooms.get(room_id)

    def _room_of(self, player_id: str) -> Optional[str]:
        with self._registry:
            return self._player_rooms.get(player_id)

    def _delete_room(self, room: Room) -> None:
        # Caller holds the room lock.
        with self._registry:
            self._rooms.pop(room.id, None)
            if self._codes.get(room.code) == room.id:
                del self._codes[room.code]
            for player in room.players:
                if self._player_rooms.get(player.id) == room.id:
                    del self._player_rooms[player.id]
        self._room_locks.discard(room.id)
        logger.info("Room %s (code %s) deleted", room.id, room.code)


def _snapshot(room: Room) -> Room:
    """Copy of ``room`` the caller can read without holding its lock."""
    return replace(room, players=[replace(player) for player in room.players])
