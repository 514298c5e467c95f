"""Quick-match queue pairing players who asked for the same configuration."""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import List, Optional

from truco.rules_schema import GameConfig

from .models import QueueEntry


class MatchmakingQueue:
    """Waiting players keyed by id, oldest first.

    The queue knows nothing about rooms; the room manager turns a popped
    entry into a room.
    """

    def __init__(self) -> None:
        self._entries: "OrderedDict[str, QueueEntry]" = OrderedDict()
        self._lock = threading.Lock()

    def pop_match_or_enqueue(
        self,
        player_id: str,
        player_name: str,
        config: GameConfig,
        now: float,
    ) -> Optional[QueueEntry]:
        """Remove and return a compatible waiting entry, or enqueue the requester.

        Scanning, removing and inserting happen under one lock, so two
        compatible requests can never both end up waiting.
        """
        with self._lock:
            for queued_id, entry in self._entries.items():
                if queued_id != player_id and entry.config == config:
                    del self._entries[queued_id]
                    return entry
            # A repeated request refreshes the player's entry.
            self._entries.pop(player_id, None)
            self._entries[player_id] = QueueEntry(
                player_id=player_id,
                player_name=player_name,
                config=config,
                enqueued_at=now,
            )
            return None

    def withdraw(self, player_id: str) -> bool:
        with self._lock:
            return self._entries.pop(player_id, None) is not None

    def expire(self, now: float, max_age: float) -> List[QueueEntry]:
        """Drop entries older than ``max_age`` seconds and return them."""
        with self._lock:
            stale = [entry for entry in self._entries.values() if now - entry.enqueued_at > max_age]
            for entry in stale:
                del self._entries[entry.player_id]
            return stale

    def is_waiting(self, player_id: str) -> bool:
        with self._lock:
            return player_id in self._entries

    def entries(self) -> List[QueueEntry]:
        with self._lock:
            return list(self._entries.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
