"""Trick representation and resolution."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from .cards import Card, compare_cards
from .errors import TrickError


@dataclass(frozen=True)
class Play:
    player_id: str
    card: Card


@dataclass(frozen=True)
class Trick:
    plays: Tuple[Play, ...] = ()
    winner_id: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.plays

    def is_full(self) -> bool:
        return len(self.plays) == 2

    def add_play(self, player_id: str, card: Card) -> "Trick":
        if self.is_full():
            raise TrickError("Trick already complete.")
        if self.plays and self.plays[0].player_id == player_id:
            raise TrickError("A player cannot play twice in the same trick.")
        return replace(self, plays=self.plays + (Play(player_id, card),))


def resolve_trick(trick: Trick) -> str:
    """Return the id of the player who wins a complete trick.

    The stronger card wins; on equal strength the first card played wins.
    """
    if len(trick.plays) != 2:
        raise TrickError(f"Trick must have exactly 2 plays, got {len(trick.plays)}.")
    first, second = trick.plays
    if compare_cards(second.card, first.card) > 0:
        return second.player_id
    return first.player_id
