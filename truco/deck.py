"""Deck creation and dealing utilities for Truco."""

from __future__ import annotations

from random import Random
from typing import Dict, List, Optional, Sequence, Tuple

from .cards import RANK_ORDER, SUIT_ORDER, Card
from .errors import ConfigurationError

HAND_SIZE = 3
PLAYER_COUNT = 2


def build_deck() -> List[Card]:
    """Return the ordered 40-card Spanish deck (no eights or nines)."""
    return [Card(rank, suit) for suit in SUIT_ORDER for rank in RANK_ORDER]


def create_deck(rng: Optional[Random] = None) -> List[Card]:
    """Return a freshly shuffled deck."""
    cards = build_deck()
    if rng is None:
        rng = Random()
    rng.shuffle(cards)
    return cards


def deal_cards(
    deck: Sequence[Card],
    player_ids: Sequence[str],
) -> Tuple[Dict[str, Tuple[Card, ...]], Tuple[Card, ...]]:
    """Deal three cards to each of the two players, one at a time.

    Returns the hands keyed by player id and the undealt stock.

    Raises:
        ConfigurationError: wrong number of players or too few cards.
    """
    if len(player_ids) != PLAYER_COUNT:
        raise ConfigurationError(f"Truco requires exactly {PLAYER_COUNT} players, got {len(player_ids)}.")
    if len(set(player_ids)) != PLAYER_COUNT:
        raise ConfigurationError("Player ids must be distinct.")
    if len(deck) < HAND_SIZE * PLAYER_COUNT:
        raise ConfigurationError(f"Deck must contain at least {HAND_SIZE * PLAYER_COUNT} cards.")

    hands: Dict[str, List[Card]] = {player_id: [] for player_id in player_ids}
    index = 0
    for _ in range(HAND_SIZE):
        for player_id in player_ids:
            hands[player_id].append(deck[index])
            index += 1

    return {player_id: tuple(cards) for player_id, cards in hands.items()}, tuple(deck[index:])
