"""Card-related data structures and helpers for Truco."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional


class Suit(Enum):
    ESPADAS = "espadas"
    BASTOS = "bastos"
    OROS = "oros"
    COPAS = "copas"

    def __str__(self) -> str:
        return self.value


class Rank(Enum):
    ONE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    SOTA = 10
    CABALLO = 11
    REY = 12

    def __str__(self) -> str:
        return str(self.value)


# Spanish deck order used when building an unshuffled deck.
SUIT_ORDER: list[Suit] = [Suit.ESPADAS, Suit.BASTOS, Suit.OROS, Suit.COPAS]
RANK_ORDER: list[Rank] = list(Rank)

# Value each card contributes to envido and flor; face cards count zero.
ENVIDO_VALUES: dict[Rank, int] = {
    rank: (0 if rank.value >= 10 else rank.value) for rank in Rank
}


def _strength_table() -> Mapping[tuple[Rank, Suit], int]:
    table: dict[tuple[Rank, Suit], int] = {
        (Rank.ONE, Suit.ESPADAS): 14,
        (Rank.ONE, Suit.BASTOS): 13,
        (Rank.SEVEN, Suit.ESPADAS): 12,
        (Rank.SEVEN, Suit.OROS): 11,
        (Rank.ONE, Suit.OROS): 8,
        (Rank.ONE, Suit.COPAS): 8,
        (Rank.SEVEN, Suit.BASTOS): 4,
        (Rank.SEVEN, Suit.COPAS): 4,
    }
    banded = {
        Rank.THREE: 10,
        Rank.TWO: 9,
        Rank.REY: 7,
        Rank.CABALLO: 6,
        Rank.SOTA: 5,
        Rank.SIX: 3,
        Rank.FIVE: 2,
        Rank.FOUR: 1,
    }
    for rank, strength in banded.items():
        for suit in Suit:
            table[(rank, suit)] = strength
    return MappingProxyType(table)


# Trick-taking strength keyed by (rank, suit); higher wins, equal values tie.
CARD_STRENGTH: Mapping[tuple[Rank, Suit], int] = _strength_table()


@dataclass(frozen=True)
class Card:
    """Immutable representation of a Spanish playing card."""

    rank: Rank
    suit: Suit

    @property
    def id(self) -> str:
        return f"{self.rank.value}-{self.suit.value}"

    def envido_value(self) -> int:
        return ENVIDO_VALUES[self.rank]


def card_strength(card: Card) -> int:
    """Return the trick-taking strength of a card."""
    return CARD_STRENGTH[(card.rank, card.suit)]


def compare_cards(a: Card, b: Card) -> int:
    """Return 1 if ``a`` beats ``b``, -1 if it loses and 0 on a tie."""
    strength_a = card_strength(a)
    strength_b = card_strength(b)
    if strength_a > strength_b:
        return 1
    if strength_a < strength_b:
        return -1
    return 0


def card_from_id(cards: Iterable[Card], card_id: str) -> Optional[Card]:
    for card in cards:
        if card.id == card_id:
            return card
    return None


def parse_card_id(card_id: str) -> Card:
    rank_text, _, suit_text = card_id.partition("-")
    try:
        return Card(Rank(int(rank_text)), Suit(suit_text))
    except ValueError as exc:
        raise ValueError(f"Unknown card id: {card_id!r}") from exc


def serialize_card(card: Card) -> dict[str, object]:
    return {"id": card.id, "rank": card.rank.value, "suit": card.suit.value}


def card_label(card: Card) -> str:
    return f"{card.rank.value} de {card.suit.value}"
