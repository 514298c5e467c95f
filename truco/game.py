"""High-level game orchestration for Truco.

Every entry point takes a ``GameState`` plus the acting player and returns a
new ``GameState``. Inputs are never mutated, so callers may keep the previous
snapshot around.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from random import Random
from typing import Optional, Sequence, Union

from .bidding import call_envido, call_flor, call_truco, respond_to_call, skip_phase
from .cards import Card, card_from_id
from .deck import create_deck, deal_cards
from .errors import ConfigurationError, IllegalMoveError, InvalidStateError
from .rules_schema import DEFAULT_CONFIG, GameConfig
from .scoring import award_points, hand_points, hand_winner
from .state import MAX_ROUNDS, CallType, GamePhase, GameState
from .trick import Trick, resolve_trick

TRICKS_TO_WIN = 2


def opening_phase(config: GameConfig) -> GamePhase:
    return GamePhase.FLOR if config.with_flor else GamePhase.ENVIDO


def initialize_game(
    player_ids: Sequence[str],
    config: Optional[GameConfig] = None,
    *,
    rng: Optional[Random] = None,
    deck: Optional[Sequence[Card]] = None,
    starter_id: Optional[str] = None,
) -> GameState:
    """Deal the first hand of a new match."""
    players = tuple(player_ids)
    if len(players) != 2 or len(set(players)) != 2:
        raise ConfigurationError("Truco requires exactly 2 distinct players.")
    if config is None:
        config = DEFAULT_CONFIG
    if rng is None:
        rng = Random()
    if starter_id is None:
        starter_id = rng.choice(players)
    elif starter_id not in players:
        raise ConfigurationError(f"Starter {starter_id!r} is not one of the players.")

    cards = list(deck) if deck is not None else create_deck(rng)
    hands, stock = deal_cards(cards, players)
    return GameState(
        players=(players[0], players[1]),
        hands=hands,
        stock=stock,
        turn_player_id=starter_id,
        hand_starter_id=starter_id,
        phase=opening_phase(config),
        config=config,
        won_tricks={player: 0 for player in players},
        scores={player: 0 for player in players},
    )


def start_new_hand(
    state: GameState,
    *,
    rng: Optional[Random] = None,
    deck: Optional[Sequence[Card]] = None,
) -> GameState:
    """Reshuffle, redeal and hand the starter role to the other player."""
    cards = list(deck) if deck is not None else create_deck(rng)
    hands, stock = deal_cards(cards, state.players)
    starter = state.opponent(state.hand_starter_id)
    return replace(
        state,
        hands=hands,
        stock=stock,
        table=Trick(),
        won_tricks={player: 0 for player in state.players},
        turn_player_id=starter,
        hand_starter_id=starter,
        round_number=1,
        call=None,
        accepted=False,
        phase=opening_phase(state.config),
        envido_points={},
        flor_called=False,
        envido_called=False,
        truco_rejected=False,
        hand_number=state.hand_number + 1,
        trick_history=(),
    )


def play_card(state: GameState, player_id: str, card_id: str, *, rng: Optional[Random] = None) -> GameState:
    state.require_in_progress()
    state.require_player(player_id)
    if state.phase is not GamePhase.PLAYING:
        raise InvalidStateError(f"Cannot play cards during the {state.phase.value} phase.")
    if state.pending_call() is not None:
        raise IllegalMoveError("Respond to the pending call before playing.")
    if state.turn_player_id != player_id:
        raise IllegalMoveError("Not this player's turn.")
    hand = state.hand_of(player_id)
    card = card_from_id(hand, card_id)
    if card is None:
        raise IllegalMoveError("Card not present in hand.")

    hands = dict(state.hands)
    hands[player_id] = tuple(held for held in hand if held != card)
    table = state.table.add_play(player_id, card)

    if not table.is_full():
        return replace(state, hands=hands, table=table, turn_player_id=state.opponent(player_id))

    trick_winner = resolve_trick(table)
    table = replace(table, winner_id=trick_winner)
    won_tricks = dict(state.won_tricks)
    won_tricks[trick_winner] = won_tricks.get(trick_winner, 0) + 1
    resolved = replace(
        state,
        hands=hands,
        table=table,
        won_tricks=won_tricks,
        last_trick=table,
        trick_history=state.trick_history + (table,),
    )

    if max(won_tricks.values()) >= TRICKS_TO_WIN or state.round_number >= MAX_ROUNDS:
        return _conclude_hand(resolved, rng=rng)
    return replace(
        resolved,
        table=Trick(),
        round_number=state.round_number + 1,
        turn_player_id=trick_winner,
    )


def _conclude_hand(state: GameState, *, rng: Optional[Random]) -> GameState:
    points = hand_points(state)
    if points:
        state = award_points(state, hand_winner(state), points)
    if state.winner_id is not None:
        return state
    return start_new_hand(state, rng=rng)


@dataclass(frozen=True)
class PlayCard:
    card_id: str


@dataclass(frozen=True)
class CallTruco:
    pass


@dataclass(frozen=True)
class CallEnvido:
    variant: CallType = CallType.ENVIDO


@dataclass(frozen=True)
class CallFlor:
    pass


@dataclass(frozen=True)
class RespondToCall:
    accept: bool


@dataclass(frozen=True)
class SkipPhase:
    pass


Intent = Union[PlayCard, CallTruco, CallEnvido, CallFlor, RespondToCall, SkipPhase]


def apply_intent(
    state: GameState,
    player_id: str,
    intent: Intent,
    *,
    rng: Optional[Random] = None,
) -> GameState:
    """Route a player intent to the matching transition."""
    if isinstance(intent, PlayCard):
        return play_card(state, player_id, intent.card_id, rng=rng)
    if isinstance(intent, CallTruco):
        return call_truco(state, player_id)
    if isinstance(intent, CallEnvido):
        return call_envido(state, player_id, intent.variant)
    if isinstance(intent, CallFlor):
        return call_flor(state, player_id)
    if isinstance(intent, RespondToCall):
        return respond_to_call(state, player_id, intent.accept)
    if isinstance(intent, SkipPhase):
        return skip_phase(state, player_id)
    raise TypeError(f"Unsupported intent: {intent!r}")
