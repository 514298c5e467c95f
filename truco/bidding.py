"""Calls (truco, envido, flor) and their call/respond resolution."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import replace
from typing import Dict, Iterable, List

from .cards import Card, Suit
from .errors import IllegalCall, InvalidActor, InvalidStateError, NotFoundError
from .scoring import (
    ENVIDO_REJECTION_POINTS,
    FLOR_POINTS,
    FLOR_REJECTION_POINTS,
    award_points,
    envido_stake,
)
from .state import ENVIDO_CALLS, MAX_TRUCO_LEVEL, Call, CallType, GamePhase, GameState

ENVIDO_BONUS = 20

ENVIDO_LEVELS: Dict[CallType, int] = {
    CallType.ENVIDO: 1,
    CallType.REAL_ENVIDO: 2,
    CallType.FALTA_ENVIDO: 3,
}

TRUCO_LEVEL_NAMES: Dict[int, str] = {
    1: "truco",
    2: "retruco",
    3: "vale tres",
    4: "vale cuatro",
}

NEXT_PHASE: Dict[GamePhase, GamePhase] = {
    GamePhase.FLOR: GamePhase.ENVIDO,
    GamePhase.ENVIDO: GamePhase.TRUCO,
    GamePhase.TRUCO: GamePhase.PLAYING,
}


def _by_suit(hand: Iterable[Card]) -> Dict[Suit, List[int]]:
    groups: Dict[Suit, List[int]] = defaultdict(list)
    for card in hand:
        groups[card.suit].append(card.envido_value())
    return groups


def envido_points(hand: Iterable[Card]) -> int:
    """Best two same-suit values plus 20, or the highest single value."""
    groups = _by_suit(hand)
    best = 0
    for values in groups.values():
        if len(values) >= 2:
            top = sorted(values, reverse=True)
            best = max(best, top[0] + top[1] + ENVIDO_BONUS)
    if best:
        return best
    return max((value for values in groups.values() for value in values), default=0)


def has_flor(hand: Iterable[Card]) -> bool:
    return any(len(values) == 3 for values in _by_suit(hand).values())


def flor_points(hand: Iterable[Card]) -> int:
    """Sum of the three same-suit values plus 20; zero without flor."""
    for values in _by_suit(hand).values():
        if len(values) == 3:
            return sum(values) + ENVIDO_BONUS
    return 0


def _better_of(state: GameState, caller: str, caller_points: int, responder: str, responder_points: int) -> str:
    if caller_points > responder_points:
        return caller
    if responder_points > caller_points:
        return responder
    return state.hand_starter_id


def _ensure_can_call(state: GameState, player_id: str) -> None:
    state.require_in_progress()
    state.require_player(player_id)
    if state.pending_call() is not None:
        raise IllegalCall("Another call is waiting for a response.")


def call_flor(state: GameState, player_id: str) -> GameState:
    _ensure_can_call(state, player_id)
    if not state.config.with_flor:
        raise InvalidStateError("Flor is disabled for this game.")
    if state.phase is not GamePhase.FLOR:
        raise InvalidStateError(f"Cannot call flor in the {state.phase.value} phase.")
    if state.flor_called:
        raise IllegalCall("Flor already called this hand.")
    hand = state.hand_of(player_id)
    if not has_flor(hand):
        raise IllegalCall("Player does not hold flor.")

    return replace(
        state,
        call=Call(type=CallType.FLOR, level=1, by=player_id, points=flor_points(hand)),
        accepted=False,
        flor_called=True,
    )


def call_envido(state: GameState, player_id: str, variant: CallType = CallType.ENVIDO) -> GameState:
    _ensure_can_call(state, player_id)
    if variant not in ENVIDO_CALLS:
        raise IllegalCall(f"{variant.value} is not an envido call.")
    if state.phase is not GamePhase.ENVIDO:
        raise InvalidStateError(f"Cannot call envido in the {state.phase.value} phase.")
    if state.envido_called:
        raise IllegalCall("Envido already called this hand.")

    return replace(
        state,
        call=Call(
            type=variant,
            level=ENVIDO_LEVELS[variant],
            by=player_id,
            points=envido_points(state.hand_of(player_id)),
        ),
        accepted=False,
        envido_called=True,
    )


def call_truco(state: GameState, player_id: str) -> GameState:
    """Call truco, or raise the accepted truco held by the opponent."""
    _ensure_can_call(state, player_id)
    if state.phase not in (GamePhase.TRUCO, GamePhase.PLAYING):
        raise InvalidStateError(f"Cannot call truco in the {state.phase.value} phase.")
    if state.truco_rejected:
        raise IllegalCall("Truco was already refused this hand.")

    current = state.call if state.call is not None and state.call.type is CallType.TRUCO else None
    if current is not None and current.by == player_id:
        raise IllegalCall("Player already holds the current truco.")
    level = current.level + 1 if current is not None else 1
    if level > MAX_TRUCO_LEVEL:
        raise IllegalCall(f"Truco cannot be raised past level {MAX_TRUCO_LEVEL}.")

    return replace(state, call=Call(type=CallType.TRUCO, level=level, by=player_id), accepted=False)


def respond_to_call(state: GameState, player_id: str, accept: bool) -> GameState:
    state.require_in_progress()
    state.require_player(player_id)
    call = state.pending_call()
    if call is None:
        raise NotFoundError("No call to respond to.")
    if call.by == player_id:
        raise InvalidActor("Cannot respond to your own call.")

    if call.type is CallType.TRUCO:
        return _resolve_truco(state, call, accept)
    if call.type is CallType.FLOR:
        return _resolve_flor(state, call, player_id, accept)
    return _resolve_envido(state, call, player_id, accept)


def _resolve_truco(state: GameState, call: Call, accept: bool) -> GameState:
    if accept:
        return replace(state, accepted=True, phase=GamePhase.PLAYING)
    # Refusing pays the caller the value of the last confirmed level.
    return award_points(
        state,
        call.by,
        call.level,
        call=None,
        accepted=False,
        truco_rejected=True,
        phase=GamePhase.PLAYING,
    )


def _resolve_envido(state: GameState, call: Call, responder: str, accept: bool) -> GameState:
    if not accept:
        return award_points(
            state,
            call.by,
            ENVIDO_REJECTION_POINTS,
            call=None,
            accepted=False,
            phase=GamePhase.TRUCO,
        )

    caller_points = envido_points(state.hand_of(call.by))
    responder_points = envido_points(state.hand_of(responder))
    winner = _better_of(state, call.by, caller_points, responder, responder_points)
    stake = envido_stake(call.type, state.scores.get(winner, 0), state.config.max_points)
    return award_points(
        state,
        winner,
        stake,
        call=None,
        accepted=False,
        phase=GamePhase.TRUCO,
        envido_points={call.by: caller_points, responder: responder_points},
    )


def _resolve_flor(state: GameState, call: Call, responder: str, accept: bool) -> GameState:
    if not accept:
        return award_points(
            state,
            call.by,
            FLOR_REJECTION_POINTS,
            call=None,
            accepted=False,
            phase=GamePhase.ENVIDO,
        )

    winner = call.by
    responder_hand = state.hand_of(responder)
    if has_flor(responder_hand):
        winner = _better_of(
            state,
            call.by,
            flor_points(state.hand_of(call.by)),
            responder,
            flor_points(responder_hand),
        )
    return award_points(state, winner, FLOR_POINTS, call=None, accepted=False, phase=GamePhase.ENVIDO)


def skip_phase(state: GameState, player_id: str) -> GameState:
    """Move on to the next betting phase without calling."""
    state.require_in_progress()
    state.require_player(player_id)
    if state.pending_call() is not None:
        raise InvalidStateError("Respond to the pending call before moving on.")
    next_phase = NEXT_PHASE.get(state.phase)
    if next_phase is None:
        raise InvalidStateError("Nothing to skip while cards are being played.")
    return replace(state, phase=next_phase)
