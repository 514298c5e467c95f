"""Hand scoring helpers for Truco."""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from .state import CallType, GameState

ENVIDO_STAKES = {
    CallType.ENVIDO: 2,
    CallType.REAL_ENVIDO: 3,
}
ENVIDO_REJECTION_POINTS = 1
FLOR_POINTS = 3
FLOR_REJECTION_POINTS = 3


def hand_winner(state: GameState) -> str:
    """Player with more tricks won; the hand starter wins a tie."""
    first, second = state.players
    tricks_first = state.won_tricks.get(first, 0)
    tricks_second = state.won_tricks.get(second, 0)
    if tricks_first > tricks_second:
        return first
    if tricks_second > tricks_first:
        return second
    return state.hand_starter_id


def hand_points(state: GameState) -> int:
    """Points the hand winner collects when the last trick resolves."""
    if state.truco_rejected:
        # The caller was paid when the truco was refused.
        return 0
    if state.call is not None and state.call.type is CallType.TRUCO and state.accepted:
        return state.call.level + 1
    return 1


def envido_stake(call_type: CallType, winner_score: int, max_points: int) -> int:
    if call_type is CallType.FALTA_ENVIDO:
        return max_points - winner_score
    return ENVIDO_STAKES[call_type]


def award_points(state: GameState, player_id: str, points: int, **changes: Any) -> GameState:
    """Return a new state with ``points`` added to ``player_id``.

    Extra keyword arguments are applied in the same replace. The first player
    to reach the configured threshold becomes the match winner.
    """
    scores = dict(state.scores)
    scores[player_id] = scores.get(player_id, 0) + points
    winner_id = state.winner_id
    if winner_id is None and scores[player_id] >= state.config.max_points:
        winner_id = player_id
    return replace(state, scores=scores, winner_id=winner_id, **changes)
