"""Sanitized views of a game for UI consumers.

The public view never contains cards still held by a player; each player's
own cards travel separately through ``hand_view``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from .bidding import TRUCO_LEVEL_NAMES, has_flor
from .cards import card_label, serialize_card
from .state import MAX_TRUCO_LEVEL, CallType, GamePhase, GameState
from .trick import Trick


@dataclass
class TrickPlayView:
    player_id: str
    card: dict
    label: str


@dataclass
class TrickView:
    plays: list[TrickPlayView]
    winner_id: Optional[str]


@dataclass
class CallView:
    type: str
    level: int
    by: str
    label: str


@dataclass
class GameView:
    phase: str
    hand_number: int
    round_number: int
    turn_player_id: str
    hand_starter_id: str
    table: TrickView
    last_trick: Optional[TrickView]
    won_tricks: dict[str, int]
    cards_in_hand: dict[str, int]
    call: Optional[CallView]
    accepted: bool
    scores: dict[str, int]
    winner_id: Optional[str]
    config: dict
    envido_points: dict[str, int]
    flor_called: bool
    envido_called: bool


@dataclass
class HandView:
    player_id: str
    hand: list[dict]
    hand_labels: list[str]
    legal_actions: list[str]


def _trick_view(trick: Trick) -> TrickView:
    return TrickView(
        plays=[
            TrickPlayView(player_id=play.player_id, card=serialize_card(play.card), label=card_label(play.card))
            for play in trick.plays
        ],
        winner_id=trick.winner_id,
    )


def call_label(call_type: CallType, level: int) -> str:
    if call_type is CallType.TRUCO:
        return TRUCO_LEVEL_NAMES[level]
    return call_type.value.replace("_", " ")


def game_view(state: GameState) -> GameView:
    call_view = None
    if state.call is not None:
        # The caller's envido/flor value stays private until resolution.
        call_view = CallView(
            type=state.call.type.value,
            level=state.call.level,
            by=state.call.by,
            label=call_label(state.call.type, state.call.level),
        )
    return GameView(
        phase=state.phase.value,
        hand_number=state.hand_number,
        round_number=state.round_number,
        turn_player_id=state.turn_player_id,
        hand_starter_id=state.hand_starter_id,
        table=_trick_view(state.table),
        last_trick=_trick_view(state.last_trick) if state.last_trick is not None else None,
        won_tricks=dict(state.won_tricks),
        cards_in_hand={player: len(state.hand_of(player)) for player in state.players},
        call=call_view,
        accepted=state.accepted,
        scores=dict(state.scores),
        winner_id=state.winner_id,
        config=state.config.model_dump(),
        envido_points=dict(state.envido_points),
        flor_called=state.flor_called,
        envido_called=state.envido_called,
    )


def hand_view(state: GameState, player_id: str) -> HandView:
    state.require_player(player_id)
    cards = state.hand_of(player_id)
    return HandView(
        player_id=player_id,
        hand=[serialize_card(card) for card in cards],
        hand_labels=[card_label(card) for card in cards],
        legal_actions=legal_actions(state, player_id),
    )


def legal_actions(state: GameState, player_id: str) -> List[str]:
    """Names of the intents ``player_id`` may submit next."""
    if state.is_finished() or player_id not in state.players:
        return []

    pending = state.pending_call()
    if pending is not None:
        return [] if pending.by == player_id else ["accept_call", "reject_call"]

    actions: List[str] = []
    if state.phase is GamePhase.FLOR:
        if not state.flor_called and has_flor(state.hand_of(player_id)):
            actions.append("call_flor")
        actions.append("skip_phase")
    elif state.phase is GamePhase.ENVIDO:
        if not state.envido_called:
            actions.extend(["call_envido", "call_real_envido", "call_falta_envido"])
        actions.append("skip_phase")
    else:
        current = state.call
        can_raise = current is None or (current.by != player_id and current.level < MAX_TRUCO_LEVEL)
        if not state.truco_rejected and can_raise:
            actions.append("call_truco")
        if state.phase is GamePhase.TRUCO:
            actions.append("skip_phase")
        elif state.turn_player_id == player_id:
            actions.append("play_card")
    return actions


def view_to_dict(view: Any) -> Dict[str, Any]:
    return asdict(view)
