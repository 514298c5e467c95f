"""Human-readable table talk for the ``game:message`` event.

Messages are derived from the intent and the game before and after it, so
the engine stays free of presentation text.
"""

from __future__ import annotations

from typing import List, Mapping, Tuple

from truco.cards import card_from_id, card_label
from truco.game import CallEnvido, CallFlor, CallTruco, Intent, PlayCard, RespondToCall, SkipPhase
from truco.service import call_label
from truco.state import CallType, GameState

# Values of the ``type`` field clients use to style a message.
INFO = "info"
ACTION = "action"
TRUCO = "truco"
ENVIDO = "envido"
FLOR = "flor"
WINNER = "winner"

Message = Tuple[str, str]


def created_message(name: str) -> Message:
    return INFO, f"{name} creó la sala"


def joined_message(name: str) -> Message:
    return INFO, f"{name} se unió a la sala"


def match_found_message() -> Message:
    return INFO, "¡Emparejamiento encontrado!"


def game_started_message() -> Message:
    return INFO, "¡La partida comenzó!"


def _kind_of(call_type: CallType) -> str:
    if call_type is CallType.TRUCO:
        return TRUCO
    if call_type is CallType.FLOR:
        return FLOR
    return ENVIDO


def intent_messages(
    before: GameState,
    after: GameState,
    player_id: str,
    intent: Intent,
    names: Mapping[str, str],
) -> List[Message]:
    """Describe what ``intent`` by ``player_id`` did to the table, in order."""
    name = names.get(player_id, player_id)
    messages: List[Message] = []

    if isinstance(intent, PlayCard):
        card = card_from_id(before.hand_of(player_id), intent.card_id)
        if card is not None:
            messages.append((ACTION, f"{name} jugó {card_label(card)}"))
        if after.last_trick is not None and after.last_trick is not before.last_trick:
            trick_winner = after.last_trick.winner_id
            messages.append((INFO, f"{names.get(trick_winner, trick_winner)} ganó la baza"))
    elif isinstance(intent, (CallTruco, CallEnvido, CallFlor)) and after.call is not None:
        messages.append((_kind_of(after.call.type), f"{name} cantó {call_label(after.call.type, after.call.level)}"))
    elif isinstance(intent, RespondToCall):
        pending = before.pending_call()
        if pending is not None:
            answer = "quiero" if intent.accept else "no quiero"
            messages.append((_kind_of(pending.type), f"{name}: {answer}"))
    elif isinstance(intent, SkipPhase):
        messages.append((INFO, f"{name} pasó"))

    if before.winner_id is None and after.winner_id is not None:
        messages.append((WINNER, f"¡{names.get(after.winner_id, after.winner_id)} ganó la partida!"))
    return messages
