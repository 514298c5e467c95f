import pytest

from lobby.manager import RoomManager
from lobby.views import room_summary, waiting_rooms_listing
from truco.bidding import call_envido, call_flor
from truco.cards import Card, Rank, Suit
from truco.errors import InvalidActor
from truco.game import initialize_game
from truco.rules_schema import GameConfig
from truco.service import game_view, hand_view, legal_actions, view_to_dict

ANA = [Card(Rank.SEVEN, Suit.BASTOS), Card(Rank.SIX, Suit.BASTOS), Card(Rank.FIVE, Suit.BASTOS)]
BRUNO = [Card(Rank.ONE, Suit.ESPADAS), Card(Rank.TWO, Suit.OROS), Card(Rank.THREE, Suit.COPAS)]


def new_game(with_flor=True):
    deck = [card for pair in zip(ANA, BRUNO) for card in pair]
    return initialize_game(["ana", "bruno"], GameConfig(with_flor=with_flor), deck=deck, starter_id="ana")


def test_public_view_hides_held_cards():
    view = view_to_dict(game_view(new_game()))
    assert view["cards_in_hand"] == {"ana": 3, "bruno": 3}
    assert "hands" not in view
    assert "stock" not in view
    assert view["phase"] == "flor"
    assert view["config"] == {"max_points": 15, "with_flor": True}
    flat = repr(view)
    for card in ANA + BRUNO:
        assert card.id not in flat


def test_pending_call_keeps_the_callers_value_private():
    state = call_flor(new_game(), "ana")
    view = view_to_dict(game_view(state))
    assert view["call"] == {"type": "flor", "level": 1, "by": "ana", "label": "flor"}
    assert "38" not in repr(view["call"])


def test_hand_view_only_shows_own_cards():
    state = new_game()
    view = hand_view(state, "bruno")
    assert [card["id"] for card in view.hand] == [card.id for card in BRUNO]
    assert view.hand_labels == ["1 de espadas", "2 de oros", "3 de copas"]
    with pytest.raises(InvalidActor):
        hand_view(state, "carla")


def test_legal_actions_follow_the_phase():
    state = new_game()
    assert legal_actions(state, "ana") == ["call_flor", "skip_phase"]
    assert legal_actions(state, "bruno") == ["skip_phase"]

    pending = call_envido(new_game(with_flor=False), "bruno")
    assert legal_actions(pending, "ana") == ["accept_call", "reject_call"]
    assert legal_actions(pending, "bruno") == []
    assert legal_actions(pending, "carla") == []


def test_room_summary_lists_players_without_game_data():
    manager = RoomManager()
    room = manager.create_room("ana", "Ana")
    manager.join_room(room.id, "bruno", "Bruno")
    room = manager.start_game(room.id)

    summary = room_summary(room)
    assert summary["status"] == "playing"
    assert summary["player_count"] == 2
    assert summary["players"][1] == {"id": "bruno", "name": "Bruno", "connected": True}
    assert "game" not in summary


def test_waiting_listing_serializes_each_room():
    manager = RoomManager()
    manager.create_room("ana", "Ana")
    listing = waiting_rooms_listing(manager.list_waiting_rooms())
    assert len(listing) == 1
    assert listing[0]["status"] == "waiting"
