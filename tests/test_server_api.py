import json
from dataclasses import replace
from random import Random

from fastapi.testclient import TestClient

from lobby.manager import RoomManager
from server.game_service import create_app
from server.settings import ServerSettings


def make_client():
    manager = RoomManager(rng=Random(4))
    app = create_app(settings=ServerSettings(), manager=manager)
    return TestClient(app), manager


def as_player(player_id):
    return {"X-Player-Id": player_id}


def open_game(client):
    created = client.post("/rooms", json={"name": "Ana"}, headers=as_player("ana")).json()
    room_id = created["room"]["id"]
    client.post("/rooms/join", json={"code": created["room"]["code"].lower(), "name": "Bruno"}, headers=as_player("bruno"))
    client.post(f"/rooms/{room_id}/start", headers=as_player("ana"))
    return room_id


def test_health():
    client, _ = make_client()
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_missing_player_header_is_unauthorized():
    client, _ = make_client()
    response = client.post("/rooms", json={"name": "Ana"})
    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "UNAUTHORIZED"


def test_create_and_list_rooms():
    client, _ = make_client()
    response = client.post(
        "/rooms",
        json={"name": "Ana", "config": {"maxPoints": 30, "withFlor": False}},
        headers=as_player("ana"),
    )
    assert response.status_code == 200
    room = response.json()["room"]
    assert room["status"] == "waiting"
    assert room["config"] == {"max_points": 30, "with_flor": False}

    listing = client.get("/rooms").json()["rooms"]
    assert [entry["id"] for entry in listing] == [room["id"]]


def test_invalid_config_is_rejected():
    client, _ = make_client()
    response = client.post("/rooms", json={"name": "Ana", "config": {"maxPoints": 20}}, headers=as_player("ana"))
    assert response.status_code == 422


def test_full_game_flow_over_http():
    client, manager = make_client()
    room_id = open_game(client)

    view = client.get(f"/game/{room_id}", headers=as_player("bruno")).json()
    assert view["room"]["status"] == "playing"
    assert len(view["hand"]["hand"]) == 3
    assert view["game"]["cards_in_hand"] == {"ana": 3, "bruno": 3}

    response = client.post(f"/game/{room_id}/play-card", json={"card_id": view["hand"]["hand"][0]["id"]}, headers=as_player("bruno"))
    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "INVALID_STATE"

    assert client.post(f"/game/{room_id}/skip", headers=as_player("ana")).status_code == 200
    response = client.post(f"/game/{room_id}/envido", json={"variant": "real_envido"}, headers=as_player("ana"))
    assert response.json()["game"]["call"]["type"] == "real_envido"

    response = client.post(f"/game/{room_id}/respond", json={"accept": False}, headers=as_player("bruno"))
    body = response.json()
    assert body["game"]["scores"] == {"ana": 1, "bruno": 0}
    assert body["game"]["phase"] == "truco"
    assert manager.get_room(room_id).game.scores["ana"] == 1


def test_errors_map_to_status_codes():
    client, _ = make_client()
    assert client.post("/rooms/nope/join", json={"name": "Ana"}, headers=as_player("ana")).status_code == 404

    room_id = open_game(client)
    outsider = client.post(f"/game/{room_id}/truco", headers=as_player("carla"))
    assert outsider.status_code == 400
    assert outsider.json()["detail"]["code"] == "INVALID_ACTOR"

    full = client.post(f"/rooms/{room_id}/join", json={"name": "Carla"}, headers=as_player("carla"))
    assert full.status_code == 409

    no_call = client.post(f"/game/{room_id}/respond", json={"accept": True}, headers=as_player("ana"))
    assert no_call.status_code == 404


def test_quick_match_pairs_two_requests():
    client, _ = make_client()
    first = client.post("/match/quick", json={"name": "Ana"}, headers=as_player("ana")).json()
    assert first["matched"] is False

    second = client.post("/match/quick", json={"name": "Bruno"}, headers=as_player("bruno")).json()
    assert second["matched"] is True
    assert [player["id"] for player in second["room"]["players"]] == ["ana", "bruno"]


def test_withdraw_and_leave():
    client, manager = make_client()
    client.post("/match/quick", json={"name": "Ana"}, headers=as_player("ana"))
    assert client.delete("/match/quick", headers=as_player("ana")).json()["withdrawn"] is True
    assert client.delete("/match/quick", headers=as_player("ana")).json()["withdrawn"] is False

    room_id = client.post("/rooms", json={"name": "Ana"}, headers=as_player("ana")).json()["room"]["id"]
    left = client.post(f"/rooms/{room_id}/leave", headers=as_player("ana")).json()
    assert left == {"success": True, "room": None}
    assert manager.get_room(room_id) is None


def test_websocket_receives_room_updates_and_close_means_leave():
    client, manager = make_client()
    with client:
        room_id = client.post("/rooms", json={"name": "Ana"}, headers=as_player("ana")).json()["room"]["id"]
        with client.websocket_connect("/ws/ana") as socket:
            event = socket.receive_json()
            assert event["type"] == "room:update"
            assert event["data"]["id"] == room_id

            client.post(f"/rooms/{room_id}/join", json={"name": "Bruno"}, headers=as_player("bruno"))
            event = socket.receive_json()
            assert event["type"] == "room:update"
            assert event["data"]["player_count"] == 2

    assert not manager.get_room(room_id).find_player("ana").connected


def drain(socket):
    """Every event pushed so far; the pong marks the end of the backlog."""
    socket.send_text("ping")
    events = []
    while True:
        text = socket.receive_text()
        if text == "pong":
            return events
        events.append(json.loads(text))


def of_type(events, event_type):
    return [event["data"] for event in events if event["type"] == event_type]


def test_malformed_card_id_is_rejected_before_the_engine():
    client, _ = make_client()
    room_id = open_game(client)
    response = client.post(f"/game/{room_id}/play-card", json={"card_id": "8-espadas"}, headers=as_player("ana"))
    assert response.status_code == 422


def test_table_talk_is_pushed_as_game_messages():
    client, _ = make_client()
    with client:
        room_id = client.post("/rooms", json={"name": "Ana"}, headers=as_player("ana")).json()["room"]["id"]
        with client.websocket_connect("/ws/ana") as socket:
            client.post(f"/rooms/{room_id}/join", json={"name": "Bruno"}, headers=as_player("bruno"))
            client.post(f"/rooms/{room_id}/start", headers=as_player("ana"))
            client.post(f"/game/{room_id}/skip", headers=as_player("ana"))
            client.post(f"/game/{room_id}/envido", json={"variant": "falta_envido"}, headers=as_player("ana"))
            client.post(f"/game/{room_id}/respond", json={"accept": False}, headers=as_player("bruno"))

            said = [(message["type"], message["text"]) for message in of_type(drain(socket), "game:message")]

    assert said == [
        ("info", "Bruno se unió a la sala"),
        ("info", "¡La partida comenzó!"),
        ("info", "Ana pasó"),
        ("envido", "Ana cantó falta envido"),
        ("envido", "Bruno: no quiero"),
    ]


def test_each_socket_only_receives_its_own_hand():
    client, manager = make_client()
    with client:
        created = client.post("/rooms", json={"name": "Ana"}, headers=as_player("ana")).json()
        room_id = created["room"]["id"]
        client.post(f"/rooms/{room_id}/join", json={"name": "Bruno"}, headers=as_player("bruno"))
        with client.websocket_connect("/ws/ana") as ana_socket, client.websocket_connect("/ws/bruno") as bruno_socket:
            client.post(f"/rooms/{room_id}/start", headers=as_player("ana"))
            pushed = {"ana": drain(ana_socket), "bruno": drain(bruno_socket)}
            game = manager.get_room(room_id).game

    for player_id, other in (("ana", "bruno"), ("bruno", "ana")):
        hands = of_type(pushed[player_id], "game:hand")
        assert hands
        assert all(hand["player_id"] == player_id for hand in hands)
        assert [card["id"] for card in hands[-1]["hand"]] == [card.id for card in game.hand_of(player_id)]
        seen = json.dumps(pushed[player_id])
        assert not any(f'"{card.id}"' in seen for card in game.hand_of(other))


def test_game_ended_is_pushed_once():
    client, manager = make_client()
    with client:
        created = client.post(
            "/rooms", json={"name": "Ana", "config": {"withFlor": False}}, headers=as_player("ana")
        ).json()
        room_id = created["room"]["id"]
        client.post(f"/rooms/{room_id}/join", json={"name": "Bruno"}, headers=as_player("bruno"))
        client.post(f"/rooms/{room_id}/start", headers=as_player("ana"))
        live = manager._rooms[room_id]
        live.game = replace(live.game, scores={"ana": 14, "bruno": 0})

        with client.websocket_connect("/ws/ana") as socket:
            drain(socket)
            client.post(f"/game/{room_id}/envido", headers=as_player("ana"))
            client.post(f"/game/{room_id}/respond", json={"accept": False}, headers=as_player("bruno"))
            events = drain(socket)
            assert of_type(events, "game:ended") == [{"winner_id": "ana", "scores": {"ana": 15, "bruno": 0}}]
            assert ("winner", "¡Ana ganó la partida!") in [
                (message["type"], message["text"]) for message in of_type(events, "game:message")
            ]

            client.post(f"/rooms/{room_id}/leave", headers=as_player("bruno"))
            after_leave = drain(socket)
            assert of_type(after_leave, "room:update")
            assert of_type(after_leave, "game:ended") == []


class FailingManager(RoomManager):
    def apply_intent_with_previous(self, room_id, player_id, intent):
        raise RuntimeError("secret")


def test_unexpected_errors_become_opaque_500s():
    app = create_app(settings=ServerSettings(), manager=FailingManager(rng=Random(4)))
    client = TestClient(app, raise_server_exceptions=False)
    response = client.post("/game/anything/truco", headers=as_player("ana"))
    assert response.status_code == 500
    assert response.json()["detail"]["code"] == "INTERNAL_ERROR"
    assert "secret" not in response.text
