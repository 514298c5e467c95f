from dataclasses import replace

from lobby.manager import RoomManager
from lobby.models import RoomStatus
from truco.rules_schema import GameConfig


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def fixed_codes(*codes):
    pending = list(codes)

    def factory():
        return pending.pop(0)

    return factory


def abandon(manager, room_id):
    for player in manager._rooms[room_id].players:
        player.connected = False


def test_abandoned_waiting_room_is_swept_and_its_code_reused():
    clock = FakeClock()
    manager = RoomManager(clock=clock, code_factory=fixed_codes("ABC123", "ABC123"), room_idle_timeout=300)
    room = manager.create_room("ana", "Ana")
    manager.join_room(room.id, "bruno", "Bruno")
    abandon(manager, room.id)

    assert manager.sweep(now=clock.now + 299).rooms_removed == []
    assert manager.get_room(room.id) is not None

    report = manager.sweep(now=clock.now + 301)
    assert report.rooms_removed == [room.id]
    assert manager.get_room(room.id) is None
    assert manager.get_player_room("ana") is None
    assert not manager.is_code_in_use("ABC123")

    clock.now += 400
    again = manager.create_room("carla", "Carla")
    assert again.code == "ABC123"
    assert again.id != room.id


def test_waiting_room_with_someone_connected_survives():
    clock = FakeClock()
    manager = RoomManager(clock=clock)
    room = manager.create_room("ana", "Ana")
    assert manager.sweep(now=clock.now + 10_000).rooms_removed == []
    assert manager.get_room(room.id).status is RoomStatus.WAITING


def test_playing_rooms_are_never_swept():
    clock = FakeClock()
    manager = RoomManager(clock=clock)
    room = manager.create_room("ana", "Ana")
    manager.join_room(room.id, "bruno", "Bruno")
    manager.start_game(room.id)
    manager.leave_room("ana")
    manager.leave_room("bruno")
    assert manager.sweep(now=clock.now + 10_000).rooms_removed == []


def test_idle_ended_room_is_swept():
    clock = FakeClock()
    manager = RoomManager(clock=clock, room_idle_timeout=60)
    room = manager.create_room("ana", "Ana", GameConfig(max_points=15))
    manager.join_room(room.id, "bruno", "Bruno")
    manager.start_game(room.id)
    live = manager._rooms[room.id]
    live.game = replace(live.game, winner_id="ana")
    live.status = RoomStatus.ENDED

    assert manager.sweep(now=clock.now + 30).rooms_removed == []
    assert manager.sweep(now=clock.now + 61).rooms_removed == [room.id]
    assert len(manager) == 0


def test_sweep_expires_stale_queue_entries():
    clock = FakeClock()
    manager = RoomManager(clock=clock, queue_timeout=120)
    manager.request_quick_match("ana", "Ana")
    clock.now += 100
    manager.request_quick_match("bruno", "Bruno", GameConfig(max_points=30))

    report = manager.sweep(now=clock.now + 30)
    assert report.queue_removed == ["ana"]
    assert manager.queue.is_waiting("bruno")
