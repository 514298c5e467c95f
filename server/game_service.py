"""REST and WebSocket surface for Truco rooms.

Intents arrive over HTTP with the acting player in the ``X-Player-Id``
header. Every accepted mutation is pushed to the room's members over their
WebSocket: the public snapshot to everyone, each hand only to its owner.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Any, AsyncIterator, Dict, Literal, Optional

from fastapi import Depends, FastAPI, Header, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator

from lobby.manager import RoomManager
from lobby.models import Room
from lobby.views import room_summary, waiting_rooms_listing
from truco.cards import parse_card_id
from truco.errors import (
    ConfigurationError,
    GameError,
    IllegalMoveError,
    InvalidActor,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
)
from truco.game import CallEnvido, CallFlor, CallTruco, Intent, PlayCard, RespondToCall, SkipPhase
from truco.rules_schema import DEFAULT_CONFIG, GameConfig
from truco.service import game_view, hand_view, view_to_dict
from truco.state import CallType

from . import messages
from .connections import ConnectionManager
from .settings import ServerSettings

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    UnauthorizedError: 401,
    NotFoundError: 404,
    InvalidStateError: 409,
    IllegalMoveError: 400,
    ConfigurationError: 400,
}


class CreateRoomRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=32)
    config: GameConfig = DEFAULT_CONFIG


class JoinByCodeRequest(BaseModel):
    code: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=32)


class JoinRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=32)


class QuickMatchRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=32)
    config: GameConfig = DEFAULT_CONFIG


class PlayCardRequest(BaseModel):
    card_id: str

    @field_validator("card_id")
    @classmethod
    def _known_card(cls, value: str) -> str:
        parse_card_id(value)
        return value


class EnvidoRequest(BaseModel):
    variant: Literal["envido", "real_envido", "falta_envido"] = "envido"


class RespondRequest(BaseModel):
    accept: bool


def status_for(exc: GameError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 400


def error_body(code: str, message: str) -> Dict[str, Any]:
    return {"detail": {"code": code, "message": message}}


def current_player(x_player_id: Optional[str] = Header(None)) -> str:
    if x_player_id is None or not x_player_id.strip():
        raise UnauthorizedError("Missing X-Player-Id header.")
    return x_player_id.strip()


def room_response(room: Room, player_id: str) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True, "room": room_summary(room)}
    if room.game is not None and room.find_player(player_id) is not None:
        body["game"] = view_to_dict(game_view(room.game))
        body["hand"] = view_to_dict(hand_view(room.game, player_id))
    return body


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def sweep_forever(manager: RoomManager, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            manager.sweep()
        except Exception:
            logger.exception("Idle sweep failed")


def create_app(
    settings: Optional[ServerSettings] = None,
    manager: Optional[RoomManager] = None,
) -> FastAPI:
    if settings is None:
        settings = ServerSettings.from_env()
    configure_logging(settings.log_level)
    if manager is None:
        manager = RoomManager(
            room_idle_timeout=settings.room_idle_timeout,
            queue_timeout=settings.queue_timeout,
        )
    connections = ConnectionManager()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        task = asyncio.create_task(sweep_forever(manager, settings.sweep_interval))
        logger.info("Sweeping idle rooms every %.0fs", settings.sweep_interval)
        try:
            yield
        finally:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

    app = FastAPI(title="Truco Rooms", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.manager = manager
    app.state.connections = connections
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(GameError)
    async def handle_game_error(request: Request, exc: GameError) -> JSONResponse:
        return JSONResponse(status_code=status_for(exc), content=error_body(exc.code, exc.message))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=error_body("INTERNAL_ERROR", "Internal server error."))

    async def refresh(room_id: Optional[str]) -> None:
        """Push the current state of ``room_id`` if it still exists."""
        if room_id is None:
            return
        room = manager.get_room(room_id)
        if room is not None:
            await connections.broadcast_room(room)

    async def announce(room: Room, message: messages.Message) -> None:
        kind, text = message
        await connections.notify_message(room, kind, text)

    async def run_intent(room_id: str, player_id: str, intent: Intent) -> Dict[str, Any]:
        before, room = manager.apply_intent_with_previous(room_id, player_id, intent)
        await connections.broadcast_room(room)
        names = {player.id: player.name for player in room.players}
        for message in messages.intent_messages(before, room.game, player_id, intent, names):
            await announce(room, message)
        if before.winner_id is None and room.game.winner_id is not None:
            await connections.notify_ended(room)
        return room_response(room, player_id)

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {
            "status": "healthy",
            "rooms": len(manager),
            "queued": len(manager.queue),
            "connections": len(connections),
        }

    @app.post("/rooms")
    async def create_room(body: CreateRoomRequest, player_id: str = Depends(current_player)) -> Dict[str, Any]:
        previous = manager.get_player_room(player_id)
        room = manager.create_room(player_id, body.name, body.config)
        await refresh(previous.id if previous is not None else None)
        await connections.broadcast_room(room)
        await announce(room, messages.created_message(body.name))
        return room_response(room, player_id)

    @app.get("/rooms")
    async def list_rooms() -> Dict[str, Any]:
        return {"success": True, "rooms": waiting_rooms_listing(manager.list_waiting_rooms())}

    @app.post("/rooms/join")
    async def join_by_code(body: JoinByCodeRequest, player_id: str = Depends(current_player)) -> Dict[str, Any]:
        previous = manager.get_player_room(player_id)
        room = manager.join_room_by_code(body.code, player_id, body.name)
        if previous is not None and previous.id != room.id:
            await refresh(previous.id)
        await connections.broadcast_room(room)
        await announce(room, messages.joined_message(body.name))
        return room_response(room, player_id)

    @app.post("/rooms/{room_id}/join")
    async def join_by_id(room_id: str, body: JoinRequest, player_id: str = Depends(current_player)) -> Dict[str, Any]:
        previous = manager.get_player_room(player_id)
        room = manager.join_room(room_id, player_id, body.name)
        if previous is not None and previous.id != room.id:
            await refresh(previous.id)
        await connections.broadcast_room(room)
        await announce(room, messages.joined_message(body.name))
        return room_response(room, player_id)

    @app.post("/rooms/{room_id}/start")
    async def start_game(room_id: str, player_id: str = Depends(current_player)) -> Dict[str, Any]:
        room = manager.start_game(room_id, requested_by=player_id)
        await connections.broadcast_room(room)
        await announce(room, messages.game_started_message())
        return room_response(room, player_id)

    @app.post("/rooms/{room_id}/leave")
    async def leave_room(room_id: str, player_id: str = Depends(current_player)) -> Dict[str, Any]:
        room = manager.leave_room(player_id, room_id)
        if room is not None:
            await connections.broadcast_room(room)
        return {"success": True, "room": room_summary(room) if room is not None else None}

    @app.post("/match/quick")
    async def quick_match(body: QuickMatchRequest, player_id: str = Depends(current_player)) -> Dict[str, Any]:
        room = manager.request_quick_match(player_id, body.name, body.config)
        if room is None:
            return {"success": True, "matched": False, "room": None}
        await connections.notify_match(room)
        await connections.broadcast_room(room)
        await announce(room, messages.match_found_message())
        return {**room_response(room, player_id), "matched": True}

    @app.delete("/match/quick")
    async def cancel_quick_match(player_id: str = Depends(current_player)) -> Dict[str, Any]:
        return {"success": True, "withdrawn": manager.withdraw_from_queue(player_id)}

    @app.get("/game/{room_id}")
    async def own_view(room_id: str, player_id: str = Depends(current_player)) -> Dict[str, Any]:
        room = manager.get_room(room_id)
        if room is None:
            raise NotFoundError("Room not found.")
        if room.find_player(player_id) is None:
            raise InvalidActor("Player is not seated in this room.")
        return room_response(room, player_id)

    @app.post("/game/{room_id}/play-card")
    async def play_card(room_id: str, body: PlayCardRequest, player_id: str = Depends(current_player)) -> Dict[str, Any]:
        return await run_intent(room_id, player_id, PlayCard(card_id=body.card_id))

    @app.post("/game/{room_id}/truco")
    async def call_truco(room_id: str, player_id: str = Depends(current_player)) -> Dict[str, Any]:
        return await run_intent(room_id, player_id, CallTruco())

    @app.post("/game/{room_id}/envido")
    async def call_envido(room_id: str, body: Optional[EnvidoRequest] = None, player_id: str = Depends(current_player)) -> Dict[str, Any]:
        variant = CallType(body.variant) if body is not None else CallType.ENVIDO
        return await run_intent(room_id, player_id, CallEnvido(variant=variant))

    @app.post("/game/{room_id}/flor")
    async def call_flor(room_id: str, player_id: str = Depends(current_player)) -> Dict[str, Any]:
        return await run_intent(room_id, player_id, CallFlor())

    @app.post("/game/{room_id}/respond")
    async def respond(room_id: str, body: RespondRequest, player_id: str = Depends(current_player)) -> Dict[str, Any]:
        return await run_intent(room_id, player_id, RespondToCall(accept=body.accept))

    @app.post("/game/{room_id}/skip")
    async def skip(room_id: str, player_id: str = Depends(current_player)) -> Dict[str, Any]:
        return await run_intent(room_id, player_id, SkipPhase())

    @app.websocket("/ws/{player_id}")
    async def websocket_endpoint(websocket: WebSocket, player_id: str) -> None:
        await websocket.accept()
        previous = connections.register(player_id, websocket)
        if previous is not None:
            with suppress(RuntimeError):
                await previous.close(code=4000)

        try:
            room = manager.get_player_room(player_id)
            if room is not None:
                seat = room.find_player(player_id)
                if seat is not None and not seat.connected:
                    room = manager.join_room(room.id, player_id, seat.name)
                await connections.broadcast_room(room)
            while True:
                message = await websocket.receive_text()
                if message == "ping":
                    await websocket.send_text("pong")
        except WebSocketDisconnect:
            pass
        finally:
            if connections.unregister(player_id, websocket):
                left = manager.leave_room(player_id)
                if left is not None:
                    await connections.broadcast_room(left)

    return app


app = create_app()
