"""HTTP and WebSocket transport for Truco rooms."""

__all__ = [
    "settings",
    "connections",
    "game_service",
    "start",
]
