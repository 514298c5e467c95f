"""In-memory room registry, session tracking and quick-match queue."""

__all__ = [
    "models",
    "locks",
    "matchmaking",
    "manager",
    "views",
]
