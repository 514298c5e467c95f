"""Core rule engine package for two-player Truco."""

__all__ = [
    "cards",
    "deck",
    "trick",
    "bidding",
    "state",
    "scoring",
    "game",
    "errors",
    "rules_schema",
    "service",
]
