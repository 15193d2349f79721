"""Authoritative engine for a snake game spread across portal-linked monitors."""

__all__ = [
    "collision",
    "config",
    "constants",
    "engine",
    "food",
    "grid",
    "main",
    "persistence",
    "protocol",
    "scheduler",
    "simulation",
    "snake",
    "state",
    "topology",
]
