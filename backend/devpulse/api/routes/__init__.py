from . import admin, analytics, github, health, identities

__all__ = [
    "admin",
    "analytics",
    "github",
    "health",
    "identities",
]
