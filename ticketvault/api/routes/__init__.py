"""Route modules exposed by the API package."""

from . import comments, ping, tickets

__all__ = ["comments", "ping", "tickets"]
