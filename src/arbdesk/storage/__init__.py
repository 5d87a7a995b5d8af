"""Persistence implementations."""

from arbdesk.storage.memory import InMemoryRepository


__all__ = ["InMemoryRepository"]
