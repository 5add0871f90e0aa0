"""Test helper utilities for record intake tests."""

from .memory_store import InMemoryStore, RacingStore
from .transport import ScriptedTransport

__all__ = ["InMemoryStore", "RacingStore", "ScriptedTransport"]
