"""
Core collaborators for the Memory Match game.

This module provides the timing and persistence abstractions the game
session is built on. They carry no game rules of their own.
"""

from core.scheduler import Scheduler, TimerHandle, AsyncioScheduler, ManualScheduler
from core.clock import Clock
from core.storage import KeyValueStore, InMemoryStore, JsonFileStore

__all__ = [
    "Scheduler",
    "TimerHandle",
    "AsyncioScheduler",
    "ManualScheduler",
    "Clock",
    "KeyValueStore",
    "InMemoryStore",
    "JsonFileStore",
]
