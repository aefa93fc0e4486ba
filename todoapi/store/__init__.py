from __future__ import annotations

from .interface import TaskStore
from .memory import InMemoryTaskStore

__all__ = ["TaskStore", "InMemoryTaskStore"]
