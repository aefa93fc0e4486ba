from __future__ import annotations

from typing import Protocol

from todoapi.models.todo import Todo


class TaskStore(Protocol):
    """Minimal pluggable store for Todos.

    Handlers only talk to this contract so a persistent variant can replace
    the in-memory one without touching them.
    """

    def get_by_id(self, todo_id: int) -> Todo | None:
        """Return the first Todo with this id, or None."""

    def list_all(self) -> list[Todo]:
        """Return every Todo in insertion order."""

    def add(self, todo: Todo) -> Todo:
        """Append a Todo and return it unchanged. Ids are not checked for uniqueness."""

    def delete_by_id(self, todo_id: int) -> int:
        """Remove every Todo with this id. Never raises; returns how many were removed."""


__all__ = ["TaskStore"]
