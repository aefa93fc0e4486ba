from __future__ import annotations

import threading

from todoapi.models.todo import Todo
from todoapi.store.interface import TaskStore


class InMemoryTaskStore(TaskStore):
    """Thread-safe in-process store backed by an append-only list.

    - lookups and deletes are linear scans
    - add appends, so listing preserves insertion order
    - all state is lost when the process exits
    """

    def __init__(self) -> None:
        self._todos: list[Todo] = []
        self._lock = threading.RLock()

    def get_by_id(self, todo_id: int) -> Todo | None:
        with self._lock:
            for todo in self._todos:
                if todo.id == todo_id:
                    return todo
        return None

    def list_all(self) -> list[Todo]:
        with self._lock:
            return list(self._todos)

    def add(self, todo: Todo) -> Todo:
        with self._lock:
            self._todos.append(todo)
        return todo

    def delete_by_id(self, todo_id: int) -> int:
        with self._lock:
            before = len(self._todos)
            self._todos = [t for t in self._todos if t.id != todo_id]
            return before - len(self._todos)


__all__ = ["InMemoryTaskStore"]
