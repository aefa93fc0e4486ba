from __future__ import annotations

import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Todo(BaseModel):
    """A single task item.

    Values are immutable once constructed. Wire names are camelCase
    (`dueDate`, `isCompleted`); snake_case attribute names are accepted too.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    name: str
    due_date: datetime.datetime = Field(alias="dueDate")
    is_completed: bool = Field(default=False, alias="isCompleted")

    @field_validator("due_date")
    @classmethod
    def _as_utc(cls, value: datetime.datetime) -> datetime.datetime:
        # Naive timestamps are taken to be UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=datetime.UTC)
        return value.astimezone(datetime.UTC)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


__all__ = ["Todo"]
