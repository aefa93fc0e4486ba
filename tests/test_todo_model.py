from __future__ import annotations

import datetime

import pytest
from pydantic import ValidationError

from todoapi.models.todo import Todo


def test_accepts_camel_case_wire_names() -> None:
    t = Todo.model_validate(
        {"id": 1, "name": "A", "dueDate": "2031-01-01T09:00:00Z", "isCompleted": False}
    )

    assert t.id == 1
    assert t.name == "A"
    assert t.due_date == datetime.datetime(2031, 1, 1, 9, 0, tzinfo=datetime.UTC)
    assert t.is_completed is False


def test_naive_due_date_is_treated_as_utc() -> None:
    t = Todo.model_validate({"id": 1, "name": "A", "dueDate": "2031-01-01T09:00:00"})

    assert t.due_date.tzinfo is not None
    assert t.due_date.utcoffset() == datetime.timedelta(0)
    assert t.due_date.hour == 9


def test_offset_due_date_is_normalised_to_utc() -> None:
    t = Todo.model_validate({"id": 1, "name": "A", "dueDate": "2031-01-01T09:00:00+02:00"})

    assert t.due_date == datetime.datetime(2031, 1, 1, 7, 0, tzinfo=datetime.UTC)
    assert t.due_date.utcoffset() == datetime.timedelta(0)


def test_is_completed_defaults_to_false() -> None:
    t = Todo.model_validate({"id": 1, "name": "A", "dueDate": "2031-01-01T09:00:00Z"})
    assert t.is_completed is False


def test_is_immutable() -> None:
    t = Todo.model_validate({"id": 1, "name": "A", "dueDate": "2031-01-01T09:00:00Z"})
    with pytest.raises(ValidationError):
        t.name = "B"  # type: ignore[misc]


def test_wire_shape_uses_camel_case() -> None:
    t = Todo.model_validate(
        {"id": 2, "name": "B", "dueDate": "2031-01-01T09:00:00Z", "isCompleted": True}
    )
    wire = t.to_wire()

    assert set(wire) == {"id", "name", "dueDate", "isCompleted"}
    assert wire["isCompleted"] is True
    assert datetime.datetime.fromisoformat(wire["dueDate"]) == t.due_date


def test_missing_fields_are_rejected() -> None:
    with pytest.raises(ValidationError):
        Todo.model_validate({"id": 1, "name": "A"})
