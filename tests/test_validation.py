from __future__ import annotations

import datetime

import pytest

from tests.helpers.timeline import FIXED_NOW, fixed_clock
from todoapi.gateway.validation import (
    COMPLETED_ON_CREATE,
    DUE_DATE_IN_PAST,
    ValidationProblem,
    check_new_todo,
    ensure_creatable,
    errors_from_request_validation,
    problem_body,
)
from todoapi.models.todo import Todo


def _todo(due: datetime.datetime, completed: bool = False) -> Todo:
    return Todo(id=1, name="x", due_date=due, is_completed=completed)


def test_future_incomplete_todo_has_no_errors() -> None:
    todo = _todo(FIXED_NOW + datetime.timedelta(minutes=1))
    assert check_new_todo(todo, FIXED_NOW) == {}


def test_due_date_exactly_now_is_allowed() -> None:
    assert check_new_todo(_todo(FIXED_NOW), FIXED_NOW) == {}


def test_past_due_date_is_reported() -> None:
    todo = _todo(FIXED_NOW - datetime.timedelta(seconds=1))
    assert check_new_todo(todo, FIXED_NOW) == {"dueDate": [DUE_DATE_IN_PAST]}


def test_completed_is_reported() -> None:
    todo = _todo(FIXED_NOW + datetime.timedelta(days=1), completed=True)
    assert check_new_todo(todo, FIXED_NOW) == {"isCompleted": [COMPLETED_ON_CREATE]}


def test_both_rules_are_evaluated() -> None:
    todo = _todo(FIXED_NOW - datetime.timedelta(days=1), completed=True)
    errors = check_new_todo(todo, FIXED_NOW)
    assert errors == {"dueDate": [DUE_DATE_IN_PAST], "isCompleted": [COMPLETED_ON_CREATE]}


def test_ensure_creatable_raises_with_all_errors() -> None:
    todo = _todo(FIXED_NOW - datetime.timedelta(days=1), completed=True)
    with pytest.raises(ValidationProblem) as exc_info:
        ensure_creatable(todo, fixed_clock)
    assert set(exc_info.value.errors) == {"dueDate", "isCompleted"}


def test_ensure_creatable_returns_valid_todo() -> None:
    todo = _todo(FIXED_NOW + datetime.timedelta(days=1))
    assert ensure_creatable(todo, fixed_clock) is todo


def test_problem_body_shape() -> None:
    body = problem_body({"dueDate": (DUE_DATE_IN_PAST,)})
    assert body["status"] == 400
    assert body["title"] == "One or more validation errors occurred."
    assert body["type"].startswith("https://")
    assert body["errors"] == {"dueDate": [DUE_DATE_IN_PAST]}


def test_request_validation_errors_group_by_field() -> None:
    details = [
        {"loc": ("body", "name"), "msg": "Field required"},
        {"loc": ("body", "dueDate"), "msg": "Input should be a valid datetime"},
        {"loc": ("body", "dueDate"), "msg": "second"},
        {"loc": ("path", "todo_id"), "msg": "Input should be a valid integer"},
        {"loc": ("body",), "msg": "Field required"},
    ]
    errors = errors_from_request_validation(details)
    assert errors == {
        "name": ["Field required"],
        "dueDate": ["Input should be a valid datetime", "second"],
        "todo_id": ["Input should be a valid integer"],
        "body": ["Field required"],
    }
