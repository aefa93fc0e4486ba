from __future__ import annotations

import datetime
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

from todoapi.models.todo import Todo

Clock = Callable[[], datetime.datetime]

PROBLEM_TYPE = "https://tools.ietf.org/html/rfc9110#section-15.5.1"
PROBLEM_TITLE = "One or more validation errors occurred."
PROBLEM_MEDIA_TYPE = "application/problem+json"

DUE_DATE_IN_PAST = "Cannot have due date in the past."
COMPLETED_ON_CREATE = "Cannot add completed todo."


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class ValidationProblem(Exception):
    """Raised when a request payload breaks one or more business rules.

    `errors` maps a wire field name to the list of messages for that field.
    """

    def __init__(self, errors: Mapping[str, Sequence[str]]) -> None:
        self.errors: dict[str, list[str]] = {k: list(v) for k, v in errors.items()}
        super().__init__(", ".join(sorted(self.errors)))


def check_new_todo(todo: Todo, now: datetime.datetime) -> dict[str, list[str]]:
    """Return field errors for a Todo about to be created.

    Every rule is evaluated so one response can report all of them.
    """
    errors: dict[str, list[str]] = {}
    if todo.due_date < now:
        errors.setdefault("dueDate", []).append(DUE_DATE_IN_PAST)
    if todo.is_completed:
        errors.setdefault("isCompleted", []).append(COMPLETED_ON_CREATE)
    return errors


def ensure_creatable(todo: Todo, clock: Clock = utc_now) -> Todo:
    errors = check_new_todo(todo, clock())
    if errors:
        raise ValidationProblem(errors)
    return todo


def problem_body(errors: Mapping[str, Sequence[str]], status: int = 400) -> dict[str, Any]:
    return {
        "type": PROBLEM_TYPE,
        "title": PROBLEM_TITLE,
        "status": status,
        "errors": {k: list(v) for k, v in errors.items()},
    }


def errors_from_request_validation(details: Iterable[Mapping[str, Any]]) -> dict[str, list[str]]:
    """Group FastAPI/pydantic error entries by field name.

    The leading location part ("body", "path", "query") is dropped so the keys
    read like the wire fields, e.g. ("body", "dueDate") -> "dueDate".
    """
    errors: dict[str, list[str]] = {}
    for entry in details:
        loc = [str(p) for p in entry.get("loc", ())]
        key = ".".join(loc[1:]) or (loc[0] if loc else "request")
        errors.setdefault(key, []).append(str(entry.get("msg", "Invalid value.")))
    return errors


__all__ = [
    "Clock",
    "COMPLETED_ON_CREATE",
    "DUE_DATE_IN_PAST",
    "PROBLEM_MEDIA_TYPE",
    "ValidationProblem",
    "check_new_todo",
    "ensure_creatable",
    "errors_from_request_validation",
    "problem_body",
    "utc_now",
]
