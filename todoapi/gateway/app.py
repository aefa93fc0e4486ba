from __future__ import annotations

from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from todoapi.gateway.middleware import prefix_redirect, request_logging
from todoapi.gateway.validation import (
    PROBLEM_MEDIA_TYPE,
    Clock,
    ValidationProblem,
    ensure_creatable,
    errors_from_request_validation,
    problem_body,
    utc_now,
)
from todoapi.models.todo import Todo
from todoapi.observability import configure_uvicorn_logging, get_json_logger, get_metrics
from todoapi.store.interface import TaskStore


def create_app(store: TaskStore, *, clock: Clock | None = None) -> FastAPI:
    """Build the HTTP service around one shared store.

    Middleware order, outermost first: request logging, then the
    `/tasks/` -> `/todos/` redirect, then routing.
    """
    app = FastAPI(title="todoapi")
    # Configure uvicorn logging at app creation so access logs share our format
    configure_uvicorn_logging()
    logger = get_json_logger("todoapi.gateway")
    metrics = get_metrics()
    now = clock or utc_now

    # Starlette wraps the last registered middleware outermost
    app.middleware("http")(prefix_redirect("/tasks/", "/todos/", logger, metrics))
    app.middleware("http")(request_logging(logger, metrics))

    @app.exception_handler(ValidationProblem)
    async def _on_validation_problem(request: Request, exc: ValidationProblem) -> JSONResponse:
        return JSONResponse(
            status_code=400, content=problem_body(exc.errors), media_type=PROBLEM_MEDIA_TYPE
        )

    @app.exception_handler(RequestValidationError)
    async def _on_malformed_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = errors_from_request_validation(exc.errors())
        logger.info(
            "malformed request",
            extra={"event": "request_malformed", "attributes": {"fields": sorted(errors)}},
        )
        return JSONResponse(
            status_code=400, content=problem_body(errors), media_type=PROBLEM_MEDIA_TYPE
        )

    async def creatable_todo(todo: Todo) -> Todo:
        try:
            return ensure_creatable(todo, now)
        except ValidationProblem as exc:
            for field in exc.errors:
                metrics.increment("todo_validation_failures", {"field": field})
            logger.info(
                "todo rejected",
                extra={
                    "event": "todo_rejected",
                    "todo_id": todo.id,
                    "attributes": {"errors": exc.errors},
                },
            )
            raise

    @app.get("/health")
    async def health() -> dict[str, str]:  # lightweight healthcheck endpoint
        return {"status": "ok"}

    @app.get("/todos/", response_model=list[Todo])
    @app.get("/todos", response_model=list[Todo], include_in_schema=False)
    async def list_todos() -> list[Todo]:
        return store.list_all()

    @app.get("/todos/{todo_id}", response_model=Todo)
    async def get_todo(todo_id: int) -> Todo | Response:
        todo = store.get_by_id(todo_id)
        if todo is None:
            metrics.increment("todo_lookups_missed")
            return Response(status_code=404)
        return todo

    @app.post("/todos", status_code=201, response_model=Todo)
    @app.post("/todos/", status_code=201, response_model=Todo, include_in_schema=False)
    async def create_todo(response: Response, todo: Todo = Depends(creatable_todo)) -> Todo:
        stored = store.add(todo)
        location = f"/todos/{stored.id}"
        response.headers["Location"] = location
        logger.info(
            "todo created",
            extra={"event": "todo_created", "todo_id": stored.id, "location": location},
        )
        metrics.increment("todos_created")
        return stored

    @app.delete("/todos/{todo_id}", status_code=204)
    async def delete_todo(todo_id: int) -> Response:
        # Idempotent: a missing id is not an error
        removed = store.delete_by_id(todo_id)
        if removed:
            metrics.increment("todos_deleted", amount=removed)
        logger.info(
            "todo delete",
            extra={"event": "todo_deleted", "todo_id": todo_id, "attributes": {"removed": removed}},
        )
        return Response(status_code=204)

    return app


__all__ = ["create_app"]
