from __future__ import annotations

import argparse
import json
import sys
from typing import Any

import httpx

from todoapi.config import ServiceConfig, load_config


def serve(cfg: ServiceConfig) -> int:
    """Run the service in the foreground with a fresh in-memory store."""
    # Defer heavy imports so client subcommands stay lightweight
    import uvicorn

    from todoapi.gateway.app import create_app
    from todoapi.store import InMemoryTaskStore

    app = create_app(InMemoryTaskStore())
    # log_config=None keeps the handlers installed by create_app
    server = uvicorn.Server(
        uvicorn.Config(
            app, host=cfg.host, port=cfg.port, log_level=cfg.log_level, log_config=None
        )
    )
    server.run()
    return 0


def _print_json(data: Any) -> None:
    sys.stdout.write(json.dumps(data, indent=2) + "\n")


def _report(resp: httpx.Response) -> int:
    """Print a response body and map the status to an exit code.

    Problem bodies (4xx/5xx) go to stderr so stdout only carries todos.
    """
    if resp.status_code >= 400:
        if resp.content:
            sys.stderr.write(resp.text.strip() + "\n")
        else:
            sys.stderr.write(f"error: HTTP {resp.status_code}\n")
        return 1
    if resp.content:
        _print_json(resp.json())
    return 0


def _todo_payload(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "id": args.id,
        "name": args.name,
        "dueDate": args.due,
        "isCompleted": bool(args.completed),
    }


def run_client_command(args: argparse.Namespace, client: httpx.Client) -> int:
    if args.cmd == "list":
        return _report(client.get("/todos/"))
    if args.cmd == "get":
        resp = client.get(f"/todos/{args.id}")
        if resp.status_code == 404:
            sys.stderr.write(f"todo {args.id} not found\n")
            return 1
        return _report(resp)
    if args.cmd == "add":
        return _report(client.post("/todos", json=_todo_payload(args)))
    if args.cmd == "delete":
        return _report(client.delete(f"/todos/{args.id}"))
    raise ValueError(f"unknown command: {args.cmd}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser("todoapi")
    sub = parser.add_subparsers(dest="cmd")

    p_serve = sub.add_parser("serve", help="Run the HTTP service")
    p_serve.add_argument("--host")
    p_serve.add_argument("--port", type=int)
    p_serve.add_argument("--log-level", choices=["debug", "info", "warning", "error"])

    # Client subcommands share connection options
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--base-url", help="Service URL (default: TODOAPI_BASE_URL)")
    common.add_argument("--timeout", type=float, default=10.0)

    sub.add_parser("list", parents=[common], help="List all todos")

    p_get = sub.add_parser("get", parents=[common], help="Show one todo")
    p_get.add_argument("id", type=int)

    p_add = sub.add_parser("add", parents=[common], help="Create a todo")
    p_add.add_argument("id", type=int)
    p_add.add_argument("name")
    p_add.add_argument("due", help="ISO-8601 due date, e.g. 2030-01-01T09:00:00Z")
    p_add.add_argument("--completed", action="store_true")

    p_delete = sub.add_parser("delete", parents=[common], help="Delete a todo by id")
    p_delete.add_argument("id", type=int)
    return parser


def main(argv: list[str] | None = None, *, transport: httpx.BaseTransport | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    cfg = load_config()

    if args.cmd is None:
        parser.print_help()
        return 0

    if args.cmd == "serve":
        if args.host:
            cfg.host = args.host
        if args.port:
            cfg.port = args.port
        if args.log_level:
            cfg.log_level = args.log_level
        return serve(cfg)

    base_url = (args.base_url or cfg.base_url).rstrip("/")
    try:
        with httpx.Client(base_url=base_url, timeout=args.timeout, transport=transport) as client:
            return run_client_command(args, client)
    except httpx.HTTPError as exc:
        sys.stderr.write(f"error: request to {base_url} failed: {exc}\n")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
