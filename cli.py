# cli.py
import argparse
import json
import sys
from typing import List, Optional

from config import Settings, load_settings
from logging_setup import setup_logging
from storage import Task, TaskStore, TaskStoreError


def format_task(task: Task) -> str:
    mark = "x" if task.done else " "
    return f"[{mark}] {task.id:>4}  {task.title}  ({task.created_at.isoformat()})"


def list_tasks(store: TaskStore, as_json: bool = False):
    """Print every task, oldest first."""
    tasks = store.list()
    if as_json:
        print(json.dumps({"tasks": [t.model_dump(mode="json", by_alias=True) for t in tasks]}, indent=2))
        return
    if not tasks:
        print("No tasks yet.")
        return
    for task in tasks:
        print(format_task(task))


def show_task(store: TaskStore, task_id: int):
    print(format_task(store.get(task_id)))


def add_task(store: TaskStore, title: str):
    task = store.create(title)
    print(f"Created task {task.id}: {task.title}")


def toggle_task(store: TaskStore, task_id: int):
    task = store.toggle(task_id)
    print(f"Task {task.id} is now {'done' if task.done else 'open'}.")


def delete_task(store: TaskStore, task_id: int):
    store.delete(task_id)
    print(f"Deleted task {task_id}.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Task tracker server and offline task file tool.")
    parser.add_argument("--data-dir", type=str, default=None, help="Directory holding tasks.json (env: TASKS_DATA_DIR).")
    parser.add_argument("--log-level", type=str, default=None, help="Logging level (env: TASKS_LOG_LEVEL).")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Available commands")

    # serve
    parser_serve = subparsers.add_parser("serve", help="Run the HTTP server.")
    parser_serve.add_argument("--host", type=str, default=None, help="Bind host (env: TASKS_HOST).")
    parser_serve.add_argument("--port", type=int, default=None, help="Bind port (env: TASKS_PORT).")
    parser_serve.add_argument("--static-dir", type=str, default=None, help="Static asset directory (env: TASKS_STATIC_DIR).")

    # list
    parser_list = subparsers.add_parser("list", help="List all tasks. Do not run against a file a live server owns.")
    parser_list.add_argument("--json", action="store_true", help="Print the same JSON the API returns.")

    # show
    parser_show = subparsers.add_parser("show", help="Print a single task.")
    parser_show.add_argument("id", type=int, help="Task id.")

    # add
    parser_add = subparsers.add_parser("add", help="Create a task.")
    parser_add.add_argument("title", type=str, help="Task title.")

    # toggle
    parser_toggle = subparsers.add_parser("toggle", help="Flip a task between done and open.")
    parser_toggle.add_argument("id", type=int, help="Task id.")

    # delete
    parser_delete = subparsers.add_parser("delete", help="Delete a task.")
    parser_delete.add_argument("id", type=int, help="Task id.")

    return parser


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = (settings or load_settings()).with_overrides(
            data_dir=args.data_dir,
            log_level=args.log_level,
            host=getattr(args, "host", None),
            port=getattr(args, "port", None),
            static_dir=getattr(args, "static_dir", None),
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.command == "serve":
        # imported lazily so offline commands don't pull in the web stack
        from main import run
        run(settings)
        return 0

    setup_logging(settings.log_level)
    try:
        store = TaskStore(settings.data_dir)
        if args.command == "list":
            list_tasks(store, as_json=args.json)
        elif args.command == "show":
            show_task(store, args.id)
        elif args.command == "add":
            add_task(store, args.title)
        elif args.command == "toggle":
            toggle_task(store, args.id)
        elif args.command == "delete":
            delete_task(store, args.id)
    except TaskStoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
