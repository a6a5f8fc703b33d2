"""
Ordered task list with progress reporting.

Tasks run one after another and share a dict so an earlier task can hand
something (e.g. a wait handle) to a later one. The first failure stops
the list.
"""

from dataclasses import dataclass
from typing import Any, Callable

STARTED = "started"
DONE = "done"
FAILED = "failed"

Progress = Callable[[str, str], None]


@dataclass
class Task:
    title: str
    action: Callable[[dict], Any]


def print_progress(title: str, status: str):
    marker = {STARTED: "...", DONE: "[OK]", FAILED: "[FAILED]"}[status]
    print(f"    {title} {marker}")


def run_tasks(tasks: list[Task], on_progress: Progress = print_progress) -> dict:
    """Run tasks in order, reporting each start and outcome."""
    shared: dict = {}
    for task in tasks:
        on_progress(task.title, STARTED)
        try:
            task.action(shared)
        except Exception:
            on_progress(task.title, FAILED)
            raise
        on_progress(task.title, DONE)
    return shared
