"""
Task urgency buckets.

Every task lands in exactly one bucket:
    completed - done, regardless of due date
    today     - open and due on the clinic-local current day (even if the hour passed)
    overdue   - open and due before today
    future    - open and due after today
"""

from datetime import datetime
from typing import Iterable, Protocol, TypeVar

from ...shared.clock import local_date, to_clinic_tz

OVERDUE = "overdue"
TODAY = "today"
FUTURE = "future"
COMPLETED = "completed"

BUCKETS = (OVERDUE, TODAY, FUTURE, COMPLETED)


class TaskLike(Protocol):
    due_date: datetime
    completed: bool


T = TypeVar("T", bound=TaskLike)


def classify_task(task: TaskLike, now: datetime) -> str:
    if task.completed:
        return COMPLETED

    due_day = local_date(task.due_date)
    today = to_clinic_tz(now).date()

    if due_day == today:
        return TODAY
    if due_day < today:
        return OVERDUE
    return FUTURE


def partition_tasks(tasks: Iterable[T], now: datetime) -> dict[str, list[T]]:
    """Split tasks into the four buckets, each sorted by due date (input order breaks ties)."""
    buckets: dict[str, list[T]] = {name: [] for name in BUCKETS}
    for task in tasks:
        buckets[classify_task(task, now)].append(task)

    for name in BUCKETS:
        buckets[name].sort(key=lambda t: to_clinic_tz(t.due_date))
    return buckets
