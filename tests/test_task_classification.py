"""Task urgency buckets: disjoint, exhaustive, clinic-local day boundaries"""

from datetime import datetime, timedelta
from types import SimpleNamespace

from medsystem.domain.tasks.classification import (
    BUCKETS,
    COMPLETED,
    FUTURE,
    OVERDUE,
    TODAY,
    classify_task,
    partition_tasks,
)

NOW = datetime(2025, 3, 10, 12, 0)  # 09:00 in São Paulo (UTC-3)


def task(due: datetime, completed: bool = False, name: str = ""):
    return SimpleNamespace(due_date=due, completed=completed, name=name)


class TestClassifyTask:
    def test_completed_wins_over_due_date(self):
        assert classify_task(task(datetime(2020, 1, 1), completed=True), NOW) == COMPLETED
        assert classify_task(task(datetime(2030, 1, 1), completed=True), NOW) == COMPLETED

    def test_earlier_hour_today_is_still_today(self):
        # 10:00 UTC = 07:00 local, already past but same local day
        assert classify_task(task(datetime(2025, 3, 10, 10, 0)), NOW) == TODAY

    def test_late_evening_local_is_today_even_if_next_utc_day(self):
        # 02:00 UTC on the 11th = 23:00 local on the 10th
        assert classify_task(task(datetime(2025, 3, 11, 2, 0)), NOW) == TODAY

    def test_local_midnight_is_future(self):
        # 03:00 UTC on the 11th = 00:00 local on the 11th
        assert classify_task(task(datetime(2025, 3, 11, 3, 0)), NOW) == FUTURE

    def test_previous_local_day_is_overdue(self):
        # 02:59 UTC on the 10th = 23:59 local on the 9th
        assert classify_task(task(datetime(2025, 3, 10, 2, 59)), NOW) == OVERDUE


class TestPartitionTasks:
    def test_partitions_are_disjoint_and_exhaustive(self):
        tasks = [
            task(NOW - timedelta(days=3), name="a"),
            task(NOW - timedelta(hours=1), name="b"),
            task(NOW + timedelta(hours=5), name="c"),
            task(NOW + timedelta(days=2), name="d"),
            task(NOW - timedelta(days=1), completed=True, name="e"),
            task(NOW + timedelta(days=9), completed=True, name="f"),
        ]

        buckets = partition_tasks(tasks, NOW)

        assert set(buckets) == set(BUCKETS)
        placed = [t.name for name in BUCKETS for t in buckets[name]]
        assert sorted(placed) == ["a", "b", "c", "d", "e", "f"]
        assert len(placed) == len(set(placed))

    def test_buckets_sorted_by_due_date(self):
        later = task(NOW + timedelta(days=5), name="later")
        sooner = task(NOW + timedelta(days=2), name="sooner")

        buckets = partition_tasks([later, sooner], NOW)

        assert [t.name for t in buckets[FUTURE]] == ["sooner", "later"]

    def test_empty_input(self):
        buckets = partition_tasks([], NOW)
        assert all(buckets[name] == [] for name in BUCKETS)
