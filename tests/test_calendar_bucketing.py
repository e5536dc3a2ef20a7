from datetime import datetime
from types import SimpleNamespace

from medsystem.domain.calendar.bucketing import (
    PALETTE_SIZE,
    TODAY_LABEL,
    TOMORROW_LABEL,
    bucket_by_day,
    next_surgery,
    upcoming_surgeries,
    urgency_label,
)

NOW = datetime(2025, 3, 10, 12, 0)  # 09:00 local


def patient(pid: str, surgery_date, **kwargs):
    return SimpleNamespace(
        id=pid,
        name=kwargs.get("name", f"Paciente {pid}"),
        procedure=kwargs.get("procedure", "Hérnia"),
        hospital=kwargs.get("hospital"),
        status=kwargs.get("status", "surgery_scheduled"),
        surgery_date=surgery_date,
    )


class TestBucketByDay:
    def test_each_surgery_lands_under_exactly_one_day(self):
        patients = [
            patient("1", datetime(2025, 3, 5, 13, 0)),
            patient("2", datetime(2025, 3, 5, 11, 0)),
            patient("3", datetime(2025, 3, 20, 15, 0)),
            patient("4", None),
        ]

        days = bucket_by_day(patients, 2025, 3)

        assert sorted(days) == [5, 20]
        ids = [e.patient_id for entries in days.values() for e in entries]
        assert sorted(ids) == ["1", "2", "3"]

    def test_day_sorted_by_time_with_rotating_colors(self):
        patients = [
            patient(str(i), datetime(2025, 3, 5, 10 + i, 0)) for i in reversed(range(PALETTE_SIZE + 1))
        ]

        entries = bucket_by_day(patients, 2025, 3)[5]

        times = [e.surgery_date for e in entries]
        assert times == sorted(times)
        assert [e.color_index for e in entries] == [0, 1, 2, 3, 4, 5, 0]

    def test_lone_surgery_keeps_color_zero(self):
        entries = bucket_by_day([patient("1", datetime(2025, 3, 7, 14, 0))], 2025, 3)[7]
        assert entries[0].color_index == 0

    def test_grouping_uses_clinic_local_day(self):
        # 01:00 UTC on April 1st is still March 31st in São Paulo
        days = bucket_by_day([patient("1", datetime(2025, 4, 1, 1, 0))], 2025, 3)
        assert list(days) == [31]
        assert bucket_by_day([patient("1", datetime(2025, 4, 1, 1, 0))], 2025, 4) == {}


class TestUpcoming:
    def test_window_and_urgency_labels(self):
        patients = [
            patient("today", datetime(2025, 3, 10, 18, 0)),
            patient("tomorrow", datetime(2025, 3, 11, 14, 0)),
            patient("later", datetime(2025, 3, 15, 14, 0)),
            patient("outside", datetime(2025, 3, 25, 14, 0)),
            patient("past", datetime(2025, 3, 9, 14, 0)),
        ]

        entries = upcoming_surgeries(patients, NOW, days=7)

        assert [e.patient_id for e in entries] == ["today", "tomorrow", "later"]
        assert [e.urgency for e in entries] == [TODAY_LABEL, TOMORROW_LABEL, None]

    def test_next_surgery_skips_started_ones(self):
        patients = [
            patient("started", datetime(2025, 3, 10, 11, 0)),
            patient("next", datetime(2025, 3, 12, 11, 0)),
            patient("after", datetime(2025, 3, 14, 11, 0)),
        ]

        entry = next_surgery(patients, NOW)

        assert entry.patient_id == "next"

    def test_next_surgery_none(self):
        assert next_surgery([patient("1", None)], NOW) is None

    def test_urgency_label_far_future(self):
        assert urgency_label(datetime(2025, 4, 1, 12, 0), NOW) is None
