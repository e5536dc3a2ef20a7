from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from medsystem.domain.notifications import service
from medsystem.domain.notifications.service import (
    get_notifications_summary,
    notify_daily_tasks,
    summary_line,
)

NOW = datetime(2025, 3, 10, 12, 0)  # 09:00 local


@pytest.fixture
def populated(make_patient, make_task):
    maria = make_patient(
        name="Maria Souza",
        hospital="Hospital Santa Lúcia",
        surgery_date=datetime(2025, 3, 11, 14, 0),
        created_at=NOW - timedelta(hours=2),
    )
    joao = make_patient(name="João Lima", created_at=NOW - timedelta(days=3))
    make_task(maria, datetime(2025, 3, 8, 12, 0), title="Atrasada")
    make_task(joao, datetime(2025, 3, 10, 20, 0), title="Hoje")
    make_task(joao, datetime(2025, 3, 12, 20, 0), title="Futura")
    make_task(joao, datetime(2025, 3, 9, 12, 0), completed=True, title="Feita")
    return maria, joao


class TestSummaryLine:
    def test_all_clear(self):
        assert summary_line(0, 0, 0, 0) == "✅ Tudo em dia!"

    def test_singular(self):
        assert summary_line(1, 1, 1, 1) == (
            "⚠️ 1 tarefa atrasada, 📅 1 tarefa hoje, 👤 1 novo paciente, 🏥 1 cirurgia próxima"
        )

    def test_plural_and_skips_zero(self):
        assert summary_line(2, 0, 3, 0) == "⚠️ 2 tarefas atrasadas, 👤 3 novos pacientes"


class TestNotificationsSummary:
    def test_masked_without_token(self, db_session, populated):
        summary = get_notifications_summary(db_session, None, now=NOW)

        assert summary["authenticated"] is False
        assert summary["overdue_tasks"]["count"] == 1
        assert summary["today_tasks"]["count"] == 1
        overdue = summary["overdue_tasks"]["tasks"][0]
        assert overdue["patient_name"] == "***"
        assert overdue["patient_id"] is None
        assert overdue["task_title"] == "Atrasada"
        assert overdue["task_url"].endswith("/tasks")

        assert summary["new_patients_today"]["count"] == 1
        assert summary["new_patients_today"]["patients"][0]["name"] == "***"

        surgery = summary["upcoming_surgeries"]["surgeries"][0]
        assert surgery["patient_name"] == "***"
        assert surgery["hospital"] == "***"
        assert surgery["procedure"] == "Colecistectomia"

    def test_unmasked_with_valid_token(self, db_session, populated):
        maria, _ = populated
        with patch.object(service, "NOTIFICATION_TOKEN", "segredo"):
            summary = get_notifications_summary(db_session, "segredo", now=NOW)

        assert summary["authenticated"] is True
        overdue = summary["overdue_tasks"]["tasks"][0]
        assert overdue["patient_name"] == "Maria Souza"
        assert overdue["patient_id"] == maria.id
        assert summary["upcoming_surgeries"]["surgeries"][0]["hospital"] == "Hospital Santa Lúcia"

    def test_wrong_token_stays_masked(self, db_session, populated):
        with patch.object(service, "NOTIFICATION_TOKEN", "segredo"):
            summary = get_notifications_summary(db_session, "outro", now=NOW)
        assert summary["authenticated"] is False

    def test_overdue_and_today_do_not_overlap(self, db_session, populated):
        summary = get_notifications_summary(db_session, None, now=NOW)

        overdue_ids = {t["task_id"] for t in summary["overdue_tasks"]["tasks"]}
        today_ids = {t["task_id"] for t in summary["today_tasks"]["tasks"]}
        assert overdue_ids.isdisjoint(today_ids)
        assert summary["summary"] == (
            "⚠️ 1 tarefa atrasada, 📅 1 tarefa hoje, 👤 1 novo paciente, 🏥 1 cirurgia próxima"
        )

    def test_empty_database(self, db_session):
        summary = get_notifications_summary(db_session, None, now=NOW)
        assert summary["summary"] == "✅ Tudo em dia!"


class TestDailyTasks:
    @pytest.mark.asyncio
    async def test_counts_tasks_of_local_day(self, db_session, populated):
        with patch.object(
            service,
            "notify_admins",
            AsyncMock(return_value={"success": True, "admins_notified": 1, "total_admins": 1}),
        ) as notify:
            result = await notify_daily_tasks(db_session, now=NOW)

        assert result == {"success": True, "tasks_count": 1, "notifications_sent": 1}
        kwargs = notify.call_args.kwargs
        assert kwargs["title"] == "Tarefas do Dia"
        assert kwargs["body"] == "Você tem 1 tarefa(s) para hoje"
        assert kwargs["data"]["type"] == "daily_tasks"
        assert kwargs["data"]["count"] == "1"

    @pytest.mark.asyncio
    async def test_nothing_due_skips_push(self, db_session):
        with patch.object(service, "notify_admins", AsyncMock()) as notify:
            result = await notify_daily_tasks(db_session, now=NOW)

        assert result["tasks_count"] == 0
        notify.assert_not_called()
