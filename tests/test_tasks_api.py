from datetime import timedelta

from medsystem.models import AppRole
from medsystem.shared.clock import utcnow


class TestTaskEndpoints:
    def test_create_for_patient(self, client, make_patient, admin_profile):
        patient = make_patient()

        response = client.post(
            f"/patients/{patient.id}/tasks",
            json={
                "task_type": "exam_followup",
                "title": "  Cobrar hemograma ",
                "due_date": "2025-03-12T13:00:00Z",
            },
        )

        assert response.status_code == 201
        task = response.json()
        assert task["title"] == "Cobrar hemograma"
        assert task["task_type_label"] == "Cobrança de Exame"
        assert task["due_date"].startswith("2025-03-12T13:00:00")
        assert task["completed"] is False

    def test_blank_title_rejected(self, client, make_patient):
        patient = make_patient()

        response = client.post(
            f"/patients/{patient.id}/tasks",
            json={"title": "   ", "due_date": "2025-03-12T13:00:00Z"},
        )

        assert response.status_code == 422

    def test_unknown_patient(self, client):
        response = client.post(
            "/patients/nope/tasks", json={"title": "Ligar", "due_date": "2025-03-12T13:00:00Z"}
        )
        assert response.status_code == 404

    def test_toggle_completes_and_reopens(self, client, current, make_patient, make_task, make_profile):
        task = make_task(make_patient(), utcnow())
        current.profile = make_profile(AppRole.USER)

        done = client.post(f"/tasks/{task.id}/toggle").json()
        assert done["completed"] is True
        assert done["completed_by"] == current.profile.id
        assert done["completed_at"] is not None

        reopened = client.post(f"/tasks/{task.id}/toggle").json()
        assert reopened["completed"] is False
        assert reopened["completed_by"] is None
        assert reopened["completed_at"] is None

    def test_board_buckets(self, client, make_patient, make_task):
        patient = make_patient()
        now = utcnow()
        overdue = make_task(patient, now - timedelta(days=3), title="Atrasada")
        future = make_task(patient, now + timedelta(days=3), title="Futura")
        done = make_task(patient, now - timedelta(days=5), completed=True, title="Feita")

        board = client.get("/tasks/board").json()

        assert [t["id"] for t in board["overdue"]] == [overdue.id]
        assert [t["id"] for t in board["future"]] == [future.id]
        assert [t["id"] for t in board["completed"]] == [done.id]
        assert board["counts"] == {"overdue": 1, "today": 0, "future": 1, "completed": 1}
        assert board["overdue"][0]["patient"]["name"] == "Maria da Silva"

    def test_delete(self, client, make_patient, make_task):
        patient = make_patient()
        task_id = make_task(patient, utcnow()).id
        patient_id = patient.id

        assert client.delete(f"/tasks/{task_id}").json() == {"message": "Tarefa excluída"}
        assert client.get(f"/patients/{patient_id}/tasks").json() == []
