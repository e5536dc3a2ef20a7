"""Function endpoints: JSON envelope, caller checks and rate limiting"""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from medsystem.models import AppRole, Patient
from medsystem.shared.clock import utcnow

SECRET = "test-functions-secret"


@pytest.fixture(autouse=True)
def functions_secret():
    with patch("medsystem.routes.functions.FUNCTIONS_SECRET", SECRET):
        yield


def landing_form(phone="(61) 99999-8888"):
    return {"name": "Paula Regina", "phone": phone, "procedure": "Simpatectomia"}


class TestSubmitLandingForm:
    def test_creates_lead(self, client, db_session, admin_profile):
        response = client.post("/functions/submit-landing-form", json=landing_form())

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        patient = db_session.get(Patient, body["patientId"])
        assert patient.origem == "Landing Page"
        assert patient.created_by == admin_profile.id

    def test_validation_error_envelope(self, client):
        response = client.post(
            "/functions/submit-landing-form", json=landing_form(phone="123")
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Telefone deve ter 10 ou 11 dígitos"}

    def test_duplicate_phone(self, client):
        client.post("/functions/submit-landing-form", json=landing_form())

        response = client.post("/functions/submit-landing-form", json=landing_form())

        assert response.status_code == 429
        assert "recentemente" in response.json()["error"]

    def test_rate_limited_after_five_per_minute(self, client):
        for n in range(5):
            response = client.post(
                "/functions/submit-landing-form", json=landing_form(f"619999900{n:02d}")
            )
            assert response.status_code == 200

        response = client.post(
            "/functions/submit-landing-form", json=landing_form("61999990099")
        )

        assert response.status_code == 429
        assert response.json() == {"error": "Muitas tentativas. Aguarde 1 minuto e tente novamente."}
        assert "Retry-After" in response.headers


class TestNotificationsSummary:
    def test_public_summary_is_masked(self, client, make_patient):
        make_patient(created_at=utcnow() - timedelta(hours=1))

        body = client.get("/functions/get-notifications-summary").json()

        assert body["authenticated"] is False
        assert body["new_patients_today"]["count"] == 1
        assert body["new_patients_today"]["patients"][0]["name"] == "***"

    def test_error_envelope(self, client):
        with patch(
            "medsystem.routes.functions.get_notifications_summary",
            side_effect=RuntimeError("db down"),
        ):
            response = client.get("/functions/get-notifications-summary")

        assert response.status_code == 500
        assert response.json() == {"error": "db down", "summary": "❌ Erro ao buscar notificações"}


class TestPushEndpoints:
    def test_send_push_missing_fields(self, client):
        response = client.post("/functions/send-push-notification", json={"user_id": "x"})

        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields: user_id, title, body"}

    def test_send_push_without_tokens(self, client, admin_profile):
        response = client.post(
            "/functions/send-push-notification",
            json={"user_id": admin_profile.id, "title": "Oi", "body": "Teste"},
        )

        assert response.json() == {"message": "No push tokens found"}

    def test_notify_new_patient(self, client):
        with patch(
            "medsystem.routes.functions.notify_new_patient",
            AsyncMock(return_value={"success": True, "admins_notified": 1, "total_admins": 1}),
        ) as notify:
            response = client.post(
                "/functions/notify-new-patient",
                json={"patient_name": "Paula Regina", "procedure": "Hérnia"},
            )

        assert response.json()["admins_notified"] == 1
        assert notify.await_args.args[1:] == ("Paula Regina", "Hérnia")

    def test_notify_new_note_requires_patient_name(self, client):
        response = client.post("/functions/notify-new-note", json={"note_preview": "Oi"})

        assert response.status_code == 400
        assert response.json() == {"error": "Missing required field: patient_name"}

    def test_unapproved_caller(self, client, current, make_profile):
        current.profile = make_profile(AppRole.USER, approved=False)

        response = client.post(
            "/functions/send-push-notification",
            json={"user_id": "x", "title": "t", "body": "b"},
        )

        assert response.status_code == 403
        assert response.json() == {"error": "Cadastro aguardando aprovação do administrador"}


class TestCronEndpoints:
    def test_daily_tasks_with_secret(self, client):
        response = client.post(
            "/functions/notify-daily-tasks", headers={"X-Functions-Secret": SECRET}
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "tasks_count": 0, "notifications_sent": 0}

    def test_wrong_secret(self, client):
        response = client.post(
            "/functions/notify-daily-tasks", headers={"X-Functions-Secret": "nope"}
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Segredo inválido"}

    def test_no_credentials(self, client):
        response = client.post("/functions/update-completed-surgeries")

        assert response.status_code == 401
        assert response.json() == {"error": "Não autorizado"}

    def test_admin_bearer_token(self, client, admin_profile, make_patient):
        make_patient(status="surgery_scheduled", surgery_date=utcnow() - timedelta(days=1))

        with patch(
            "medsystem.routes.functions.get_current_profile",
            AsyncMock(return_value=admin_profile),
        ):
            response = client.post(
                "/functions/update-completed-surgeries",
                headers={"Authorization": "Bearer firebase-id-token"},
            )

        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Successfully updated surgeries"
        assert body["count"] == 1

    def test_regular_user_bearer_token(self, client, make_profile):
        staff = make_profile(AppRole.USER)

        with patch(
            "medsystem.routes.functions.get_current_profile", AsyncMock(return_value=staff)
        ):
            response = client.post(
                "/functions/update-completed-surgeries",
                headers={"Authorization": "Bearer firebase-id-token"},
            )

        assert response.status_code == 403
