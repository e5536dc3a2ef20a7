from datetime import datetime
from types import SimpleNamespace

import pytest

from medsystem.domain.whatsapp.templates import (
    EXAM_FOLLOWUP,
    POST_OP,
    PRE_OP,
    build_message,
    first_name,
    treatment_for,
)


def patient(**kwargs):
    values = {
        "name": "Maria Aparecida Souza",
        "gender": "feminino",
        "procedure": "Colecistectomia",
        "hospital": "Hospital Santa Lúcia",
        "surgery_date": datetime(2025, 3, 11, 10, 30),  # 07:30 local
    }
    values.update(kwargs)
    return SimpleNamespace(**values)


class TestHelpers:
    def test_first_name(self):
        assert first_name("  Maria  Aparecida ") == "Maria"
        assert first_name("") == ""

    @pytest.mark.parametrize(
        "gender,expected",
        [("masculino", "o senhor"), ("feminino", "a senhora"), (None, "você"), ("outro", "você")],
    )
    def test_treatment(self, gender, expected):
        assert treatment_for(gender) == expected


class TestMessages:
    def test_pre_op_uses_local_time_and_hospital(self):
        message = build_message(PRE_OP, patient())

        assert message.startswith("Olá, Maria.")
        assert "(11/03/2025) às 07:30" in message
        assert "no Hospital Santa Lúcia" in message
        assert "orientá-la" in message

    def test_pre_op_male_pronoun_and_default_hospital(self):
        message = build_message(PRE_OP, patient(gender="masculino", name="João", hospital=None))

        assert "orientá-lo" in message
        assert "no Hospital Brasília" in message

    def test_pre_op_without_surgery_date(self):
        assert build_message(PRE_OP, patient(surgery_date=None)) is None

    def test_post_op(self):
        message = build_message(POST_OP, patient(gender="masculino", name="Carlos Lima"))

        assert message.startswith("Olá, Carlos!")
        assert "Espero que o senhor esteja se recuperando bem" in message

    def test_exam_followup_default_exam_name(self):
        assert "o exame exame." in build_message(EXAM_FOLLOWUP, patient())
        assert "o exame Hemograma." in build_message(EXAM_FOLLOWUP, patient(), "Hemograma")

    def test_unknown_template(self):
        with pytest.raises(ValueError):
            build_message("birthday", patient())


class TestWhatsAppEndpoint:
    def test_patient_without_phone(self, client, make_patient):
        patient = make_patient(phone=None)

        response = client.get(f"/patients/{patient.id}/whatsapp/{POST_OP}")

        assert response.status_code == 400
        assert response.json()["detail"] == "Paciente sem telefone válido"

    def test_short_phone_is_invalid(self, client, make_patient):
        patient = make_patient(phone="12345")

        response = client.get(f"/patients/{patient.id}/whatsapp/{EXAM_FOLLOWUP}")

        assert response.status_code == 400

    def test_pre_op_without_surgery_date(self, client, make_patient):
        patient = make_patient(phone="61988887777")

        response = client.get(f"/patients/{patient.id}/whatsapp/{PRE_OP}")

        assert response.status_code == 400
        assert response.json()["detail"] == "Paciente sem data de cirurgia agendada"

    def test_unknown_template(self, client, make_patient):
        patient = make_patient(phone="61988887777")

        assert client.get(f"/patients/{patient.id}/whatsapp/aniversario").status_code == 404

    def test_renders_link(self, client, make_patient):
        patient = make_patient(phone="61988887777")

        response = client.get(
            f"/patients/{patient.id}/whatsapp/{EXAM_FOLLOWUP}", params={"exam_name": "ECG"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["url"].startswith("https://wa.me/5561988887777?text=")
        assert "exame ECG" in body["message"]
