import pytest
from fastapi import HTTPException

from medsystem.domain.landing.service import submit_landing_form, validate_landing_form
from medsystem.models import NIL_UUID, PatientStatus

FORM = {"name": "  Maria das Dores ", "phone": "(61) 99999-8888", "procedure": " Hérnia "}


class TestValidateLandingForm:
    def test_sanitizes(self):
        assert validate_landing_form(FORM) == {
            "name": "Maria das Dores",
            "phone": "61999998888",
            "procedure": "Hérnia",
        }

    @pytest.mark.parametrize(
        "override,message",
        [
            ({"name": ""}, "Nome é obrigatório"),
            ({"name": "M"}, "pelo menos 2"),
            ({"name": "Maria123"}, "caracteres inválidos"),
            ({"phone": None}, "Telefone é obrigatório"),
            ({"phone": "9999-8888"}, "10 ou 11 dígitos"),
            ({"phone": 61999998888}, "Telefone é obrigatório"),
            ({"procedure": "x"}, "Procedimento deve ter pelo menos 2"),
            ({"procedure": "x" * 201}, "no máximo 200"),
        ],
    )
    def test_rejects(self, override, message):
        with pytest.raises(ValueError, match=message):
            validate_landing_form({**FORM, **override})

    def test_missing_payload(self):
        with pytest.raises(ValueError, match="Nome é obrigatório"):
            validate_landing_form(None)


class TestSubmitLandingForm:
    def test_creates_lead_owned_by_admin(self, db_session, admin_profile):
        patient = submit_landing_form(db_session, FORM)

        assert patient.name == "Maria das Dores"
        assert patient.phone == "61999998888"
        assert patient.status == PatientStatus.AWAITING_AUTHORIZATION.value
        assert patient.origem == "Landing Page"
        assert patient.created_by == admin_profile.id

    def test_without_admin_uses_nil_uuid(self, db_session):
        assert submit_landing_form(db_session, FORM).created_by == NIL_UUID

    def test_duplicate_phone_within_window(self, db_session):
        submit_landing_form(db_session, FORM)

        with pytest.raises(HTTPException) as exc:
            submit_landing_form(db_session, {**FORM, "name": "Outra Pessoa"})

        assert exc.value.status_code == 429
        assert "recentemente" in exc.value.detail

    def test_invalid_form_is_400(self, db_session):
        with pytest.raises(HTTPException) as exc:
            submit_landing_form(db_session, {**FORM, "phone": "123"})
        assert exc.value.status_code == 400
        assert exc.value.detail == "Telefone deve ter 10 ou 11 dígitos"
