from unittest.mock import patch

import pytest

from medsystem.models import AppRole, PatientNote


@pytest.fixture(autouse=True)
def no_push():
    with patch("medsystem.domain.notes.router.dispatch_new_note") as dispatch:
        yield dispatch


@pytest.fixture
def author(make_profile):
    return make_profile(AppRole.USER, full_name="Autora")


@pytest.fixture
def note(client, current, make_patient, author):
    current.profile = author
    patient = make_patient()
    return client.post(f"/patients/{patient.id}/notes", json={"note": "Paciente ligou"}).json()


class TestCreateNote:
    def test_create_pushes_preview(self, client, make_patient, no_push):
        patient = make_patient()

        response = client.post(f"/patients/{patient.id}/notes", json={"note": "x" * 150})

        assert response.status_code == 201
        no_push.assert_called_once_with(patient.id, "Maria da Silva", "x" * 100 + "...")

    def test_blank_note(self, client, make_patient):
        patient = make_patient()

        response = client.post(f"/patients/{patient.id}/notes", json={"note": "   "})

        assert response.status_code == 422


class TestAuthorOrAdmin:
    def test_other_user_cannot_edit(self, client, current, make_profile, note):
        current.profile = make_profile(AppRole.USER)

        response = client.put(f"/notes/{note['id']}", json={"note": "Alterada"})

        assert response.status_code == 403
        assert response.json()["detail"] == "Apenas o autor pode alterar esta nota"

    def test_other_user_cannot_delete(self, client, current, db_session, make_profile, note):
        current.profile = make_profile(AppRole.DOCTOR)

        assert client.delete(f"/notes/{note['id']}").status_code == 403
        assert db_session.query(PatientNote).count() == 1

    def test_author_edits(self, client, note):
        response = client.put(f"/notes/{note['id']}", json={"note": " Retornou a ligação "})

        assert response.status_code == 200
        assert response.json()["note"] == "Retornou a ligação"

    def test_admin_deletes_any_note(self, client, current, admin_profile, db_session, note):
        current.profile = admin_profile

        assert client.delete(f"/notes/{note['id']}").json() == {"message": "Nota excluída"}
        assert db_session.query(PatientNote).count() == 0

    def test_unknown_note(self, client):
        assert client.put("/notes/nope", json={"note": "x"}).status_code == 404
