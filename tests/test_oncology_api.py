from medsystem.models import AppRole, OncologyEvent


class TestOncologyEvents:
    def test_rejects_patient_not_flagged_as_oncology(self, client, db_session, make_patient):
        patient = make_patient(is_oncology=False)

        response = client.post(
            f"/patients/{patient.id}/oncology",
            json={"event_type": "diagnosis", "title": "Biópsia positiva"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Paciente não está marcado como oncológico"
        assert db_session.query(OncologyEvent).count() == 0

    def test_adds_event_with_label(self, client, make_patient, admin_profile):
        patient = make_patient(is_oncology=True)

        response = client.post(
            f"/patients/{patient.id}/oncology",
            json={
                "event_type": "treatment_start",
                "title": "  Quimioterapia ",
                "event_date": "2025-03-05",
            },
        )

        assert response.status_code == 201
        event = response.json()
        assert event["title"] == "Quimioterapia"
        assert event["event_type_label"] == "Início de Tratamento"
        assert event["event_date"] == "2025-03-05"
        assert event["created_by"] == admin_profile.id

    def test_unknown_patient(self, client):
        response = client.post(
            "/patients/nope/oncology", json={"event_type": "exam", "title": "PET-CT"}
        )
        assert response.status_code == 404

    def test_timeline_newest_first(self, client, make_patient):
        patient = make_patient(is_oncology=True)
        for day, title in (("2025-01-10", "Diagnóstico"), ("2025-02-20", "Cirurgia")):
            client.post(
                f"/patients/{patient.id}/oncology",
                json={"event_type": "other", "title": title, "event_date": day},
            )

        titles = [e["title"] for e in client.get(f"/patients/{patient.id}/oncology").json()]

        assert titles == ["Cirurgia", "Diagnóstico"]

    def test_only_admin_deletes(self, client, current, make_patient, make_profile):
        patient = make_patient(is_oncology=True)
        event_id = client.post(
            f"/patients/{patient.id}/oncology", json={"event_type": "exam", "title": "PET-CT"}
        ).json()["id"]
        current.profile = make_profile(AppRole.USER)

        assert client.delete(f"/oncology/{event_id}").status_code == 403


class TestOncologyDashboard:
    def test_active_cases_only(self, client, make_patient):
        make_patient(name="Ana Oncológica", is_oncology=True, oncology_stage="II")
        make_patient(name="Bia Concluída", is_oncology=True, status="completed")
        make_patient(name="Caio Geral")

        body = client.get("/oncology/patients").json()

        assert [p["name"] for p in body] == ["Ana Oncológica"]
        assert body[0]["oncology_stage"] == "II"
        assert body[0]["latest_event"] is None
