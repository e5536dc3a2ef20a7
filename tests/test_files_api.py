from unittest.mock import MagicMock, patch

import pytest

from medsystem import storage
from medsystem.models import PatientFeedback, PatientFile


@pytest.fixture
def r2():
    """Stand-in for the boto3 client behind every storage call"""
    client = MagicMock()
    with patch.object(storage, "get_r2_client", return_value=client):
        yield client


@pytest.fixture
def stored_file(db_session, make_patient, admin_profile):
    record = PatientFile(
        patient_id=make_patient().id,
        file_name="Hemograma março.pdf",
        file_path="p1/123_Hemograma_marco.pdf",
        file_size=8,
        file_type="application/pdf",
        uploaded_by=admin_profile.id,
    )
    db_session.add(record)
    db_session.commit()
    db_session.refresh(record)
    return record


class TestUploadValidation:
    def test_rejects_disallowed_type(self, client, db_session, make_patient, r2):
        patient = make_patient()

        response = client.post(
            f"/patients/{patient.id}/files",
            files={"file": ("planilha.xlsx", b"conteudo", "application/vnd.ms-excel")},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Tipo de arquivo não permitido. Use PDF ou imagem"
        r2.put_object.assert_not_called()
        assert db_session.query(PatientFile).count() == 0

    def test_rejects_file_over_10mb(self, client, make_patient, r2):
        patient = make_patient()
        data = b"0" * (storage.MAX_UPLOAD_SIZE + 1)

        response = client.post(
            f"/patients/{patient.id}/files", files={"file": ("exame.pdf", data, "application/pdf")}
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Arquivo muito grande. Máximo 10MB"
        r2.put_object.assert_not_called()

    def test_feedback_must_be_image(self, client, make_patient, r2):
        patient = make_patient()

        response = client.post(
            f"/patients/{patient.id}/feedbacks",
            data={"feedback_type": "pre_op"},
            files={"file": ("conversa.pdf", b"%PDF", "application/pdf")},
        )

        assert response.status_code == 400
        assert "JPEG, PNG, GIF ou WEBP" in response.json()["detail"]

    def test_upload_indexes_file(self, client, make_patient, r2):
        patient = make_patient()

        response = client.post(
            f"/patients/{patient.id}/files", files={"file": ("raio-x.png", b"\x89PNG", "image/png")}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["kind"] == "image"
        assert body["file_size"] == 4
        assert r2.put_object.call_args.kwargs["Key"].startswith(f"patient-files/{patient.id}/")


class TestDownload:
    def test_streams_object_body(self, client, stored_file, r2):
        body = MagicMock()
        body.iter_chunks.return_value = iter([b"%PDF", b"-1.4"])
        r2.get_object.return_value = {"Body": body}

        response = client.get(f"/files/{stored_file.id}/download")

        assert response.status_code == 200
        assert response.content == b"%PDF-1.4"
        assert response.headers["content-type"] == "application/pdf"
        assert "Hemograma%20mar%C3%A7o.pdf" in response.headers["content-disposition"]
        body.read.assert_not_called()
        body.close.assert_called_once()

    def test_missing_object(self, client, stored_file, r2):
        r2.get_object.side_effect = RuntimeError("NoSuchKey")

        response = client.get(f"/files/{stored_file.id}/download")

        assert response.status_code == 500
        assert response.json()["detail"] == "Erro ao fazer download do arquivo"


class TestFeedbackList:
    def test_unsigned_image_keeps_the_rest(self, client, db_session, make_patient, admin_profile):
        patient = make_patient()
        for path in ("broken.png", "ok.png"):
            db_session.add(
                PatientFeedback(
                    patient_id=patient.id,
                    feedback_type="post_op",
                    image_path=path,
                    image_name=path,
                    created_by=admin_profile.id,
                )
            )
        db_session.commit()

        def sign(bucket, path):
            if path == "broken.png":
                raise storage.StorageError("Signing failed")
            return f"https://r2.test/{bucket}/{path}"

        with patch.object(storage, "generate_signed_url", side_effect=sign):
            response = client.get(f"/patients/{patient.id}/feedbacks")

        assert response.status_code == 200
        urls = {f["image_name"]: f["image_url"] for f in response.json()}
        assert urls == {"broken.png": None, "ok.png": "https://r2.test/patient-feedbacks/ok.png"}
        assert {f["feedback_type_label"] for f in response.json()} == {"Pós-Operatório"}
