from smartcare.core.security import UserRole
from tests.conftest import book

class TestRecords:

    def test_upload_and_list(self, client, patient, storage):
        patient_id, headers = patient

        response = client.post(
            "/api/v1/records",
            files={"file": ("blood-test.pdf", b"results", "application/pdf")},
            headers=headers,
        )
        assert response.status_code == 201

        record = response.json()
        assert record["patient_id"] == patient_id
        assert record["file_name"] == "blood-test.pdf"
        assert record["storage_path"].startswith(f"records/{patient_id}/")
        assert (storage.root / record["storage_path"]).read_bytes() == b"results"

        response = client.get("/api/v1/records", headers=headers)
        assert [r["id"] for r in response.json()["records"]] == [record["id"]]

    def test_newest_first(self, client, patient, storage):
        _, headers = patient
        first = client.post("/api/v1/records", files={"file": ("a.pdf", b"a")}, headers=headers).json()
        second = client.post("/api/v1/records", files={"file": ("b.pdf", b"b")}, headers=headers).json()

        response = client.get("/api/v1/records", headers=headers)
        assert [r["id"] for r in response.json()["records"]] == [second["id"], first["id"]]

    def test_doctor_attachments_are_listed(self, client, patient, doctor, storage):
        _, patient_headers = patient
        doctor_id, doctor_headers = doctor
        appointment = book(client, patient_headers, doctor_id)
        client.post(f"/api/v1/appointments/{appointment['id']}/approve", headers=doctor_headers)
        client.post(
            f"/api/v1/appointments/{appointment['id']}/complete",
            data={"notes": "See attached"},
            files=[("files", ("prescription.pdf", b"rx", "application/pdf"))],
            headers=doctor_headers,
        )

        response = client.get("/api/v1/records", headers=patient_headers)
        attachments = response.json()["doctor_attachments"]
        assert len(attachments) == 1
        assert attachments[0]["appointment_id"] == appointment["id"]
        assert attachments[0]["doctor_name"] == "Dana Doctor"
        assert attachments[0]["file_name"] == "prescription.pdf"

    def test_delete(self, client, patient, storage):
        _, headers = patient
        record = client.post("/api/v1/records", files={"file": ("a.pdf", b"a")}, headers=headers).json()

        response = client.delete(f"/api/v1/records/{record['id']}", headers=headers)
        assert response.status_code == 200
        assert not (storage.root / record["storage_path"]).exists()

        response = client.get("/api/v1/records", headers=headers)
        assert response.json()["records"] == []

    def test_cannot_delete_other_patients_record(self, client, patient, make_user, storage):
        _, headers = patient
        _, other_headers = make_user("someone@example.com", UserRole.PATIENT)
        record = client.post("/api/v1/records", files={"file": ("a.pdf", b"a")}, headers=headers).json()

        response = client.delete(f"/api/v1/records/{record['id']}", headers=other_headers)
        assert response.status_code == 404
        assert (storage.root / record["storage_path"]).exists()

    def test_records_are_patient_only(self, client, doctor, storage):
        _, headers = doctor

        response = client.get("/api/v1/records", headers=headers)
        assert response.status_code == 403
