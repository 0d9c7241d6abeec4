from unittest.mock import patch

from smartcare.core.config import settings
from smartcare.core.security import UserRole
from smartcare.services.notification_service import (
    build_doctor_approved_message, send_doctor_approved_email
)
from tests.conftest import PASSWORD, book

class TestAdminStats:

    def test_stats(self, client, admin, patient, doctor, caregiver, make_user):
        _, admin_headers = admin
        _, patient_headers = patient
        doctor_id, doctor_headers = doctor
        make_user("newdoc@example.com", UserRole.DOCTOR, approved=False)

        first = book(client, patient_headers, doctor_id)
        book(client, patient_headers, doctor_id)
        client.post(f"/api/v1/appointments/{first['id']}/approve", headers=doctor_headers)

        response = client.get("/api/v1/admin/stats", headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == {
            "total_patients": 1,
            "total_doctors": 2,
            "total_caregivers": 1,
            "approved_doctors": 1,
            "pending_doctors": 1,
            "pending_appointments": 1,
            "approved_appointments": 1,
            "completed_appointments": 0,
        }

    def test_non_admin_forbidden(self, client, doctor):
        _, headers = doctor

        response = client.get("/api/v1/admin/stats", headers=headers)
        assert response.status_code == 403

class TestDoctorApproval:

    def test_approve_pending_doctor(self, client, admin, make_user):
        _, admin_headers = admin
        doctor_id, doctor_headers = make_user("newdoc@example.com", UserRole.DOCTOR, approved=False)

        response = client.get("/api/v1/admin/doctors/pending", headers=admin_headers)
        assert [d["id"] for d in response.json()] == [doctor_id]

        with patch("smartcare.api.v1.admin.send_doctor_approved_email") as send:
            response = client.post(f"/api/v1/admin/doctors/{doctor_id}/approve", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["approved"] is True
        send.assert_called_once_with("newdoc@example.com", "Newdoc")

        response = client.get("/api/v1/admin/doctors/pending", headers=admin_headers)
        assert response.json() == []

        # The doctor's dashboard opens up
        response = client.get("/api/v1/appointments/mine", headers=doctor_headers)
        assert response.status_code == 200

    def test_reject_doctor(self, client, admin, doctor):
        _, admin_headers = admin
        doctor_id, doctor_headers = doctor

        response = client.post(f"/api/v1/admin/doctors/{doctor_id}/reject", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["approved"] is False

        response = client.get("/api/v1/appointments/mine", headers=doctor_headers)
        assert response.status_code == 403
        assert response.json()["detail"]["redirect"] == "/awaiting-approval"

    def test_approve_non_doctor(self, client, admin, patient):
        _, admin_headers = admin
        patient_id, _ = patient

        response = client.post(f"/api/v1/admin/doctors/{patient_id}/approve", headers=admin_headers)
        assert response.status_code == 404

class TestUserManagement:

    def test_list_users_by_role(self, client, admin, patient, doctor):
        _, admin_headers = admin
        patient_id, _ = patient

        response = client.get("/api/v1/admin/users", params={"role": "patient"}, headers=admin_headers)
        assert [u["id"] for u in response.json()] == [patient_id]

        response = client.get("/api/v1/admin/users", headers=admin_headers)
        assert len(response.json()) == 3

    def test_block_and_unblock(self, client, admin, patient):
        _, admin_headers = admin
        patient_id, patient_headers = patient

        response = client.patch(
            f"/api/v1/admin/users/{patient_id}/blocked",
            json={"blocked": True},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["blocked"] is True

        assert client.get("/api/v1/auth/me", headers=patient_headers).status_code == 401
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "patient@example.com", "password": PASSWORD}
        )
        assert response.status_code == 401

        response = client.get("/api/v1/admin/users/blocked", headers=admin_headers)
        assert [u["id"] for u in response.json()] == [patient_id]

        client.patch(
            f"/api/v1/admin/users/{patient_id}/blocked",
            json={"blocked": False},
            headers=admin_headers,
        )
        assert client.get("/api/v1/auth/me", headers=patient_headers).status_code == 200

    def test_cannot_block_self(self, client, admin):
        admin_id, admin_headers = admin

        response = client.patch(
            f"/api/v1/admin/users/{admin_id}/blocked",
            json={"blocked": True},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_remove_user(self, client, admin, patient, doctor):
        _, admin_headers = admin
        patient_id, patient_headers = patient
        doctor_id, doctor_headers = doctor
        book(client, patient_headers, doctor_id)

        response = client.delete(f"/api/v1/admin/users/{patient_id}", headers=admin_headers)
        assert response.status_code == 200

        response = client.get("/api/v1/admin/users", params={"role": "patient"}, headers=admin_headers)
        assert response.json() == []

        response = client.get("/api/v1/appointments/mine", headers=doctor_headers)
        assert response.json() == []

    def test_remove_unknown_user(self, client, admin):
        _, admin_headers = admin

        response = client.delete("/api/v1/admin/users/999", headers=admin_headers)
        assert response.status_code == 404

class TestApprovalEmail:

    def test_message_contents(self):
        msg = build_doctor_approved_message("doc@example.com", "Dana")
        assert msg["To"] == "doc@example.com"
        assert settings.APP_NAME in msg["Subject"]
        assert "Hello Dr. Dana" in msg.get_payload()[0].get_payload()

    def test_skipped_without_smtp(self):
        with patch.object(settings, "SMTP_HOST", None):
            assert send_doctor_approved_email("doc@example.com", "Dana") is False
