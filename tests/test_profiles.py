from smartcare.core.security import UserRole
from tests.conftest import book

class TestProfileSetup:

    def test_setup_completes_patient_profile(self, client, make_user):
        _, headers = make_user("fresh@example.com", UserRole.PATIENT, profile_completed=False)

        response = client.post(
            "/api/v1/profile/setup",
            json={
                "full_name": "Fresh Patient",
                "phone": "555-0100",
                "patient": {"gender": "female", "dob": "1990-04-12", "blood_group": "O+"},
            },
            headers=headers,
        )
        assert response.status_code == 200

        data = response.json()
        assert data["user"]["profile_completed"] is True
        assert data["user"]["full_name"] == "Fresh Patient"
        assert data["patient"]["blood_group"] == "O+"

        # The guard lets the user through afterwards
        response = client.get("/api/v1/appointments/mine", headers=headers)
        assert response.status_code == 200

    def test_setup_requires_full_name(self, client, make_user):
        _, headers = make_user("fresh@example.com", UserRole.PATIENT, profile_completed=False)

        response = client.post("/api/v1/profile/setup", json={"full_name": "  "}, headers=headers)
        assert response.status_code == 422

    def test_setup_rejects_bad_dob(self, client, make_user):
        _, headers = make_user("fresh@example.com", UserRole.PATIENT, profile_completed=False)

        response = client.post(
            "/api/v1/profile/setup",
            json={"full_name": "Fresh", "patient": {"dob": "12/04/1990"}},
            headers=headers,
        )
        assert response.status_code == 422

    def test_doctor_setup_still_awaits_approval(self, client, make_user):
        _, headers = make_user("newdoc@example.com", UserRole.DOCTOR, approved=False, profile_completed=False)

        response = client.post(
            "/api/v1/profile/setup",
            json={"full_name": "New Doc", "doctor": {"specialty": "Cardiology", "experience_years": 7}},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["doctor"]["specialty"] == "Cardiology"

        response = client.get(
            "/api/v1/access/resolve",
            params={"path": "/doctor/dashboard"},
            headers=headers,
        )
        assert response.json()["state"] == "pending-approval"

class TestProfileUpdate:

    def test_get_and_update_profile(self, client, caregiver):
        _, headers = caregiver

        response = client.get("/api/v1/profile/me", headers=headers)
        assert response.status_code == 200
        assert response.json()["user"]["email"] == "carer@example.com"
        assert response.json()["caregiver"] is None

        response = client.put(
            "/api/v1/profile/me",
            json={"phone": "555-0199", "caregiver": {"relationship_to_patient": "Daughter"}},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["user"]["phone"] == "555-0199"
        assert response.json()["caregiver"]["relationship_to_patient"] == "Daughter"

        response = client.put(
            "/api/v1/profile/me",
            json={"caregiver": {"address": "1 Main St"}},
            headers=headers,
        )
        caregiver_data = response.json()["caregiver"]
        assert caregiver_data["relationship_to_patient"] == "Daughter"
        assert caregiver_data["address"] == "1 Main St"

    def test_other_roles_block_is_ignored(self, client, patient):
        _, headers = patient

        response = client.put(
            "/api/v1/profile/me",
            json={"doctor": {"specialty": "Surgery"}},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["doctor"] is None

class TestDirectory:

    def test_doctors_lists_only_approved(self, client, patient, doctor, make_user):
        _, headers = patient
        doctor_id, _ = doctor
        make_user("newdoc@example.com", UserRole.DOCTOR, approved=False)

        response = client.get("/api/v1/doctors", headers=headers)
        assert response.status_code == 200
        assert [d["id"] for d in response.json()] == [doctor_id]
        assert response.json()[0]["specialty"] == "General"

    def test_get_doctor(self, client, patient, doctor):
        _, headers = patient
        doctor_id, doctor_headers = doctor
        client.put(
            "/api/v1/profile/me",
            json={"doctor": {"specialty": "Dermatology", "consultation_fee": "50"}},
            headers=doctor_headers,
        )

        response = client.get(f"/api/v1/doctors/{doctor_id}", headers=headers)
        assert response.status_code == 200
        assert response.json()["full_name"] == "Dana Doctor"
        assert response.json()["specialty"] == "Dermatology"

    def test_get_unknown_doctor(self, client, patient):
        _, headers = patient

        response = client.get("/api/v1/doctors/999", headers=headers)
        assert response.status_code == 404

    def test_doctor_sees_own_patients(self, client, patient, doctor, make_user):
        patient_id, patient_headers = patient
        doctor_id, doctor_headers = doctor
        other_id, _ = make_user("someone@example.com", UserRole.PATIENT)
        book(client, patient_headers, doctor_id)
        book(client, patient_headers, doctor_id)

        response = client.get("/api/v1/doctors/me/patients", headers=doctor_headers)
        assert [p["id"] for p in response.json()] == [patient_id]

        response = client.get(f"/api/v1/patients/{patient_id}", headers=doctor_headers)
        assert response.status_code == 200

        response = client.get(f"/api/v1/patients/{other_id}", headers=doctor_headers)
        assert response.status_code == 403

    def test_patient_sees_only_self(self, client, patient, make_user):
        patient_id, headers = patient
        other_id, _ = make_user("someone@example.com", UserRole.PATIENT)

        assert client.get(f"/api/v1/patients/{patient_id}", headers=headers).status_code == 200
        assert client.get(f"/api/v1/patients/{other_id}", headers=headers).status_code == 403
