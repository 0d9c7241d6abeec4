from smartcare.core.security import UserRole
from tests.conftest import link

def measures_url(patient_id, day=None):
    url = f"/api/v1/patients/{patient_id}/daily-measures"
    return f"{url}/{day}" if day else url

class TestDailyMeasures:

    def test_patient_records_own_measures(self, client, patient):
        patient_id, headers = patient

        response = client.put(
            measures_url(patient_id, "2030-05-01"),
            json={"systolic": 120, "diastolic": 80, "spo2_pct": 98},
            headers=headers,
        )
        assert response.status_code == 200

        data = response.json()
        assert data["date"] == "2030-05-01"
        assert data["systolic"] == 120
        assert data["added_by"] == "patient"
        assert data["caregiver_id"] is None

    def test_partial_update_keeps_other_fields(self, client, patient):
        patient_id, headers = patient

        client.put(measures_url(patient_id, "2030-05-01"), json={"systolic": 120}, headers=headers)
        response = client.put(measures_url(patient_id, "2030-05-01"), json={"water_intake_l": 2.5}, headers=headers)

        data = response.json()
        assert data["systolic"] == 120
        assert data["water_intake_l"] == 2.5

        response = client.get(measures_url(patient_id), headers=headers)
        assert len(response.json()) == 1

    def test_linked_caregiver_records_measures(self, client, patient, caregiver):
        patient_id, patient_headers = patient
        caregiver_id, caregiver_headers = caregiver
        link(client, patient, caregiver)

        response = client.put(
            measures_url(patient_id, "2030-05-02"),
            json={"sugar_mg_dl": 110},
            headers=caregiver_headers,
        )
        assert response.status_code == 200
        assert response.json()["added_by"] == "caregiver"
        assert response.json()["caregiver_id"] == caregiver_id
        assert response.json()["caregiver_name"] == "Cary Carer"

        response = client.get(measures_url(patient_id), headers=patient_headers)
        assert response.json()[0]["sugar_mg_dl"] == 110

    def test_unlinked_caregiver_forbidden(self, client, patient, caregiver):
        patient_id, _ = patient
        _, caregiver_headers = caregiver

        response = client.put(measures_url(patient_id, "2030-05-02"), json={"systolic": 1}, headers=caregiver_headers)
        assert response.status_code == 403

        response = client.get(measures_url(patient_id), headers=caregiver_headers)
        assert response.status_code == 403

    def test_other_patient_forbidden(self, client, patient, make_user):
        patient_id, _ = patient
        _, other_headers = make_user("someone@example.com", UserRole.PATIENT)

        response = client.get(measures_url(patient_id), headers=other_headers)
        assert response.status_code == 403

    def test_admin_reads_but_cannot_write(self, client, patient, admin):
        patient_id, patient_headers = patient
        _, admin_headers = admin
        client.put(measures_url(patient_id, "2030-05-01"), json={"systolic": 120}, headers=patient_headers)

        response = client.get(measures_url(patient_id), headers=admin_headers)
        assert response.status_code == 200
        assert len(response.json()) == 1

        response = client.put(measures_url(patient_id, "2030-05-01"), json={"systolic": 1}, headers=admin_headers)
        assert response.status_code == 403

    def test_newest_first_with_limit(self, client, patient):
        patient_id, headers = patient
        for day in ("2030-05-01", "2030-05-03", "2030-05-02"):
            client.put(measures_url(patient_id, day), json={"exercise_mins": 30}, headers=headers)

        response = client.get(measures_url(patient_id), params={"limit": 2}, headers=headers)
        assert [m["date"] for m in response.json()] == ["2030-05-03", "2030-05-02"]

    def test_invalid_date(self, client, patient):
        patient_id, headers = patient

        for day in ("2030-5-1", "2030-13-01", "yesterday"):
            response = client.put(measures_url(patient_id, day), json={"systolic": 120}, headers=headers)
            assert response.status_code == 400

    def test_out_of_range_value(self, client, patient):
        patient_id, headers = patient

        response = client.put(measures_url(patient_id, "2030-05-01"), json={"spo2_pct": 120}, headers=headers)
        assert response.status_code == 422
