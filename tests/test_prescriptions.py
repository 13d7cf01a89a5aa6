from clinic.models.prescription import Prescription
from tests.conftest import at

def book(client, headers, doctor_id, when):
    response = client.post(
        "/api/v1/appointments",
        json={"doctor_id": doctor_id, "appointment_time": when.isoformat()},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()["id"]

def prescription_for(appointment_id, **overrides):
    payload = {
        "patient_name": "Jane Doe",
        "appointment_id": appointment_id,
        "medication": "Amoxicillin",
        "dosage": "500mg",
        "doctor_notes": "Twice a day after meals",
    }
    payload.update(overrides)
    return payload

class TestPrescriptionsApi:

    def test_doctor_saves_and_reads_prescription(self, client, make_doctor, make_patient, auth_headers, future_day):
        doctor = make_doctor("house@clinic.io")
        make_patient("jane@mail.io")
        appointment_id = book(client, auth_headers("jane@mail.io"), doctor.id, at(future_day, "09:00"))
        headers = auth_headers("house@clinic.io")

        response = client.post("/api/v1/prescriptions", json=prescription_for(appointment_id), headers=headers)
        assert response.status_code == 201
        assert response.json()["medication"] == "Amoxicillin"

        response = client.get(f"/api/v1/prescriptions/{appointment_id}", headers=headers)
        assert response.status_code == 200

        data = response.json()
        assert data["message"] is None
        assert [p["dosage"] for p in data["prescriptions"]] == ["500mg"]
        assert data["prescriptions"][0]["appointment_id"] == appointment_id

    def test_no_prescription_yet(self, client, make_doctor, make_patient, auth_headers, future_day):
        doctor = make_doctor("house@clinic.io")
        make_patient("jane@mail.io")
        appointment_id = book(client, auth_headers("jane@mail.io"), doctor.id, at(future_day, "09:00"))

        response = client.get(f"/api/v1/prescriptions/{appointment_id}", headers=auth_headers("house@clinic.io"))
        assert response.status_code == 200
        assert response.json() == {
            "prescriptions": [],
            "message": "No prescription exists for that appointment",
        }

    def test_unknown_appointment_has_no_prescriptions(self, client, make_doctor, auth_headers):
        make_doctor("house@clinic.io")
        response = client.get("/api/v1/prescriptions/4242", headers=auth_headers("house@clinic.io"))
        assert response.status_code == 200
        assert response.json()["prescriptions"] == []

    def test_patient_token_is_rejected(self, client, make_doctor, make_patient, auth_headers, future_day):
        doctor = make_doctor("house@clinic.io")
        make_patient("jane@mail.io")
        headers = auth_headers("jane@mail.io")
        appointment_id = book(client, headers, doctor.id, at(future_day, "09:00"))

        response = client.post("/api/v1/prescriptions", json=prescription_for(appointment_id), headers=headers)
        assert response.status_code == 401

        response = client.get(f"/api/v1/prescriptions/{appointment_id}", headers=headers)
        assert response.status_code == 401

    def test_prescription_for_missing_appointment(self, client, make_doctor, auth_headers):
        make_doctor("house@clinic.io")
        response = client.post(
            "/api/v1/prescriptions", json=prescription_for(4242), headers=auth_headers("house@clinic.io")
        )
        assert response.status_code == 404

    def test_other_doctors_appointment_is_forbidden(self, client, make_doctor, make_patient, auth_headers, future_day):
        doctor = make_doctor("house@clinic.io")
        make_doctor("wilson@clinic.io", name="James Wilson")
        make_patient("jane@mail.io")
        appointment_id = book(client, auth_headers("jane@mail.io"), doctor.id, at(future_day, "09:00"))
        headers = auth_headers("wilson@clinic.io")

        response = client.post("/api/v1/prescriptions", json=prescription_for(appointment_id), headers=headers)
        assert response.status_code == 403

        response = client.get(f"/api/v1/prescriptions/{appointment_id}", headers=headers)
        assert response.status_code == 403

    def test_invalid_fields_rejected(self, client, make_doctor, make_patient, auth_headers, future_day):
        doctor = make_doctor("house@clinic.io")
        make_patient("jane@mail.io")
        appointment_id = book(client, auth_headers("jane@mail.io"), doctor.id, at(future_day, "09:00"))
        headers = auth_headers("house@clinic.io")

        too_short = prescription_for(appointment_id, medication="Rx")
        assert client.post("/api/v1/prescriptions", json=too_short, headers=headers).status_code == 422

        long_dosage = prescription_for(appointment_id, dosage="x" * 21)
        assert client.post("/api/v1/prescriptions", json=long_dosage, headers=headers).status_code == 422

    def test_cancelling_appointment_removes_its_prescriptions(
        self, client, db, make_doctor, make_patient, auth_headers, future_day
    ):
        doctor = make_doctor("house@clinic.io")
        make_patient("jane@mail.io")
        patient_headers = auth_headers("jane@mail.io")
        appointment_id = book(client, patient_headers, doctor.id, at(future_day, "09:00"))
        client.post(
            "/api/v1/prescriptions", json=prescription_for(appointment_id), headers=auth_headers("house@clinic.io")
        )
        assert db.query(Prescription).count() == 1

        response = client.delete(f"/api/v1/appointments/{appointment_id}", headers=patient_headers)
        assert response.status_code == 200
        assert db.query(Prescription).count() == 0
