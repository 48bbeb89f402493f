import pytest
from pydantic import ValidationError

from clinic.models import Appointment, Doctor
from clinic.schemas import AvailabilityUpdate, DoctorCreate
from clinic.services import appointment_service


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


NEW_DOCTOR = {
    "name": "Dr. Kavya Iyer",
    "specialty": "Pediatrics",
    "email": "Kavya@CityClinic.com",
    "password": "kavya123",
    "phone": "9988776655",
    "available_times": ["11:00-12:00", "16:00-17:00", "11:00-12:00"],
}


def test_admin_login(client, admin_token):
    resp = client.post("/admin/login", json={"username": "root", "password": "admin123"})
    assert resp.status_code == 200
    assert resp.get_json()["role"] == "admin"

    bad = client.post("/admin/login", json={"username": "root", "password": "nope"})
    assert bad.status_code == 401


def test_admin_creates_doctor(client, admin_token):
    resp = client.post("/doctor", json=NEW_DOCTOR, headers=_auth(admin_token))
    assert resp.status_code == 201

    doctor = resp.get_json()["doctor"]
    assert doctor["email"] == "kavya@cityclinic.com"
    assert doctor["available_times"] == ["11:00-12:00", "16:00-17:00"]
    assert "password" not in doctor


def test_duplicate_doctor_email(client, admin_token, doctor):
    payload = dict(NEW_DOCTOR, email=doctor.email)
    assert client.post("/doctor", json=payload, headers=_auth(admin_token)).status_code == 409


def test_doctor_validation_errors(client, admin_token):
    payload = dict(NEW_DOCTOR, phone="12345", password="123", available_times=["morning"])
    resp = client.post("/doctor", json=payload, headers=_auth(admin_token))
    assert resp.status_code == 400
    fields = {d["field"] for d in resp.get_json()["details"]}
    assert {"phone", "password", "available_times"} <= fields


def test_only_admin_manages_doctors(client, doctor, doctor_token, patient_token):
    assert client.post("/doctor", json=NEW_DOCTOR, headers=_auth(doctor_token)).status_code == 401
    assert client.delete(f"/doctor/{doctor.id}", headers=_auth(patient_token)).status_code == 401
    assert client.get("/admin/doctors", headers=_auth(doctor_token)).status_code == 401


def test_admin_updates_doctor(client, admin_token, doctor):
    resp = client.put(
        f"/doctor/{doctor.id}",
        json={"specialty": "Cardiac Surgery", "available_times": ["08:00-09:00"]},
        headers=_auth(admin_token),
    )
    assert resp.status_code == 200
    body = resp.get_json()["doctor"]
    assert body["specialty"] == "Cardiac Surgery"
    assert body["available_times"] == ["08:00-09:00"]
    assert body["name"] == "Dr. Meera Shah"


def test_admin_deletes_doctor_with_appointments(client, admin_token, doctor, patient, future_date):
    appointment_service.book_appointment(patient, doctor.id, future_date, "09:00-10:00")

    resp = client.delete(f"/doctor/{doctor.id}", headers=_auth(admin_token))
    assert resp.status_code == 200
    assert Doctor.query.count() == 0
    assert Appointment.query.count() == 0
    assert client.delete(f"/doctor/{doctor.id}", headers=_auth(admin_token)).status_code == 404


def test_admin_doctor_list(client, admin_token, doctor, other_doctor):
    resp = client.get("/admin/doctors", headers=_auth(admin_token))
    assert [d["name"] for d in resp.get_json()["doctors"]] == ["Dr. Arjun Rao", "Dr. Meera Shah"]


def test_public_directory_filters(client, doctor, other_doctor):
    def names(query):
        return [d["name"] for d in client.get(f"/doctor{query}").get_json()["doctors"]]

    assert names("") == ["Dr. Arjun Rao", "Dr. Meera Shah"]
    assert names("?name=meera") == ["Dr. Meera Shah"]
    assert names("?specialty=dermatology") == ["Dr. Arjun Rao"]
    # Meera has morning and afternoon slots, Arjun only afternoon ones.
    assert names("?time=AM") == ["Dr. Meera Shah"]
    assert names("?time=pm") == ["Dr. Arjun Rao", "Dr. Meera Shah"]
    assert names("?name=meera&specialty=dermatology") == []


def test_doctor_detail(client, doctor):
    assert client.get(f"/doctor/{doctor.id}").get_json()["doctor"]["email"] == doctor.email
    assert client.get("/doctor/999").status_code == 404


def test_doctor_login_and_profile(client, doctor):
    resp = client.post("/doctor/login", json={"email": "MEERA@cityclinic.com", "password": "secret1"})
    assert resp.status_code == 200
    token = resp.get_json()["token"]

    me = client.get("/doctor/me", headers=_auth(token))
    assert me.get_json()["doctor"]["id"] == doctor.id

    assert client.post("/doctor/login", json={"email": doctor.email, "password": "wrong"}).status_code == 401


def test_doctor_replaces_availability(client, doctor, doctor_token):
    resp = client.put(
        "/doctor/me/availability",
        json={"available_times": ["12:00-13:00", "09:00-10:00"]},
        headers=_auth(doctor_token),
    )
    assert resp.status_code == 200
    assert resp.get_json()["available_times"] == ["09:00-10:00", "12:00-13:00"]


def test_slots_must_span_one_hour(client, doctor_token):
    with pytest.raises(ValidationError):
        DoctorCreate(**dict(NEW_DOCTOR, available_times=["09:00-09:30"]))
    with pytest.raises(ValidationError):
        AvailabilityUpdate(available_times=["10:00-12:00"])

    resp = client.put(
        "/doctor/me/availability",
        json={"available_times": ["09:00-09:30"]},
        headers=_auth(doctor_token),
    )
    assert resp.status_code == 400
    assert resp.get_json()["details"][0]["field"] == "available_times"


def test_padded_slot_is_stored_trimmed(client, admin_token, patient_token, future_date):
    payload = dict(NEW_DOCTOR, available_times=[" 09:00-10:00", "16:00-17:00 "])
    resp = client.post("/doctor", json=payload, headers=_auth(admin_token))
    assert resp.status_code == 201
    doctor = resp.get_json()["doctor"]
    assert doctor["available_times"] == ["09:00-10:00", "16:00-17:00"]

    booked = client.post(
        "/appointments",
        json={"doctor_id": doctor["id"], "date": future_date, "slot": "09:00-10:00"},
        headers=_auth(patient_token),
    )
    assert booked.status_code == 201


def test_doctor_appointments_by_date_and_name(client, doctor, doctor_token, patient, other_patient, future_date):
    appointment_service.book_appointment(patient, doctor.id, future_date, "10:00-11:00")
    appointment_service.book_appointment(other_patient, doctor.id, future_date, "09:00-10:00")

    resp = client.get(f"/doctor/appointments?date={future_date}", headers=_auth(doctor_token))
    assert [a["patient_name"] for a in resp.get_json()["appointments"]] == ["Ravi Kumar", "Asha Verma"]

    resp = client.get(f"/doctor/appointments?date={future_date}&name=asha", headers=_auth(doctor_token))
    assert [a["patient_name"] for a in resp.get_json()["appointments"]] == ["Asha Verma"]

    resp = client.get(f"/doctor/appointments?date={future_date}&name=null", headers=_auth(doctor_token))
    assert len(resp.get_json()["appointments"]) == 2

    # Nothing booked today.
    assert client.get("/doctor/appointments", headers=_auth(doctor_token)).get_json()["appointments"] == []
    assert client.get("/doctor/appointments?date=tomorrow", headers=_auth(doctor_token)).status_code == 400
