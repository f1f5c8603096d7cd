import asyncio
from datetime import time, timedelta

import pytest

from agenda.domain.appointments.service import AppointmentService
from agenda.domain.reminders.service import ReminderDispatcher
from agenda.models import Appointment, AuditEvent, Contract, Patient, RescheduleToken


class FakeSender:
    def __init__(self, fail_for=()):
        self.calls = []
        self.fail_for = set(fail_for)

    async def send_reminder(self, phone, patient_name, date_str, time_str, reschedule_url=None):
        self.calls.append((phone, patient_name, date_str, time_str, reschedule_url))
        if phone in self.fail_for:
            return False, "undeliverable"
        return True, None


@pytest.fixture
def tomorrow_bookings(db, professional, patient, workweek, make_contract, next_monday):
    """Two live appointments and one cancelled one on next Monday"""
    contract = make_contract(status="SIGNED")
    service = AppointmentService(db)
    ids = service.create_appointments(
        professional.id,
        contract.id,
        [(next_monday, time(9, 0)), (next_monday, time(10, 0)), (next_monday, time(11, 0))],
    ).appointment_ids
    service.cancel(ids[2])
    return ids


def run(dispatcher, as_of_date, professional_id=None):
    return asyncio.run(dispatcher.dispatch(as_of_date, professional_id))


def test_sends_one_reminder_per_live_appointment(db, tomorrow_bookings, next_monday):
    sender = FakeSender()
    result = run(ReminderDispatcher(db, sender, app_public_url=""), next_monday - timedelta(days=1))

    assert (result.sent, result.skipped) == (2, 0)
    assert [c[3] for c in sender.calls] == ["09:00", "10:00"]
    phone, name, date_str, _, url = sender.calls[0]
    assert phone == "+5511987654321"
    assert name == "Lucas Lima"
    assert date_str == next_monday.strftime("%d/%m/%Y")
    assert url is None

    stamped = db.get(Appointment, tomorrow_bookings[0]).last_reminder_sent_on
    assert stamped == next_monday - timedelta(days=1)
    assert db.query(AuditEvent).filter(AuditEvent.action == "APPOINTMENT_REMINDER_SENT").count() == 2


def test_reminder_carries_reschedule_link(db, tomorrow_bookings, next_monday):
    sender = FakeSender()
    run(ReminderDispatcher(db, sender, app_public_url="https://agenda.example.com/"), next_monday - timedelta(days=1))

    url = sender.calls[0][4]
    assert url.startswith("https://agenda.example.com/remarcar/")
    token = url.rsplit("/", 1)[1]
    record = db.query(RescheduleToken).filter(RescheduleToken.token == token).one()
    assert record.appointment_id == tomorrow_bookings[0]


def test_failed_send_is_skipped_and_leaves_no_token(db, patient, tomorrow_bookings, next_monday):
    sender = FakeSender(fail_for={"+5511987654321"})
    result = run(
        ReminderDispatcher(db, sender, app_public_url="https://agenda.example.com"),
        next_monday - timedelta(days=1),
    )

    assert (result.sent, result.skipped) == (0, 2)
    assert db.query(RescheduleToken).count() == 0
    assert db.get(Appointment, tomorrow_bookings[0]).last_reminder_sent_on is None


def test_missing_phone_is_skipped(db, professional, workweek, next_monday):
    patient = Patient(professional_id=professional.id, full_name="Sem Telefone")
    db.add(patient)
    db.flush()
    contract = Contract(professional_id=professional.id, patient_id=patient.id, status="SIGNED")
    db.add(contract)
    db.commit()
    AppointmentService(db).create_appointments(
        professional.id, contract.id, [(next_monday, time(14, 0))]
    )

    sender = FakeSender()
    result = run(ReminderDispatcher(db, sender, app_public_url=""), next_monday - timedelta(days=1))

    assert (result.sent, result.skipped) == (0, 1)
    assert sender.calls == []


def test_unconfigured_sender_skips_everything(db, tomorrow_bookings, next_monday):
    result = run(ReminderDispatcher(db, None), next_monday - timedelta(days=1))
    assert (result.sent, result.skipped) == (0, 2)


def test_other_days_are_ignored(db, tomorrow_bookings, next_monday):
    sender = FakeSender()
    result = run(ReminderDispatcher(db, sender, app_public_url=""), next_monday)
    assert (result.sent, result.skipped) == (0, 0)


def test_dedup_is_opt_in(db, tomorrow_bookings, next_monday):
    as_of = next_monday - timedelta(days=1)
    run(ReminderDispatcher(db, FakeSender(), app_public_url=""), as_of)

    again = run(ReminderDispatcher(db, FakeSender(), app_public_url=""), as_of)
    assert again.sent == 2

    deduped = run(
        ReminderDispatcher(db, FakeSender(), app_public_url="", skip_already_sent=True), as_of
    )
    assert (deduped.sent, deduped.skipped) == (0, 2)


def test_professional_filter(db, professional, tomorrow_bookings, next_monday):
    as_of = next_monday - timedelta(days=1)
    assert run(ReminderDispatcher(db, FakeSender(), app_public_url=""), as_of, professional.id + 1).sent == 0
    assert run(ReminderDispatcher(db, FakeSender(), app_public_url=""), as_of, professional.id).sent == 2
