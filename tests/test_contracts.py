from datetime import time, timedelta

import pytest

from agenda.domain.appointments.schemas import AppointmentPatch
from agenda.domain.appointments.service import AppointmentService
from agenda.domain.contracts.service import ContractService
from agenda.exceptions import NotFoundError, ValidationError
from agenda.models import Appointment, AuditEvent

NINE = time(9, 0)
MON_WED = [(0, NINE), (2, NINE)]


def statuses(db, contract):
    rows = (
        db.query(Appointment)
        .filter(Appointment.contract_id == contract.id)
        .order_by(Appointment.appointment_date)
        .all()
    )
    return [(a.appointment_date, a.status) for a in rows]


def test_preview_recurrence(db, workweek, make_contract, next_monday):
    contract = make_contract(rules=MON_WED, start_date=next_monday, num_appointments=3)
    items = ContractService(db).preview_recurrence(contract.id)

    assert items == [
        (next_monday, NINE),
        (next_monday + timedelta(days=2), NINE),
        (next_monday + timedelta(days=7), NINE),
    ]
    assert db.query(Appointment).count() == 0


def test_preview_unknown_contract(db):
    with pytest.raises(NotFoundError):
        ContractService(db).preview_recurrence(404)


def test_pre_schedule_then_activate(db, workweek, make_contract, next_monday):
    contract = make_contract(
        status="SENT", rules=MON_WED, start_date=next_monday, num_appointments=3
    )
    service = ContractService(db)

    held = service.pre_schedule(contract.id)
    assert held.created == 3
    assert {s for _, s in statuses(db, contract)} == {"PRE_SCHEDULED"}

    result = service.activate(contract.id)
    db.refresh(contract)

    assert result["promoted"] == 3
    assert result["created"] == 0
    assert contract.status == "SIGNED"
    assert contract.signed_at is not None
    assert {s for _, s in statuses(db, contract)} == {"SCHEDULED"}


def test_pre_schedule_skips_taken_slots(db, professional, workweek, make_contract, next_monday):
    other = make_contract(status="SIGNED")
    AppointmentService(db).create_appointments(
        professional.id, other.id, [(next_monday, time(9, 30))]
    )

    contract = make_contract(
        status="SENT", rules=MON_WED, start_date=next_monday, num_appointments=3
    )
    held = ContractService(db).pre_schedule(contract.id)

    assert held.created == 2
    assert held.rejected[0].appointment_date == next_monday


def test_pre_schedule_requires_sent_contract(db, workweek, make_contract, next_monday):
    contract = make_contract(status="SIGNED", rules=MON_WED, start_date=next_monday)
    with pytest.raises(ValidationError):
        ContractService(db).pre_schedule(contract.id)


def test_pre_schedule_requires_rules(db, workweek, make_contract):
    contract = make_contract(status="SENT")
    with pytest.raises(ValidationError):
        ContractService(db).pre_schedule(contract.id)


def test_activate_books_rules_when_nothing_held(db, workweek, make_contract, next_monday):
    contract = make_contract(
        status="SENT", rules=MON_WED, start_date=next_monday, num_appointments=4
    )
    result = ContractService(db).activate(contract.id)

    assert result["promoted"] == 0
    assert result["created"] == 4
    assert len(result["appointment_ids"]) == 4
    assert {s for _, s in statuses(db, contract)} == {"SCHEDULED"}


def test_activate_rejects_ended_contract(db, make_contract):
    contract = make_contract(status="ENDED")
    with pytest.raises(ValidationError):
        ContractService(db).activate(contract.id)


def test_end_contract(db, workweek, make_contract, next_monday):
    contract = make_contract(rules=MON_WED, start_date=next_monday, num_appointments=3)
    service = ContractService(db)
    ids = service.activate(contract.id)["appointment_ids"]
    AppointmentService(db).edit(ids[1], AppointmentPatch(status="CONFIRMED"))

    wednesday = next_monday + timedelta(days=2)
    result = service.end_contract(contract.id, wednesday)
    db.refresh(contract)

    assert result["series_ended"] == 2
    assert result["cancelled"] == 0
    assert contract.status == "ENDED"
    assert contract.end_date == wednesday
    assert statuses(db, contract) == [
        (next_monday, "SCHEDULED"),
        (wednesday, "SERIES_ENDED"),
        (next_monday + timedelta(days=7), "SERIES_ENDED"),
    ]

    actions = {e.action for e in db.query(AuditEvent).all()}
    assert {"CONTRACT_ENDED", "APPOINTMENTS_SERIES_ENDED_BATCH"} <= actions


def test_end_contract_cancels_leftover_holds(db, workweek, make_contract, next_monday):
    contract = make_contract(
        status="SENT", rules=MON_WED, start_date=next_monday, num_appointments=2
    )
    service = ContractService(db)
    service.pre_schedule(contract.id)
    contract.status = "SIGNED"
    db.commit()

    result = service.end_contract(contract.id, next_monday)

    assert result["cancelled"] == 2
    assert {s for _, s in statuses(db, contract)} == {"CANCELLED"}


def test_only_signed_contracts_end(db, make_contract):
    contract = make_contract(status="SENT")
    with pytest.raises(ValidationError):
        ContractService(db).end_contract(contract.id)


def test_ended_slots_become_free(db, professional, workweek, make_contract, next_monday):
    contract = make_contract(rules=[(0, NINE)], start_date=next_monday, num_appointments=1)
    service = ContractService(db)
    service.activate(contract.id)
    service.end_contract(contract.id, next_monday)

    replacement = make_contract(status="SIGNED")
    result = AppointmentService(db).create_appointments(
        professional.id, replacement.id, [(next_monday, NINE)]
    )
    assert result.created == 1
