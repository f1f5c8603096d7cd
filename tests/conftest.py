from datetime import time, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from agenda.database import Base, get_db
from agenda.domain.availability.schemas import DayTemplate
from agenda.domain.availability.service import AvailabilityService
from agenda.main import app
from agenda.models import Contract, ContractScheduleRule, Patient, Professional
from agenda.utils.clock import local_today

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def professional(db):
    professional = Professional(full_name="Dra. Ana Souza", email="ana@example.com")
    db.add(professional)
    db.commit()
    db.refresh(professional)
    return professional


@pytest.fixture
def patient(db, professional):
    patient = Patient(
        professional_id=professional.id, full_name="Lucas Lima", phone="+55 11 98765-4321"
    )
    db.add(patient)
    db.commit()
    db.refresh(patient)
    return patient


@pytest.fixture
def workweek(db, professional):
    """Mon-Fri 09:00-17:00, lunch 12:00-13:00, 50 min sessions, 10 min buffer"""
    days = [
        DayTemplate(
            day_of_week=d,
            enabled=True,
            start_time=time(9, 0),
            end_time=time(17, 0),
            lunch_start=time(12, 0),
            lunch_end=time(13, 0),
            session_minutes=50,
            buffer_minutes=10,
        )
        for d in range(5)
    ]
    return AvailabilityService(db).put_week(professional.id, days)


@pytest.fixture
def make_contract(db, professional, patient):
    def _make(status="SIGNED", rules=(), start_date=None, end_date=None, num_appointments=None):
        contract = Contract(
            professional_id=professional.id,
            patient_id=patient.id,
            status=status,
            start_date=start_date,
            end_date=end_date,
            num_appointments=num_appointments,
        )
        contract.schedule_rules = [
            ContractScheduleRule(day_of_week=d, slot_time=t) for d, t in rules
        ]
        db.add(contract)
        db.commit()
        db.refresh(contract)
        return contract

    return _make


@pytest.fixture
def next_monday():
    """First Monday after today; always inside the reschedule window"""
    today = local_today()
    return today + timedelta(days=7 - today.weekday())
