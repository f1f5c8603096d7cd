import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .domain.appointments.status import TERMINAL_STATUSES, AppointmentStatus


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


class Professional(Base):
    __tablename__ = "professionals"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=True)
    phone = Column(String(50), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    templates = relationship(
        "AvailabilityTemplate", back_populates="professional", cascade="all, delete-orphan"
    )
    appointments = relationship("Appointment", back_populates="professional")


class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    professional_id = Column(Integer, ForeignKey("professionals.id"), nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)  # Reminder contact channel (E.164)
    email = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    appointments = relationship("Appointment", back_populates="patient")


class AvailabilityTemplate(Base):
    """Working-hours template for one weekday (0=Monday .. 6=Sunday)"""

    __tablename__ = "availability_templates"

    professional_id = Column(Integer, ForeignKey("professionals.id"), primary_key=True)
    day_of_week = Column(Integer, primary_key=True)
    enabled = Column(Boolean, default=True, nullable=False)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    session_minutes = Column(Integer, default=50, nullable=False)
    buffer_minutes = Column(Integer, default=10, nullable=False)
    lunch_start = Column(Time, nullable=True)
    lunch_end = Column(Time, nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    professional = relationship("Professional", back_populates="templates")


class Contract(Base):
    """Service contract; only the fields scheduling depends on"""

    __tablename__ = "contracts"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(
        String(36), unique=True, nullable=False, index=True, default=generate_public_id
    )
    professional_id = Column(Integer, ForeignKey("professionals.id"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    # Workflow: DRAFT → SENT → SIGNED → ENDED
    status = Column(String(20), default="DRAFT", nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    num_appointments = Column(Integer, nullable=True)
    signed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    schedule_rules = relationship(
        "ContractScheduleRule",
        back_populates="contract",
        cascade="all, delete-orphan",
        order_by="ContractScheduleRule.day_of_week",
    )
    appointments = relationship("Appointment", back_populates="contract")
    patient = relationship("Patient")


class ContractScheduleRule(Base):
    """Recurring (weekday, time of day) attached to a contract"""

    __tablename__ = "contract_schedule_rules"

    id = Column(Integer, primary_key=True, index=True)
    contract_id = Column(Integer, ForeignKey("contracts.id"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    slot_time = Column(Time, nullable=False)

    contract = relationship("Contract", back_populates="schedule_rules")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(
        String(36), unique=True, nullable=False, index=True, default=generate_public_id
    )
    professional_id = Column(Integer, ForeignKey("professionals.id"), nullable=False)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False)
    contract_id = Column(Integer, ForeignKey("contracts.id"), nullable=False, index=True)

    appointment_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    # Never deleted: CANCELLED / SERIES_ENDED / COMPLETED are terminal statuses
    status = Column(
        String(20), default=AppointmentStatus.SCHEDULED.value, nullable=False, index=True
    )
    notes = Column(Text, nullable=True)

    last_reminder_sent_on = Column(Date, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    professional = relationship("Professional", back_populates="appointments")
    patient = relationship("Patient", back_populates="appointments")
    contract = relationship("Contract", back_populates="appointments")
    reschedule_tokens = relationship("RescheduleToken", back_populates="appointment")

    @property
    def patient_name(self):
        return self.patient.full_name if self.patient else None

    __table_args__ = (
        Index("ix_appointments_professional_date", "professional_id", "appointment_date"),
        # Default listings and overlap checks only look at live appointments
        Index(
            "ix_appointments_active",
            "professional_id",
            "appointment_date",
            "start_time",
            postgresql_where=status.notin_([s.value for s in TERMINAL_STATUSES]),
            sqlite_where=status.notin_([s.value for s in TERMINAL_STATUSES]),
        ),
    )


class RescheduleToken(Base):
    """Capability link that lets an unauthenticated party confirm or move one appointment"""

    __tablename__ = "reschedule_tokens"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(64), unique=True, nullable=False, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=False, index=True)
    issued_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    used_at = Column(DateTime, nullable=True)  # Set by the first successful move

    appointment = relationship("Appointment", back_populates="reschedule_tokens")


class AuditEvent(Base):
    __tablename__ = "audit_events"

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String(100), nullable=False, index=True)
    actor_type = Column(String(50), nullable=False)  # PROFESSIONAL, PATIENT_LINK, SYSTEM
    resource_type = Column(String(50), nullable=True)
    resource_id = Column(Integer, nullable=True)
    professional_id = Column(Integer, ForeignKey("professionals.id"), nullable=True, index=True)
    event_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
