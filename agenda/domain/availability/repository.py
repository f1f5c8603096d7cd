"""Availability repository - Database operations for weekday templates"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import AvailabilityTemplate, Professional


class AvailabilityRepository:
    """Repository for availability template database operations"""

    @staticmethod
    def get_professional(db: Session, professional_id: int) -> Optional[Professional]:
        return db.query(Professional).filter(Professional.id == professional_id).first()

    @staticmethod
    def list_templates(db: Session, professional_id: int) -> list[AvailabilityTemplate]:
        """Get stored templates ordered by weekday"""
        return (
            db.query(AvailabilityTemplate)
            .filter(AvailabilityTemplate.professional_id == professional_id)
            .order_by(AvailabilityTemplate.day_of_week)
            .all()
        )

    @staticmethod
    def templates_by_weekday(db: Session, professional_id: int) -> dict[int, AvailabilityTemplate]:
        return {
            t.day_of_week: t for t in AvailabilityRepository.list_templates(db, professional_id)
        }

    @staticmethod
    def get_template(
        db: Session, professional_id: int, day_of_week: int
    ) -> Optional[AvailabilityTemplate]:
        return (
            db.query(AvailabilityTemplate)
            .filter(
                AvailabilityTemplate.professional_id == professional_id,
                AvailabilityTemplate.day_of_week == day_of_week,
            )
            .first()
        )

    @staticmethod
    def replace_templates(
        db: Session, professional_id: int, rows: list[dict]
    ) -> list[AvailabilityTemplate]:
        """Replace the whole week in one transaction (no history is kept)"""
        for template in AvailabilityRepository.list_templates(db, professional_id):
            db.delete(template)
        db.flush()

        templates = [AvailabilityTemplate(professional_id=professional_id, **row) for row in rows]
        db.add_all(templates)
        db.commit()
        return AvailabilityRepository.list_templates(db, professional_id)

    @staticmethod
    def upsert_template(db: Session, professional_id: int, row: dict) -> AvailabilityTemplate:
        template = AvailabilityRepository.get_template(db, professional_id, row["day_of_week"])
        if template is None:
            template = AvailabilityTemplate(professional_id=professional_id, **row)
            db.add(template)
        else:
            for key, value in row.items():
                setattr(template, key, value)
        db.commit()
        db.refresh(template)
        return template
