from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Boolean

from medlog.db.base import Base


def _utcnow():
    return datetime.now(timezone.utc)


class NoteRow(Base):
    """
    One entry of the medication & note log.
    Free notes and administration events share the table.
    """
    __tablename__ = "notes"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    content = Column(String, nullable=False)
    is_administration = Column(Boolean, default=False, nullable=False)
    medication_name = Column(String, nullable=True)  # only for administrations
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def to_dict(self):
        created_at = self.created_at
        # SQLite hands back naive values; rows are stored in UTC
        if created_at is not None and created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return {
            "id": self.id,
            "user_id": self.user_id,
            "content": self.content,
            "is_administration": self.is_administration,
            "medication_name": self.medication_name,
            "created_at": created_at,
        }
