# models/change_record.py
from sqlalchemy import Column, DateTime, JSON, Uuid, ForeignKey, Index
from sqlalchemy.orm import relationship
from uuid import uuid4
from datetime import datetime
from leadbook.db.base_class import Base

class ChangeRecord(Base):
    """Append-only audit entry; `diff` holds the action tag plus snapshot or changes."""

    __tablename__ = "lead_history"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    lead_id = Column(Uuid(as_uuid=True), ForeignKey("leads.id", ondelete="CASCADE"), nullable=False)
    changed_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    diff = Column(JSON, nullable=False)
    changed_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    lead = relationship("Lead", back_populates="history")
    author = relationship("User")

    __table_args__ = (
        Index("idx_history_lead", "lead_id"),
        Index("idx_history_time", "changed_at"),
    )
