# models/lead.py
from sqlalchemy import Column, String, BigInteger, Text, JSON, Uuid, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship
from uuid import uuid4
from leadbook.db.base_class import Base
from leadbook.models.enums import (
    BHK,
    City,
    PropertyType,
    Purpose,
    Source,
    Status,
    Timeline,
    check_constraint_sql,
)

class Lead(Base):
    __tablename__ = "leads"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    owner_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    full_name = Column(String(80), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(15), nullable=False)
    city = Column(String(30), nullable=False)
    property_type = Column(String(30), nullable=False)
    bhk = Column(String(10), nullable=True)  # only for Apartment / Villa
    purpose = Column(String(10), nullable=False)
    budget_min = Column(BigInteger, nullable=True)
    budget_max = Column(BigInteger, nullable=True)
    timeline = Column(String(30), nullable=False)
    source = Column(String(30), nullable=False)
    notes = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    status = Column(String(30), nullable=False, default=Status.NEW.value)

    __table_args__ = (
        CheckConstraint(check_constraint_sql("city", City), name="chk_lead_city"),
        CheckConstraint(check_constraint_sql("property_type", PropertyType), name="chk_lead_property_type"),
        CheckConstraint(check_constraint_sql("bhk", BHK), name="chk_lead_bhk"),
        CheckConstraint(check_constraint_sql("purpose", Purpose), name="chk_lead_purpose"),
        CheckConstraint(check_constraint_sql("timeline", Timeline), name="chk_lead_timeline"),
        CheckConstraint(check_constraint_sql("source", Source), name="chk_lead_source"),
        CheckConstraint(check_constraint_sql("status", Status), name="chk_lead_status"),
        CheckConstraint(
            "budget_min IS NULL OR budget_max IS NULL OR budget_max >= budget_min",
            name="chk_lead_budget_range",
        ),
        Index("idx_leads_owner", "owner_id"),
        Index("idx_leads_updated", "updated_at"),
        Index("idx_leads_filters", "city", "property_type", "status", "timeline"),
    )

    # Relationships
    owner = relationship("User", back_populates="leads")
    history = relationship(
        "ChangeRecord",
        back_populates="lead",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ChangeRecord.changed_at.desc()",
    )
