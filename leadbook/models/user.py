# models/user.py
from sqlalchemy import Column, String, Uuid
from sqlalchemy.orm import relationship
from uuid import uuid4
from leadbook.db.base_class import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(200), nullable=True)

    # Relationships
    leads = relationship("Lead", back_populates="owner")
