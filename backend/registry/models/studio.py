"""Studio model for organizations that own games."""
from sqlalchemy import Column, String, DateTime, Uuid, func
from sqlalchemy.orm import relationship
import uuid
from registry.database import Base


class Studio(Base):
    """Studio/organization model."""
    __tablename__ = "studios"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    owner_email = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    games = relationship("Game", back_populates="studio")
