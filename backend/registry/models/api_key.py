"""API Key model."""
from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Uuid, func
from sqlalchemy.orm import relationship
import uuid
from registry.database import Base


class APIKey(Base):
    """API Key model for authenticating game servers."""
    __tablename__ = "api_keys"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    game_id = Column(Uuid, ForeignKey("games.id"), nullable=False, index=True)
    key_hash = Column(String, nullable=False, unique=True, index=True)  # SHA-256 of the raw key
    key_prefix = Column(String, nullable=False)  # Leading chars for display
    label = Column(String, nullable=False, default="default")  # e.g., "production", "staging"
    is_active = Column(Boolean, default=True, nullable=False)
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    revoked_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    game = relationship("Game", back_populates="api_keys")
