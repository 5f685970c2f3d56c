"""Session model."""
from sqlalchemy import Column, String, BigInteger, DateTime, ForeignKey, Uuid, JSON, func
from sqlalchemy.dialects.postgresql import ARRAY
import uuid
from registry.database import Base


class Session(Base):
    """Session model for short-lived, scoped game server credentials."""
    __tablename__ = "sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    api_key_id = Column(Uuid, ForeignKey("api_keys.id"), nullable=False)
    game_id = Column(Uuid, ForeignKey("games.id"), nullable=False, index=True)
    universe_id = Column(BigInteger, nullable=False)
    place_id = Column(BigInteger, nullable=True)
    job_id = Column(String, nullable=True)  # Platform server instance
    tier = Column(String, nullable=False)
    scopes = Column(ARRAY(String).with_variant(JSON(), "sqlite"), nullable=False)
    token = Column(String, nullable=False, unique=True, index=True)  # Bearer handle
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
