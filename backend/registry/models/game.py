"""Game model for registered platform universes."""
from sqlalchemy import Column, String, BigInteger, DateTime, ForeignKey, Uuid, func
from sqlalchemy.orm import relationship
import uuid
from registry.database import Base


class Game(Base):
    """Game (tenant) model. One game per platform universe."""
    __tablename__ = "games"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    studio_id = Column(Uuid, ForeignKey("studios.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    universe_id = Column(BigInteger, nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    studio = relationship("Studio", back_populates="games")
    license = relationship("License", back_populates="game", uselist=False)
    api_keys = relationship("APIKey", back_populates="game")
