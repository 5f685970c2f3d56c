"""License model."""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Uuid, CheckConstraint, func
from sqlalchemy.orm import relationship
import uuid
from registry.database import Base


class License(Base):
    """License model gating session issuance. One per game."""
    __tablename__ = "licenses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    game_id = Column(Uuid, ForeignKey("games.id"), nullable=False, unique=True, index=True)
    tier = Column(String, nullable=False)  # mach2|mach3
    status = Column(String, nullable=False)  # active|suspended|expired|trial
    is_internal = Column(Boolean, default=False, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)  # Hard expiry, independent of status
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    game = relationship("Game", back_populates="license")

    __table_args__ = (
        CheckConstraint("tier IN ('mach2', 'mach3')", name="ck_licenses_tier"),
        CheckConstraint(
            "status IN ('active', 'suspended', 'expired', 'trial')",
            name="ck_licenses_status",
        ),
    )
