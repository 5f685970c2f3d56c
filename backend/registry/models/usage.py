"""Usage telemetry model."""
from sqlalchemy import Column, Integer, BigInteger, DateTime, ForeignKey, Uuid, UniqueConstraint
from registry.database import Base


class UsageRecord(Base):
    """Hourly usage aggregate per game."""
    __tablename__ = "usage_telemetry"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    game_id = Column(Uuid, ForeignKey("games.id"), nullable=False)
    period_start = Column(DateTime(timezone=True), nullable=False)  # Truncated to the hour
    api_calls = Column(Integer, default=0, nullable=False)
    transport_msgs = Column(Integer, default=0, nullable=False)
    peak_ccu = Column(Integer, default=0, nullable=False)
    unique_sessions = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("game_id", "period_start", name="uq_usage_game_period"),
    )
