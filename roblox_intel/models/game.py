"""Game and metric snapshot models."""
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Integer, BigInteger, Float, Text, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from roblox_intel.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Game(Base):
    """A Roblox experience being tracked."""

    __tablename__ = "games"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    place_id = Column(BigInteger, unique=True, nullable=False, index=True)
    universe_id = Column(BigInteger)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    genre = Column(String(100))
    creator_id = Column(BigInteger)
    creator_name = Column(String(255))
    creator_type = Column(String(10))  # 'User' or 'Group'
    game_created_at = Column(DateTime(timezone=True), index=True)
    thumbnail_url = Column(Text)
    first_tracked_at = Column(DateTime(timezone=True), default=utcnow)
    last_updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, index=True)

    # Relationships
    metrics = relationship("GameMetric", back_populates="game", cascade="all, delete-orphan")
    group_links = relationship("GroupGame", back_populates="game", cascade="all, delete-orphan")


class GameMetric(Base):
    """Point-in-time engagement metrics for a game. Never updated after insert."""

    __tablename__ = "game_metrics"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    game_id = Column(Uuid, ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True)
    collected_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    # Engagement
    visits = Column(BigInteger)
    favorites = Column(BigInteger)
    current_players = Column(Integer)
    peak_players = Column(Integer)

    # Votes
    likes = Column(BigInteger)
    dislikes = Column(BigInteger)
    like_ratio = Column(Float)  # 0-100

    # Monthly Robux estimate
    estimated_revenue = Column(BigInteger)

    # Relationships
    game = relationship("Game", back_populates="metrics")
