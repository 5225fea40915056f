"""Competitor group models."""
import uuid
from sqlalchemy import Column, String, Float, Boolean, Text, DateTime, ForeignKey, JSON, Uuid, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from roblox_intel.database import Base
from roblox_intel.models.game import utcnow

# Schemaless documents; JSONB on PostgreSQL, plain JSON elsewhere
Document = JSON().with_variant(JSONB(), "postgresql")


class CompetitorGroup(Base):
    """A curated set of games tracked together for comparison."""

    __tablename__ = "competitor_groups"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    group_id = Column(String(100), unique=True, nullable=False)
    group_name = Column(String(255), nullable=False)

    structural_characteristics = Column(Document, default=dict)  # {genre, theme, template, coreLoop, ...}
    qualification_criteria = Column(Document, default=dict)      # {checks, score, emergingStars}
    analysis_notes = Column(Document, default=dict)

    is_qualified = Column(Boolean, default=False, index=True)
    qualification_score = Column(Float)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, index=True)

    # Relationships
    memberships = relationship("GroupGame", back_populates="group", cascade="all, delete-orphan")


class GroupGame(Base):
    """Membership of a game in a competitor group."""

    __tablename__ = "group_games"
    __table_args__ = (
        UniqueConstraint("group_id", "game_id", name="uq_group_game"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    group_id = Column(Uuid, ForeignKey("competitor_groups.id", ondelete="CASCADE"), nullable=False, index=True)
    game_id = Column(Uuid, ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True)
    is_emerging_star = Column(Boolean, default=False)
    quality_score = Column(Float)
    notes = Column(Text)
    added_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    group = relationship("CompetitorGroup", back_populates="memberships")
    game = relationship("Game", back_populates="group_links")
