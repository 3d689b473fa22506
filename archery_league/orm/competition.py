"""
archery_league/orm/competition.py
Competition structure: competitions, their stages and the dated rounds
inside each stage. Rounds are the windows a match result is filed under.
"""
from enum import Enum as PyEnum
from typing import Any, Dict

from sqlalchemy import Column, Integer, String, Date, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship

from archery_league.orm.base import BaseModel


class StageType(str, PyEnum):
    """Kinds of competition stage"""
    LEAGUE = "league"
    PLAYOFF = "playoff"


class Competition(BaseModel):
    """
    A league season. Owns its stages and the entries registered for it.
    """
    __tablename__ = "competitions"

    name = Column(String(255), nullable=False)

    entries_open_on = Column(Date, nullable=True)
    entries_close_on = Column(Date, nullable=True)
    starts_on = Column(Date, nullable=False)
    ends_on = Column(Date, nullable=False)

    # Relationships
    stages = relationship(
        "Stage",
        back_populates="competition",
        order_by="[Stage.starts_on, Stage.id]",
        cascade="all, delete-orphan"
    )
    entries = relationship("Entry", back_populates="competition", cascade="all, delete-orphan")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "entries_open_on": self.entries_open_on.isoformat() if self.entries_open_on else None,
            "entries_close_on": self.entries_close_on.isoformat() if self.entries_close_on else None,
            "starts_on": self.starts_on.isoformat() if self.starts_on else None,
            "ends_on": self.ends_on.isoformat() if self.ends_on else None,
        }


class Stage(BaseModel):
    """
    A phase of a competition (league or playoff).
    """
    __tablename__ = "stages"

    competition_id = Column(
        Integer,
        ForeignKey("competitions.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name = Column(String(255), nullable=False)
    type = Column(SQLEnum(StageType), nullable=False, default=StageType.LEAGUE)
    capacity = Column(Integer, nullable=False, default=0)
    starts_on = Column(Date, nullable=True)
    ends_on = Column(Date, nullable=True)

    # Relationships
    competition = relationship("Competition", back_populates="stages")
    rounds = relationship(
        "Round",
        back_populates="stage",
        order_by="[Round.starts_on, Round.id]",
        cascade="all, delete-orphan"
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "competition_id": self.competition_id,
            "name": self.name,
            "type": self.type.value if self.type else None,
            "capacity": self.capacity,
        }


class Round(BaseModel):
    """
    A dated window within a stage. Both ends are inclusive.
    """
    __tablename__ = "rounds"

    stage_id = Column(
        Integer,
        ForeignKey("stages.id", ondelete="CASCADE"),
        nullable=False
    )
    name = Column(String(255), nullable=False)
    starts_on = Column(Date, nullable=False)
    ends_on = Column(Date, nullable=False)

    # Relationships
    stage = relationship("Stage", back_populates="rounds")

    __table_args__ = (
        Index('idx_rounds_stage_window', 'stage_id', 'starts_on', 'ends_on'),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "stage_id": self.stage_id,
            "name": self.name,
            "starts_on": self.starts_on.isoformat() if self.starts_on else None,
            "ends_on": self.ends_on.isoformat() if self.ends_on else None,
        }
