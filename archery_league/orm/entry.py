"""
archery_league/orm/entry.py
Entries (registered archers) and the per-bow-style handicap table.
"""
from typing import Any, Dict

from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from archery_league.orm.base import BaseModel


class Entry(BaseModel):
    """
    An archer registered in a competition.

    starting_handicap is the number the archer registered with.
    current_handicap is a snapshot kept in step with the latest score by
    a downstream consumer, never by the match result transaction itself.
    """
    __tablename__ = "entries"

    competition_id = Column(
        Integer,
        ForeignKey("competitions.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    archer_name = Column(String(255), nullable=False)
    bow_style = Column(String(32), nullable=False)
    starting_handicap = Column(Integer, nullable=False)
    current_handicap = Column(Integer, nullable=False)

    # Relationships
    competition = relationship("Competition", back_populates="entries")
    scores = relationship("Score", back_populates="entry")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "competition_id": self.competition_id,
            "archer_name": self.archer_name,
            "bow_style": self.bow_style,
            "starting_handicap": self.starting_handicap,
            "current_handicap": self.current_handicap,
        }


class Handicap(BaseModel):
    """
    Reference row: the match allowance for a handicap number in a bow style.
    Higher numbers carry larger allowances.
    """
    __tablename__ = "handicaps"

    bow_style = Column(String(32), nullable=False)
    number = Column(Integer, nullable=False)
    match_allowance = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint('bow_style', 'number', name='uq_handicap_style_number'),
        Index('idx_handicaps_style_allowance', 'bow_style', 'match_allowance'),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "bow_style": self.bow_style,
            "number": self.number,
            "match_allowance": self.match_allowance,
        }
