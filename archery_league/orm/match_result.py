"""
archery_league/orm/match_result.py
Match results and the two scores each one owns.

A Score belongs to exactly one MatchResult (as its left or right side)
and to exactly one Entry. Scores are never created or deleted on their own.
"""
from typing import Any, Dict

from sqlalchemy import Column, Integer, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from archery_league.orm.base import BaseModel


class Score(BaseModel):
    """
    One competitor's side of a match.

    match_points_adjusted = match_points + allowance
    league_points stays None until the match outcome has been decided.
    """
    __tablename__ = "scores"

    entry_id = Column(
        Integer,
        ForeignKey("entries.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    # Handicap transition caused by this score
    handicap_before = Column(Integer, nullable=False)
    handicap_after = Column(Integer, nullable=False)
    allowance = Column(Integer, nullable=False)

    match_points = Column(Integer, nullable=False)
    match_points_adjusted = Column(Integer, nullable=False)
    bonus_points = Column(Integer, nullable=False, default=0)
    league_points = Column(Integer, nullable=False)

    # Relationships
    entry = relationship("Entry", back_populates="scores")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "entry_id": self.entry_id,
            "handicap_before": self.handicap_before,
            "handicap_after": self.handicap_after,
            "allowance": self.allowance,
            "match_points": self.match_points,
            "match_points_adjusted": self.match_points_adjusted,
            "bonus_points": self.bonus_points,
            "league_points": self.league_points,
        }


class MatchResult(BaseModel):
    """
    A recorded head-to-head match. winner_id is None for a draw.
    """
    __tablename__ = "match_results"

    round_id = Column(
        Integer,
        ForeignKey("rounds.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    shot_at = Column(DateTime, nullable=False)

    left_score_id = Column(
        Integer,
        ForeignKey("scores.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True
    )
    right_score_id = Column(
        Integer,
        ForeignKey("scores.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True
    )
    winner_id = Column(
        Integer,
        ForeignKey("entries.id", ondelete="SET NULL"),
        nullable=True
    )

    # Relationships
    round = relationship("Round")
    left_score = relationship("Score", foreign_keys=[left_score_id])
    right_score = relationship("Score", foreign_keys=[right_score_id])
    winner = relationship("Entry", foreign_keys=[winner_id])

    __table_args__ = (
        Index('idx_match_results_shot_at', 'shot_at'),
    )

    @property
    def is_draw(self) -> bool:
        return self.winner_id is None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "round_id": self.round_id,
            "shot_at": self.shot_at.isoformat() if self.shot_at else None,
            "left_score_id": self.left_score_id,
            "right_score_id": self.right_score_id,
            "winner_id": self.winner_id,
        }
