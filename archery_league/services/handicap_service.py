"""
Handicap Service

Handicap table lookups, the default handicap recalculation, and the
downstream refresh of an entry's current handicap snapshot.
"""
import logging
import math
from typing import Optional

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from archery_league.config.scoring_policy import ScoringPolicy, scoring_policy
from archery_league.errors import NotFoundError, ErrorCode
from archery_league.orm.entry import Entry, Handicap
from archery_league.orm.match_result import MatchResult, Score

logger = logging.getLogger(__name__)


class HandicapService:
    """
    Read access to the handicap table plus handicap recalculation.

    recalculate_handicap is pure with respect to its inputs: it reads the
    reference table but never writes.
    """

    def __init__(self, policy: Optional[ScoringPolicy] = None):
        self.policy = policy or scoring_policy

    async def find_handicap(
        self,
        db: AsyncSession,
        bow_style: str,
        number: Optional[int]
    ) -> Handicap:
        """
        Look up the handicap row for a bow style and handicap number.

        Raises:
            NotFoundError: If the table has no such row
        """
        result = await db.execute(
            select(Handicap).where(
                Handicap.bow_style == bow_style,
                Handicap.number == number
            )
        )
        handicap = result.scalar_one_or_none()

        if handicap is None:
            raise NotFoundError(
                "Handicap",
                code=ErrorCode.HANDICAP_NOT_FOUND,
                details={"bow_style": bow_style, "number": number}
            )

        return handicap

    async def recalculate_handicap(
        self,
        db: AsyncSession,
        handicap: Handicap,
        match_points: int
    ) -> Handicap:
        """
        Work out the handicap an archer carries into their next match.

        The score "earns" the lowest handicap number whose allowance lifts
        the raw points to the hit threshold. The new handicap is the mean of
        the current and earned numbers, rounded up, and never worse than
        the current one. A score too low to earn any handicap in the table
        leaves the handicap unchanged.
        """
        result = await db.execute(
            select(Handicap.number)
            .where(
                Handicap.bow_style == handicap.bow_style,
                Handicap.match_allowance + match_points >= self.policy.HANDICAP_HIT_THRESHOLD
            )
            .order_by(Handicap.number)
            .limit(1)
        )
        earned_number = result.scalars().first()

        if earned_number is None:
            return handicap

        new_number = min(handicap.number, math.ceil((handicap.number + earned_number) / 2))
        if new_number == handicap.number:
            return handicap

        return await self.find_handicap(db, handicap.bow_style, new_number)


async def sync_current_handicap(db: AsyncSession, entry_id: int) -> Optional[int]:
    """
    Refresh an entry's current handicap from its score history.

    Runs after a match result write has committed, in its own transaction.
    The latest score by match time wins; with no scores the entry falls
    back to its registered handicap.

    Returns:
        The new current handicap, or None if the entry no longer exists
    """
    entry = await db.get(Entry, entry_id)
    if entry is None:
        return None

    result = await db.execute(
        select(Score.handicap_after)
        .join(
            MatchResult,
            or_(MatchResult.left_score_id == Score.id, MatchResult.right_score_id == Score.id)
        )
        .where(Score.entry_id == entry_id)
        .order_by(MatchResult.shot_at.desc(), Score.id.desc())
        .limit(1)
    )
    latest = result.scalars().first()

    new_handicap = latest if latest is not None else entry.starting_handicap

    if entry.current_handicap != new_handicap:
        logger.info(f"Entry {entry_id} handicap {entry.current_handicap} -> {new_handicap}")
        entry.current_handicap = new_handicap
        await db.commit()

    return new_handicap
