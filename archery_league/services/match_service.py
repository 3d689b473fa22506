"""
Match Result Service

Records, updates and removes head-to-head match results.

Each write runs as one transaction:
    1. Resolve the stage and the round the match was shot in
    2. Compute both scores (allowance, adjusted points, handicap transition)
    3. Decide the outcome (league points, close-loss bonus, winner)
    4. Persist the match result and its two scores together

Any failure rolls the whole write back. League standings and the entry
handicap snapshot are not touched here.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import select, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from archery_league.config.scoring_policy import ScoringPolicy, scoring_policy
from archery_league.errors import NotFoundError, ErrorCode
from archery_league.orm.competition import Stage, Round
from archery_league.orm.entry import Entry, Handicap
from archery_league.orm.match_result import MatchResult, Score
from archery_league.services.handicap_service import HandicapService

logger = logging.getLogger(__name__)


def _wall_clock(shot_at: datetime) -> datetime:
    """
    Match times are kept as the local wall-clock time they were shot at.

    The offset is dropped without conversion, so the calendar date used
    for round resolution is the date in the archer's own timezone.
    """
    return shot_at.replace(tzinfo=None)


async def get_match_result(db: AsyncSession, match_id: int) -> MatchResult:
    """
    Load a match result with both scores.

    Raises:
        NotFoundError: If the match result does not exist
    """
    result = await db.execute(
        select(MatchResult)
        .options(
            selectinload(MatchResult.left_score),
            selectinload(MatchResult.right_score)
        )
        .where(MatchResult.id == match_id)
        .execution_options(populate_existing=True)
    )
    match = result.scalar_one_or_none()

    if match is None:
        raise NotFoundError("MatchResult", match_id, code=ErrorCode.MATCH_RESULT_NOT_FOUND)

    return match


class MatchService:
    """
    Match lifecycle orchestration.

    The handicap service is injected so the recalculation rule can be
    swapped without touching the scoring flow.
    """

    def __init__(
        self,
        handicap_service: Optional[HandicapService] = None,
        policy: Optional[ScoringPolicy] = None
    ):
        self.policy = policy or scoring_policy
        self.handicap_service = handicap_service or HandicapService(self.policy)

    # =========================================================================
    # Management
    # =========================================================================

    async def record_match_result(self, db: AsyncSession, data: Dict[str, Any]) -> MatchResult:
        """
        Record a new match result.

        Args:
            db: Database session
            data: stage_id, shot_at, left_score and right_score
                  ({entry_id, match_points} each)

        Returns:
            The persisted MatchResult

        Raises:
            NotFoundError: Stage, round, entry or handicap row missing.
                Nothing is persisted.
        """
        try:
            stage = await self._find_stage(db, data["stage_id"])
            shot_at = _wall_clock(data["shot_at"])

            match = MatchResult(shot_at=shot_at)

            # Determine the round in which this match took place
            round_ = await self.resolve_round(db, stage, shot_at)
            match.round_id = round_.id

            left_score = await self.record_score(db, data["left_score"])
            match.left_score = left_score

            right_score = await self.record_score(db, data["right_score"])
            match.right_score = right_score

            self.determine_outcome(match, left_score, right_score)

            # Scores cascade in with the match
            db.add(match)
            await db.commit()
        except Exception:
            await db.rollback()
            logger.warning(f"Recording match result for stage {data.get('stage_id')} rolled back")
            raise

        logger.info(f"Match result {match.id} recorded: {match.to_dict()}")
        return match

    async def update_match_result(
        self,
        db: AsyncSession,
        match: MatchResult,
        data: Dict[str, Any]
    ) -> MatchResult:
        """
        Update an existing match result.

        The round is resolved again, both scores are recomputed in place
        and the outcome is decided afresh.

        Raises:
            NotFoundError: Stage, round, entry or handicap row missing.
                The stored match result and scores are left unchanged.
        """
        match_id = match.id
        try:
            # Scores stay half-finished until the outcome is decided
            with db.no_autoflush:
                stage = await self._find_stage(db, data["stage_id"])
                shot_at = _wall_clock(data["shot_at"])

                round_ = await self.resolve_round(db, stage, shot_at)

                left_score = await self._load_score(db, match.left_score_id)
                right_score = await self._load_score(db, match.right_score_id)

                # Handicaps are resolved against the match's stored time
                left_score = await self.update_score(db, left_score, data["left_score"], match.shot_at)
                right_score = await self.update_score(db, right_score, data["right_score"], match.shot_at)

                self.determine_outcome(match, left_score, right_score)

                match.round_id = round_.id
                match.shot_at = shot_at

            await db.commit()
        except Exception:
            await db.rollback()
            logger.warning(f"Updating match result {match_id} rolled back")
            raise

        logger.info(f"Match result {match_id} updated: {match.to_dict()}")
        return match

    async def remove_match_result(self, db: AsyncSession, match: MatchResult) -> bool:
        """
        Remove a match result together with both of its scores.

        Returns:
            True if the match result and both scores were deleted.
            False if any of the three rows was missing; the removal is
            rolled back and nothing is deleted.
        """
        match_id = match.id
        left_score_id = match.left_score_id
        right_score_id = match.right_score_id

        try:
            match_deleted = await db.execute(
                delete(MatchResult).where(MatchResult.id == match_id)
            )
            left_deleted = await db.execute(
                delete(Score).where(Score.id == left_score_id)
            )
            right_deleted = await db.execute(
                delete(Score).where(Score.id == right_score_id)
            )

            if (match_deleted.rowcount, left_deleted.rowcount, right_deleted.rowcount) != (1, 1, 1):
                await db.rollback()
                logger.warning(
                    f"Removing match result {match_id} rolled back: "
                    f"match={match_deleted.rowcount} left={left_deleted.rowcount} "
                    f"right={right_deleted.rowcount}"
                )
                return False

            await db.commit()
        except Exception:
            await db.rollback()
            logger.warning(f"Removing match result {match_id} rolled back")
            raise

        logger.info(f"Match result {match_id} removed")
        return True

    # =========================================================================
    # Round resolution
    # =========================================================================

    async def resolve_round(self, db: AsyncSession, stage: Stage, shot_at: datetime) -> Round:
        """
        Find the round of a stage whose date window contains the match date.

        Rounds are expected not to overlap. If they do, the earliest
        starting round (then lowest id) wins.

        Raises:
            NotFoundError: If no round of the stage covers the date
        """
        shot_on = shot_at.date()

        result = await db.execute(
            select(Round)
            .where(
                Round.stage_id == stage.id,
                Round.starts_on <= shot_on,
                Round.ends_on >= shot_on
            )
            .order_by(Round.starts_on, Round.id)
            .limit(1)
        )
        round_ = result.scalars().first()

        if round_ is None:
            raise NotFoundError(
                "Round",
                code=ErrorCode.ROUND_NOT_FOUND,
                details={"stage_id": stage.id, "shot_on": shot_on.isoformat()}
            )

        return round_

    # =========================================================================
    # Score calculation
    # =========================================================================

    async def record_score(self, db: AsyncSession, data: Dict[str, Any]) -> Score:
        """
        Build a new score for one side of a match.

        The entry's current handicap snapshot decides the allowance.
        """
        entry = await self._find_entry(db, data["entry_id"])

        handicap = await self.handicap_service.find_handicap(
            db, entry.bow_style, entry.current_handicap
        )

        score = Score(entry_id=entry.id)
        return await self._apply_score(db, score, handicap, data["match_points"])

    async def update_score(
        self,
        db: AsyncSession,
        score: Score,
        data: Dict[str, Any],
        match_shot_at: datetime
    ) -> Score:
        """
        Recompute an existing score in place.

        The entry's live snapshot may already reflect later matches, so the
        handicap comes from its own history instead: of the scores on
        matches shot strictly before this one, the lowest handicap_after.
        An entry with no earlier scores uses its registered handicap.
        """
        entry = await self._find_entry(db, data["entry_id"])
        score.entry_id = entry.id

        # NOTE: ordered by handicap value, not by match date
        result = await db.execute(
            select(Score.handicap_after)
            .join(
                MatchResult,
                or_(MatchResult.left_score_id == Score.id, MatchResult.right_score_id == Score.id)
            )
            .where(
                Score.entry_id == entry.id,
                MatchResult.shot_at < match_shot_at
            )
            .order_by(Score.handicap_after)
            .limit(1)
        )
        handicap_number = result.scalars().first()

        if handicap_number is None:
            handicap_number = entry.starting_handicap

        handicap = await self.handicap_service.find_handicap(db, entry.bow_style, handicap_number)

        return await self._apply_score(db, score, handicap, data["match_points"])

    async def _apply_score(
        self,
        db: AsyncSession,
        score: Score,
        handicap: Handicap,
        match_points: int
    ) -> Score:
        adjusted_points = match_points + handicap.match_allowance

        new_handicap = await self.handicap_service.recalculate_handicap(db, handicap, match_points)

        score.handicap_before = handicap.number
        score.handicap_after = new_handicap.number
        score.allowance = handicap.match_allowance
        score.match_points = match_points
        score.match_points_adjusted = adjusted_points
        score.bonus_points = (
            self.policy.BONUS_POINTS_FOR_HANDICAP_HIT
            if adjusted_points >= self.policy.HANDICAP_HIT_THRESHOLD
            else 0
        )
        # Set when the scores are compared
        score.league_points = None

        return score

    # =========================================================================
    # Outcome
    # =========================================================================

    def determine_outcome(self, match: MatchResult, left_score: Score, right_score: Score) -> None:
        """Finalize league points, bonus points and the winner."""
        if left_score.match_points_adjusted == right_score.match_points_adjusted:
            self.handle_drawn_match(match, left_score, right_score)
        else:
            self.handle_decisive_match(match, left_score, right_score)

    def handle_drawn_match(self, match: MatchResult, left_score: Score, right_score: Score) -> None:
        left_score.league_points = self.policy.LEAGUE_POINTS_FOR_DRAW
        right_score.league_points = self.policy.LEAGUE_POINTS_FOR_DRAW

        match.winner_id = None

    def handle_decisive_match(self, match: MatchResult, left_score: Score, right_score: Score) -> None:
        winning_score, losing_score = sorted(
            [left_score, right_score],
            key=lambda s: s.match_points_adjusted,
            reverse=True
        )

        winning_score.league_points = self.policy.LEAGUE_POINTS_FOR_WIN
        match.winner_id = winning_score.entry_id

        losing_score.league_points = self.policy.LEAGUE_POINTS_FOR_LOSS

        points_difference = winning_score.match_points_adjusted - losing_score.match_points_adjusted
        if points_difference <= self.policy.CLOSE_LOSS_THRESHOLD:
            losing_score.bonus_points += self.policy.BONUS_POINTS_FOR_CLOSE_LOSS

    # =========================================================================
    # Lookups
    # =========================================================================

    async def _find_stage(self, db: AsyncSession, stage_id: int) -> Stage:
        stage = await db.get(Stage, stage_id)
        if stage is None:
            raise NotFoundError("Stage", stage_id, code=ErrorCode.STAGE_NOT_FOUND)
        return stage

    async def _find_entry(self, db: AsyncSession, entry_id: int) -> Entry:
        # Lock the entry so its handicap history is read and written by one writer
        result = await db.execute(
            select(Entry).where(Entry.id == entry_id).with_for_update()
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            raise NotFoundError("Entry", entry_id, code=ErrorCode.ENTRY_NOT_FOUND)
        return entry

    async def _load_score(self, db: AsyncSession, score_id: int) -> Score:
        score = await db.get(Score, score_id)
        if score is None:
            raise NotFoundError("Score", score_id)
        return score
