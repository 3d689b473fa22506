"""
archery_league/routes/match_results.py
Match Result Routes

Record, update, view and remove head-to-head match results.
"""
import logging
from typing import Iterable

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from archery_league.config.feature_flags import feature_flags
from archery_league.database import get_db
from archery_league.errors import ErrorCode, ErrorResponse, InvalidStateError
from archery_league.rate_limit import limiter, RATE_LIMIT_WRITES
from archery_league.schemas.match_result import (
    MatchResultInput,
    MatchResultResponse,
    MatchResultRemovedResponse,
)
from archery_league.services.handicap_service import sync_current_handicap
from archery_league.services.match_service import MatchService, get_match_result

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/match-results",
    tags=["Match Results"],
    responses={404: {"model": ErrorResponse}}
)


def get_match_service() -> MatchService:
    return MatchService()


async def _sync_handicaps(db: AsyncSession, entry_ids: Iterable[int]) -> None:
    """Refresh entry handicap snapshots once the match write has committed."""
    if not feature_flags.FEATURE_HANDICAP_SYNC:
        return

    for entry_id in sorted(set(entry_ids)):
        try:
            await sync_current_handicap(db, entry_id)
        except Exception as e:
            await db.rollback()
            logger.error(f"Handicap sync failed for entry {entry_id}: {str(e)}")


@router.get("/{match_id}", response_model=MatchResultResponse)
async def show_match_result(
    match_id: int,
    db: AsyncSession = Depends(get_db)
):
    match = await get_match_result(db, match_id)
    return MatchResultResponse.model_validate(match)


@router.post("", response_model=MatchResultResponse, status_code=201)
@limiter.limit(RATE_LIMIT_WRITES)
async def record_match_result(
    request: Request,
    payload: MatchResultInput,
    db: AsyncSession = Depends(get_db),
    service: MatchService = Depends(get_match_service)
):
    """
    Record a new match result.

    - Resolves the round from stage_id and shot_at
    - Computes both scores and the outcome in one transaction
    """
    match = await service.record_match_result(db, payload.model_dump())

    await _sync_handicaps(db, [payload.left_score.entry_id, payload.right_score.entry_id])

    match = await get_match_result(db, match.id)
    return MatchResultResponse.model_validate(match)


@router.put("/{match_id}", response_model=MatchResultResponse)
@limiter.limit(RATE_LIMIT_WRITES)
async def update_match_result(
    request: Request,
    match_id: int,
    payload: MatchResultInput,
    db: AsyncSession = Depends(get_db),
    service: MatchService = Depends(get_match_service)
):
    """
    Update an existing match result.

    Both scores are recomputed and the outcome decided again.
    """
    match = await get_match_result(db, match_id)
    previous_entry_ids = [match.left_score.entry_id, match.right_score.entry_id]

    await service.update_match_result(db, match, payload.model_dump())

    await _sync_handicaps(
        db,
        previous_entry_ids + [payload.left_score.entry_id, payload.right_score.entry_id]
    )

    match = await get_match_result(db, match_id)
    return MatchResultResponse.model_validate(match)


@router.delete("/{match_id}", response_model=MatchResultRemovedResponse)
@limiter.limit(RATE_LIMIT_WRITES)
async def remove_match_result(
    request: Request,
    match_id: int,
    db: AsyncSession = Depends(get_db),
    service: MatchService = Depends(get_match_service)
):
    """
    Remove a match result and both of its scores.
    """
    match = await get_match_result(db, match_id)
    entry_ids = [match.left_score.entry_id, match.right_score.entry_id]

    removed = await service.remove_match_result(db, match)
    if not removed:
        raise InvalidStateError(
            f"Match result {match_id} could not be removed",
            code=ErrorCode.MATCH_RESULT_NOT_REMOVED
        )

    await _sync_handicaps(db, entry_ids)

    return MatchResultRemovedResponse(success=True, match_id=match_id)
