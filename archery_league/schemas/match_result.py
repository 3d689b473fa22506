"""
Pydantic Schemas for Match Results

Request and response models for recording, updating and removing
head-to-head match results.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, model_validator


# ============================================================================
# Request Schemas
# ============================================================================

class ScoreInput(BaseModel):
    """One competitor's raw result."""
    entry_id: int = Field(..., gt=0, description="ID of the entry that shot this score")
    match_points: int = Field(..., ge=0, description="Raw match points before allowance")


class MatchResultInput(BaseModel):
    """Schema for recording or updating a match result."""
    stage_id: int = Field(..., gt=0, description="ID of the stage the match belongs to")
    shot_at: datetime = Field(..., description="When the match was shot")
    left_score: ScoreInput
    right_score: ScoreInput

    @model_validator(mode='after')
    def require_distinct_entries(self):
        """Ensure the two sides are different entries."""
        if self.left_score.entry_id == self.right_score.entry_id:
            raise ValueError("left_score and right_score must belong to different entries")
        return self


# ============================================================================
# Response Schemas
# ============================================================================

class ScoreResponse(BaseModel):
    """Schema for a computed score."""
    id: int
    entry_id: int
    handicap_before: int
    handicap_after: int
    allowance: int
    match_points: int
    match_points_adjusted: int
    bonus_points: int
    league_points: int

    class Config:
        from_attributes = True


class MatchResultResponse(BaseModel):
    """Schema for a match result with both scores."""
    id: int
    round_id: int
    shot_at: datetime
    winner_id: Optional[int] = None
    left_score: ScoreResponse
    right_score: ScoreResponse

    class Config:
        from_attributes = True


class MatchResultRemovedResponse(BaseModel):
    """Schema for match result removal."""
    success: bool = True
    match_id: int
