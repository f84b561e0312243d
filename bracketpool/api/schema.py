from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

class ValidationPayload(BaseModel):
    """
    Outcome of validating one bracket submission.
    """
    isValid: bool
    errors: List[str]
    warnings: List[str]

class ValidationResponse(BaseModel):
    """
    Envelope returned whether or not the bracket is valid.
    """
    success: bool = True
    validation: ValidationPayload

class CheckCreationResponse(BaseModel):
    """
    Whether new brackets may be created right now.
    """
    success: bool = True
    allowed: bool
    reason: Optional[str] = None

class StandingsRequest(BaseModel):
    """
    Brackets to rank against the real results posted so far.
    """
    brackets: List[Dict[str, Any]] = Field(default_factory=list)
    results: List[Dict[str, Any]] = Field(default_factory=list)
    actualTieBreaker: Optional[int] = Field(default=None, ge=0, description="Real championship total")

class StandingRow(BaseModel):
    rank: int
    bracket_id: str
    player_name: str
    total_points: int
    correct_picks: int
    max_possible: int
    tie_breaker: Optional[int] = None
    tie_breaker_diff: Optional[int] = None
    is_complete: bool
    submitted_at: Optional[datetime] = None

class StandingsResponse(BaseModel):
    success: bool = True
    count: int
    standings: List[StandingRow]
    generated_at: str
