"""
Check-in data models
Suggested questions, scheduled check-ins and the user's answers
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator
from uuid import uuid4


class CheckInStatus(str, Enum):
    """Check-in status"""
    PENDING = "pending"
    RESPONDED = "responded"
    DISMISSED = "dismissed"


class CheckInSuggestionItem(BaseModel):
    """A generated question that has not been scheduled yet (memory only)"""

    id: str = Field(default_factory=lambda: str(uuid4()))
    question: str
    based_on_analyzed_entry_id: str
    related_emotion: str
    related_qualities: List[str] = Field(default_factory=list)


class CheckInResponse(BaseModel):
    """One answer to a check-in"""

    id: str = Field(default_factory=lambda: str(uuid4()))
    text: str
    responded_at: datetime = Field(default_factory=datetime.now)

    class Config:
        frozen = True


class CheckIn(BaseModel):
    """A scheduled reflection question"""

    id: str = Field(default_factory=lambda: str(uuid4()))
    question: str
    based_on_analyzed_entry_id: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    status: CheckInStatus = CheckInStatus.PENDING
    responses: List[CheckInResponse] = Field(default_factory=list)

    @classmethod
    def from_suggestion(cls, suggestion: CheckInSuggestionItem) -> "CheckIn":
        return cls(
            question=suggestion.question,
            based_on_analyzed_entry_id=suggestion.based_on_analyzed_entry_id,
        )


class ResponseCreate(BaseModel):
    """Request body for answering a check-in"""
    text: str

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Response text must not be blank")
        return value


class PassReport(BaseModel):
    """Outcome of one analysis or suggestion pass"""
    processed: int = 0
    skipped: int = 0
    errors: List[str] = Field(default_factory=list)
    message: Optional[str] = None


class SessionStatus(BaseModel):
    """Snapshot of the reflection session for the UI"""
    ai_enabled: bool
    model: str
    pending_uploads: int
    analyzed_entries: int
    suggestions: int
    check_ins: int
    pending_check_ins: int
    error: Optional[str] = None
    is_analyzing: bool = False
    is_generating: bool = False


def check_in_sort_key(check_in: CheckIn):
    """
    Sort key for check-ins: pending first, then most recently created first

    Use with the default ascending sort.
    """
    return (check_in.status != CheckInStatus.PENDING, -check_in.created_at.timestamp())
