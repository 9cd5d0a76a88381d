"""
Journal data models
Uploaded entries and their AI analysis
"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field
from uuid import uuid4


class JournalEntry(BaseModel):
    """An uploaded journal document"""

    id: str = Field(default_factory=lambda: str(uuid4()))
    filename: str
    content: str
    timestamp: datetime = Field(default_factory=datetime.now)  # upload time

    class Config:
        frozen = True


class AnalysisResult(BaseModel):
    """Emotion and themes extracted by the LLM"""
    emotion: str
    qualities: List[str]
    summary: Optional[str] = None


class AnalyzedEntry(BaseModel):
    """A journal entry together with its analysis"""

    id: str = Field(default_factory=lambda: str(uuid4()))
    journal_entry: JournalEntry
    emotion: str
    qualities: List[str]
    summary: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.now)  # analysis time

    class Config:
        frozen = True

    @classmethod
    def from_analysis(cls, entry: JournalEntry, analysis: AnalysisResult) -> "AnalyzedEntry":
        return cls(
            journal_entry=entry,
            emotion=analysis.emotion,
            qualities=list(analysis.qualities),
            summary=analysis.summary,
        )


def analyzed_entry_sort_key(entry: AnalyzedEntry):
    """Sort key for most-recent-analysis-first ordering (use with reverse=True)"""
    return entry.timestamp
