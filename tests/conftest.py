"""Shared fixtures for the test suite."""

from datetime import datetime
from typing import List

import pytest

from mindful_reflections.models.journal import AnalysisResult, AnalyzedEntry, JournalEntry
from mindful_reflections.services.reflection_service import ReflectionSession
from mindful_reflections.services.storage_service import StorageService
from mindful_reflections.utils.database import Database
from mindful_reflections.utils.errors import AnalysisGatewayError, GatewayError


class StubLLM:
    """In-process stand-in for LLMService that records every call."""

    model = "stub-model"

    def __init__(self, analysis: AnalysisResult = None, question: str = "How are you feeling about that now?",
                 failing_texts=(), failing_emotions=()):
        self.analysis = analysis or AnalysisResult(emotion="sad", qualities=["struggle"])
        self.question = question
        self.failing_texts = set(failing_texts)
        self.failing_emotions = set(failing_emotions)
        self.analyze_calls: List[str] = []
        self.question_calls: List[tuple] = []

    async def analyze_entry(self, api_key: str, text: str) -> AnalysisResult:
        self.analyze_calls.append(text)
        if text in self.failing_texts:
            raise AnalysisGatewayError(f"LLM API error during analysis: cannot analyze '{text}'")
        return self.analysis

    async def generate_check_in_question(self, api_key: str, emotion: str, qualities: List[str]) -> str:
        self.question_calls.append((emotion, list(qualities)))
        if emotion in self.failing_emotions:
            raise GatewayError("LLM API error 429: quota exceeded")
        return self.question


def make_analyzed_entry(emotion: str = "calm", qualities=None, timestamp: datetime = None,
                        filename: str = "entry.md") -> AnalyzedEntry:
    entry = JournalEntry(filename=filename, content=f"Some text about feeling {emotion}.")
    return AnalyzedEntry(
        journal_entry=entry,
        emotion=emotion,
        qualities=qualities if qualities is not None else ["rest"],
        timestamp=timestamp or datetime.now(),
    )


@pytest.fixture
def db(tmp_path) -> Database:
    return Database(f"sqlite:///{tmp_path / 'reflections.db'}")


@pytest.fixture
def storage(db) -> StorageService:
    return StorageService(db)


@pytest.fixture
def llm() -> StubLLM:
    return StubLLM()


@pytest.fixture
def session(storage, llm) -> ReflectionSession:
    return ReflectionSession(storage, llm, api_key="test-key")


@pytest.fixture
def make_entry():
    return make_analyzed_entry


@pytest.fixture
def stub_llm_class():
    return StubLLM
