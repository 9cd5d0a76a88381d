"""
Reflection service
Drives the journal workflow: upload, AI analysis, check-in suggestions,
scheduling, responses and deletion
"""

from typing import List, Optional, Union
from mindful_reflections.models.checkin import (
    CheckIn,
    CheckInResponse,
    CheckInStatus,
    CheckInSuggestionItem,
    PassReport,
    SessionStatus,
    check_in_sort_key,
)
from mindful_reflections.models.journal import AnalyzedEntry, JournalEntry
from mindful_reflections.services.llm_service import LLMService
from mindful_reflections.services.storage_service import StorageService
from mindful_reflections.utils.config import settings
from mindful_reflections.utils.database import Database
from mindful_reflections.utils.errors import (
    ConfigurationError,
    EmptyQueueError,
    InsufficientDataError,
    PassInProgressError,
)
from mindful_reflections.utils.logger import logger

MISSING_KEY_ANALYSIS = "LLM API key not configured. Cannot analyze entries."
MISSING_KEY_SUGGESTIONS = "LLM API key not configured. Cannot generate suggestions."
EMPTY_QUEUE = "No new journal entries to analyze."
NOTHING_NEW = "All uploaded entries were already analyzed or no new entries were provided."
NO_ANALYZED_ENTRIES = (
    "Not enough analyzed entries to generate check-in suggestions. "
    "Please analyze some journal entries first."
)
NO_NEW_SUGGESTIONS = (
    "No new check-in suggestions generated. "
    "Perhaps recent insights already have pending check-ins or an error occurred."
)


class ReflectionSession:
    """
    Reflection session

    Owns the in-memory state of one user session: the upload queue, the
    analyzed entries and scheduled check-ins (mirrors of the store) and the
    unscheduled suggestions. It is the only writer of that state.
    """

    def __init__(self, storage: StorageService, llm: LLMService, api_key: Optional[str] = None,
                 suggestion_batch_size: int = None):
        """
        Create a session and load persisted state

        Args:
            storage: storage service
            llm: LLM service
            api_key: LLM API key; blank disables AI operations
            suggestion_batch_size: number of recent entries used for suggestions
        """
        self.storage = storage
        self.llm = llm
        self.api_key = (api_key or "").strip()
        self.suggestion_batch_size = suggestion_batch_size or settings.suggestion_batch_size

        self._pending: List[JournalEntry] = []
        self._analyzed: List[AnalyzedEntry] = storage.load_analyzed_entries()
        self._check_ins: List[CheckIn] = storage.load_scheduled_check_ins()
        self._suggestions: List[CheckInSuggestionItem] = []

        self.last_error: Optional[str] = None
        self.is_analyzing = False
        self.is_generating = False

        logger.info(
            f"Session started: {len(self._analyzed)} analyzed entries, "
            f"{len(self._check_ins)} check-ins, AI {'enabled' if self.ai_enabled else 'disabled'}"
        )

    @property
    def ai_enabled(self) -> bool:
        return bool(self.api_key)

    # Snapshots for the presentation layer

    @property
    def pending_entries(self) -> List[JournalEntry]:
        return list(self._pending)

    @property
    def analyzed_entries(self) -> List[AnalyzedEntry]:
        return list(self._analyzed)

    @property
    def check_ins(self) -> List[CheckIn]:
        return list(self._check_ins)

    @property
    def suggestions(self) -> List[CheckInSuggestionItem]:
        return list(self._suggestions)

    def status(self) -> SessionStatus:
        return SessionStatus(
            ai_enabled=self.ai_enabled,
            model=self.llm.model,
            pending_uploads=len(self._pending),
            analyzed_entries=len(self._analyzed),
            suggestions=len(self._suggestions),
            check_ins=len(self._check_ins),
            pending_check_ins=sum(1 for c in self._check_ins if c.status == CheckInStatus.PENDING),
            error=self.last_error,
            is_analyzing=self.is_analyzing,
            is_generating=self.is_generating,
        )

    # Uploads and analysis

    def ingest_upload(self, entries: List[JournalEntry]) -> int:
        """
        Queue uploaded entries for analysis

        Entries whose id is already queued are ignored.

        Args:
            entries: uploaded journal entries

        Returns:
            number of entries added to the queue
        """
        queued_ids = {e.id for e in self._pending}
        added = 0
        for entry in entries:
            if entry.id in queued_ids:
                continue
            self._pending.append(entry)
            queued_ids.add(entry.id)
            added += 1

        self.last_error = None
        logger.info(f"Queued {added} uploaded entries, {len(self._pending)} waiting for analysis")
        return added

    async def run_analysis_pass(self) -> PassReport:
        """
        Analyze every queued entry, one at a time in upload order

        A failure on one entry is recorded and the pass moves on. The queue is
        emptied when the pass ends, whatever the outcome.

        Returns:
            pass report with every per-entry error

        Raises:
            PassInProgressError: an analysis pass is already running
            ConfigurationError: no API key
            EmptyQueueError: nothing is queued
        """
        if self.is_analyzing:
            raise PassInProgressError("An analysis pass is already running.")
        if not self.ai_enabled:
            self.last_error = MISSING_KEY_ANALYSIS
            raise ConfigurationError(MISSING_KEY_ANALYSIS)
        if not self._pending:
            self.last_error = EMPTY_QUEUE
            raise EmptyQueueError(EMPTY_QUEUE)

        self.is_analyzing = True
        self.last_error = None
        report = PassReport()
        snapshot = list(self._pending)
        logger.info(f"Analysis pass started: {len(snapshot)} entries")

        try:
            for entry in snapshot:
                if any(a.journal_entry.id == entry.id for a in self._analyzed):
                    report.skipped += 1
                    continue

                try:
                    analysis = await self.llm.analyze_entry(self.api_key, entry.content)
                except Exception as e:
                    message = f"Failed to analyze {entry.filename}: {e}"
                    logger.error(message)
                    self.last_error = message
                    report.errors.append(message)
                    continue

                analyzed = AnalyzedEntry.from_analysis(entry, analysis)
                self.storage.save_analyzed_entry(analyzed)
                self._analyzed.insert(0, analyzed)
                report.processed += 1
                logger.info(f"Entry analyzed: {entry.filename} -> {analyzed.emotion}")
        finally:
            snapshot_ids = {e.id for e in snapshot}
            self._pending = [e for e in self._pending if e.id not in snapshot_ids]
            self.is_analyzing = False

        if report.processed == 0 and self.last_error is None:
            self.last_error = NOTHING_NEW
        elif report.processed > 0:
            self.last_error = None

        report.message = self.last_error or f"Analyzed {report.processed} new entries."
        logger.info(
            f"Analysis pass finished: processed={report.processed}, "
            f"skipped={report.skipped}, failed={len(report.errors)}"
        )
        return report

    # Suggestions

    async def generate_suggestions(self) -> PassReport:
        """
        Generate check-in questions for the most recently analyzed entries

        Entries that already have a pending check-in are skipped. The new batch
        replaces any earlier unscheduled suggestions.

        Returns:
            pass report with every per-entry error

        Raises:
            PassInProgressError: a suggestion pass is already running
            ConfigurationError: no API key
            InsufficientDataError: no analyzed entries yet
        """
        if self.is_generating:
            raise PassInProgressError("Check-in suggestions are already being generated.")
        if not self.ai_enabled:
            self.last_error = MISSING_KEY_SUGGESTIONS
            raise ConfigurationError(MISSING_KEY_SUGGESTIONS)
        recent = self._analyzed[:self.suggestion_batch_size]
        if not recent:
            self.last_error = NO_ANALYZED_ENTRIES
            raise InsufficientDataError(NO_ANALYZED_ENTRIES)

        self.is_generating = True
        self.last_error = None
        report = PassReport()
        batch: List[CheckInSuggestionItem] = []

        try:
            for entry in recent:
                if self._has_pending_check_in(entry.id):
                    report.skipped += 1
                    continue

                try:
                    question = await self.llm.generate_check_in_question(
                        self.api_key, entry.emotion, entry.qualities
                    )
                except Exception as e:
                    message = f"Failed to generate a check-in question: {e}"
                    logger.error(message)
                    self.last_error = message
                    report.errors.append(message)
                    continue

                batch.append(CheckInSuggestionItem(
                    question=question,
                    based_on_analyzed_entry_id=entry.id,
                    related_emotion=entry.emotion,
                    related_qualities=list(entry.qualities),
                ))
                report.processed += 1
        finally:
            # Check-ins may have been scheduled while the pass was waiting on the gateway
            live = [s for s in batch if not self._has_pending_check_in(s.based_on_analyzed_entry_id)]
            report.skipped += len(batch) - len(live)
            report.processed = len(live)
            batch = live
            self._suggestions = batch
            self.is_generating = False

        if not batch and self.last_error is None:
            self.last_error = NO_NEW_SUGGESTIONS

        report.message = self.last_error or f"Generated {len(batch)} check-in suggestions."
        logger.info(f"Suggestion pass finished: generated={len(batch)}, skipped={report.skipped}")
        return report

    def _has_pending_check_in(self, analyzed_entry_id: str) -> bool:
        return any(
            c.based_on_analyzed_entry_id == analyzed_entry_id and c.status == CheckInStatus.PENDING
            for c in self._check_ins
        )

    def _find_suggestion(self, suggestion_id: str) -> Optional[CheckInSuggestionItem]:
        return next((s for s in self._suggestions if s.id == suggestion_id), None)

    def schedule_suggestion(self, suggestion: Union[CheckInSuggestionItem, str]) -> Optional[CheckIn]:
        """
        Turn a suggestion into a pending check-in

        Args:
            suggestion: the suggestion or its ID

        Returns:
            the new check-in, or None if the suggestion is no longer available
        """
        suggestion_id = suggestion.id if isinstance(suggestion, CheckInSuggestionItem) else suggestion
        item = self._find_suggestion(suggestion_id)
        if item is None:
            logger.info(f"Suggestion not found, nothing to schedule: {suggestion_id}")
            return None

        check_in = CheckIn.from_suggestion(item)
        self.storage.save_scheduled_check_in(check_in)
        self._check_ins.insert(0, check_in)
        self._suggestions = [s for s in self._suggestions if s.id != suggestion_id]
        logger.info(f"Check-in scheduled: {check_in.id}")
        return check_in

    def dismiss_suggestion(self, suggestion_id: str) -> bool:
        """
        Drop a suggestion without scheduling it

        Args:
            suggestion_id: suggestion ID

        Returns:
            whether a suggestion was removed
        """
        before = len(self._suggestions)
        self._suggestions = [s for s in self._suggestions if s.id != suggestion_id]
        return len(self._suggestions) < before

    # Check-ins

    def _find_check_in(self, check_in_id: str) -> Optional[CheckIn]:
        return next((c for c in self._check_ins if c.id == check_in_id), None)

    def _replace_check_in(self, updated: CheckIn) -> None:
        self.storage.update_scheduled_check_in(updated)
        self._check_ins = sorted(
            [updated if c.id == updated.id else c for c in self._check_ins],
            key=check_in_sort_key,
        )

    def record_response(self, check_in_id: str, text: str) -> Optional[CheckIn]:
        """
        Append an answer to a check-in and mark it responded

        Args:
            check_in_id: check-in ID
            text: answer text

        Returns:
            the updated check-in, or None if the ID is unknown
        """
        check_in = self._find_check_in(check_in_id)
        if check_in is None:
            return None

        updated = check_in.model_copy(update={
            "responses": [*check_in.responses, CheckInResponse(text=text)],
            "status": CheckInStatus.RESPONDED,
        })
        self._replace_check_in(updated)
        logger.info(f"Response recorded for check-in {check_in_id} ({len(updated.responses)} total)")
        return updated

    def dismiss_check_in(self, check_in_id: str) -> Optional[CheckIn]:
        """
        Dismiss a pending check-in without answering it

        Args:
            check_in_id: check-in ID

        Returns:
            the dismissed check-in, or None if it is unknown or not pending
        """
        check_in = self._find_check_in(check_in_id)
        if check_in is None or check_in.status != CheckInStatus.PENDING or check_in.responses:
            return None

        updated = check_in.model_copy(update={"status": CheckInStatus.DISMISSED})
        self._replace_check_in(updated)
        logger.info(f"Check-in dismissed: {check_in_id}")
        return updated

    def delete_check_in(self, check_in_id: str) -> bool:
        """
        Delete a check-in from storage and memory

        Args:
            check_in_id: check-in ID

        Returns:
            whether anything was deleted
        """
        removed = self.storage.delete_scheduled_check_in(check_in_id)
        before = len(self._check_ins)
        self._check_ins = [c for c in self._check_ins if c.id != check_in_id]
        return removed or len(self._check_ins) < before

    def close(self) -> None:
        """Drop all in-memory state"""
        self._pending.clear()
        self._analyzed.clear()
        self._check_ins.clear()
        self._suggestions.clear()
        self.last_error = None
        logger.info("Session closed")


def create_session(db_url: str = None, api_key: str = None) -> ReflectionSession:
    """
    Build a session wired to the configured storage and LLM provider

    Args:
        db_url: database URL, defaults to the configured one
        api_key: LLM API key, defaults to the configured one

    Returns:
        a new session
    """
    storage = StorageService(Database(db_url))
    key = settings.llm_api_key if api_key is None else api_key
    return ReflectionSession(storage, LLMService(), api_key=key)
