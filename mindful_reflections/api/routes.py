"""
REST API
Exposes the reflection session to the web client
"""

from typing import Dict, Any, List
from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from mindful_reflections.models.checkin import (
    CheckIn,
    CheckInSuggestionItem,
    PassReport,
    ResponseCreate,
    SessionStatus,
)
from mindful_reflections.models.journal import AnalyzedEntry, JournalEntry
from mindful_reflections.services.reflection_service import ReflectionSession
from mindful_reflections.services.upload_service import build_journal_entries
from mindful_reflections.utils.errors import (
    ConfigurationError,
    NothingToProcessError,
    PassInProgressError,
    ReflectionError,
    UploadError,
)
from mindful_reflections.utils.logger import logger

router = APIRouter(prefix="/api", tags=["reflections"])


def get_session(request: Request) -> ReflectionSession:
    """Return the session created at startup"""
    session = getattr(request.app.state, "reflection_session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="Session not initialized")
    return session


def to_http_error(error: ReflectionError) -> HTTPException:
    """
    Map a workflow error to an HTTP error

    Args:
        error: workflow error

    Returns:
        HTTPException with a matching status code
    """
    if isinstance(error, ConfigurationError):
        status_code = 503
    elif isinstance(error, PassInProgressError):
        status_code = 409
    elif isinstance(error, (NothingToProcessError, UploadError)):
        status_code = 400
    else:
        status_code = 500
    return HTTPException(status_code=status_code, detail=str(error))


@router.get("/status", response_model=SessionStatus)
async def get_status(session: ReflectionSession = Depends(get_session)) -> SessionStatus:
    """Session status, including whether AI features are enabled"""
    return session.status()


# Journal entries

@router.post("/entries/upload")
async def upload_entries(
    files: List[UploadFile] = File(...),
    session: ReflectionSession = Depends(get_session),
) -> Dict[str, Any]:
    """
    Upload markdown journal entries

    Args:
        files: uploaded files; non-markdown files are ignored

    Returns:
        number of queued entries
    """
    try:
        entries = build_journal_entries(files)
    except UploadError as e:
        logger.error(f"Upload rejected: {e}")
        raise to_http_error(e) from e

    added = session.ingest_upload(entries)
    return {
        "received": len(files),
        "accepted": len(entries),
        "queued": added,
        "pending": len(session.pending_entries),
    }


@router.get("/entries/pending", response_model=List[JournalEntry])
async def list_pending_entries(session: ReflectionSession = Depends(get_session)) -> List[JournalEntry]:
    """Entries waiting for analysis"""
    return session.pending_entries


@router.post("/entries/analyze", response_model=PassReport)
async def analyze_entries(session: ReflectionSession = Depends(get_session)) -> PassReport:
    """Run an analysis pass over the queued entries"""
    try:
        return await session.run_analysis_pass()
    except ReflectionError as e:
        logger.warning(f"Analysis pass rejected: {e}")
        raise to_http_error(e) from e


@router.get("/entries", response_model=List[AnalyzedEntry])
async def list_analyzed_entries(session: ReflectionSession = Depends(get_session)) -> List[AnalyzedEntry]:
    """Insights log, most recent analysis first"""
    return session.analyzed_entries


# Suggestions

@router.post("/suggestions/generate", response_model=PassReport)
async def generate_suggestions(session: ReflectionSession = Depends(get_session)) -> PassReport:
    """Generate check-in suggestions from recent insights"""
    try:
        return await session.generate_suggestions()
    except ReflectionError as e:
        logger.warning(f"Suggestion pass rejected: {e}")
        raise to_http_error(e) from e


@router.get("/suggestions", response_model=List[CheckInSuggestionItem])
async def list_suggestions(session: ReflectionSession = Depends(get_session)) -> List[CheckInSuggestionItem]:
    """Unscheduled suggestions"""
    return session.suggestions


@router.post("/suggestions/{suggestion_id}/schedule", response_model=CheckIn)
async def schedule_suggestion(suggestion_id: str, session: ReflectionSession = Depends(get_session)) -> CheckIn:
    """Schedule a suggestion as a check-in"""
    check_in = session.schedule_suggestion(suggestion_id)
    if check_in is None:
        raise HTTPException(status_code=404, detail="Suggestion not found")
    return check_in


@router.delete("/suggestions/{suggestion_id}")
async def dismiss_suggestion(suggestion_id: str, session: ReflectionSession = Depends(get_session)) -> Dict[str, str]:
    """Dismiss a suggestion"""
    if not session.dismiss_suggestion(suggestion_id):
        raise HTTPException(status_code=404, detail="Suggestion not found")
    return {"detail": "Suggestion dismissed."}


# Check-ins

@router.get("/check-ins", response_model=List[CheckIn])
async def list_check_ins(session: ReflectionSession = Depends(get_session)) -> List[CheckIn]:
    """Scheduled check-ins, pending first"""
    return session.check_ins


@router.post("/check-ins/{check_in_id}/responses", response_model=CheckIn)
async def respond_to_check_in(
    check_in_id: str,
    body: ResponseCreate,
    session: ReflectionSession = Depends(get_session),
) -> CheckIn:
    """Answer a check-in"""
    check_in = session.record_response(check_in_id, body.text)
    if check_in is None:
        raise HTTPException(status_code=404, detail="Check-in not found")
    return check_in


@router.post("/check-ins/{check_in_id}/dismiss", response_model=CheckIn)
async def dismiss_check_in(check_in_id: str, session: ReflectionSession = Depends(get_session)) -> CheckIn:
    """Dismiss a pending check-in"""
    check_in = session.dismiss_check_in(check_in_id)
    if check_in is None:
        raise HTTPException(status_code=404, detail="Pending check-in not found")
    return check_in


@router.delete("/check-ins/{check_in_id}")
async def delete_check_in(check_in_id: str, session: ReflectionSession = Depends(get_session)) -> Dict[str, str]:
    """Delete a check-in"""
    if not session.delete_check_in(check_in_id):
        raise HTTPException(status_code=404, detail="Check-in not found")
    return {"detail": "Check-in deleted."}
