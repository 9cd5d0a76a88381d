"""
Upload service
Turns uploaded markdown files into journal entries
"""

from pathlib import Path
from typing import Any, Iterable, List, Optional
from mindful_reflections.models.journal import JournalEntry
from mindful_reflections.utils.errors import UploadError
from mindful_reflections.utils.logger import logger

MARKDOWN_EXTENSION = ".md"
MARKDOWN_MEDIA_TYPE = "text/markdown"


def is_markdown(filename: Optional[str], content_type: Optional[str]) -> bool:
    """Whether a file is accepted as a journal entry"""
    if filename and filename.lower().endswith(MARKDOWN_EXTENSION):
        return True
    if content_type and content_type.split(";")[0].strip().lower() == MARKDOWN_MEDIA_TYPE:
        return True
    return False


def read_text(upload: Any) -> str:
    """
    Read the whole file synchronously and decode it

    Args:
        upload: object with a `file` attribute (UploadFile) or a `read()` method

    Returns:
        file text
    """
    stream = getattr(upload, "file", None) or upload
    data = stream.read()
    if isinstance(data, str):
        return data
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise UploadError(f"{getattr(upload, 'filename', 'file')} is not valid UTF-8 text") from e


def build_journal_entries(files: Iterable[Any]) -> List[JournalEntry]:
    """
    Build journal entries from uploaded files

    Files that are not markdown are skipped.

    Args:
        files: uploaded file objects exposing `filename` and optionally `content_type`

    Returns:
        journal entries in upload order
    """
    entries = []
    for upload in files:
        filename = getattr(upload, "filename", None) or Path(getattr(upload, "name", "") or "").name or None
        content_type = getattr(upload, "content_type", None)
        if not is_markdown(filename, content_type):
            logger.warning(f"Skipping non-markdown upload: {filename}")
            continue

        entry = JournalEntry(filename=filename or "untitled.md", content=read_text(upload))
        entries.append(entry)
        logger.info(f"Journal entry read: {entry.filename} ({len(entry.content)} chars)")

    return entries
