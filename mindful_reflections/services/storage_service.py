"""
Storage service
Keeps analyzed entries and scheduled check-ins in the local key-value store
"""

import json
from typing import Any, Callable, List, Optional, Tuple, Type, TypeVar
from pydantic import BaseModel, ValidationError
from mindful_reflections.models.checkin import CheckIn, check_in_sort_key
from mindful_reflections.models.journal import AnalyzedEntry, analyzed_entry_sort_key
from mindful_reflections.utils.database import Database
from mindful_reflections.utils.errors import StorageError
from mindful_reflections.utils.logger import logger

ANALYZED_ENTRIES_KEY = "mindful_reflections.analyzed_entries"
SCHEDULED_CHECK_INS_KEY = "mindful_reflections.scheduled_check_ins"

ModelT = TypeVar("ModelT", bound=BaseModel)


class StorageService:
    """Storage service"""

    def __init__(self, db: Database):
        """
        Initialize the storage service

        Args:
            db: key-value database
        """
        self.db = db

    def _read_records(self, key: str) -> Optional[List[Any]]:
        """
        Read the raw JSON array stored under a key

        Args:
            key: storage key

        Returns:
            the raw records, an empty list if nothing is stored, or None if the
            value could not be read
        """
        try:
            raw = self.db.get_item(key)
            if not raw:
                return []
            data = json.loads(raw)
        except (StorageError, json.JSONDecodeError) as e:
            logger.error(f"Error reading storage key '{key}': {e}")
            return None

        if not isinstance(data, list):
            logger.error(f"Stored value for '{key}' is not a list, ignoring it")
            return None
        return data

    def _validate_records(self, key: str, records: List[Any],
                          model: Type[ModelT]) -> Tuple[List[ModelT], List[Any]]:
        """
        Rehydrate records one by one

        Args:
            key: storage key (for logging)
            records: raw records
            model: model class of the items

        Returns:
            (valid items, raw records that failed validation)
        """
        items, invalid = [], []
        for record in records:
            try:
                items.append(model.model_validate(record))
            except ValidationError as e:
                logger.error(f"Skipping invalid record under '{key}': {e}")
                invalid.append(record)
        return items, invalid

    def _get_items(self, key: str, model: Type[ModelT]) -> List[ModelT]:
        """
        Read and rehydrate a stored collection

        Args:
            key: storage key
            model: model class of the items

        Returns:
            the valid items, or an empty list if the value is missing or unreadable
        """
        records = self._read_records(key)
        if records is None:
            return []
        items, _ = self._validate_records(key, records, model)
        return items

    def _edit_items(self, key: str, model: Type[ModelT], sort_key, reverse: bool,
                    edit: Callable[[List[ModelT]], Optional[List[ModelT]]]) -> bool:
        """
        Read-modify-write a stored collection

        Records that fail validation are written back unchanged after the valid
        ones. Nothing is written when the stored value cannot be read.

        Args:
            key: storage key
            model: model class of the items
            sort_key: ordering of the valid items handed to `edit`
            reverse: sort descending
            edit: returns the new list of valid items, or None to leave the store as is

        Returns:
            whether the collection was written
        """
        records = self._read_records(key)
        if records is None:
            logger.error(f"Not writing '{key}': the stored value could not be read")
            return False

        items, invalid = self._validate_records(key, records, model)
        updated = edit(sorted(items, key=sort_key, reverse=reverse))
        if updated is None:
            return False
        return self._set_items(key, updated, invalid)

    def _set_items(self, key: str, items: List[BaseModel], extra_records: Optional[List[Any]] = None) -> bool:
        """
        Serialize and write a whole collection

        Args:
            key: storage key
            items: items to store
            extra_records: raw records appended as they are

        Returns:
            whether the write succeeded
        """
        try:
            payload: List[Any] = [item.model_dump(mode="json") for item in items]
            payload.extend(extra_records or [])
            self.db.set_item(key, json.dumps(payload, ensure_ascii=False))
            return True
        except StorageError as e:
            logger.error(f"Error writing storage key '{key}': {e}")
            return False

    # Analyzed entries

    def load_analyzed_entries(self) -> List[AnalyzedEntry]:
        """
        Load all analyzed entries, most recent analysis first

        Returns:
            analyzed entries
        """
        entries = self._get_items(ANALYZED_ENTRIES_KEY, AnalyzedEntry)
        return sorted(entries, key=analyzed_entry_sort_key, reverse=True)

    def save_analyzed_entry(self, entry: AnalyzedEntry) -> bool:
        """
        Store an analyzed entry in front of the collection

        Args:
            entry: analyzed entry

        Returns:
            False if an entry with the same id already exists or the write failed
        """
        def prepend(entries: List[AnalyzedEntry]) -> Optional[List[AnalyzedEntry]]:
            if any(e.id == entry.id for e in entries):
                logger.info(f"Analyzed entry already stored: {entry.id}")
                return None
            return [entry, *entries]

        return self._edit_items(ANALYZED_ENTRIES_KEY, AnalyzedEntry, analyzed_entry_sort_key, True, prepend)

    # Scheduled check-ins

    def load_scheduled_check_ins(self) -> List[CheckIn]:
        """
        Load all check-ins, pending ones first and newest first within each group

        Returns:
            check-ins
        """
        check_ins = self._get_items(SCHEDULED_CHECK_INS_KEY, CheckIn)
        return sorted(check_ins, key=check_in_sort_key)

    def _edit_check_ins(self, edit: Callable[[List[CheckIn]], Optional[List[CheckIn]]]) -> bool:
        return self._edit_items(SCHEDULED_CHECK_INS_KEY, CheckIn, check_in_sort_key, False, edit)

    def save_scheduled_check_in(self, check_in: CheckIn) -> bool:
        """
        Store a new check-in

        Args:
            check_in: check-in

        Returns:
            False if a check-in with the same id already exists or the write failed
        """
        def prepend(check_ins: List[CheckIn]) -> Optional[List[CheckIn]]:
            if any(c.id == check_in.id for c in check_ins):
                logger.info(f"Check-in already stored: {check_in.id}")
                return None
            return [check_in, *check_ins]

        return self._edit_check_ins(prepend)

    def update_scheduled_check_in(self, check_in: CheckIn) -> bool:
        """
        Replace the stored check-in that has the same id

        Args:
            check_in: updated check-in

        Returns:
            whether a record was replaced
        """
        def replace(check_ins: List[CheckIn]) -> Optional[List[CheckIn]]:
            if not any(c.id == check_in.id for c in check_ins):
                logger.warning(f"Check-in not found for update: {check_in.id}")
                return None
            return [check_in if c.id == check_in.id else c for c in check_ins]

        return self._edit_check_ins(replace)

    def delete_scheduled_check_in(self, check_in_id: str) -> bool:
        """
        Delete a check-in

        Args:
            check_in_id: check-in ID

        Returns:
            whether a record was removed
        """
        def remove(check_ins: List[CheckIn]) -> Optional[List[CheckIn]]:
            remaining = [c for c in check_ins if c.id != check_in_id]
            if len(remaining) == len(check_ins):
                logger.warning(f"Check-in not found for deletion: {check_in_id}")
                return None
            return remaining

        if self._edit_check_ins(remove):
            logger.info(f"Check-in deleted: {check_in_id}")
            return True
        return False

    def clear(self) -> None:
        """Remove both collections from storage"""
        for key in (ANALYZED_ENTRIES_KEY, SCHEDULED_CHECK_INS_KEY):
            try:
                self.db.remove_item(key)
            except StorageError as e:
                logger.error(f"Error clearing storage key '{key}': {e}")
        logger.info("Storage cleared")
