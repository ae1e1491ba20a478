import json
import logging
import uuid
from datetime import datetime, tzinfo
from threading import Lock
from typing import Any, Callable, List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import (
    CORRUPTED_VISITS_KEY,
    LocationType,
    Period,
    RESET_STATE_KEY,
    VISITS_KEY,
    VisitorCategory,
)
from ..database import get_db
from ..models.dto import CheckInDTO, ResetStateDTO, VisitDTO
from ..models.store_models import KeyValueItem
from .counter_service import apply_check_in

logger = logging.getLogger(__name__)

# Serializes read-modify-write of the records across request threads
store_lock = Lock()


class StorageError(Exception):
    """The key-value store could not be read or written."""
    pass


class KeyValueStore:
    """Text values by key, on top of a database session."""

    def __init__(self, db: Session):
        self.db = db

    def get_item(self, key: str) -> Optional[str]:
        item = self.db.get(KeyValueItem, key)
        return item.value if item else None

    def set_item(self, key: str, value: str) -> None:
        item = self.db.get(KeyValueItem, key)
        if item:
            item.value = value
        else:
            self.db.add(KeyValueItem(key=key, value=value))

    def remove_item(self, key: str) -> None:
        item = self.db.get(KeyValueItem, key)
        if item:
            self.db.delete(item)


def _load_entries(raw: Optional[str]) -> Optional[List[Any]]:
    """Raw entries of the visit log, or None when the record is unreadable."""
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except ValueError as e:
        logger.warning(f"Visit log is corrupted, treating it as empty: {e}")
        return None
    if not isinstance(data, list):
        logger.warning("Visit log is not a list, treating it as empty")
        return None
    return data


def _parse_visits(raw: Optional[str]) -> List[VisitDTO]:
    visits = []
    for entry in _load_entries(raw) or []:
        try:
            visits.append(VisitDTO.model_validate(entry))
        except ValidationError as e:
            logger.warning(f"Skipping invalid visit record: {e}")
    return visits


def _parse_reset_state(raw: Optional[str]) -> ResetStateDTO:
    if not raw:
        return ResetStateDTO()
    try:
        return ResetStateDTO.model_validate_json(raw)
    except ValidationError as e:
        logger.warning(f"Reset state is corrupted, starting from zero: {e}")
        return ResetStateDTO()


class StorageService:
    """Visit log and ticket counters kept as two JSON records in the store.

    Both records are read in full and rewritten in full on each check-in,
    inside one session so they are committed together. Writers hold
    `store_lock` so concurrent check-ins never read the same counters.
    Log entries that fail validation are carried over verbatim when the log
    is rewritten.
    """

    def __init__(self, tz: Optional[tzinfo] = None, clock: Optional[Callable[[], datetime]] = None):
        self.tz = tz
        self._clock = clock

    def now(self) -> datetime:
        if self._clock:
            return self._clock()
        if self.tz:
            return datetime.now(self.tz)
        return datetime.now().astimezone()

    def get_visits(self) -> List[VisitDTO]:
        """Return all visits, newest first."""
        try:
            with get_db() as db:
                return _parse_visits(KeyValueStore(db).get_item(VISITS_KEY))
        except SQLAlchemyError as e:
            raise StorageError(f"Could not read visits: {e}") from e

    def get_reset_state(self) -> ResetStateDTO:
        try:
            with get_db() as db:
                return _parse_reset_state(KeyValueStore(db).get_item(RESET_STATE_KEY))
        except SQLAlchemyError as e:
            raise StorageError(f"Could not read reset state: {e}") from e

    def save_visit(self, category: VisitorCategory, location: LocationType,
                   group_info: Optional[str] = None, group_size: int = 1) -> VisitDTO:
        """Record a check-in and assign its ticket numbers.

        Raises:
            pydantic.ValidationError: if the check-in data is invalid
            StorageError: if the store is unavailable
        """
        checkin = CheckInDTO(
            category=category,
            location=location,
            group_info=group_info,
            group_size=group_size
        )
        try:
            with store_lock, get_db() as db:
                store = KeyValueStore(db)
                raw_log = store.get_item(VISITS_KEY)
                entries = _load_entries(raw_log)
                if entries is None:
                    logger.error(f"Saving unreadable visit log under {CORRUPTED_VISITS_KEY} before overwriting it")
                    store.set_item(CORRUPTED_VISITS_KEY, raw_log)
                    entries = []
                state = _parse_reset_state(store.get_item(RESET_STATE_KEY))

                now = self.now()
                state, numbers = apply_check_in(state, now, checkin.group_size)

                visit = VisitDTO(
                    id=str(uuid.uuid4()),
                    category=checkin.category,
                    location=checkin.location,
                    timestamp=now,
                    daily_number=numbers[Period.DAILY],
                    weekly_number=numbers[Period.WEEKLY],
                    monthly_number=numbers[Period.MONTHLY],
                    yearly_number=numbers[Period.YEARLY],
                    group_info=checkin.group_info,
                    group_size=checkin.group_size
                )

                store.set_item(VISITS_KEY, json.dumps([visit.model_dump(mode='json')] + entries))
                store.set_item(RESET_STATE_KEY, state.model_dump_json())
        except SQLAlchemyError as e:
            raise StorageError(f"Could not save visit: {e}") from e

        logger.info(
            f"Checked in {visit.category.value} x{visit.group_size} at {visit.location.value}, "
            f"daily ticket #{visit.daily_number}"
        )
        return visit

    def clear_all_data(self) -> None:
        """Remove the visit log and the counters."""
        try:
            with store_lock, get_db() as db:
                store = KeyValueStore(db)
                store.remove_item(VISITS_KEY)
                store.remove_item(RESET_STATE_KEY)
                store.remove_item(CORRUPTED_VISITS_KEY)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not clear data: {e}") from e
        logger.warning("All visit data cleared")
