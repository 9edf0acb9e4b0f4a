"""Persisted food log store."""

import logging
import threading
from datetime import date, datetime
from typing import Protocol
from uuid import uuid4

from pydantic import TypeAdapter, ValidationError

from carbcal.domain.logs import DailySummary, FoodLog, to_local_day

LOGS_STORAGE_KEY = "foodLogs"

logger = logging.getLogger(__name__)

_LOGS_ADAPTER = TypeAdapter(list[FoodLog])


class KeyValueStorage(Protocol):
    """Durable storage for string values under string keys."""

    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""


class FoodLogStore:
    """In-memory food logs mirrored in full to key-value storage.

    The collection is read once at construction. Every save rewrites the
    whole serialized list under ``key``; saves are serialized by a lock.
    """

    def __init__(self, storage: KeyValueStorage, key: str = LOGS_STORAGE_KEY) -> None:
        self.storage = storage
        self.key = key
        self._lock = threading.Lock()
        self._logs: list[FoodLog] = []
        self.load()

    def load(self) -> None:
        """Replace the in-memory collection with the persisted one."""
        raw = self.storage.get(self.key)
        if raw is None:
            self._logs = []
            return
        try:
            self._logs = _LOGS_ADAPTER.validate_json(raw)
        except ValidationError as exc:
            logger.warning(
                "Discarding unreadable food logs under %r: %s", self.key, exc
            )
            self._logs = []
            return
        logger.info("Loaded %d food logs", len(self._logs))

    def save_log(self, entry: FoodLog) -> FoodLog:
        """Append an entry, assigning an id if needed, and persist all logs."""
        with self._lock:
            taken = {log.id for log in self._logs}
            if entry.id is None or entry.id in taken:
                new_id = uuid4()
                while new_id in taken:
                    new_id = uuid4()
                entry = entry.model_copy(update={"id": new_id})
            self._logs.append(entry)
            self._persist()
        logger.info("Saved food log %s for %s", entry.id, entry.dish_name)
        return entry

    def get_logs(self, for_date: date | datetime) -> list[FoodLog]:
        """Return entries logged on the same local calendar day."""
        day = to_local_day(for_date)
        return [log for log in self._logs if log.local_day() == day]

    def all_logs(self) -> list[FoodLog]:
        """Return every entry in insertion order."""
        return list(self._logs)

    def daily_summary(self, for_date: date | datetime) -> DailySummary:
        """Sum the macros of all entries on a day."""
        logs = self.get_logs(for_date)
        totals = [log.total for log in logs]
        return DailySummary(
            day=to_local_day(for_date),
            entries=len(logs),
            calories=sum(total.calories for total in totals),
            carbs=sum(total.carbs for total in totals),
            protein=sum(total.protein for total in totals),
            fats=sum(total.fats for total in totals),
        )

    def _persist(self) -> None:
        payload = _LOGS_ADAPTER.dump_json(self._logs, by_alias=True).decode("utf-8")
        try:
            self.storage.set(self.key, payload)
        except Exception:
            logger.exception("Failed to persist %d food logs", len(self._logs))
