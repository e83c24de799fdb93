"""Append-only message store (core domain).

The whole collection lives as one JSON array in a single key-value slot, so
every append is a read-modify-write that replaces the slot in one write.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import List, Optional

from core.config import StoreConfig
from core.models import MessageRecord
from core.ports import KeyValueSlotPort

LOGGER = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when the persisted slot cannot be written."""


class CorruptStoreError(ValueError):
    """The persisted blob is not a list of message records."""


def decode_records(blob: Optional[str]) -> List[MessageRecord]:
    """Deserialize a stored blob. A missing slot is an empty collection."""

    if blob is None or not blob.strip():
        return []
    try:
        data = json.loads(blob)
    except json.JSONDecodeError as exc:
        raise CorruptStoreError(f"invalid JSON: {exc}") from exc
    except RecursionError as exc:
        raise CorruptStoreError("JSON nested too deeply") from exc
    if not isinstance(data, list):
        raise CorruptStoreError(f"expected a list, got {type(data).__name__}")

    records: List[MessageRecord] = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise CorruptStoreError(f"entry {index} is not an object")
        try:
            records.append(MessageRecord.from_dict(entry))
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            raise CorruptStoreError(f"entry {index} is malformed: {exc}") from exc
    return records


def encode_records(records: List[MessageRecord]) -> str:
    return json.dumps([record.to_dict() for record in records], ensure_ascii=False)


class MessageStore:
    """Durable, ordered collection of matched messages."""

    def __init__(self, slots: KeyValueSlotPort, config: StoreConfig) -> None:
        self._slots = slots
        self._key = config.key
        self._max_records = config.max_records
        # Guards the read-modify-write when batches arrive on several threads.
        self._lock = threading.Lock()

    def append(self, record: MessageRecord) -> None:
        """Append one record and write the collection back.

        A corrupt blob is logged and replaced by a collection holding only
        the new record. Raises StoreError if the write itself fails.
        """

        def _mutate(blob: Optional[str]) -> str:
            try:
                records = decode_records(blob)
            except CorruptStoreError as exc:
                LOGGER.error("Stored messages under %r are corrupt, starting over: %s", self._key, exc)
                records = []
            records.append(record)
            if self._max_records is not None and len(records) > self._max_records:
                records = records[-self._max_records :]
            return encode_records(records)

        with self._lock:
            try:
                self._slots.update(self._key, _mutate)
            except Exception as exc:
                raise StoreError(f"Failed to write {self._key!r}: {exc}") from exc

    def load_all(self) -> List[MessageRecord]:
        """Return every stored record in append order."""

        try:
            blob = self._slots.get(self._key)
        except Exception as exc:
            raise StoreError(f"Failed to read {self._key!r}: {exc}") from exc
        try:
            return decode_records(blob)
        except CorruptStoreError as exc:
            LOGGER.error("Stored messages under %r are corrupt: %s", self._key, exc)
            return []
