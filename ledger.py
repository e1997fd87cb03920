from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Iterable, Iterator, Optional

from pydantic import ValidationError

from models import TransactionType
from schemas import TransactionRecord

logger = logging.getLogger(__name__)


class TransactionSet:
    """Id-indexed collection of transactions.

    Iteration follows insertion order. Display order is derived on demand by
    :meth:`sorted`. Every change returns a new set.
    """

    def __init__(self, records: Iterable[TransactionRecord] = ()) -> None:
        self._by_id: dict[str, TransactionRecord] = {}
        for record in records:
            self._by_id[record.id] = record

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[TransactionRecord]:
        return iter(self._by_id.values())

    def __contains__(self, transaction_id: object) -> bool:
        return transaction_id in self._by_id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TransactionSet):
            return NotImplemented
        return self._by_id == other._by_id

    def __repr__(self) -> str:
        return f"TransactionSet({len(self)} records)"

    def get(self, transaction_id: str) -> Optional[TransactionRecord]:
        return self._by_id.get(transaction_id)

    def with_record(self, record: TransactionRecord) -> TransactionSet:
        updated = TransactionSet()
        updated._by_id = {**self._by_id, record.id: record}
        return updated

    def without(self, transaction_id: str) -> TransactionSet:
        updated = TransactionSet()
        updated._by_id = {
            key: value for key, value in self._by_id.items() if key != transaction_id
        }
        return updated

    def sorted(self) -> list[TransactionRecord]:
        # sorted() is stable, so equal dates keep insertion order
        return sorted(self._by_id.values(), key=lambda r: r.date, reverse=True)

    def to_records(self) -> list[dict[str, Any]]:
        return [record.to_record() for record in self.sorted()]


def migrate_record(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Upgrade a stored record to the current shape.

    Records written before income tracking existed have no ``type``; they
    are expenses. Already-migrated records come back unchanged.
    """
    record = dict(raw)
    if not record.get("type"):
        record["type"] = TransactionType.expense.value
    return record


def normalize_record(raw: Mapping[str, Any]) -> TransactionRecord:
    return TransactionRecord.model_validate(migrate_record(raw))


def load_transactions(raw: Any) -> TransactionSet:
    """Build the in-memory set from stored data.

    Anything that is not a list of valid records degrades to an empty set.
    """
    if raw is None:
        return TransactionSet()
    if not isinstance(raw, list):
        logger.error("load_transactions: expected a list, got %s", type(raw).__name__)
        return TransactionSet()

    records: list[TransactionRecord] = []
    for idx, item in enumerate(raw):
        if not isinstance(item, Mapping):
            logger.error("load_transactions: record %s is not an object", idx)
            return TransactionSet()
        try:
            records.append(normalize_record(item))
        except ValidationError as exc:
            logger.error("load_transactions: record %s invalid: %s", idx, exc)
            return TransactionSet()
    return TransactionSet(records)
