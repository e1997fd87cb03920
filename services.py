from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from typing import Callable, Optional, Union

from backup import dump_backup, export_filename, parse_backup
from ledger import TransactionSet, load_transactions
from metrics import DayGroup, Statistics, aggregate, group_by_day
from models import Granularity, TransactionType, ViewMode
from periods import resolve_period, to_local, to_timestamp
from reconcile import merge
from schemas import TransactionIn, TransactionRecord
from storage import BlobStore, StorageReadError, StorageWriteError

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class TransactionFilters:
    type: Optional[TransactionType] = None
    category: Optional[str] = None
    query: Optional[str] = None

    def matches(self, txn: TransactionRecord) -> bool:
        if self.type and txn.type != self.type:
            return False
        if self.category and txn.category != self.category:
            return False
        if self.query and self.query.lower() not in txn.note.lower():
            return False
        return True


@dataclass(frozen=True)
class ImportResult:
    added_count: int
    total_count: int

    @property
    def no_new_records(self) -> bool:
        return self.added_count == 0


class TransactionService:
    """Owns the in-memory transaction set and keeps the store in step with it.

    The store is read once, at construction. Every mutation writes the full
    set back; a failed write is logged and the in-memory state stays
    authoritative until the next successful write.
    """

    def __init__(
        self,
        store: BlobStore,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
        tz: Optional[tzinfo] = None,
        app_name: str = "simple-bookkeeping",
    ) -> None:
        self.store = store
        self.tz = tz
        self.clock = clock or self._local_now
        self.id_factory = id_factory or _new_id
        self.app_name = app_name
        self._lock = threading.Lock()
        self.transactions = self._load()

    def _local_now(self) -> datetime:
        if self.tz is None:
            return datetime.now()
        return datetime.now(self.tz).replace(tzinfo=None)

    def _load(self) -> TransactionSet:
        try:
            raw = self.store.read()
        except StorageReadError:
            logger.exception("store_load_failed: starting with an empty set")
            return TransactionSet()
        transactions = load_transactions(raw)
        logger.info(f"store_load: records={len(transactions)}")
        return transactions

    def _save(self) -> bool:
        try:
            self.store.write(self.transactions.to_records())
        except StorageWriteError:
            logger.exception("store_save_failed: in-memory state not persisted")
            return False
        return True

    def _timestamp_for(self, day: date, reference: datetime) -> int:
        return to_timestamp(datetime.combine(day, reference.time()), self.tz)

    def get(self, transaction_id: str) -> TransactionRecord:
        txn = self.transactions.get(transaction_id)
        if txn is None:
            raise ValueError("Transaction not found")
        return txn

    def list(self, filters: Optional[TransactionFilters] = None) -> list[TransactionRecord]:
        filters = filters or TransactionFilters()
        return [txn for txn in self.transactions.sorted() if filters.matches(txn)]

    def daily_groups(self, filters: Optional[TransactionFilters] = None) -> list[DayGroup]:
        return group_by_day(self.list(filters), tz=self.tz)

    def create(self, data: TransactionIn) -> TransactionRecord:
        # The entry form picks a day; the time of entry keeps same-day order.
        txn = TransactionRecord(
            id=self.id_factory(),
            amount=data.amount,
            type=data.type,
            category=data.category,
            note=data.note,
            date=self._timestamp_for(data.date, self.clock()),
        )
        with self._lock:
            self.transactions = self.transactions.with_record(txn)
            self._save()
        return txn

    def update(self, transaction_id: str, data: TransactionIn) -> TransactionRecord:
        with self._lock:
            current = self.get(transaction_id)
            txn = TransactionRecord(
                id=current.id,
                amount=data.amount,
                type=data.type,
                category=data.category,
                note=data.note,
                date=self._timestamp_for(data.date, to_local(current.date, self.tz)),
            )
            self.transactions = self.transactions.with_record(txn)
            self._save()
        return txn

    def delete(self, transaction_id: str) -> None:
        with self._lock:
            self.get(transaction_id)
            self.transactions = self.transactions.without(transaction_id)
            self._save()

    def statistics(
        self,
        anchor: Union[date, datetime],
        granularity: Granularity,
        view_mode: ViewMode = ViewMode.overview,
    ) -> Statistics:
        period = resolve_period(anchor, granularity, tz=self.tz)
        return aggregate(
            self.transactions,
            period,
            view_mode,
            today=self.clock().date(),
            tz=self.tz,
        )

    def import_backup(self, content: Union[str, bytes]) -> ImportResult:
        payload = parse_backup(content)
        with self._lock:
            result = merge(self.transactions, payload)
            if not result.no_new_records:
                self.transactions = result.merged
                self._save()
        logger.info(
            f"import_backup: added={result.added_count} total={len(self.transactions)}"
        )
        return ImportResult(
            added_count=result.added_count, total_count=len(self.transactions)
        )

    def export_backup(self) -> tuple[str, str]:
        filename = export_filename(self.app_name, self.clock().date())
        return filename, dump_backup(self.transactions.to_records())
