from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from ledger import TransactionSet, normalize_record
from schemas import TransactionRecord, coerce_id

REQUIRED_FIELDS = ("id", "amount")


class ImportFormatError(ValueError):
    pass


@dataclass(frozen=True)
class MergeResult:
    merged: TransactionSet
    added_count: int

    @property
    def no_new_records(self) -> bool:
        return self.added_count == 0


def _check_shape(incoming: Any) -> list[tuple[int, str, Mapping[str, Any]]]:
    if not isinstance(incoming, (list, tuple)):
        raise ImportFormatError("Backup must be a list of records")

    candidates: list[tuple[int, str, Mapping[str, Any]]] = []
    for idx, item in enumerate(incoming, start=1):
        if not isinstance(item, Mapping):
            raise ImportFormatError(f"Record {idx}: not an object")
        missing = [name for name in REQUIRED_FIELDS if name not in item]
        if missing:
            raise ImportFormatError(
                f"Record {idx}: missing {', '.join(missing)}"
            )
        record_id = coerce_id(item["id"])
        if not isinstance(record_id, str) or not record_id:
            raise ImportFormatError(f"Record {idx}: invalid id")
        candidates.append((idx, record_id, item))
    return candidates


def merge(existing: TransactionSet, incoming: Any) -> MergeResult:
    """Add the records of ``incoming`` whose id is not known yet.

    Every element must be an object with ``id`` and ``amount``. Only new
    records are migrated and validated; one that fails aborts the merge and
    ``existing`` is left untouched. Ids repeated inside ``incoming`` are
    inserted once.
    """
    candidates = _check_shape(incoming)

    seen = {record.id for record in existing}
    added: list[TransactionRecord] = []
    for idx, record_id, item in candidates:
        if record_id in seen:
            continue
        try:
            record = normalize_record(item)
        except ValidationError as exc:
            raise ImportFormatError(f"Record {idx}: {exc.errors()[0]['msg']}") from exc
        seen.add(record_id)
        added.append(record)

    if not added:
        return MergeResult(merged=existing, added_count=0)
    return MergeResult(
        merged=TransactionSet([*existing, *added]), added_count=len(added)
    )
