import pytest

from ledger import TransactionSet, load_transactions
from models import TransactionType
from reconcile import ImportFormatError, merge


def _raw(txn_id: str, amount: float = 10, **extra: object) -> dict[str, object]:
    record: dict[str, object] = {
        "id": txn_id,
        "amount": amount,
        "type": "expense",
        "category": "food",
        "note": "",
        "date": 1_710_000_000_000,
    }
    record.update(extra)
    return record


def _existing() -> TransactionSet:
    return load_transactions([_raw("a"), _raw("b", 20)])


def test_merge_adds_only_unknown_ids() -> None:
    existing = _existing()

    result = merge(existing, [_raw("b", 999), _raw("c", 30)])

    assert result.added_count == 1
    assert len(result.merged) == len(existing) + result.added_count
    assert result.merged.get("b").amount == 20
    assert result.merged.get("c").amount == 30
    for txn in existing:
        assert result.merged.get(txn.id) == txn


def test_merge_is_idempotent() -> None:
    incoming = [_raw("c"), _raw("d")]
    first = merge(_existing(), incoming)

    second = merge(first.merged, incoming)

    assert second.added_count == 0
    assert second.no_new_records
    assert second.merged == first.merged


def test_duplicate_ids_inside_payload_are_added_once() -> None:
    result = merge(TransactionSet(), [_raw("x", 1), _raw("x", 2)])

    assert result.added_count == 1
    assert result.merged.get("x").amount == 1


def test_merge_migrates_candidates() -> None:
    legacy = _raw("old")
    del legacy["type"]

    result = merge(TransactionSet(), [legacy, _raw(7)])

    assert result.merged.get("old").type == TransactionType.expense
    assert "7" in result.merged


def test_empty_payload_adds_nothing() -> None:
    existing = _existing()
    result = merge(existing, [])
    assert result.no_new_records
    assert result.merged is existing


@pytest.mark.parametrize(
    "payload",
    [
        {"id": "a", "amount": 1},
        "not a list",
        None,
        [_raw("c"), "oops"],
        [_raw("c"), {"amount": 1, "date": 1}],
        [_raw("c"), {"id": "d", "date": 1}],
        [_raw("c"), _raw("d", amount="lots")],
        [_raw("c"), _raw("d", amount=float("nan"))],
        [_raw("c"), _raw("d", amount=float("inf"))],
        [_raw("c"), _raw("d", date=10**17)],
        [_raw("c"), _raw("d", date=-(10**17))],
        [_raw("c"), {"id": {"nested": 1}, "amount": 1, "date": 1}],
    ],
)
def test_bad_payload_is_rejected_whole(payload: object) -> None:
    existing = _existing()

    with pytest.raises(ImportFormatError):
        merge(existing, payload)

    assert len(existing) == 2
    assert "c" not in existing


def test_known_ids_are_skipped_without_validation() -> None:
    existing = _existing()
    stale = {"id": "a", "amount": 10}

    result = merge(existing, [stale, _raw("c", 30)])

    assert result.added_count == 1
    assert result.merged.get("a") == existing.get("a")
    assert result.merged.get("c").amount == 30


def test_invalid_new_record_after_valid_ones_adds_nothing() -> None:
    existing = _existing()

    with pytest.raises(ImportFormatError, match="Record 2"):
        merge(existing, [_raw("c"), _raw("d", date="soon")])
