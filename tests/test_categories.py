from categories import (
    CATEGORIES,
    FALLBACK_CATEGORY,
    categories_for,
    get_category,
    is_known_category,
)
from models import TransactionType


def test_lookup_known_category() -> None:
    cat = get_category("salary")
    assert cat.label == "工资"
    assert cat.type == TransactionType.income


def test_unknown_category_returns_fallback() -> None:
    assert get_category("does-not-exist") is FALLBACK_CATEGORY
    assert FALLBACK_CATEGORY.id == "other"
    assert not is_known_category("does-not-exist")


def test_categories_are_partitioned_by_type() -> None:
    expense_ids = {c.id for c in categories_for(TransactionType.expense)}
    income_ids = {c.id for c in categories_for(TransactionType.income)}

    assert expense_ids.isdisjoint(income_ids)
    assert expense_ids | income_ids == {c.id for c in CATEGORIES}
    assert "other_income" in income_ids
