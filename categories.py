from dataclasses import dataclass

from models import TransactionType


@dataclass(frozen=True)
class CategoryDef:
    id: str
    label: str
    icon: str
    color: str
    type: TransactionType


EXPENSE_CATEGORIES: tuple[CategoryDef, ...] = (
    CategoryDef("food", "餐饮", "utensils", "orange", TransactionType.expense),
    CategoryDef("transport", "交通", "bus", "blue", TransactionType.expense),
    CategoryDef("shopping", "购物", "shopping-bag", "pink", TransactionType.expense),
    CategoryDef("housing", "居住", "home", "yellow", TransactionType.expense),
    CategoryDef("entertainment", "娱乐", "gamepad-2", "purple", TransactionType.expense),
    CategoryDef("medical", "医疗", "stethoscope", "green", TransactionType.expense),
    CategoryDef("study", "学习", "book-open", "indigo", TransactionType.expense),
    CategoryDef("other", "其他", "more-horizontal", "gray", TransactionType.expense),
)

INCOME_CATEGORIES: tuple[CategoryDef, ...] = (
    CategoryDef("salary", "工资", "banknote", "emerald", TransactionType.income),
    CategoryDef("bonus", "奖金", "coins", "amber", TransactionType.income),
    CategoryDef("investment", "理财", "trending-up", "red", TransactionType.income),
    CategoryDef("other_income", "其他", "wallet", "cyan", TransactionType.income),
)

CATEGORIES: tuple[CategoryDef, ...] = EXPENSE_CATEGORIES + INCOME_CATEGORIES

FALLBACK_CATEGORY = EXPENSE_CATEGORIES[-1]

_BY_ID = {cat.id: cat for cat in CATEGORIES}


def get_category(category_id: str) -> CategoryDef:
    return _BY_ID.get(category_id, FALLBACK_CATEGORY)


def is_known_category(category_id: str) -> bool:
    return category_id in _BY_ID


def categories_for(txn_type: TransactionType) -> tuple[CategoryDef, ...]:
    if txn_type == TransactionType.income:
        return INCOME_CATEGORIES
    return EXPENSE_CATEGORIES
