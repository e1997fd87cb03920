import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from categories import is_known_category
from models import TransactionType

_EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)
_MILLISECOND = dt.timedelta(milliseconds=1)

# A day of slack at both ends keeps every timestamp convertible to a local
# calendar date in any time zone.
MIN_TIMESTAMP = (dt.datetime(1, 1, 2, tzinfo=dt.timezone.utc) - _EPOCH) // _MILLISECOND
MAX_TIMESTAMP = (dt.datetime(9999, 12, 30, tzinfo=dt.timezone.utc) - _EPOCH) // _MILLISECOND


def coerce_id(value: Any) -> Any:
    # Older backups carry numeric ids.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(int(value)) if float(value).is_integer() else str(value)
    return value


class TransactionRecord(BaseModel):
    """A stored transaction, in the same shape it is persisted and exported.

    ``type`` is the income/expense polarity and ``date`` is the effective
    moment in milliseconds since the epoch. Records are replaced wholesale
    on edit, never mutated.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(..., min_length=1)
    amount: float = Field(..., allow_inf_nan=False)
    type: TransactionType
    category: str = "other"
    note: str = ""
    date: int = Field(..., ge=MIN_TIMESTAMP, le=MAX_TIMESTAMP)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return coerce_id(value)

    @field_validator("note", mode="before")
    @classmethod
    def _none_note(cls, value: Any) -> Any:
        return "" if value is None else value

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class TransactionIn(BaseModel):
    amount: float = Field(..., gt=0, allow_inf_nan=False)
    type: TransactionType = TransactionType.expense
    category: str
    note: str = Field(default="", max_length=200)
    date: dt.date

    @field_validator("category")
    @classmethod
    def _known_category(cls, value: str) -> str:
        if not is_known_category(value):
            raise ValueError(f"Unknown category: {value}")
        return value

    @field_validator("note")
    @classmethod
    def _strip_note(cls, value: str) -> str:
        return value.strip()
