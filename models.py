from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


class TransactionType(str, Enum):
    income = "income"
    expense = "expense"


class Granularity(str, Enum):
    day = "day"
    week = "week"
    month = "month"
    year = "year"


class ViewMode(str, Enum):
    overview = "overview"
    expense = "expense"
    income = "income"


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class StoredBlob(Base, TimestampMixin):
    """One JSON document per key; the transaction list lives under a single key."""

    __tablename__ = "blobs"

    key: Mapped[str] = mapped_column(String(120), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
