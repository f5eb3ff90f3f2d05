from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class LedgerModel(BaseModel):
    """Immutable value with the camelCase JSON shape used by stored ledgers."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class TransactionHistoryEntry(LedgerModel):
    timestamp: datetime = Field(alias="date")
    bill: float                                  # before discount
    discount_percentage: float | None = None
    final_bill: float                            # after discount
    points_used: float | None = None
    points_earned: float = Field(default=0, alias="points")

    @field_validator("timestamp")
    @classmethod
    def utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class Customer(LedgerModel):
    mobile: str
    name: str = ""
    pin: str = ""
    points: float = 0
    total_spent: float = 0
    history: tuple[TransactionHistoryEntry, ...] = ()

    def last_transaction(self) -> TransactionHistoryEntry | None:
        if not self.history:
            return None
        return max(self.history, key=lambda e: e.timestamp)


class SmsLog(LedgerModel):
    timestamp: datetime
    recipient_mobile: str
    recipient_name: str
    message: str

    @field_validator("timestamp")
    @classmethod
    def utc(cls, v: datetime) -> datetime:
        return as_utc(v)
