"""Pydantic models for ledger payloads, period selection and report summaries"""
import datetime
from enum import Enum
from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class PeriodTag(str, Enum):
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    LAST_MONTH = "lastMonth"
    YEAR = "year"
    LAST_YEAR = "lastYear"
    ALL = "all"
    CUSTOM = "custom"


class ExpenseRecord(BaseModel):
    """One expense as returned by the ledger. Amount is kept raw until aggregation."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: Union[int, str]
    amount: Union[float, int, str, None] = None
    category: str = "other"
    date: datetime.date
    description: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("category", mode="before")
    @classmethod
    def default_category(cls, v):
        """A null or blank category is bucketed as "other" rather than dropping the expense"""
        if v is None or (isinstance(v, str) and not v.strip()):
            return "other"
        return v

    @field_validator("date", mode="before")
    @classmethod
    def strip_time(cls, v):
        """Ledger timestamps like 2024-03-15T00:00:00.000Z carry no meaning past the day"""
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        if isinstance(v, datetime.datetime):
            return v.date()
        return v


class Budget(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: Union[int, str]
    category: str
    amount: float = 0.0
    period: Optional[str] = None


class PeriodSelector(BaseModel):
    """Symbolic reporting window. Bounds only matter for custom (and the all-time end override)."""
    model_config = ConfigDict(frozen=True)

    tag: PeriodTag = PeriodTag.MONTH
    start_date: Optional[datetime.date] = None
    end_date: Optional[datetime.date] = None

    @property
    def is_complete(self) -> bool:
        if self.tag == PeriodTag.CUSTOM:
            return self.start_date is not None and self.end_date is not None
        return True


class ResolvedInterval(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_date: datetime.date
    end_date: datetime.date

    @model_validator(mode="after")
    def check_order(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self

    @property
    def start_iso(self) -> str:
        return self.start_date.isoformat()

    @property
    def end_iso(self) -> str:
        return self.end_date.isoformat()


class ReportSummary(BaseModel):
    total_spent: float = 0.0
    category_totals: Dict[str, float] = Field(default_factory=dict)
    daily_totals: Dict[str, float] = Field(default_factory=dict)
    transaction_count: int = 0
    average_transaction: float = 0.0

    @classmethod
    def empty(cls) -> "ReportSummary":
        return cls()
