"""Recurrence rule models for taskintel.

Canonical parsed form of an RRULE-family string. The raw string stays the
persisted representation on the template task; this model is derived from it.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class RecurrenceFrequency(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class Weekday(str, Enum):
    MO = "MO"
    TU = "TU"
    WE = "WE"
    TH = "TH"
    FR = "FR"
    SA = "SA"
    SU = "SU"


class WeekdaySpec(BaseModel):
    """A BYDAY entry, e.g. MO, 1MO (first Monday) or -1FR (last Friday)."""

    weekday: Weekday
    ordinal: Optional[int] = Field(None, description="Nth occurrence within the period; negative counts from the end")

    @field_validator("ordinal")
    @classmethod
    def _validate_ordinal(cls, v):
        if v is not None and (v == 0 or abs(v) > 53):
            raise ValueError("BYDAY ordinal must be in [-53, -1] or [1, 53]")
        return v


class RecurrenceRule(BaseModel):
    """Parsed recurrence rule.

    Notes:
    - `until` is stored as a naive UTC datetime.
    - COUNT and UNTIL are mutually exclusive.
    """

    frequency: RecurrenceFrequency
    interval: int = Field(1, ge=1, description="Every N units (days/weeks/months/years)")
    count: Optional[int] = Field(None, ge=1, description="Total occurrences produced by the rule")
    until: Optional[datetime] = Field(None, description="Last instant an occurrence may fall on")
    by_day: List[WeekdaySpec] = Field(default_factory=list)
    by_month_day: List[int] = Field(default_factory=list)
    by_month: List[int] = Field(default_factory=list)
    week_start: Optional[Weekday] = None

    @field_validator("by_day")
    @classmethod
    def _validate_by_day(cls, v):
        # Deduplicate but preserve order
        seen = set()
        out: List[WeekdaySpec] = []
        for spec in v:
            key = (spec.weekday, spec.ordinal)
            if key not in seen:
                seen.add(key)
                out.append(spec)
        return out

    @field_validator("by_month_day")
    @classmethod
    def _validate_by_month_day(cls, v):
        for day in v:
            if day == 0 or abs(day) > 31:
                raise ValueError("BYMONTHDAY values must be in [-31, -1] or [1, 31]")
        return v

    @field_validator("by_month")
    @classmethod
    def _validate_by_month(cls, v):
        for month in v:
            if month < 1 or month > 12:
                raise ValueError("BYMONTH values must be in [1, 12]")
        return v

    @field_validator("until")
    @classmethod
    def _validate_until(cls, v, info):
        if v is not None and info.data.get("count") is not None:
            raise ValueError("COUNT and UNTIL cannot both be set")
        return v
