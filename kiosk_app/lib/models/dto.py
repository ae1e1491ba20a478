from datetime import date, datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..constants import LocationType, Period, VisitorCategory

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class VisitDTO(BaseModel):
    """A single check-in. Frozen, the visit log is append-only."""
    model_config = ConfigDict(frozen=True)

    id: str
    category: VisitorCategory
    location: LocationType
    timestamp: datetime
    daily_number: int
    weekly_number: int
    monthly_number: int
    yearly_number: int
    group_info: Optional[str] = None
    group_size: int = 1

    def number_for(self, period: Period) -> int:
        return getattr(self, f"{period.value}_number")


class ResetStateDTO(BaseModel):
    """Running ticket counters and the start of the period each was last reset for."""
    last_daily_reset: datetime = EPOCH
    last_weekly_reset: datetime = EPOCH
    last_monthly_reset: datetime = EPOCH
    last_yearly_reset: datetime = EPOCH
    current_daily_count: int = 0
    current_weekly_count: int = 0
    current_monthly_count: int = 0
    current_yearly_count: int = 0

    def last_reset(self, period: Period) -> datetime:
        return getattr(self, f"last_{period.value}_reset")

    def count(self, period: Period) -> int:
        return getattr(self, f"current_{period.value}_count")


class CheckInDTO(BaseModel):
    """Data transfer object for an incoming check-in"""
    category: VisitorCategory
    location: LocationType
    group_info: Optional[str] = Field(default=None, max_length=200)
    group_size: int = Field(default=1, ge=1)

    @field_validator('group_info')
    @classmethod
    def blank_group_info_is_none(cls, v):
        if v is not None:
            v = v.strip()
        return v or None

    @model_validator(mode='after')
    def only_groups_have_group_details(self):
        if self.category != VisitorCategory.GROUP:
            if self.group_size != 1:
                raise ValueError("group_size is only allowed for group check-ins")
            if self.group_info:
                raise ValueError("group_info is only allowed for group check-ins")
        return self


class VisitFilterDTO(BaseModel):
    """Filters for the visit log, all optional. Date bounds are inclusive."""
    location: Optional[LocationType] = None
    category: Optional[VisitorCategory] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator('location', 'category', 'start_date', 'end_date', mode='before')
    @classmethod
    def empty_is_none(cls, v):
        if v in ('', 'ALL'):
            return None
        return v

    @model_validator(mode='after')
    def check_range(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class CounterStatsDTO(BaseModel):
    """Headcounts shown on the dashboard stat cards"""
    daily: int
    weekly: int
    monthly: int
    yearly: int
    all_time: int
