"""Auto-scheduling request and suggestion schemas."""

import datetime as dt
from datetime import date, time
from typing import List, Optional

from pydantic import Field, field_serializer, field_validator, model_validator

from ._strict_base import StrictModel, StrictRequestModel, ensure_date_only, ensure_hhmm, hhmm


class AutoScheduleRequest(StrictRequestModel):
    course_id: str = Field(..., min_length=1)
    student_id: str = Field(..., min_length=1)
    instructor_id: Optional[str] = None
    duration_minutes: int = Field(..., gt=0, le=24 * 60)
    preferred_dates: List[date] = Field(default_factory=list)
    preferred_times: List[time] = Field(default_factory=list, description="Preferred start times (HH:MM)")
    earliest_date: Optional[date] = None
    latest_date: Optional[date] = None
    avoid_weekends: bool = False

    @field_validator("earliest_date", "latest_date", mode="before")
    @classmethod
    def _date_only(cls, v: object) -> object:
        return ensure_date_only(v, "date")

    @field_validator("preferred_dates", mode="before")
    @classmethod
    def _dates_only(cls, v: object) -> object:
        if isinstance(v, list):
            return [ensure_date_only(item, "preferred_dates") for item in v]
        return v

    @field_validator("preferred_times", mode="before")
    @classmethod
    def _times_hhmm(cls, v: object) -> object:
        if isinstance(v, list):
            return [ensure_hhmm(item, "preferred_times") for item in v]
        return v

    @model_validator(mode="after")
    def _check_window(self) -> "AutoScheduleRequest":
        if self.earliest_date and self.latest_date and self.latest_date < self.earliest_date:
            raise ValueError("latest_date cannot be before earliest_date")
        return self


class ScheduleSuggestion(StrictModel):
    instructor_id: str
    instructor_name: str
    date: dt.date
    start_time: time
    end_time: time
    score: int
    reasons: List[str]

    @field_serializer("start_time", "end_time")
    def _serialize_time(self, value: time) -> str:
        return hhmm(value)


class AutoScheduleResponse(StrictModel):
    suggestions: List[ScheduleSuggestion]
    total_suggestions: int
    best_suggestion: Optional[ScheduleSuggestion] = None
