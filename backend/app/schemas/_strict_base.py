"""Strict schema baselines with forbidden extras by default."""

from datetime import time
import re

from pydantic import BaseModel, ConfigDict

from ..utils.time_utils import parse_time_str

DATE_ONLY_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class StrictModel(BaseModel):
    """Neutral strict base for response DTOs."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class StrictRequestModel(StrictModel):
    """Request DTO base that always forbids unexpected fields."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


def ensure_date_only(value: object, field_name: str) -> object:
    """Reject datetime-looking strings before pydantic coerces them to a date."""
    if isinstance(value, str):
        candidate = value.strip()
        if not DATE_ONLY_REGEX.fullmatch(candidate):
            raise ValueError(f"{field_name} must be a YYYY-MM-DD date-only string")
        return candidate
    return value


def ensure_hhmm(value: object, field_name: str) -> object:
    """Accept strict HH:MM strings only; time objects pass through."""
    if isinstance(value, str):
        try:
            return parse_time_str(value.strip())
        except ValueError:
            raise ValueError(f"{field_name} must be an HH:MM time")
    return value


def hhmm(value: time) -> str:
    return value.strftime("%H:%M")