"""
Recurrence expansion for recurring availability templates.

``expand_recurrence`` is pure: it only looks at the template's start date,
pattern and end date, so it can be tested without a database.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import List, Optional, Protocol


class RecurringTemplate(Protocol):
    date: date
    recurrence_pattern: Optional[str]
    recurrence_end_date: Optional[date]


def _add_months(anchor: date, months: int) -> date:
    """Same day-of-month as ``anchor``, clamped to the last day of the target month."""
    month_index = anchor.month - 1 + months
    year = anchor.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(anchor.day, last_day))


def expand_recurrence(
    template: RecurringTemplate, range_start: date, range_end: date
) -> List[date]:
    """
    Return every occurrence date of ``template`` inside [range_start, range_end].

    daily steps one day, weekly seven days, monthly keeps the template's
    day-of-month (clamped to short months). Monthly instances are always
    computed from the template date, so a 31st stays on the 31st where it
    exists. No instance precedes the template date or follows
    ``recurrence_end_date``.

    Raises:
        ValueError: if the pattern is unknown
    """
    first = template.date
    pattern = template.recurrence_pattern
    last = range_end
    if template.recurrence_end_date is not None:
        last = min(last, template.recurrence_end_date)
    if range_start > last or first > last:
        return []

    if pattern in ("daily", "weekly"):
        step = 1 if pattern == "daily" else 7
        current = first
        if current < range_start:
            skipped = (range_start - current).days // step
            current = current + timedelta(days=skipped * step)
            if current < range_start:
                current += timedelta(days=step)
        occurrences: List[date] = []
        while current <= last:
            occurrences.append(current)
            current += timedelta(days=step)
        return occurrences

    if pattern == "monthly":
        occurrences = []
        months = 0
        if first < range_start:
            months = max(
                0, (range_start.year - first.year) * 12 + (range_start.month - first.month) - 1
            )
        while True:
            current = _add_months(first, months)
            if current > last:
                break
            if current >= range_start:
                occurrences.append(current)
            months += 1
        return occurrences

    raise ValueError(f"Unknown recurrence pattern: {pattern!r}")
