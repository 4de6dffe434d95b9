# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Date-to-custodian resolution.

``resolve`` maps a calendar date to the parent holding custody that day. With
a ScheduleConfig the configured pattern is indexed by the whole-day offset
from the anchor date; without one, the epoch-week parity rule applies. The two
formulas are kept distinct on purpose and do not agree in general.

All functions here are pure and safe to call concurrently.
"""

import calendar
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple, Union

from ..models.entities import ScheduleConfig
from ..models.enums import Custodian, PatternId
from .patterns import default_pattern, get_pattern

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)
SECONDS_PER_WEEK = 7 * 24 * 60 * 60

DateLike = Union[date, datetime]


@dataclass(frozen=True)
class CalendarDay:
    """One day cell of a month grid."""
    day: date
    custodian: Custodian


@dataclass(frozen=True)
class MonthGrid:
    """Custodian per day for a visible month (weeks start on Sunday)."""
    year: int
    month: int
    leading_blanks: int
    days: List[CalendarDay]


@dataclass(frozen=True)
class CustodyBlock:
    """Maximal run of consecutive days with the same custodian."""
    custodian: Custodian
    start: date
    end: date

    @property
    def length(self) -> int:
        return (self.end - self.start).days + 1


def _as_date(value: DateLike) -> date:
    """Normalize to the calendar date (local midnight)."""
    if isinstance(value, datetime):
        return value.date()
    return value


def _epoch_seconds(value: DateLike) -> float:
    """Seconds since the epoch; plain dates are taken at local midnight."""
    if isinstance(value, datetime):
        return value.timestamp()
    return datetime.combine(value, time.min).timestamp()


def sequence_for(config: ScheduleConfig) -> Tuple[Custodian, ...]:
    """
    Pick the repeating sequence a config resolves against.
    
    Falls back to the default catalog pattern when the pattern id is unknown
    or a custom pattern is missing or empty; rendering must always get an
    answer.
    """
    if config.pattern == PatternId.CUSTOM:
        if config.custom_pattern:
            return tuple(Custodian(label) for label in config.custom_pattern)
        logger.debug("Custom pattern missing, using default pattern")
        return default_pattern().sequence
    
    definition = get_pattern(config.pattern)
    if definition is None:
        logger.debug(f"Unknown pattern id {config.pattern!r}, using default pattern")
        return default_pattern().sequence
    return definition.sequence


def resolve_default(day: DateLike) -> Custodian:
    """Epoch-week parity rule used before any schedule is configured."""
    week_number = math.floor(_epoch_seconds(day) / SECONDS_PER_WEEK)
    return Custodian.A if week_number % 2 == 0 else Custodian.B


def resolve(day: DateLike, config: Optional[ScheduleConfig]) -> Custodian:
    """
    Resolve the custodial parent for a date.
    
    Args:
        day: Calendar date (a datetime is reduced to its date unless no config
            is given)
        config: The family's schedule, or None when none is configured yet
        
    Returns:
        Custodian.A or Custodian.B
    """
    if config is None:
        return resolve_default(day)
    
    sequence = sequence_for(config)
    length = len(sequence)
    
    offset_days = (_as_date(day) - _as_date(config.start_date)).days
    index = ((offset_days % length) + length) % length
    
    base = sequence[index]
    if config.starting_parent == Custodian.B:
        return base.flip()
    return base


def month_grid(year: int, month: int, config: Optional[ScheduleConfig]) -> MonthGrid:
    """
    Resolve every day of a month for calendar rendering.
    
    Args:
        year: Calendar year
        month: Calendar month (1-12)
        config: The family's schedule or None
        
    Returns:
        MonthGrid with one CalendarDay per day and the Sunday-first offset
    """
    first_weekday, days_in_month = calendar.monthrange(year, month)
    # monthrange counts Monday as 0; the grid starts on Sunday
    leading_blanks = (first_weekday + 1) % 7
    
    days = []
    for day_number in range(1, days_in_month + 1):
        current = date(year, month, day_number)
        days.append(CalendarDay(day=current, custodian=resolve(current, config)))
    
    return MonthGrid(year=year, month=month, leading_blanks=leading_blanks, days=days)


def custody_blocks(
    start: date,
    end: date,
    config: Optional[ScheduleConfig]
) -> List[CustodyBlock]:
    """
    Split an inclusive date range into runs of the same custodian.
    
    Args:
        start: First date of the range
        end: Last date of the range (inclusive)
        config: The family's schedule or None
        
    Returns:
        Ordered list of CustodyBlock covering the whole range
    """
    if end < start:
        return []
    
    blocks = []
    block_start = start
    current_parent = resolve(start, config)
    current = start
    
    while current < end:
        next_day = current + ONE_DAY
        next_parent = resolve(next_day, config)
        if next_parent != current_parent:
            blocks.append(CustodyBlock(current_parent, block_start, current))
            block_start = next_day
            current_parent = next_parent
        current = next_day
    
    blocks.append(CustodyBlock(current_parent, block_start, end))
    return blocks


def next_exchange(after: date, config: Optional[ScheduleConfig]) -> Optional[date]:
    """
    Find the first date after ``after`` on which custody changes hands.
    
    Returns:
        The first day of the new custodian's block, or None when the schedule
        never changes custodian
    """
    horizon = len(sequence_for(config)) if config is not None else 7
    
    current_parent = resolve(after, config)
    current = after
    for _ in range(horizon + 1):
        current = current + ONE_DAY
        if resolve(current, config) != current_parent:
            return current
    return None
