# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
iCalendar export of the custody schedule.

One all-day event per custody block (a run of consecutive days with the same
parent), so calendar apps show a handful of spans instead of a daily entry.
"""

import calendar as month_calendar
import logging
from datetime import date, datetime, time, timedelta
from typing import Dict, Optional

from ics import Calendar, Event
from opentelemetry import trace

from ..domain.resolver import custody_blocks
from ..models.entities import ScheduleConfig
from ..models.enums import Custodian

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

UID_DOMAIN = "coparent.app"


def add_months(start: date, months: int) -> date:
    """Same day ``months`` later, clamped to the end of shorter months."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, month_calendar.monthrange(year, month)[1])
    return date(year, month, day)


def build_custody_calendar(
    config: Optional[ScheduleConfig],
    start: date,
    end: date,
    parent_names: Optional[Dict[Custodian, str]] = None
) -> Calendar:
    """
    Build a calendar with one all-day event per custody block.
    
    Args:
        config: The family's schedule, None for the default rotation
        start: First exported day
        end: Last exported day (inclusive)
        parent_names: Display names for parents A and B
        
    Returns:
        ics.Calendar ready to serialize
    """
    names = {Custodian.A: "Parent A", Custodian.B: "Parent B"}
    if parent_names:
        names.update(parent_names)
    
    exchange_time = config.exchange_time if config else None
    location = config.exchange_location if config else None
    
    with tracer.start_as_current_span("calendar_export.build") as span:
        blocks = custody_blocks(start, end, config)
        span.set_attributes({
            "export.start": start.isoformat(),
            "export.end": end.isoformat(),
            "export.blocks": len(blocks)
        })
        
        cal = Calendar()
        for block in blocks:
            event = Event()
            event.name = f"Custody: {names[block.custodian]}"
            event.uid = f"custody-{block.start.isoformat()}-{block.custodian.value}@{UID_DOMAIN}"
            event.begin = datetime.combine(block.start, time.min)
            event.end = datetime.combine(block.end, time.min)
            event.make_all_day()
            if location:
                event.location = location
            if exchange_time:
                event.description = f"Exchange time: {exchange_time}"
            cal.events.add(event)
        
        logger.info(
            "Custody calendar built",
            extra={"extra_fields": {
                "start": start.isoformat(),
                "end": end.isoformat(),
                "events": len(blocks)
            }}
        )
        return cal


def export_ics(
    config: Optional[ScheduleConfig],
    start: date,
    months: int = 12,
    parent_a: str = "Parent A",
    parent_b: str = "Parent B"
) -> str:
    """
    Serialize ``months`` of custody starting at ``start`` as iCalendar text.
    """
    end = add_months(start, months) - timedelta(days=1)
    cal = build_custody_calendar(
        config,
        start,
        end,
        {Custodian.A: parent_a, Custodian.B: parent_b}
    )
    return cal.serialize()
