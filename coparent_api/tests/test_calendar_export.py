# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for the iCalendar export.
"""

from datetime import date

from coparent_api.models.enums import Custodian
from coparent_api.services.calendar_export import (
    add_months,
    build_custody_calendar,
    export_ics,
)


class TestAddMonths:
    """Test month arithmetic for export windows."""
    
    def test_simple(self):
        assert add_months(date(2024, 1, 15), 1) == date(2024, 2, 15)
        assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)
    
    def test_clamps_to_month_end(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)


class TestCustodyCalendar:
    """Test event generation per custody block."""
    
    def test_one_event_per_block(self, alternating_config):
        cal = build_custody_calendar(
            alternating_config,
            date(2024, 1, 1),
            date(2024, 1, 28),
            {Custodian.A: "Alex", Custodian.B: "Blake"}
        )
        
        events = sorted(cal.events, key=lambda e: e.begin)
        assert len(events) == 4
        assert [e.name for e in events] == [
            "Custody: Alex", "Custody: Blake", "Custody: Alex", "Custody: Blake"
        ]
        assert all(e.all_day for e in events)
        assert events[0].location == "Lincoln Elementary"
        assert events[0].description == "Exchange time: 6:00 PM"
        assert events[1].uid == "custody-2024-01-08-B@coparent.app"
    
    def test_default_rotation_without_config(self):
        cal = build_custody_calendar(None, date(2024, 1, 1), date(2024, 1, 3))
        
        assert len(cal.events) >= 1
        assert all(e.name in ("Custody: Parent A", "Custody: Parent B") for e in cal.events)
        assert all(e.location is None for e in cal.events)
    
    def test_empty_range(self, alternating_config):
        cal = build_custody_calendar(alternating_config, date(2024, 2, 1), date(2024, 1, 1))
        assert len(cal.events) == 0
    
    def test_export_ics_text(self, custom_config):
        text = export_ics(custom_config, date(2024, 1, 1), months=1, parent_a="Alex", parent_b="Blake")
        
        assert text.startswith("BEGIN:VCALENDAR")
        assert "SUMMARY:Custody: Alex" in text
        assert "SUMMARY:Custody: Blake" in text
        # A A B rotation over January 2024: 11 blocks for A, 10 for B
        assert text.count("BEGIN:VEVENT") == 21
