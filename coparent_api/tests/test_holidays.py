# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for holiday rules and overrides.
"""

from datetime import date

from coparent_api.domain.holidays import (
    default_holidays,
    describe_holiday_override,
    describe_rule,
    find_holiday,
    summarize_holiday_rules,
)
from coparent_api.models.entities import HolidayRule
from coparent_api.models.enums import Custodian, HolidayRuleKind


class TestHolidayOverrides:
    """Test per-date holiday descriptions."""
    
    def test_alternate_gives_parent_a_even_years(self):
        rule = HolidayRule(name="Thanksgiving", rule=HolidayRuleKind.ALTERNATE)
        
        even = describe_holiday_override(date(2024, 11, 28), rule)
        odd = describe_holiday_override(date(2025, 11, 27), rule)
        
        assert even.custodian == Custodian.A
        assert odd.custodian == Custodian.B
        assert "even years" in even.description
        assert not even.shared
    
    def test_split_is_shared_without_custodian(self):
        """A split holiday is never collapsed to one parent."""
        rule = HolidayRule(name="Christmas Day", rule=HolidayRuleKind.SPLIT)
        
        override = describe_holiday_override(date(2024, 12, 25), rule)
        
        assert override.custodian is None
        assert override.shared is True
        assert "Parent A and Parent B" in override.description
    
    def test_fixed_rules(self):
        mothers_day = HolidayRule(name="Mother's Day", rule=HolidayRuleKind.FIXED_A)
        fathers_day = HolidayRule(name="Father's Day", rule=HolidayRuleKind.FIXED_B)
        
        assert describe_holiday_override(date(2024, 5, 12), mothers_day).custodian == Custodian.A
        assert describe_holiday_override(date(2025, 6, 15), fathers_day).custodian == Custodian.B
    
    def test_disabled_rule_has_no_override(self):
        rule = HolidayRule(name="Columbus Day", rule=HolidayRuleKind.ALTERNATE, enabled=False)
        assert describe_holiday_override(date(2024, 10, 14), rule) is None


class TestDefaultHolidays:
    """Test the wizard's default holiday set."""
    
    def test_default_set(self):
        holidays = default_holidays()
        names = [h.name for h in holidays]
        
        assert len(holidays) == 17
        assert names[0] == "New Year's Day"
        assert names[-1] == "Summer Vacation"
        assert len(set(names)) == len(names)
    
    def test_only_columbus_and_veterans_day_disabled(self):
        disabled = [h.name for h in default_holidays() if not h.enabled]
        assert disabled == ["Columbus Day", "Veterans Day"]
    
    def test_find_holiday_ignores_case(self):
        holiday = find_holiday(default_holidays(), "  christmas eve ")
        assert holiday.rule == HolidayRuleKind.SPLIT
        assert find_holiday(default_holidays(), "Arbor Day") is None


class TestCourtSummary:
    """Test readable rule descriptions."""
    
    def test_describe_rule(self):
        assert describe_rule(HolidayRuleKind.ALTERNATE) == "Alternating years (Parent A - Even years)"
        assert describe_rule("split") == "Split between parents"
        assert describe_rule(HolidayRuleKind.FIXED_B) == "Always Parent B"
    
    def test_summary_skips_disabled_rules(self):
        summary = summarize_holiday_rules(default_holidays())
        names = [entry["name"] for entry in summary]
        
        assert len(summary) == 15
        assert "Veterans Day" not in names
        assert summary[12] == {
            "name": "Father's Day",
            "rule": "fixed-b",
            "description": "Always Parent B",
        }
