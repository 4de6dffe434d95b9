# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Holiday rules and their per-date overrides.

Overrides are descriptive only. They are shown next to the calendar and in the
court view but are never folded back into ``resolver.resolve``. A split
holiday has no single custodian and is reported as shared.
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

from ..models.entities import HolidayRule
from ..models.enums import Custodian, HolidayRuleKind

RULE_DESCRIPTIONS = {
    HolidayRuleKind.ALTERNATE: "Alternating years (Parent A - Even years)",
    HolidayRuleKind.SPLIT: "Split between parents",
    HolidayRuleKind.FIXED_A: "Always Parent A",
    HolidayRuleKind.FIXED_B: "Always Parent B",
}

# (name, rule, enabled) in wizard order
_DEFAULT_HOLIDAYS = (
    ("New Year's Day", HolidayRuleKind.ALTERNATE, True),
    ("Martin Luther King Jr. Day", HolidayRuleKind.ALTERNATE, True),
    ("Presidents' Day", HolidayRuleKind.ALTERNATE, True),
    ("Easter", HolidayRuleKind.ALTERNATE, True),
    ("Memorial Day", HolidayRuleKind.ALTERNATE, True),
    ("Independence Day", HolidayRuleKind.ALTERNATE, True),
    ("Labor Day", HolidayRuleKind.ALTERNATE, True),
    ("Columbus Day", HolidayRuleKind.ALTERNATE, False),
    ("Veterans Day", HolidayRuleKind.ALTERNATE, False),
    ("Thanksgiving", HolidayRuleKind.ALTERNATE, True),
    ("Christmas Eve", HolidayRuleKind.SPLIT, True),
    ("Christmas Day", HolidayRuleKind.SPLIT, True),
    ("Children's Birthdays", HolidayRuleKind.SPLIT, True),
    ("Mother's Day", HolidayRuleKind.FIXED_A, True),
    ("Father's Day", HolidayRuleKind.FIXED_B, True),
    ("Spring Break", HolidayRuleKind.SPLIT, True),
    ("Summer Vacation", HolidayRuleKind.SPLIT, True),
)


@dataclass(frozen=True)
class HolidayOverride:
    """What a holiday rule says about one particular date."""
    holiday: str
    rule: HolidayRuleKind
    custodian: Optional[Custodian]
    shared: bool
    description: str


def default_holidays() -> List[HolidayRule]:
    """Holiday rules offered by the setup wizard, in display order."""
    return [
        HolidayRule(name=name, rule=rule, enabled=enabled)
        for name, rule, enabled in _DEFAULT_HOLIDAYS
    ]


def describe_rule(rule: HolidayRuleKind) -> str:
    return RULE_DESCRIPTIONS[HolidayRuleKind(rule)]


def describe_holiday_override(day: date, rule: HolidayRule) -> Optional[HolidayOverride]:
    """
    Describe who has custody on a holiday falling on ``day``.
    
    Args:
        day: Date the holiday is observed
        rule: The family's rule for that holiday
        
    Returns:
        HolidayOverride, or None when the rule is disabled
    """
    if not rule.enabled:
        return None
    
    kind = HolidayRuleKind(rule.rule)
    
    if kind == HolidayRuleKind.SPLIT:
        return HolidayOverride(
            holiday=rule.name,
            rule=kind,
            custodian=None,
            shared=True,
            description=f"{rule.name} is split between Parent A and Parent B",
        )
    
    if kind == HolidayRuleKind.ALTERNATE:
        custodian = Custodian.A if day.year % 2 == 0 else Custodian.B
        parity = "even" if day.year % 2 == 0 else "odd"
        description = f"Parent {custodian.value} has {rule.name} in {parity} years ({day.year})"
    else:
        custodian = Custodian.A if kind == HolidayRuleKind.FIXED_A else Custodian.B
        description = f"Parent {custodian.value} always has {rule.name}"
    
    return HolidayOverride(
        holiday=rule.name,
        rule=kind,
        custodian=custodian,
        shared=False,
        description=description,
    )


def find_holiday(holidays: List[HolidayRule], name: str) -> Optional[HolidayRule]:
    """Case-insensitive lookup of a holiday rule by name."""
    wanted = name.strip().casefold()
    for holiday in holidays:
        if holiday.name.casefold() == wanted:
            return holiday
    return None


def summarize_holiday_rules(holidays: List[HolidayRule]) -> List[Dict[str, str]]:
    """
    Court-view listing of the enabled holiday rules.
    
    Returns:
        List of dicts with the holiday name, rule id and readable rule text
    """
    return [
        {
            "name": holiday.name,
            "rule": HolidayRuleKind(holiday.rule).value,
            "description": describe_rule(holiday.rule),
        }
        for holiday in holidays
        if holiday.enabled
    ]
