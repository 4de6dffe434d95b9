# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Catalog of the built-in repeating custody patterns.

Every built-in pattern spans the canonical two-week cycle. The ``custom``
pseudo-entry carries no sequence of its own; the sequence comes from the
family's ScheduleConfig instead.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..models.enums import Custodian, PatternId

A = Custodian.A
B = Custodian.B

CYCLE_LENGTH = 14
CATALOG_VERSION = 1
DEFAULT_PATTERN_ID = PatternId.ALTERNATING_WEEKS


@dataclass(frozen=True)
class PatternDefinition:
    """A named, fixed-length repeating custody pattern."""
    id: PatternId
    display_name: str
    description: str
    sequence: Tuple[Custodian, ...]

    @property
    def cycle_length(self) -> int:
        return len(self.sequence)


PATTERN_CATALOG: Dict[PatternId, PatternDefinition] = {
    PatternId.ALTERNATING_WEEKS: PatternDefinition(
        id=PatternId.ALTERNATING_WEEKS,
        display_name="Alternating Weeks",
        description="Each parent has the children for one full week at a time",
        sequence=(A, A, A, A, A, A, A, B, B, B, B, B, B, B),
    ),
    PatternId.TWO_TWO_THREE: PatternDefinition(
        id=PatternId.TWO_TWO_THREE,
        display_name="2-2-3 Rotation",
        description="Parent A has 2 days, Parent B has 2 days, then the weekend rotates (3 days)",
        sequence=(A, A, B, B, A, A, A, B, B, A, A, B, B, B),
    ),
    PatternId.TWO_TWO_FIVE_FIVE: PatternDefinition(
        id=PatternId.TWO_TWO_FIVE_FIVE,
        display_name="2-2-5-5 Rotation",
        description="2 days with Parent A, 2 with Parent B, then 5 days alternating",
        sequence=(A, A, B, B, A, A, A, A, A, B, B, A, A, B),
    ),
    PatternId.THREE_FOUR_FOUR_THREE: PatternDefinition(
        id=PatternId.THREE_FOUR_FOUR_THREE,
        display_name="3-4-4-3 Rotation",
        description="3 days, then 4 days, alternating each week",
        sequence=(A, A, A, B, B, B, B, A, A, A, A, B, B, B),
    ),
    PatternId.EVERY_OTHER_WEEKEND: PatternDefinition(
        id=PatternId.EVERY_OTHER_WEEKEND,
        display_name="Every Other Weekend",
        description="Primary custody with one parent, alternating weekends with the other",
        sequence=(A, A, A, A, A, B, B, A, A, A, A, A, A, A),
    ),
}

CUSTOM_PATTERN_NAME = "Custom Pattern"
CUSTOM_PATTERN_DESCRIPTION = "Create your own unique custody pattern"


def get_pattern(pattern_id) -> Optional[PatternDefinition]:
    """
    Look up a built-in pattern by exact id.
    
    Args:
        pattern_id: PatternId or its string value
        
    Returns:
        PatternDefinition, or None for ``custom`` and unknown ids
    """
    try:
        key = PatternId(pattern_id)
    except ValueError:
        return None
    return PATTERN_CATALOG.get(key)


def default_pattern() -> PatternDefinition:
    """Pattern used whenever a configured pattern cannot be resolved."""
    return PATTERN_CATALOG[DEFAULT_PATTERN_ID]


def is_known_pattern(pattern_id) -> bool:
    """Check if the id names a catalog entry or the custom pseudo-entry."""
    try:
        key = PatternId(pattern_id)
    except ValueError:
        return False
    return key == PatternId.CUSTOM or key in PATTERN_CATALOG


def list_patterns() -> List[Dict[str, object]]:
    """
    Describe the catalog for pattern pickers, custom entry last.
    
    Returns:
        List of dicts with id, name, description and the visual A/B sequence
    """
    entries = [
        {
            "id": definition.id.value,
            "name": definition.display_name,
            "description": definition.description,
            "visual": [label.value for label in definition.sequence],
        }
        for definition in PATTERN_CATALOG.values()
    ]
    entries.append({
        "id": PatternId.CUSTOM.value,
        "name": CUSTOM_PATTERN_NAME,
        "description": CUSTOM_PATTERN_DESCRIPTION,
        "visual": ["?"] * CYCLE_LENGTH,
    })
    return entries
