# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for the pattern catalog.
"""

import pytest

from coparent_api.domain.patterns import (
    CYCLE_LENGTH,
    PATTERN_CATALOG,
    default_pattern,
    get_pattern,
    is_known_pattern,
    list_patterns,
)
from coparent_api.models.enums import Custodian, PatternId


class TestPatternCatalog:
    """Test the built-in pattern table."""
    
    def test_every_builtin_pattern_spans_two_weeks(self):
        """All catalog sequences use the canonical cycle length."""
        for definition in PATTERN_CATALOG.values():
            assert definition.cycle_length == CYCLE_LENGTH
            assert set(definition.sequence) <= {Custodian.A, Custodian.B}
    
    def test_alternating_weeks_is_default(self):
        """Alternating weeks is the fallback pattern."""
        assert default_pattern().id == PatternId.ALTERNATING_WEEKS
        assert default_pattern().sequence == tuple([Custodian.A] * 7 + [Custodian.B] * 7)
    
    def test_two_two_three_sequence(self):
        """2-2-3 matches its published rotation."""
        labels = "".join(c.value for c in get_pattern(PatternId.TWO_TWO_THREE).sequence)
        assert labels == "AABBAAABBAABBB"
    
    def test_every_other_weekend_gives_b_two_days(self):
        """Every other weekend is primary custody with one weekend off."""
        sequence = get_pattern("every-other-weekend").sequence
        assert sequence.count(Custodian.B) == 2
    
    @pytest.mark.parametrize("pattern_id", ["custom", "weekly", "", None])
    def test_get_pattern_has_no_entry(self, pattern_id):
        """Custom and unknown ids have no catalog sequence."""
        assert get_pattern(pattern_id) is None
    
    def test_is_known_pattern(self):
        """Custom is known even though it has no fixed sequence."""
        assert is_known_pattern("custom")
        assert is_known_pattern(PatternId.THREE_FOUR_FOUR_THREE)
        assert not is_known_pattern("4-3")
    
    def test_list_patterns_puts_custom_last(self):
        """The picker lists catalog entries first and custom last."""
        entries = list_patterns()
        
        assert len(entries) == len(PATTERN_CATALOG) + 1
        assert entries[-1]["id"] == "custom"
        assert entries[-1]["visual"] == ["?"] * CYCLE_LENGTH
        assert entries[0]["visual"][:2] == ["A", "A"]
