# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Save-time validation of ScheduleConfig values.

The resolver tolerates malformed configs by falling back to the default
pattern; these checks keep such configs from being stored in the first place.
"""

from dataclasses import dataclass
from typing import List

from ..models.entities import ScheduleConfig
from ..models.enums import PatternId
from .patterns import is_known_pattern


@dataclass
class ValidationResult:
    """Result of schedule config validation."""
    is_valid: bool
    errors: List[str]
    warnings: List[str] = None
    
    def __post_init__(self):
        if self.warnings is None:
            self.warnings = []


def validate_schedule_config(config: ScheduleConfig) -> ValidationResult:
    """
    Validate a schedule config before it is persisted.
    
    Args:
        config: Candidate schedule config
        
    Returns:
        ValidationResult with validation status and errors
    """
    errors = []
    warnings = []
    
    if not is_known_pattern(config.pattern):
        errors.append(f"Unknown pattern: {config.pattern}")
    
    if config.pattern == PatternId.CUSTOM:
        if not config.custom_pattern:
            errors.append("Custom pattern requires at least one day")
    elif config.custom_pattern:
        errors.append("Custom pattern is only allowed with the custom pattern id")
    
    seen = set()
    for holiday in config.holidays:
        key = holiday.name.casefold()
        if key in seen:
            errors.append(f"Duplicate holiday: {holiday.name}")
        seen.add(key)
    
    if not config.exchange_location:
        warnings.append("No exchange location set")
    
    return ValidationResult(
        is_valid=len(errors) == 0,
        errors=errors,
        warnings=warnings
    )
