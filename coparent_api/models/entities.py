# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Core entity models for the custody schedule service.
"""

from datetime import date, datetime
from typing import List, Optional
from pydantic import (
    BaseModel, Field, ConfigDict, field_validator, field_serializer, model_validator
)
from pydantic.alias_generators import to_camel
from .base import BaseEntity
from .enums import Custodian, PatternId, HolidayRuleKind, RequestType, RequestStatus


def _coerce_iso_date(v):
    """Accept date, datetime or ISO strings with a time part."""
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, str) and 'T' in v:
        return v.split('T')[0]
    return v


class HolidayRule(BaseModel):
    """How custody is handled on one named holiday."""
    
    model_config = ConfigDict(frozen=True)
    
    name: str = Field(..., min_length=1, max_length=100, description="Holiday name")
    rule: HolidayRuleKind = Field(..., description="Custody rule for the holiday")
    enabled: bool = Field(default=True, description="Whether the rule is in effect")
    
    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        """Validate holiday name."""
        if not v.strip():
            raise ValueError('Holiday name cannot be empty')
        return v.strip()


class ScheduleConfig(BaseModel):
    """
    A family's chosen custody schedule.
    
    Treated as an immutable value: edits replace the whole config. Structural
    invariants (custom pattern presence, unique holidays) are checked when the
    config is saved, see ``domain.schedule.validate_schedule_config``.
    """
    
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True
    )
    
    pattern: PatternId = Field(default=PatternId.ALTERNATING_WEEKS, description="Pattern identifier")
    custom_pattern: Optional[List[Custodian]] = Field(None, description="Custom sequence, custom pattern only")
    start_date: date = Field(..., description="Anchor date for pattern offsets")
    starting_parent: Custodian = Field(default=Custodian.A, description="Parent holding the first pattern slot")
    exchange_time: str = Field(default="6:00 PM", max_length=50, description="Exchange time")
    exchange_location: str = Field(default="", max_length=500, description="Exchange location")
    alternate_location: str = Field(default="", max_length=500, description="Alternate exchange location")
    holidays: List[HolidayRule] = Field(default_factory=list, description="Holiday rules")
    
    @field_validator('custom_pattern', mode='before')
    @classmethod
    def parse_custom_pattern(cls, v):
        """Accept 0/1 (stored form) or A/B labels."""
        if v is None:
            return v
        parsed = []
        for item in v:
            if item in (0, '0'):
                parsed.append(Custodian.A)
            elif item in (1, '1'):
                parsed.append(Custodian.B)
            else:
                parsed.append(item)
        return parsed
    
    @field_validator('start_date', mode='before')
    @classmethod
    def parse_start_date(cls, v):
        return _coerce_iso_date(v)
    
    @field_serializer('custom_pattern')
    def serialize_custom_pattern(self, v):
        if v is None:
            return None
        return [0 if c == Custodian.A else 1 for c in v]


class Profile(BaseModel):
    """A parent's profile as seen by the schedule service."""
    
    model_config = ConfigDict(populate_by_name=True)
    
    id: str = Field(..., description="Profile identifier")
    full_name: Optional[str] = Field(None, description="Display name")
    co_parent_id: Optional[str] = Field(None, description="Linked co-parent profile ID")
    
    def is_linked(self) -> bool:
        """Check if the profile is connected with a co-parent."""
        return bool(self.co_parent_id)


class ChangeRequest(BaseEntity):
    """A one-shot proposal to deviate from the computed schedule."""
    
    request_type: RequestType = Field(..., description="Kind of change")
    original_date: date = Field(..., description="Date the change applies to")
    proposed_date: Optional[date] = Field(None, description="Proposed replacement date")
    reason: Optional[str] = Field(None, max_length=1000, description="Free-text reason")
    status: RequestStatus = Field(default=RequestStatus.PENDING, description="Workflow status")
    requester_id: str = Field(..., description="Profile ID of the requesting parent")
    recipient_id: str = Field(..., description="Profile ID of the co-parent asked to respond")
    
    @field_validator('original_date', 'proposed_date', mode='before')
    @classmethod
    def parse_dates(cls, v):
        return _coerce_iso_date(v)
    
    @field_validator('reason')
    @classmethod
    def validate_reason(cls, v):
        """Normalize blank reasons to None."""
        if v is None:
            return v
        return v.strip() or None
    
    @model_validator(mode='after')
    def validate_parties(self):
        """Requester and recipient must be different profiles."""
        if self.requester_id == self.recipient_id:
            raise ValueError('Requester and recipient must be different profiles')
        return self
    
    def is_pending(self) -> bool:
        """Check if the request still awaits a response."""
        return self.status == RequestStatus.PENDING
    
    def can_respond(self, profile_id: str) -> bool:
        """Check if the profile may answer this request."""
        return self.is_pending() and profile_id == self.recipient_id
