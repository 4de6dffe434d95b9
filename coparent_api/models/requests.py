# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request models for API endpoints.
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator
from .enums import RequestType, RequestStatus


class CreateChangeRequestRequest(BaseModel):
    """Request model for proposing a schedule change."""
    
    request_type: RequestType = Field(..., description="Kind of change")
    original_date: date = Field(..., description="Date the change applies to")
    proposed_date: Optional[date] = Field(None, description="Proposed replacement date")
    reason: Optional[str] = Field(None, max_length=1000, description="Reason for the change")
    recipient_id: Optional[str] = Field(None, description="Co-parent profile ID, defaults to the linked co-parent")
    
    @model_validator(mode='after')
    def drop_transfer_proposed_date(self):
        """Transfers hand a day over; any proposed date is discarded."""
        if self.request_type == RequestType.TRANSFER:
            self.proposed_date = None
        return self


class RespondChangeRequestRequest(BaseModel):
    """Request model for answering a schedule change request."""
    
    decision: RequestStatus = Field(..., description="accepted or declined")
    
    @field_validator('decision')
    @classmethod
    def validate_decision(cls, v):
        if v == RequestStatus.PENDING:
            raise ValueError('Decision must be accepted or declined')
        return v


class ChangeRequestPath(BaseModel):
    """Path parameters for a single change request."""
    
    request_id: str = Field(..., description="Change request ID")


class HolidayPath(BaseModel):
    """Path parameters for a single holiday rule."""
    
    name: str = Field(..., description="Holiday name")


class CalendarQuery(BaseModel):
    """Query parameters for the month grid."""
    
    year: int = Field(..., ge=1900, le=2200, description="Calendar year")
    month: int = Field(..., ge=1, le=12, description="Calendar month")


class HolidayQuery(BaseModel):
    """Query parameters for holiday override lookup."""
    
    day: date = Field(..., description="Date the holiday falls on")


class ExportQuery(BaseModel):
    """Query parameters for the iCalendar export."""
    
    months: int = Field(default=12, ge=1, le=36, description="Months ahead to export")
    parent_a: str = Field(default="Parent A", max_length=100, description="Display name for parent A")
    parent_b: str = Field(default="Parent B", max_length=100, description="Display name for parent B")


class ReminderQuery(BaseModel):
    """Query parameters for an exchange reminder."""
    
    after: Optional[date] = Field(None, description="Look for the next exchange after this date, defaults to today")
