# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Models package - Pydantic schemas and data models for the custody schedule service.
"""

# Base models
from .base import BaseEntity, generate_object_id

# Enumerations
from .enums import (
    Custodian,
    PatternId,
    HolidayRuleKind,
    RequestType,
    RequestStatus,
    NotificationType
)

# Core entities
from .entities import (
    HolidayRule,
    ScheduleConfig,
    Profile,
    ChangeRequest
)

# Request models
from .requests import (
    CreateChangeRequestRequest,
    RespondChangeRequestRequest,
    ChangeRequestPath,
    HolidayPath,
    CalendarQuery,
    HolidayQuery,
    ExportQuery
)

# Response models
from .responses import HalLink

__all__ = [
    # Base models
    "BaseEntity",
    "generate_object_id",
    
    # Enumerations
    "Custodian",
    "PatternId",
    "HolidayRuleKind",
    "RequestType",
    "RequestStatus",
    "NotificationType",
    
    # Core entities
    "HolidayRule",
    "ScheduleConfig",
    "Profile",
    "ChangeRequest",
    
    # Request models
    "CreateChangeRequestRequest",
    "RespondChangeRequestRequest",
    "ChangeRequestPath",
    "HolidayPath",
    "CalendarQuery",
    "HolidayQuery",
    "ExportQuery",
    
    # Response models
    "HalLink"
]
