# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Enumeration types for the custody schedule service.
"""

from enum import Enum


class Custodian(str, Enum):
    """Parent holding custody on a given day."""
    A = "A"
    B = "B"

    def flip(self) -> "Custodian":
        """Return the other parent."""
        return Custodian.B if self is Custodian.A else Custodian.A


class PatternId(str, Enum):
    """Identifiers of the repeating custody patterns."""
    ALTERNATING_WEEKS = "alternating-weeks"
    TWO_TWO_THREE = "2-2-3"
    TWO_TWO_FIVE_FIVE = "2-2-5-5"
    THREE_FOUR_FOUR_THREE = "3-4-4-3"
    EVERY_OTHER_WEEKEND = "every-other-weekend"
    CUSTOM = "custom"


class HolidayRuleKind(str, Enum):
    """How custody is handled on a holiday."""
    ALTERNATE = "alternate"
    SPLIT = "split"
    FIXED_A = "fixed-a"
    FIXED_B = "fixed-b"


class RequestType(str, Enum):
    """Kinds of schedule change request."""
    SWAP = "swap"
    TRANSFER = "transfer"
    MODIFICATION = "modification"


class RequestStatus(str, Enum):
    """Schedule change request workflow status."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"

    @property
    def is_terminal(self) -> bool:
        return self is not RequestStatus.PENDING


class NotificationType(str, Enum):
    """Alert types understood by the notification gateway."""
    NEW_MESSAGE = "new_message"
    SCHEDULE_CHANGE = "schedule_change"
    SCHEDULE_RESPONSE = "schedule_response"
    DOCUMENT_UPLOAD = "document_upload"
    CHILD_UPDATE = "child_update"
    EXCHANGE_REMINDER = "exchange_reminder"
