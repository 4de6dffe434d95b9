# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Notification message construction.

Builders here produce the messages published to the notification gateway when
a change request is created or answered and when an exchange is coming up.
They only format text; delivery lives in ``services.amqp``.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from ..models.entities import ChangeRequest
from ..models.enums import NotificationType, RequestStatus

CALENDAR_ACTION_URL = "/dashboard/calendar"
DEFAULT_SENDER_NAME = "Your co-parent"


@dataclass(frozen=True)
class NotificationMessage:
    """A single alert addressed to one profile."""
    type: NotificationType
    recipient_profile_id: str
    title: str
    message: str
    sender_name: Optional[str] = None
    action_url: Optional[str] = None
    related_id: Optional[str] = None
    
    def to_payload(self) -> Dict[str, Any]:
        """Wire format understood by the notification gateway (camelCase)."""
        payload = {
            "type": self.type.value,
            "recipientProfileId": self.recipient_profile_id,
            "title": self.title,
            "message": self.message,
        }
        if self.sender_name is not None:
            payload["senderName"] = self.sender_name
        if self.action_url is not None:
            payload["actionUrl"] = self.action_url
        if self.related_id is not None:
            payload["relatedId"] = self.related_id
        return payload


def format_display_date(value: date) -> str:
    """Format a date like ``Jan 1, 2024``."""
    return f"{value.strftime('%b')} {value.day}, {value.year}"


def build_schedule_change_notification(
    change_request: ChangeRequest,
    sender_name: Optional[str] = None
) -> NotificationMessage:
    """
    Alert the recipient that a change has been requested.
    
    Args:
        change_request: The newly created request
        sender_name: Display name of the requester, if known
        
    Returns:
        NotificationMessage addressed to the request's recipient
    """
    sender = sender_name or DEFAULT_SENDER_NAME
    original = format_display_date(change_request.original_date)
    
    if change_request.proposed_date:
        proposed = format_display_date(change_request.proposed_date)
        text = f"{sender} has requested to swap {original} for {proposed}."
    else:
        text = f"{sender} has requested to change the schedule for {original}."
    
    return NotificationMessage(
        type=NotificationType.SCHEDULE_CHANGE,
        recipient_profile_id=change_request.recipient_id,
        title="Schedule Change Request",
        message=text,
        sender_name=sender,
        action_url=CALENDAR_ACTION_URL,
        related_id=change_request.id,
    )


def build_schedule_response_notification(
    change_request: ChangeRequest,
    responder_name: Optional[str] = None
) -> NotificationMessage:
    """
    Tell the requester how their request was answered.
    
    Args:
        change_request: The request after the status change
        responder_name: Display name of the recipient, if known
        
    Returns:
        NotificationMessage addressed to the request's requester
    """
    if not change_request.status.is_terminal:
        raise ValueError("Cannot announce a response to a pending request")
    
    responder = responder_name or DEFAULT_SENDER_NAME
    accepted = change_request.status == RequestStatus.ACCEPTED
    verb = "accepted" if accepted else "declined"
    original = format_display_date(change_request.original_date)
    
    return NotificationMessage(
        type=NotificationType.SCHEDULE_RESPONSE,
        recipient_profile_id=change_request.requester_id,
        title=f"Schedule Request {'Accepted' if accepted else 'Declined'}",
        message=f"{responder} has {verb} your schedule change request for {original}.",
        sender_name=responder,
        action_url=CALENDAR_ACTION_URL,
        related_id=change_request.id,
    )


def build_exchange_reminder_notification(
    recipient_profile_id: str,
    exchange_date: date,
    exchange_time: Optional[str] = None,
    location: Optional[str] = None
) -> NotificationMessage:
    """Remind a parent of an upcoming custody exchange."""
    text = f"You have a custody exchange coming up on {format_display_date(exchange_date)}"
    if exchange_time:
        text += f" at {exchange_time}"
    if location:
        text += f" at {location}"
    
    return NotificationMessage(
        type=NotificationType.EXCHANGE_REMINDER,
        recipient_profile_id=recipient_profile_id,
        title="Upcoming Custody Exchange",
        message=f"{text}.",
        action_url=CALENDAR_ACTION_URL,
    )
