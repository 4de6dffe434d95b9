# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Change request workflow orchestration.

Creates and answers schedule change requests against the schedule store and
publishes the matching notifications. Persistence is the commit point: a
notification that cannot be delivered is logged and never undoes a write.
"""

import logging
from datetime import date
from typing import Dict, List, Optional

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from pydantic import ValidationError

from ..domain import change_requests as rules
from ..domain.notifications import (
    NotificationMessage,
    build_exchange_reminder_notification,
    build_schedule_change_notification,
    build_schedule_response_notification,
)
from ..domain.resolver import next_exchange
from ..middleware.error_handler import (
    AlreadyResolvedError,
    CustomException,
    NotAuthorizedError,
    NotFoundException,
    NotLinkedError,
    ValidationException,
)
from ..models.entities import ChangeRequest
from ..models.enums import RequestStatus, RequestType

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class ChangeRequestWorkflow:
    """Create and respond to schedule change requests."""
    
    def __init__(self, store, notifier):
        """
        Args:
            store: Persistence gateway (ScheduleStore or compatible)
            notifier: Notification gateway exposing ``deliver(message)``
        """
        self.store = store
        self.notifier = notifier
    
    def _notify(self, message: NotificationMessage) -> bool:
        """Fire-and-forget delivery. Returns whether the gateway took it."""
        try:
            self.notifier.deliver(message)
            return True
        except CustomException as e:
            logger.warning(
                "Notification not delivered",
                extra={"extra_fields": {
                    "notification_type": message.type.value,
                    "recipient_profile_id": message.recipient_profile_id,
                    "related_id": message.related_id,
                    "error": e.message
                }}
            )
            return False
    
    def _display_name(self, profile_id: str) -> Optional[str]:
        """Best-effort display name for notification texts."""
        try:
            profile = self.store.get_profile(profile_id)
        except CustomException as e:
            logger.warning(f"Could not load profile {profile_id} for display name: {e.message}")
            return None
        return profile.full_name if profile else None
    
    def create(
        self,
        requester_id: str,
        recipient_id: Optional[str],
        request_type: RequestType,
        original_date: date,
        proposed_date: Optional[date] = None,
        reason: Optional[str] = None
    ) -> ChangeRequest:
        """
        Propose a deviation from the computed schedule.
        
        Args:
            requester_id: Profile creating the request
            recipient_id: Linked co-parent, None to use the requester's link
            request_type: swap, transfer or modification
            original_date: Date the change applies to
            proposed_date: Optional replacement date
            reason: Optional free-text reason
            
        Returns:
            The persisted pending ChangeRequest
            
        Raises:
            NotLinkedError: requester has no co-parent, or recipient is someone else
            ValidationException: request fields are inconsistent
        """
        with tracer.start_as_current_span("workflow.create_change_request") as span:
            span.set_attributes({
                "request.type": RequestType(request_type).value,
                "request.requester_id": requester_id
            })
            
            requester = self.store.get_profile(requester_id)
            link = rules.validate_link(requester, recipient_id)
            if not link.is_valid:
                span.set_status(Status(StatusCode.ERROR, "not linked"))
                logger.info(
                    "Change request rejected: parents not linked",
                    extra={"extra_fields": {"requester_id": requester_id, "recipient_id": recipient_id}}
                )
                raise NotLinkedError(link.errors[0])
            
            try:
                change_request = rules.build_change_request(
                    requester_id=requester_id,
                    recipient_id=requester.co_parent_id,
                    request_type=request_type,
                    original_date=original_date,
                    proposed_date=proposed_date,
                    reason=reason
                )
            except ValidationError as e:
                raise ValidationException(
                    "Invalid change request",
                    [error["msg"] for error in e.errors()]
                )
            
            self.store.insert_change_request(change_request)
            span.set_attribute("request.id", change_request.id)
            
            logger.info(
                "Change request created",
                extra={"extra_fields": {
                    "request_id": change_request.id,
                    "request_type": change_request.request_type.value,
                    "requester_id": requester_id,
                    "recipient_id": change_request.recipient_id
                }}
            )
            
            self._notify(build_schedule_change_notification(change_request, requester.full_name))
            return change_request
    
    def respond(
        self,
        request_id: str,
        by_profile_id: str,
        decision: RequestStatus
    ) -> ChangeRequest:
        """
        Accept or decline a pending request.
        
        Exactly one of any number of concurrent responders succeeds; the store
        applies the status change only while the request is still pending.
        
        Raises:
            ValidationException: decision is not accepted or declined
            NotFoundException: no such request
            NotAuthorizedError: caller is not the recipient
            AlreadyResolvedError: request is no longer pending
        """
        decision = RequestStatus(decision)
        
        with tracer.start_as_current_span("workflow.respond_change_request") as span:
            span.set_attributes({
                "request.id": request_id,
                "request.decision": decision.value,
                "request.responder_id": by_profile_id
            })
            
            transition = rules.validate_status_transition(RequestStatus.PENDING, decision)
            if not transition.is_valid:
                raise ValidationException("Decision must be accepted or declined", transition.errors)
            
            updated = self.store.resolve_change_request(request_id, by_profile_id, decision)
            
            if updated is None:
                stored = self.store.get_change_request(request_id)
                reason = rules.diagnose_failed_response(stored, by_profile_id)
                span.set_status(Status(StatusCode.ERROR, reason))
                logger.info(
                    "Change request response rejected",
                    extra={"extra_fields": {
                        "request_id": request_id,
                        "responder_id": by_profile_id,
                        "reason": reason
                    }}
                )
                if reason == rules.NOT_FOUND:
                    raise NotFoundException(f"Schedule request {request_id} not found")
                if reason == rules.NOT_AUTHORIZED:
                    raise NotAuthorizedError()
                raise AlreadyResolvedError(request_id, stored.status.value)
            
            logger.info(
                f"Change request {decision.value}",
                extra={"extra_fields": {
                    "request_id": request_id,
                    "responder_id": by_profile_id,
                    "requester_id": updated.requester_id
                }}
            )
            
            self._notify(
                build_schedule_response_notification(updated, self._display_name(by_profile_id))
            )
            return updated
    
    def list_for_profile(self, profile_id: str) -> Dict[str, List[ChangeRequest]]:
        """
        Requests involving the profile, split the way the calendar shows them.
        
        Returns:
            Dict with ``all``, ``pending`` (awaiting this profile) and ``mine``
            (sent by this profile), each newest first
        """
        with tracer.start_as_current_span("workflow.list_change_requests"):
            requests = self.store.list_change_requests(profile_id)
            return {
                "all": rules.involving(requests, profile_id),
                "pending": rules.pending_for(requests, profile_id),
                "mine": rules.sent_by(requests, profile_id),
            }


def send_exchange_reminder(store, notifier, profile_id: str, after: date) -> Optional[NotificationMessage]:
    """
    Remind a parent of the next custody exchange after ``after``.
    
    Returns:
        The reminder that was sent, or None when there is no schedule or the
        schedule never changes hands
    """
    stored = store.load_schedule(profile_id)
    if stored is None:
        return None
    
    exchange_date = next_exchange(after, stored.config)
    if exchange_date is None:
        return None
    
    message = build_exchange_reminder_notification(
        profile_id,
        exchange_date,
        exchange_time=stored.config.exchange_time,
        location=stored.config.exchange_location,
    )
    notifier.deliver(message)
    logger.info(
        "Exchange reminder sent",
        extra={"extra_fields": {"profile_id": profile_id, "exchange_date": exchange_date.isoformat()}}
    )
    return message
