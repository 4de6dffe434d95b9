# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Schedule change request rules.

This module contains the pure parts of the change request workflow: the
co-parent link precondition, construction of new requests, the status
transition table and the per-parent views of a request list. Persistence and
notification happen in ``services.workflow``.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from ..models.entities import ChangeRequest, Profile
from ..models.enums import RequestStatus, RequestType

# Failure reasons when a conditional response update matched nothing
NOT_FOUND = "not_found"
NOT_AUTHORIZED = "not_authorized"
ALREADY_RESOLVED = "already_resolved"

VALID_TRANSITIONS = {
    RequestStatus.PENDING: [RequestStatus.ACCEPTED, RequestStatus.DECLINED],
    RequestStatus.ACCEPTED: [],  # Terminal state
    RequestStatus.DECLINED: []  # Terminal state
}


@dataclass
class ValidationResult:
    """Result of change request validation."""
    is_valid: bool
    errors: List[str]


def validate_link(requester: Optional[Profile], recipient_id: Optional[str]) -> ValidationResult:
    """
    Check that a request goes to the requester's linked co-parent.
    
    Args:
        requester: Profile of the requesting parent, None if unknown
        recipient_id: Intended recipient, None to use the linked co-parent
        
    Returns:
        ValidationResult with validation status and errors
    """
    errors = []
    
    if requester is None or not requester.is_linked():
        errors.append("You must be connected with a co-parent to send requests")
    elif recipient_id is not None and recipient_id != requester.co_parent_id:
        errors.append("Requests can only be sent to your linked co-parent")
    
    return ValidationResult(is_valid=len(errors) == 0, errors=errors)


def build_change_request(
    requester_id: str,
    recipient_id: str,
    request_type: RequestType,
    original_date: date,
    proposed_date: Optional[date] = None,
    reason: Optional[str] = None
) -> ChangeRequest:
    """Create a new pending change request. Nothing is persisted here."""
    return ChangeRequest(
        request_type=request_type,
        original_date=original_date,
        proposed_date=proposed_date,
        reason=reason,
        status=RequestStatus.PENDING,
        requester_id=requester_id,
        recipient_id=recipient_id
    )


def validate_status_transition(
    current_status: RequestStatus,
    new_status: RequestStatus
) -> ValidationResult:
    """
    Validate change request status transition.
    
    Args:
        current_status: Current request status
        new_status: Desired new status
        
    Returns:
        ValidationResult with validation status and errors
    """
    errors = []
    
    if new_status not in VALID_TRANSITIONS.get(current_status, []):
        errors.append(
            f"Invalid status transition from {current_status.value} to {new_status.value}"
        )
    
    return ValidationResult(
        is_valid=len(errors) == 0,
        errors=errors
    )


def diagnose_failed_response(stored: Optional[ChangeRequest], by_profile_id: str) -> str:
    """
    Explain why a conditional response update did not apply.
    
    Args:
        stored: The request as re-read after the failed update, or None
        by_profile_id: Profile that attempted the response
        
    Returns:
        One of NOT_FOUND, NOT_AUTHORIZED or ALREADY_RESOLVED
    """
    if stored is None:
        return NOT_FOUND
    if stored.recipient_id != by_profile_id:
        return NOT_AUTHORIZED
    return ALREADY_RESOLVED


def _newest_first(requests: List[ChangeRequest]) -> List[ChangeRequest]:
    return sorted(requests, key=lambda r: r.created_at, reverse=True)


def involving(requests: List[ChangeRequest], profile_id: str) -> List[ChangeRequest]:
    """Requests where the profile is either party, newest first."""
    return _newest_first([
        r for r in requests
        if profile_id in (r.requester_id, r.recipient_id)
    ])


def pending_for(requests: List[ChangeRequest], profile_id: str) -> List[ChangeRequest]:
    """Requests awaiting this profile's answer, newest first."""
    return _newest_first([
        r for r in requests
        if r.recipient_id == profile_id and r.status == RequestStatus.PENDING
    ])


def sent_by(requests: List[ChangeRequest], profile_id: str) -> List[ChangeRequest]:
    """Requests this profile created, newest first."""
    return _newest_first([r for r in requests if r.requester_id == profile_id])


def serialize_change_request(change_request: ChangeRequest) -> Dict[str, Any]:
    """JSON representation of a change request (snake_case, ISO dates)."""
    return change_request.model_dump(mode="json", exclude={"schema_version"})
