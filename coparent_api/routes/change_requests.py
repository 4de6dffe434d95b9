# SPDX-License-Identifier: Apache-2.0

"""
Schedule change request endpoints.

This module implements listing, creation, detail view and the accept/decline
response for schedule change requests between linked co-parents.
"""

from flask import current_app, jsonify
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
import logging

from ..domain.change_requests import serialize_change_request
from ..middleware.error_handler import NotFoundException
from ..models.requests import (
    ChangeRequestPath,
    CreateChangeRequestRequest,
    RespondChangeRequestRequest,
)
from ..utils.request import get_profile_id

# Set up logging and tracing
logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# Create API blueprint
requests_tag = Tag(name="Schedule Requests", description="Schedule change request workflow")
change_requests_bp = APIBlueprint(
    'change_requests',
    __name__,
    url_prefix='/api/schedule-requests',
    abp_tags=[requests_tag]
)


def _format(change_request, viewer_id: str) -> dict:
    return current_app.hal_formatter.format_change_request(
        serialize_change_request(change_request), viewer_id
    )


@change_requests_bp.get('')
def list_change_requests():
    """
    List schedule change requests involving the caller.
    
    ``requests`` holds every request, ``pending`` those awaiting the caller's
    answer and ``mine`` those the caller sent. All newest first.
    """
    profile_id = get_profile_id()
    views = current_app.workflow.list_for_profile(profile_id)
    
    response = current_app.hal_formatter.format_change_request_collection(
        [serialize_change_request(r) for r in views["all"]],
        profile_id,
        extra={"pending_count": len(views["pending"])}
    )
    response["_embedded"]["pending"] = [_format(r, profile_id) for r in views["pending"]]
    response["_embedded"]["mine"] = [_format(r, profile_id) for r in views["mine"]]
    return jsonify(response), 200


@change_requests_bp.post('')
def create_change_request(body: CreateChangeRequestRequest):
    """
    Ask the linked co-parent for a schedule change.
    
    The request is stored as pending and the co-parent is notified.
    """
    profile_id = get_profile_id()
    
    with tracer.start_as_current_span("schedule_request.create") as span:
        span.set_attributes({
            "profile.id": profile_id,
            "request.type": body.request_type.value
        })
        change_request = current_app.workflow.create(
            requester_id=profile_id,
            recipient_id=body.recipient_id,
            request_type=body.request_type,
            original_date=body.original_date,
            proposed_date=body.proposed_date,
            reason=body.reason
        )
    
    return jsonify(_format(change_request, profile_id)), 201


@change_requests_bp.get('/<request_id>')
def get_change_request(path: ChangeRequestPath):
    """Get one change request the caller is a party to."""
    profile_id = get_profile_id()
    change_request = current_app.schedule_store.get_change_request(path.request_id)
    
    # Requests between other parents are reported as missing
    if change_request is None or profile_id not in (
        change_request.requester_id, change_request.recipient_id
    ):
        raise NotFoundException(f"Schedule request {path.request_id} not found")
    
    return jsonify(_format(change_request, profile_id)), 200


@change_requests_bp.post('/<request_id>/respond')
def respond_to_change_request(path: ChangeRequestPath, body: RespondChangeRequestRequest):
    """
    Accept or decline a pending change request.
    
    Only the recipient may respond, and only once.
    """
    profile_id = get_profile_id()
    
    with tracer.start_as_current_span("schedule_request.respond") as span:
        span.set_attributes({
            "profile.id": profile_id,
            "request.id": path.request_id,
            "request.decision": body.decision.value
        })
        change_request = current_app.workflow.respond(
            path.request_id, profile_id, body.decision
        )
    
    return jsonify(_format(change_request, profile_id)), 200
