# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for change request rules.
"""

from datetime import date, datetime, timedelta

from coparent_api.domain import change_requests as rules
from coparent_api.models.entities import ChangeRequest, Profile
from coparent_api.models.enums import RequestStatus, RequestType


def make_request(requester, recipient, status=RequestStatus.PENDING, age_minutes=0):
    created = datetime(2024, 1, 1, 12) - timedelta(minutes=age_minutes)
    return ChangeRequest(
        request_type=RequestType.SWAP,
        original_date=date(2024, 1, 1),
        requester_id=requester,
        recipient_id=recipient,
        status=status,
        created_at=created,
        updated_at=created
    )


class TestLinkValidation:
    """Test the co-parent link precondition."""
    
    def test_linked_parent_with_default_recipient(self, parent_a):
        assert rules.validate_link(parent_a, None).is_valid
    
    def test_linked_parent_with_matching_recipient(self, parent_a, parent_b):
        assert rules.validate_link(parent_a, parent_b.id).is_valid
    
    def test_unlinked_parent(self, unlinked_parent):
        result = rules.validate_link(unlinked_parent, "someone")
        
        assert not result.is_valid
        assert "connected with a co-parent" in result.errors[0]
    
    def test_unknown_requester(self):
        assert not rules.validate_link(None, "p2").is_valid
    
    def test_recipient_other_than_co_parent(self, parent_a):
        result = rules.validate_link(parent_a, "profile-stranger")
        
        assert not result.is_valid
        assert result.errors == ["Requests can only be sent to your linked co-parent"]


class TestStatusTransitions:
    """Test the request status machine."""
    
    def test_pending_can_be_accepted_or_declined(self):
        assert rules.validate_status_transition(RequestStatus.PENDING, RequestStatus.ACCEPTED).is_valid
        assert rules.validate_status_transition(RequestStatus.PENDING, RequestStatus.DECLINED).is_valid
    
    def test_terminal_states_are_final(self):
        for current in (RequestStatus.ACCEPTED, RequestStatus.DECLINED):
            for target in RequestStatus:
                assert not rules.validate_status_transition(current, target).is_valid
    
    def test_pending_to_pending_is_invalid(self):
        result = rules.validate_status_transition(RequestStatus.PENDING, RequestStatus.PENDING)
        assert result.errors == ["Invalid status transition from pending to pending"]


class TestDiagnoseFailedResponse:
    """Test why a conditional response update matched nothing."""
    
    def test_missing_request(self):
        assert rules.diagnose_failed_response(None, "p2") == rules.NOT_FOUND
    
    def test_wrong_responder(self):
        stored = make_request("p1", "p2")
        assert rules.diagnose_failed_response(stored, "p1") == rules.NOT_AUTHORIZED
    
    def test_already_answered(self):
        stored = make_request("p1", "p2", RequestStatus.ACCEPTED)
        assert rules.diagnose_failed_response(stored, "p2") == rules.ALREADY_RESOLVED


class TestRequestViews:
    """Test per-parent request listings."""
    
    def test_views_are_filtered_and_newest_first(self):
        old_pending = make_request("p1", "p2", age_minutes=30)
        new_pending = make_request("p1", "p2", age_minutes=5)
        answered = make_request("p1", "p2", RequestStatus.DECLINED, age_minutes=10)
        incoming = make_request("p2", "p1", age_minutes=1)
        unrelated = make_request("p3", "p4")
        requests = [old_pending, answered, incoming, new_pending, unrelated]
        
        assert rules.pending_for(requests, "p2") == [new_pending, old_pending]
        assert rules.sent_by(requests, "p1") == [new_pending, answered, old_pending]
        assert rules.involving(requests, "p1") == [incoming, new_pending, answered, old_pending]
    
    def test_build_change_request_is_pending(self):
        request = rules.build_change_request(
            "p1", "p2", RequestType.MODIFICATION, date(2024, 3, 1), reason="dentist"
        )
        
        assert request.status == RequestStatus.PENDING
        assert request.reason == "dentist"
        assert request.proposed_date is None
    
    def test_serialize_uses_iso_dates(self):
        data = rules.serialize_change_request(make_request("p1", "p2"))
        
        assert data["original_date"] == "2024-01-01"
        assert data["status"] == "pending"
        assert data["request_type"] == "swap"
        assert "schema_version" not in data
