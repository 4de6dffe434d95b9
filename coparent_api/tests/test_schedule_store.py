# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for the MongoDB-backed schedule store.
"""

import pytest
from datetime import date, datetime
from unittest.mock import MagicMock

from bson import ObjectId
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from coparent_api.middleware.error_handler import (
    ConflictException,
    PersistenceError,
    ValidationException,
)
from coparent_api.models.entities import ChangeRequest, Profile, ScheduleConfig
from coparent_api.models.enums import Custodian, PatternId, RequestStatus, RequestType
from coparent_api.services.mongodb import (
    PROFILES_COLLECTION,
    REQUESTS_COLLECTION,
    SCHEDULES_COLLECTION,
)
from coparent_api.services.schedule_store import ScheduleStore

REQUEST_ID = "65a1b2c3d4e5f60718293a4b"


@pytest.fixture
def mongodb():
    return MagicMock()


@pytest.fixture
def store(mongodb):
    return ScheduleStore(mongodb)


def schedule_document(**config_overrides):
    config = {
        "pattern": "2-2-3",
        "customPattern": None,
        "startDate": "2024-01-01",
        "startingParent": "A",
        "exchangeTime": "6:00 PM",
        "exchangeLocation": "Lincoln Elementary",
        "alternateLocation": "",
        "holidays": [],
    }
    config.update(config_overrides)
    return {
        "id": "65a1b2c3d4e5f60718293a00",
        "parent_a_id": "profile-alex",
        "parent_b_id": "profile-blake",
        "config": config,
        "created_at": datetime(2024, 1, 1),
        "updated_at": datetime(2024, 1, 1),
    }


def request_document(status="pending"):
    return {
        "id": REQUEST_ID,
        "request_type": "swap",
        "original_date": "2024-01-01",
        "proposed_date": "2024-01-08",
        "reason": None,
        "status": status,
        "requester_id": "profile-alex",
        "recipient_id": "profile-blake",
        "created_at": datetime(2024, 1, 1, 9),
        "updated_at": datetime(2024, 1, 1, 9),
    }


class TestProfiles:
    """Test profile reads."""
    
    def test_get_profile(self, store, mongodb):
        mongodb.find_one.return_value = {
            "id": "profile-alex",
            "full_name": "Alex Rivera",
            "co_parent_id": "profile-blake",
        }
        
        profile = store.get_profile("profile-alex")
        
        mongodb.find_one.assert_called_once_with(PROFILES_COLLECTION, {"_id": "profile-alex"})
        assert profile.full_name == "Alex Rivera"
        assert profile.is_linked()
    
    def test_missing_profile(self, store, mongodb):
        mongodb.find_one.return_value = None
        assert store.get_profile("profile-nobody") is None
    
    def test_driver_error_becomes_persistence_error(self, store, mongodb):
        mongodb.find_one.side_effect = ServerSelectionTimeoutError("no servers")
        
        with pytest.raises(PersistenceError) as exc_info:
            store.get_profile("profile-alex")
        
        assert exc_info.value.status_code == 503
        assert exc_info.value.retryable is True


class TestSchedules:
    """Test schedule load and save."""
    
    def test_load_newest_schedule_for_either_parent(self, store, mongodb):
        mongodb.find_one.return_value = schedule_document()
        
        stored = store.load_schedule("profile-blake")
        
        mongodb.find_one.assert_called_once_with(
            SCHEDULES_COLLECTION,
            {"$or": [{"parent_a_id": "profile-blake"}, {"parent_b_id": "profile-blake"}]},
            sort=[("created_at", -1)]
        )
        assert stored.parent_a_id == "profile-alex"
        assert stored.config.pattern == PatternId.TWO_TWO_THREE
        assert stored.config.start_date == date(2024, 1, 1)
    
    def test_load_custom_pattern_from_stored_digits(self, store, mongodb):
        mongodb.find_one.return_value = schedule_document(pattern="custom", customPattern=[0, 0, 1])
        
        stored = store.load_schedule("profile-alex")
        
        assert stored.config.custom_pattern == [Custodian.A, Custodian.A, Custodian.B]
    
    def test_unknown_stored_pattern_falls_back_to_default(self, store, mongodb):
        mongodb.find_one.return_value = schedule_document(pattern="week-on-week-off-v2")
        
        stored = store.load_schedule("profile-alex")
        
        assert stored.config.pattern == PatternId.ALTERNATING_WEEKS
        assert stored.config.exchange_location == "Lincoln Elementary"
    
    def test_no_schedule(self, store, mongodb):
        mongodb.find_one.return_value = None
        assert store.load_schedule("profile-alex") is None
    
    def test_first_save_inserts_for_both_parents(self, store, mongodb, parent_a, alternating_config):
        mongodb.find_one.return_value = None
        mongodb.insert.return_value = "65a1b2c3d4e5f60718293a01"
        
        stored = store.save_schedule(parent_a, alternating_config)
        
        collection, document = mongodb.insert.call_args[0]
        assert collection == SCHEDULES_COLLECTION
        assert document["parent_a_id"] == "profile-alex"
        assert document["parent_b_id"] == "profile-blake"
        assert document["config"]["startDate"] == "2024-01-01"
        assert document["config"]["pattern"] == "alternating-weeks"
        assert stored.id == "65a1b2c3d4e5f60718293a01"
    
    def test_save_replaces_existing_schedule(self, store, mongodb, parent_b, custom_config):
        mongodb.find_one.return_value = schedule_document()
        
        stored = store.save_schedule(parent_b, custom_config)
        
        mongodb.insert.assert_not_called()
        collection, doc_id, document = mongodb.replace.call_args[0]
        assert collection == SCHEDULES_COLLECTION
        assert doc_id == ObjectId("65a1b2c3d4e5f60718293a00")
        assert document["parent_a_id"] == "profile-alex"
        assert document["config"]["customPattern"] == [0, 0, 1]
        assert stored.id == "65a1b2c3d4e5f60718293a00"
    
    def test_save_keeps_original_creation_time(self, store, mongodb, parent_b, custom_config):
        mongodb.find_one.return_value = schedule_document()
        
        stored = store.save_schedule(parent_b, custom_config)
        
        document = mongodb.replace.call_args[0][2]
        assert document["created_at"] == datetime(2024, 1, 1)
        assert document["updated_at"] > datetime(2024, 1, 1)
        assert stored.created_at == datetime(2024, 1, 1)
    
    def test_save_unlinked_parent_owns_both_slots(self, store, mongodb, unlinked_parent, alternating_config):
        mongodb.find_one.return_value = None
        mongodb.insert.return_value = "65a1b2c3d4e5f60718293a02"
        
        stored = store.save_schedule(unlinked_parent, alternating_config)
        
        assert stored.parent_a_id == stored.parent_b_id == "profile-casey"
    
    def test_invalid_config_is_not_saved(self, store, mongodb, parent_a):
        config = ScheduleConfig(pattern=PatternId.CUSTOM, start_date=date(2024, 1, 1))
        
        with pytest.raises(ValidationException) as exc_info:
            store.save_schedule(parent_a, config)
        
        assert "Custom pattern requires at least one day" in exc_info.value.validation_errors
        mongodb.insert.assert_not_called()
        mongodb.replace.assert_not_called()


class TestChangeRequests:
    """Test change request persistence."""
    
    def test_insert_uses_object_id_and_native_timestamps(self, store, mongodb):
        change_request = ChangeRequest(
            id=REQUEST_ID,
            request_type=RequestType.SWAP,
            original_date=date(2024, 1, 1),
            requester_id="profile-alex",
            recipient_id="profile-blake"
        )
        
        store.insert_change_request(change_request)
        
        collection, document = mongodb.insert.call_args[0]
        assert collection == REQUESTS_COLLECTION
        assert document["_id"] == ObjectId(REQUEST_ID)
        assert "id" not in document
        assert document["original_date"] == "2024-01-01"
        assert document["status"] == "pending"
        assert isinstance(document["created_at"], datetime)
    
    def test_duplicate_request_id_is_a_conflict(self, store, mongodb):
        mongodb.insert.side_effect = DuplicateKeyError("E11000 duplicate key")
        change_request = ChangeRequest(
            id=REQUEST_ID,
            request_type=RequestType.SWAP,
            original_date=date(2024, 1, 1),
            requester_id="profile-alex",
            recipient_id="profile-blake"
        )
        
        with pytest.raises(ConflictException) as exc_info:
            store.insert_change_request(change_request)
        
        assert exc_info.value.status_code == 409
        assert not isinstance(exc_info.value, PersistenceError)
    
    def test_get_change_request(self, store, mongodb):
        mongodb.find_one.return_value = request_document()
        
        change_request = store.get_change_request(REQUEST_ID)
        
        mongodb.find_one.assert_called_once_with(REQUESTS_COLLECTION, {"_id": ObjectId(REQUEST_ID)})
        assert change_request.id == REQUEST_ID
        assert change_request.proposed_date == date(2024, 1, 8)
    
    def test_malformed_id_is_missing(self, store, mongodb):
        assert store.get_change_request("not-an-object-id") is None
        assert store.resolve_change_request("not-an-object-id", "profile-blake", RequestStatus.ACCEPTED) is None
        mongodb.find_one.assert_not_called()
        mongodb.find_one_and_update.assert_not_called()
    
    def test_resolve_is_conditional_on_pending_and_recipient(self, store, mongodb):
        mongodb.find_one_and_update.return_value = request_document("accepted")
        
        updated = store.resolve_change_request(REQUEST_ID, "profile-blake", RequestStatus.ACCEPTED)
        
        collection, query, updates = mongodb.find_one_and_update.call_args[0]
        assert collection == REQUESTS_COLLECTION
        assert query == {
            "_id": ObjectId(REQUEST_ID),
            "status": "pending",
            "recipient_id": "profile-blake",
        }
        assert updates["status"] == "accepted"
        assert isinstance(updates["updated_at"], datetime)
        assert updated.status == RequestStatus.ACCEPTED
    
    def test_resolve_precondition_failed(self, store, mongodb):
        mongodb.find_one_and_update.return_value = None
        
        assert store.resolve_change_request(REQUEST_ID, "profile-blake", RequestStatus.DECLINED) is None
    
    def test_list_change_requests(self, store, mongodb):
        mongodb.find_many.return_value = [request_document(), request_document("declined")]
        
        requests = store.list_change_requests("profile-alex")
        
        mongodb.find_many.assert_called_once_with(
            REQUESTS_COLLECTION,
            {"$or": [{"requester_id": "profile-alex"}, {"recipient_id": "profile-alex"}]}
        )
        assert [r.status for r in requests] == [RequestStatus.PENDING, RequestStatus.DECLINED]
