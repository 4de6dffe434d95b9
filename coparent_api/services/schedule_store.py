# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Schedule store: persistence gateway for schedules, change requests and profiles.

Wraps MongoDBService with the document mapping for each entity. Driver errors
surface as PersistenceError, duplicate keys as ConflictException, so callers
never see pymongo exceptions.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..domain.patterns import DEFAULT_PATTERN_ID, is_known_pattern
from ..domain.schedule import validate_schedule_config
from ..middleware.error_handler import ConflictException, PersistenceError, ValidationException
from ..models.entities import ChangeRequest, Profile, ScheduleConfig
from ..models.enums import RequestStatus
from .mongodb import (
    MongoDBService,
    PROFILES_COLLECTION,
    REQUESTS_COLLECTION,
    SCHEDULES_COLLECTION,
    to_object_id,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


@dataclass(frozen=True)
class StoredSchedule:
    """A persisted schedule and the two parents it belongs to."""
    id: str
    parent_a_id: str
    parent_b_id: str
    config: ScheduleConfig
    created_at: Optional[datetime] = None


class ScheduleStore:
    """Persistence gateway backed by MongoDB."""
    
    def __init__(self, mongodb: MongoDBService):
        self.mongodb = mongodb
    
    @contextmanager
    def _operation(self, name: str, **attributes):
        """Trace a store call and translate driver failures."""
        with tracer.start_as_current_span(f"schedule_store.{name}") as span:
            span.set_attributes({key: str(value) for key, value in attributes.items()})
            try:
                yield span
            except DuplicateKeyError as e:
                span.record_exception(e)
                logger.warning(
                    f"Schedule store write conflicted: {name}",
                    extra={"extra_fields": {"operation": name, "error": str(e), **attributes}}
                )
                raise ConflictException("A document with this identifier already exists") from e
            except PyMongoError as e:
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                logger.error(
                    f"Schedule store operation failed: {name}",
                    extra={"extra_fields": {"operation": name, "error": str(e), **attributes}},
                    exc_info=True
                )
                raise PersistenceError(f"Storage unavailable during {name}") from e
    
    # Profiles
    
    def get_profile(self, profile_id: str) -> Optional[Profile]:
        """Read a profile, None when it does not exist."""
        with self._operation("get_profile", profile_id=profile_id):
            document = self.mongodb.find_one(PROFILES_COLLECTION, {"_id": profile_id})
        if document is None:
            return None
        return Profile.model_validate(document)
    
    # Schedules
    
    def _to_stored_schedule(self, document: Dict[str, Any]) -> StoredSchedule:
        raw_config = dict(document.get("config") or {})
        if not is_known_pattern(raw_config.get("pattern", DEFAULT_PATTERN_ID.value)):
            logger.warning(
                "Stored schedule has an unknown pattern, using default pattern",
                extra={"extra_fields": {
                    "schedule_id": document["id"],
                    "pattern": raw_config.get("pattern")
                }}
            )
            raw_config["pattern"] = DEFAULT_PATTERN_ID.value
            raw_config.pop("customPattern", None)
        
        return StoredSchedule(
            id=document["id"],
            parent_a_id=document["parent_a_id"],
            parent_b_id=document["parent_b_id"],
            config=ScheduleConfig.model_validate(raw_config),
            created_at=document.get("created_at"),
        )
    
    def load_schedule(self, profile_id: str) -> Optional[StoredSchedule]:
        """
        Load the newest schedule where the profile is either parent.
        
        Args:
            profile_id: Profile of the viewing parent
            
        Returns:
            StoredSchedule, or None when the family has no schedule yet
        """
        query = {"$or": [{"parent_a_id": profile_id}, {"parent_b_id": profile_id}]}
        with self._operation("load_schedule", profile_id=profile_id):
            document = self.mongodb.find_one(
                SCHEDULES_COLLECTION, query, sort=[("created_at", -1)]
            )
        if document is None:
            return None
        return self._to_stored_schedule(document)
    
    def save_schedule(self, profile: Profile, config: ScheduleConfig) -> StoredSchedule:
        """
        Validate and store a schedule, replacing the family's existing one.
        
        Args:
            profile: Profile of the saving parent
            config: Complete new schedule config
            
        Returns:
            The stored schedule
            
        Raises:
            ValidationException: config violates a structural invariant
            PersistenceError: storage failure
        """
        validation = validate_schedule_config(config)
        if not validation.is_valid:
            raise ValidationException("Invalid schedule configuration", validation.errors)
        for warning in validation.warnings:
            logger.info(
                f"Schedule saved with warning: {warning}",
                extra={"extra_fields": {"profile_id": profile.id}}
            )
        
        existing = self.load_schedule(profile.id)
        now = datetime.utcnow()
        config_document = config.model_dump(mode="json", by_alias=True)
        
        with self._operation("save_schedule", profile_id=profile.id):
            if existing is not None:
                document = {
                    "parent_a_id": existing.parent_a_id,
                    "parent_b_id": existing.parent_b_id,
                    "config": config_document,
                    "created_at": existing.created_at or now,
                    "updated_at": now,
                }
                self.mongodb.replace(SCHEDULES_COLLECTION, to_object_id(existing.id), document)
                schedule_id = existing.id
                parent_a_id, parent_b_id = existing.parent_a_id, existing.parent_b_id
                created_at = document["created_at"]
            else:
                parent_a_id = profile.id
                parent_b_id = profile.co_parent_id or profile.id
                schedule_id = self.mongodb.insert(SCHEDULES_COLLECTION, {
                    "parent_a_id": parent_a_id,
                    "parent_b_id": parent_b_id,
                    "config": config_document,
                    "created_at": now,
                    "updated_at": now,
                })
                created_at = now
        
        logger.info(
            "Schedule saved",
            extra={"extra_fields": {
                "schedule_id": schedule_id,
                "profile_id": profile.id,
                "pattern": config.pattern.value
            }}
        )
        return StoredSchedule(schedule_id, parent_a_id, parent_b_id, config, created_at)
    
    # Change requests
    
    @staticmethod
    def _request_to_document(change_request: ChangeRequest) -> Dict[str, Any]:
        document = change_request.model_dump(mode="json", exclude={"id"})
        # Native datetimes keep sorting and TTL queries working
        document["created_at"] = change_request.created_at
        document["updated_at"] = change_request.updated_at
        document["_id"] = to_object_id(change_request.id)
        return document
    
    def insert_change_request(self, change_request: ChangeRequest) -> ChangeRequest:
        """Persist a new change request."""
        with self._operation("insert_change_request", request_id=change_request.id):
            self.mongodb.insert(REQUESTS_COLLECTION, self._request_to_document(change_request))
        return change_request
    
    def get_change_request(self, request_id: str) -> Optional[ChangeRequest]:
        """Read a change request, None when the id is unknown or malformed."""
        try:
            object_id = to_object_id(request_id)
        except ValueError:
            return None
        
        with self._operation("get_change_request", request_id=request_id):
            document = self.mongodb.find_one(REQUESTS_COLLECTION, {"_id": object_id})
        if document is None:
            return None
        return ChangeRequest.model_validate(document)
    
    def resolve_change_request(
        self,
        request_id: str,
        by_profile_id: str,
        decision: RequestStatus
    ) -> Optional[ChangeRequest]:
        """
        Move a pending request to a terminal status in one conditional write.
        
        The update only matches while the request is pending and addressed to
        ``by_profile_id``, so concurrent responders cannot both succeed.
        
        Returns:
            The updated request, or None when the precondition did not hold
        """
        try:
            object_id = to_object_id(request_id)
        except ValueError:
            return None
        
        query = {
            "_id": object_id,
            "status": RequestStatus.PENDING.value,
            "recipient_id": by_profile_id,
        }
        updates = {"status": decision.value, "updated_at": datetime.utcnow()}
        
        with self._operation("resolve_change_request", request_id=request_id, decision=decision.value):
            document = self.mongodb.find_one_and_update(REQUESTS_COLLECTION, query, updates)
        if document is None:
            return None
        return ChangeRequest.model_validate(document)
    
    def list_change_requests(self, profile_id: str) -> List[ChangeRequest]:
        """All requests where the profile is requester or recipient, newest first."""
        query = {"$or": [{"requester_id": profile_id}, {"recipient_id": profile_id}]}
        with self._operation("list_change_requests", profile_id=profile_id):
            documents = self.mongodb.find_many(REQUESTS_COLLECTION, query)
        return [ChangeRequest.model_validate(document) for document in documents]
