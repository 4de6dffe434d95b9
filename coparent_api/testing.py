# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
In-memory doubles for the schedule store and notification gateway.

They implement the same methods as ScheduleStore and AMQPService so the
workflow and routes can run without MongoDB or a broker.
"""

import threading
from datetime import datetime
from typing import Dict, List, Optional

from .domain.schedule import validate_schedule_config
from .domain.notifications import NotificationMessage
from .middleware.error_handler import NotificationDeliveryError, ValidationException
from .models.entities import ChangeRequest, Profile, ScheduleConfig
from .models.enums import RequestStatus
from .models.base import generate_object_id
from .services.schedule_store import StoredSchedule


class InMemoryScheduleStore:
    """Dictionary-backed store with a locked compare-and-swap for responses."""
    
    def __init__(self, profiles: Optional[List[Profile]] = None):
        self._lock = threading.Lock()
        self.profiles: Dict[str, Profile] = {p.id: p for p in profiles or []}
        self.schedules: List[StoredSchedule] = []
        self.requests: Dict[str, ChangeRequest] = {}
        self.resolve_calls = 0
    
    def add_profile(self, profile: Profile) -> None:
        self.profiles[profile.id] = profile
    
    def get_profile(self, profile_id: str) -> Optional[Profile]:
        return self.profiles.get(profile_id)
    
    def load_schedule(self, profile_id: str) -> Optional[StoredSchedule]:
        for stored in reversed(self.schedules):
            if profile_id in (stored.parent_a_id, stored.parent_b_id):
                return stored
        return None
    
    def save_schedule(self, profile: Profile, config: ScheduleConfig) -> StoredSchedule:
        validation = validate_schedule_config(config)
        if not validation.is_valid:
            raise ValidationException("Invalid schedule configuration", validation.errors)
        
        existing = self.load_schedule(profile.id)
        if existing is not None:
            stored = StoredSchedule(
                existing.id, existing.parent_a_id, existing.parent_b_id, config, existing.created_at
            )
            self.schedules.remove(existing)
        else:
            stored = StoredSchedule(
                generate_object_id(),
                profile.id,
                profile.co_parent_id or profile.id,
                config,
                datetime.utcnow()
            )
        self.schedules.append(stored)
        return stored
    
    def insert_change_request(self, change_request: ChangeRequest) -> ChangeRequest:
        with self._lock:
            self.requests[change_request.id] = change_request.model_copy()
        return change_request
    
    def get_change_request(self, request_id: str) -> Optional[ChangeRequest]:
        with self._lock:
            stored = self.requests.get(request_id)
            return stored.model_copy() if stored else None
    
    def resolve_change_request(
        self,
        request_id: str,
        by_profile_id: str,
        decision: RequestStatus
    ) -> Optional[ChangeRequest]:
        with self._lock:
            self.resolve_calls += 1
            stored = self.requests.get(request_id)
            if (
                stored is None
                or stored.status != RequestStatus.PENDING
                or stored.recipient_id != by_profile_id
            ):
                return None
            updated = stored.model_copy(update={
                "status": decision,
                "updated_at": datetime.utcnow()
            })
            self.requests[request_id] = updated
            return updated.model_copy()
    
    def list_change_requests(self, profile_id: str) -> List[ChangeRequest]:
        with self._lock:
            return [
                r.model_copy() for r in self.requests.values()
                if profile_id in (r.requester_id, r.recipient_id)
            ]


class RecordingNotifier:
    """Notification gateway that records messages, optionally failing."""
    
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[NotificationMessage] = []
        self._lock = threading.Lock()
    
    def deliver(self, message: NotificationMessage) -> None:
        if self.fail:
            raise NotificationDeliveryError("broker unavailable")
        with self._lock:
            self.sent.append(message)
    
    def health_check(self) -> bool:
        return not self.fail
