# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Change feed over MongoDB change streams.

Parents subscribe with their profile id and a callback. Insert, update and
replace events reach only the subscribers who are a party to the changed
document; delete events carry no document and reach every subscriber. The
feed resumes from the last seen token after a dropped stream and gives up with
ChangeFeedError once the reconnect policy is exhausted.
"""

import logging
import os
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence

from opentelemetry import trace
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

REQUEST_PARTY_FIELDS = ("requester_id", "recipient_id")
SCHEDULE_PARTY_FIELDS = ("parent_a_id", "parent_b_id")


class ChangeFeedError(Exception):
    """Raised when the change stream cannot be re-established."""
    pass


@dataclass(frozen=True)
class ChangeEvent:
    """One change to a watched collection."""
    operation: str
    document_id: str
    document: Optional[Dict[str, Any]] = None
    
    @property
    def is_delete(self) -> bool:
        return self.operation == "delete"


@dataclass
class ReconnectPolicy:
    """Exponential backoff between reconnect attempts."""
    max_retries: int = 5
    base_delay: float = 1.0
    max_delay: float = 30.0
    
    def delay_for(self, attempt: int) -> float:
        """Delay before reconnect ``attempt`` (1-based)."""
        return min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)
    
    @classmethod
    def from_env(cls) -> "ReconnectPolicy":
        return cls(
            max_retries=int(os.getenv('CHANGE_FEED_MAX_RETRIES', '5')),
            base_delay=float(os.getenv('CHANGE_FEED_RETRY_DELAY', '1.0')),
            max_delay=float(os.getenv('CHANGE_FEED_MAX_DELAY', '30.0'))
        )


@dataclass(frozen=True)
class Subscription:
    token: str
    profile_id: str
    callback: Callable[[ChangeEvent], None]


def to_change_event(change: Dict[str, Any]) -> ChangeEvent:
    """Map a raw change stream document to a ChangeEvent."""
    document = change.get("fullDocument")
    if document is not None:
        document = dict(document)
        if "_id" in document:
            document["id"] = str(document.pop("_id"))
    
    return ChangeEvent(
        operation=change["operationType"],
        document_id=str(change.get("documentKey", {}).get("_id")),
        document=document,
    )


class ChangeFeed:
    """Subscription fan-out for one watched collection."""
    
    def __init__(
        self,
        collection,
        party_fields: Sequence[str] = REQUEST_PARTY_FIELDS,
        policy: Optional[ReconnectPolicy] = None,
        max_await_time_ms: int = 1000,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.collection = collection
        self.party_fields = tuple(party_fields)
        self.policy = policy or ReconnectPolicy.from_env()
        self.max_await_time_ms = max_await_time_ms
        self._sleep = sleep
        self._subscriptions: Dict[str, Subscription] = {}
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.resume_token: Optional[Dict[str, Any]] = None
    
    # Subscriptions
    
    def subscribe(self, profile_id: str, callback: Callable[[ChangeEvent], None]) -> str:
        """Register a callback for changes relevant to ``profile_id``."""
        token = str(uuid.uuid4())
        with self._lock:
            self._subscriptions[token] = Subscription(token, profile_id, callback)
        logger.debug(
            "Change feed subscription added",
            extra={"extra_fields": {"profile_id": profile_id, "subscription": token}}
        )
        return token
    
    def unsubscribe(self, token: str) -> bool:
        """Remove a subscription. Returns False if it was not registered."""
        with self._lock:
            return self._subscriptions.pop(token, None) is not None
    
    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)
    
    def is_relevant(self, event: ChangeEvent, profile_id: str) -> bool:
        """Deletes go to everyone, other events only to the document's parties."""
        if event.is_delete:
            return True
        if event.document is None:
            # Update whose document was removed before the lookup ran
            return False
        return any(event.document.get(field) == profile_id for field in self.party_fields)
    
    def dispatch(self, event: ChangeEvent) -> int:
        """
        Deliver an event to every relevant subscriber.
        
        A failing callback is logged and does not stop delivery to the others.
        
        Returns:
            Number of callbacks invoked successfully
        """
        with self._lock:
            subscriptions = list(self._subscriptions.values())
        
        delivered = 0
        for subscription in subscriptions:
            if not self.is_relevant(event, subscription.profile_id):
                continue
            try:
                subscription.callback(event)
                delivered += 1
            except Exception as e:
                logger.error(
                    "Change feed subscriber failed",
                    extra={"extra_fields": {
                        "subscription": subscription.token,
                        "profile_id": subscription.profile_id,
                        "document_id": event.document_id,
                        "error": str(e)
                    }},
                    exc_info=True
                )
        return delivered
    
    # Stream handling
    
    def run_once(self) -> int:
        """
        Consume the change stream until it closes or the feed is stopped.
        
        Returns:
            Number of events processed
        """
        processed = 0
        options = {"full_document": "updateLookup", "max_await_time_ms": self.max_await_time_ms}
        if self.resume_token is not None:
            options["resume_after"] = self.resume_token
        
        with self.collection.watch(**options) as stream:
            logger.info(
                "Change stream opened",
                extra={"extra_fields": {
                    "collection": getattr(self.collection, "name", "unknown"),
                    "resumed": self.resume_token is not None
                }}
            )
            while stream.alive and not self._stop.is_set():
                change = stream.try_next()
                if change is None:
                    continue
                
                with tracer.start_as_current_span("change_feed.dispatch") as span:
                    event = to_change_event(change)
                    span.set_attributes({
                        "change.operation": event.operation,
                        "change.document_id": event.document_id
                    })
                    self.dispatch(event)
                
                self.resume_token = change["_id"]
                processed += 1
        
        return processed
    
    def run(self) -> None:
        """
        Consume the stream, reconnecting with backoff after failures.
        
        Raises:
            ChangeFeedError: when the reconnect policy is exhausted
        """
        attempt = 0
        while not self._stop.is_set():
            last_token = self.resume_token
            try:
                processed = self.run_once()
                if processed:
                    attempt = 0
                if self._stop.is_set():
                    break
                logger.info("Change stream closed, reopening")
                self._sleep(self.policy.base_delay)
            except PyMongoError as e:
                if self.resume_token != last_token:
                    # The stream delivered events before dropping
                    attempt = 0
                attempt += 1
                if attempt > self.policy.max_retries:
                    logger.error(
                        "Change stream reconnect attempts exhausted",
                        extra={"extra_fields": {"attempts": attempt - 1, "error": str(e)}}
                    )
                    raise ChangeFeedError(
                        f"Change stream unavailable after {self.policy.max_retries} retries: {e}"
                    ) from e
                
                delay = self.policy.delay_for(attempt)
                logger.warning(
                    "Change stream interrupted, reconnecting",
                    extra={"extra_fields": {
                        "attempt": attempt,
                        "retry_delay": delay,
                        "error": str(e)
                    }}
                )
                self._sleep(delay)
    
    def _run_in_thread(self) -> None:
        try:
            self.run()
        except ChangeFeedError:
            logger.critical("Change feed stopped", exc_info=True)
    
    def start(self) -> threading.Thread:
        """Run the feed on a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._stop.clear()
        self._thread = threading.Thread(target=self._run_in_thread, name="change-feed", daemon=True)
        self._thread.start()
        return self._thread
    
    def stop(self, timeout: Optional[float] = None) -> None:
        """Ask the feed to stop and wait for the worker thread."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
