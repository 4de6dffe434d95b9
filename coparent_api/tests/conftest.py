# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and fixtures.
"""

import os
import pytest
from datetime import date
from unittest.mock import MagicMock

# Set test environment
os.environ['ENVIRONMENT'] = 'test'
os.environ['OTEL_ENABLED'] = 'false'
os.environ['MONGODB_DATABASE'] = 'coparent_test'

from coparent_api.app import create_app
from coparent_api.domain.holidays import default_holidays
from coparent_api.models.entities import Profile, ScheduleConfig
from coparent_api.models.enums import Custodian, PatternId
from coparent_api.services.workflow import ChangeRequestWorkflow
from coparent_api.testing import InMemoryScheduleStore, RecordingNotifier

PARENT_A_ID = "profile-alex"
PARENT_B_ID = "profile-blake"
UNLINKED_ID = "profile-casey"


@pytest.fixture
def parent_a():
    """Linked parent who usually sends requests."""
    return Profile(id=PARENT_A_ID, full_name="Alex Rivera", co_parent_id=PARENT_B_ID)


@pytest.fixture
def parent_b():
    """Linked co-parent who usually answers requests."""
    return Profile(id=PARENT_B_ID, full_name="Blake Rivera", co_parent_id=PARENT_A_ID)


@pytest.fixture
def unlinked_parent():
    """Parent with no co-parent connection."""
    return Profile(id=UNLINKED_ID, full_name="Casey Morgan")


@pytest.fixture
def alternating_config():
    """Alternating weeks anchored on Monday 2024-01-01, Parent A first."""
    return ScheduleConfig(
        pattern=PatternId.ALTERNATING_WEEKS,
        start_date=date(2024, 1, 1),
        starting_parent=Custodian.A,
        exchange_time="6:00 PM",
        exchange_location="Lincoln Elementary",
        holidays=default_holidays()
    )


@pytest.fixture
def custom_config():
    """Three-day custom rotation A A B."""
    return ScheduleConfig(
        pattern=PatternId.CUSTOM,
        custom_pattern=[Custodian.A, Custodian.A, Custodian.B],
        start_date=date(2024, 1, 1),
    )


@pytest.fixture
def memory_store(parent_a, parent_b, unlinked_parent):
    """In-memory schedule store seeded with the three profiles."""
    return InMemoryScheduleStore([parent_a, parent_b, unlinked_parent])


@pytest.fixture
def notifier():
    """Notification gateway double that records delivered messages."""
    return RecordingNotifier()


@pytest.fixture
def workflow(memory_store, notifier):
    """Change request workflow over the in-memory doubles."""
    return ChangeRequestWorkflow(memory_store, notifier)


@pytest.fixture
def app(memory_store, notifier, workflow):
    """Flask application wired to the in-memory doubles."""
    mongodb_service = MagicMock()
    mongodb_service.health_check.return_value = {'status': 'healthy', 'database': 'coparent_test'}
    
    application = create_app(
        mongodb_service=mongodb_service,
        amqp_service=notifier,
        schedule_store=memory_store,
        workflow=workflow,
        config_overrides={'TESTING': True, 'BASE_URL': 'http://testserver'}
    )
    return application


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def headers_for():
    """Build headers identifying the calling parent."""
    def _headers(profile_id: str) -> dict:
        return {'X-Profile-Id': profile_id}
    return _headers
