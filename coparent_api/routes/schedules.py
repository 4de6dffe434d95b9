# SPDX-License-Identifier: Apache-2.0

"""
Custody schedule endpoints.

Loading and replacing the family's schedule, the month calendar, the court
summary, holiday lookups and the iCalendar export.
"""

from datetime import date
import logging

from flask import Response, current_app, jsonify
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace

from ..domain.holidays import (
    default_holidays,
    describe_holiday_override,
    find_holiday,
    summarize_holiday_rules,
)
from ..domain.patterns import get_pattern, list_patterns, CUSTOM_PATTERN_NAME
from ..domain.resolver import month_grid, next_exchange, sequence_for
from ..middleware.error_handler import NotFoundException
from ..models.entities import ScheduleConfig
from ..models.enums import PatternId
from ..models.requests import CalendarQuery, ExportQuery, HolidayPath, HolidayQuery, ReminderQuery
from ..services.calendar_export import export_ics
from ..services.workflow import send_exchange_reminder
from ..utils.request import HeaderUtils, get_profile_id

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

schedules_tag = Tag(name="Schedule", description="Custody schedule and calendar")
schedules_bp = APIBlueprint(
    'schedules',
    __name__,
    url_prefix='/api/schedule',
    abp_tags=[schedules_tag]
)


def _load_config(profile_id: str):
    stored = current_app.schedule_store.load_schedule(profile_id)
    return stored.config if stored else None


def _schedule_representation(stored) -> dict:
    data = {
        "id": stored.id,
        "parentAId": stored.parent_a_id,
        "parentBId": stored.parent_b_id,
    }
    data.update(stored.config.model_dump(mode="json", by_alias=True))
    return current_app.hal_formatter.format_schedule(data)


@schedules_bp.get('')
def get_schedule():
    """
    Get the caller's custody schedule.
    
    Returns the newest schedule where the caller is either parent.
    """
    profile_id = get_profile_id()
    stored = current_app.schedule_store.load_schedule(profile_id)
    if stored is None:
        raise NotFoundException("No custody schedule has been set up yet")
    return jsonify(_schedule_representation(stored)), 200


@schedules_bp.put('')
def put_schedule(body: ScheduleConfig):
    """
    Replace the caller's custody schedule.
    
    The whole configuration is validated and stored; partial updates are not
    supported.
    """
    profile_id = get_profile_id()
    
    with tracer.start_as_current_span("schedule.save") as span:
        span.set_attributes({"profile.id": profile_id, "schedule.pattern": body.pattern.value})
        
        profile = current_app.schedule_store.get_profile(profile_id)
        if profile is None:
            raise NotFoundException(f"Profile {profile_id} not found")
        
        stored = current_app.schedule_store.save_schedule(profile, body)
    
    return jsonify(_schedule_representation(stored)), 200


@schedules_bp.get('/patterns')
def get_patterns():
    """List the schedule patterns and default holiday rules for the setup wizard."""
    return jsonify({
        "patterns": list_patterns(),
        "holidays": [holiday.model_dump(mode="json") for holiday in default_holidays()],
    }), 200, HeaderUtils.build_cache_headers(max_age=3600, private=False)


@schedules_bp.get('/calendar')
def get_calendar(query: CalendarQuery):
    """
    Resolve custody for every day of a month.
    
    Without a configured schedule the default week-parity rotation is used.
    """
    profile_id = get_profile_id()
    config = _load_config(profile_id)
    
    with tracer.start_as_current_span("schedule.month_grid") as span:
        span.set_attributes({"calendar.year": query.year, "calendar.month": query.month})
        grid = month_grid(query.year, query.month, config)
    
    return jsonify({
        "year": grid.year,
        "month": grid.month,
        "configured": config is not None,
        "leading_blanks": grid.leading_blanks,
        "days": [
            {"date": cell.day.isoformat(), "custodian": cell.custodian.value}
            for cell in grid.days
        ],
    }), 200


@schedules_bp.get('/summary')
def get_summary():
    """
    Court-ready summary of the schedule.
    
    Pattern, anchor, exchange details and the enabled holiday rules in
    readable form.
    """
    profile_id = get_profile_id()
    config = _load_config(profile_id)
    if config is None:
        raise NotFoundException("No custody schedule has been set up yet")
    
    definition = get_pattern(config.pattern)
    if config.pattern == PatternId.CUSTOM:
        pattern_name = CUSTOM_PATTERN_NAME
    elif definition is not None:
        pattern_name = definition.display_name
    else:
        pattern_name = config.pattern.value
    
    upcoming = next_exchange(date.today(), config)
    
    return jsonify({
        "pattern": config.pattern.value,
        "pattern_name": pattern_name,
        "cycle": [label.value for label in sequence_for(config)],
        "start_date": config.start_date.isoformat(),
        "starting_parent": config.starting_parent.value,
        "exchange_time": config.exchange_time,
        "exchange_location": config.exchange_location,
        "alternate_location": config.alternate_location,
        "next_exchange": upcoming.isoformat() if upcoming else None,
        "holidays": summarize_holiday_rules(config.holidays),
    }), 200


@schedules_bp.get('/holidays/<name>')
def get_holiday_override(path: HolidayPath, query: HolidayQuery):
    """
    Describe who has custody on a holiday.
    
    Uses the family's holiday rules, or the default rules before a schedule
    exists. The regular calendar is not changed by holiday rules.
    """
    profile_id = get_profile_id()
    config = _load_config(profile_id)
    holidays = config.holidays if config and config.holidays else default_holidays()
    
    rule = find_holiday(holidays, path.name)
    if rule is None:
        raise NotFoundException(f"No holiday rule named {path.name}")
    
    override = describe_holiday_override(query.day, rule)
    return jsonify({
        "holiday": rule.name,
        "date": query.day.isoformat(),
        "rule": rule.rule.value,
        "enabled": rule.enabled,
        "override": None if override is None else {
            "custodian": override.custodian.value if override.custodian else None,
            "shared": override.shared,
            "description": override.description,
        },
    }), 200


@schedules_bp.get('/export.ics')
def export_calendar(query: ExportQuery):
    """Download the custody schedule as an iCalendar file."""
    profile_id = get_profile_id()
    config = _load_config(profile_id)
    
    body = export_ics(
        config,
        date.today(),
        months=query.months,
        parent_a=query.parent_a,
        parent_b=query.parent_b
    )
    
    logger.info(
        "Custody calendar exported",
        extra={"extra_fields": {"profile_id": profile_id, "months": query.months}}
    )
    
    return Response(
        body,
        mimetype="text/calendar",
        headers={"Content-Disposition": 'attachment; filename="custody-schedule.ics"'}
    )


@schedules_bp.post('/exchange-reminder')
def post_exchange_reminder(query: ReminderQuery):
    """
    Send the caller a reminder of their next custody exchange.
    
    A broker failure is returned as 503, unlike change request notifications.
    """
    profile_id = get_profile_id()
    after = query.after or date.today()
    
    with tracer.start_as_current_span("schedule.exchange_reminder") as span:
        span.set_attributes({"profile.id": profile_id, "reminder.after": after.isoformat()})
        message = send_exchange_reminder(
            current_app.schedule_store, current_app.amqp_service, profile_id, after
        )
    
    if message is None:
        raise NotFoundException("No upcoming custody exchange")
    return jsonify(message.to_payload()), 202
