"""
Health Check Service

Reports the health of the schedule store (MongoDB) and the notification
broker (AMQP).
"""

import os
import time
from datetime import datetime
from typing import Any, Dict
from opentelemetry import trace

from .. import __version__

tracer = trace.get_tracer(__name__)


class HealthCheckService:
    """Service for dependency health monitoring."""
    
    def __init__(self, mongodb_service, amqp_service):
        self.mongodb_service = mongodb_service
        self.amqp_service = amqp_service
        self.service_version = os.getenv('SERVICE_VERSION', __version__)
    
    def get_comprehensive_health(self) -> Dict[str, Any]:
        """Get health status including all dependencies."""
        with tracer.start_as_current_span("health.comprehensive_check") as span:
            start_time = time.time()
            
            mongodb_health = self._check_mongodb_health()
            amqp_health = self._check_amqp_health()
            
            overall_status = self._determine_overall_status(
                mongodb_health["status"],
                amqp_health["status"]
            )
            
            response_time_ms = round((time.time() - start_time) * 1000, 2)
            
            span.set_attributes({
                "health.overall_status": overall_status,
                "health.response_time_ms": response_time_ms,
                "health.mongodb_status": mongodb_health["status"],
                "health.amqp_status": amqp_health["status"]
            })
            
            return {
                "status": overall_status,
                "service": "coparent-schedule-api",
                "version": self.service_version,
                "environment": os.getenv('ENVIRONMENT', 'development'),
                "timestamp": datetime.utcnow().isoformat() + "Z",
                "response_time_ms": response_time_ms,
                "dependencies": {
                    "mongodb": mongodb_health,
                    "amqp": amqp_health
                }
            }
    
    def _check_mongodb_health(self) -> Dict[str, Any]:
        with tracer.start_as_current_span("health.mongodb_check") as span:
            health = self.mongodb_service.health_check()
            span.set_attribute("mongodb.status", health.get("status", "unknown"))
            health["last_check"] = datetime.utcnow().isoformat() + "Z"
            return health
    
    def _check_amqp_health(self) -> Dict[str, Any]:
        with tracer.start_as_current_span("health.amqp_check") as span:
            start_time = time.time()
            healthy = self.amqp_service.health_check()
            status = "healthy" if healthy else "unhealthy"
            span.set_attribute("amqp.status", status)
            return {
                "status": status,
                "response_time_ms": round((time.time() - start_time) * 1000, 2),
                "last_check": datetime.utcnow().isoformat() + "Z"
            }
    
    def _determine_overall_status(self, mongodb_status: str, amqp_status: str) -> str:
        """
        Schedules cannot be read without the store; notifications are
        best-effort, so a broker outage only degrades the service.
        """
        if mongodb_status != "healthy":
            return "unhealthy"
        if amqp_status != "healthy":
            return "degraded"
        return "healthy"
