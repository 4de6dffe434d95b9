"""
Co-Parent Custody Schedule API - Flask Application Entry Point

This module builds the Flask application with OpenAPI 3.0 support, wires the
schedule store, notification gateway and change request workflow, and
registers the HTTP routes.
"""

import os
import logging
from flask import jsonify
from flask_openapi3 import OpenAPI, Info, Tag

from . import __version__
from .observability.config import setup_observability
from .observability.middleware import add_observability_middleware
from .middleware.error_handler import ErrorHandlerMiddleware
from .routes.change_requests import change_requests_bp
from .routes.schedules import schedules_bp
from .services.amqp import create_amqp_service
from .services.change_feed import ChangeFeed, SCHEDULE_PARTY_FIELDS
from .services.hal import create_hal_formatter
from .services.health import HealthCheckService
from .services.mongodb import (
    REQUESTS_COLLECTION,
    SCHEDULES_COLLECTION,
    close_mongodb_connection,
    get_mongodb_service,
)
from .services.schedule_store import ScheduleStore
from .services.workflow import ChangeRequestWorkflow

logger = logging.getLogger(__name__)

# OpenAPI info
info = Info(
    title="Co-Parent Custody Schedule API",
    version=__version__,
    description="Custody schedule resolution and schedule change requests with HATEOAS Level-3 support"
)

health_tag = Tag(name="Health", description="System health and status")


def create_app(
    mongodb_service=None,
    amqp_service=None,
    schedule_store=None,
    workflow=None,
    config_overrides: dict = None
) -> OpenAPI:
    """
    Build the Flask application.
    
    Any service left as None is created from environment configuration.
    Tests pass doubles in instead.
    """
    app = OpenAPI(__name__, info=info)
    
    # Environment configuration
    app.config['ENVIRONMENT'] = os.getenv('ENVIRONMENT', 'development')
    app.config['DEBUG'] = app.config['ENVIRONMENT'] == 'development'
    app.config['BASE_URL'] = os.getenv('BASE_URL', 'http://localhost:5000')
    app.config['OTEL_ENABLED'] = os.getenv('OTEL_ENABLED', 'true').lower() == 'true'
    if config_overrides:
        app.config.update(config_overrides)
    
    # Add observability middleware
    add_observability_middleware(app)
    
    # Initialize services
    mongodb_service = mongodb_service or get_mongodb_service()
    amqp_service = amqp_service or create_amqp_service()
    schedule_store = schedule_store or ScheduleStore(mongodb_service)
    workflow = workflow or ChangeRequestWorkflow(schedule_store, amqp_service)
    health_service = HealthCheckService(mongodb_service, amqp_service)
    hal_formatter = create_hal_formatter(app.config['BASE_URL'])
    
    # Error handling
    ErrorHandlerMiddleware(app, app.config['BASE_URL'])
    
    # Make services available to routes
    app.mongodb_service = mongodb_service
    app.amqp_service = amqp_service
    app.schedule_store = schedule_store
    app.workflow = workflow
    app.health_service = health_service
    app.hal_formatter = hal_formatter
    
    # Change feeds; started by main(), not by the factory
    app.change_feed = ChangeFeed(mongodb_service.get_collection(REQUESTS_COLLECTION))
    app.schedule_feed = ChangeFeed(
        mongodb_service.get_collection(SCHEDULES_COLLECTION),
        party_fields=SCHEDULE_PARTY_FIELDS
    )
    
    # Register routes
    app.register_api(schedules_bp)
    app.register_api(change_requests_bp)
    
    @app.get('/api/healthz', tags=[health_tag])
    def health_check():
        """Health check endpoint with dependency monitoring"""
        health_data = health_service.get_comprehensive_health()
        
        # Degraded still serves schedules
        status_code = 503 if health_data["status"] == "unhealthy" else 200
        
        health_response = hal_formatter.builder.build_resource_response(
            health_data,
            {'self': hal_formatter.builder.link_builder.build_self_link('/api/healthz')}
        )
        return jsonify(health_response), status_code
    
    logger.info(
        "Application created",
        extra={"extra_fields": {
            "environment": app.config['ENVIRONMENT'],
            "version": __version__
        }}
    )
    return app


def main():
    """Run the development server."""
    setup_observability()
    app = create_app()
    try:
        app.mongodb_service.create_indexes()
        app.change_feed.start()
        app.schedule_feed.start()
        app.run(
            host='0.0.0.0',
            port=int(os.getenv('PORT', 5000)),
            debug=app.config['DEBUG']
        )
    finally:
        app.change_feed.stop(timeout=5)
        app.schedule_feed.stop(timeout=5)
        close_mongodb_connection()


if __name__ == '__main__':
    main()
