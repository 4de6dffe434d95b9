# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Error handling middleware with structured HAL responses.
Provides the application exception hierarchy and centralized error formatting
for Flask applications.
"""

from flask import Flask, request, jsonify
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException
from typing import Dict, Any, Tuple
from opentelemetry import trace
import logging

from ..services.hal import HalFormatter

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

HTTP_ERROR_TYPES = {
    400: ("bad-request", "Bad Request"),
    401: ("authentication-required", "Authentication Required"),
    403: ("insufficient-permissions", "Insufficient Permissions"),
    404: ("resource-not-found", "Resource Not Found"),
    405: ("method-not-allowed", "Method Not Allowed"),
    409: ("resource-conflict", "Resource Conflict"),
    422: ("validation-error", "Validation Error"),
    500: ("internal-server-error", "Internal Server Error"),
    503: ("service-unavailable", "Service Unavailable"),
}


class CustomException(Exception):
    """Base class for custom application exceptions."""
    
    title = "Application Error"
    
    def __init__(self, message: str, status_code: int = 500, error_type: str = "application-error"):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_type = error_type


class ValidationException(CustomException):
    """Exception for validation errors."""
    
    title = "Validation Error"
    
    def __init__(self, message: str, validation_errors: list = None):
        super().__init__(message, 400, "validation-error")
        self.validation_errors = validation_errors or []


class AuthenticationException(CustomException):
    """Exception for a missing caller identity."""
    
    title = "Authentication Required"
    
    def __init__(self, message: str):
        super().__init__(message, 401, "authentication-required")


class AuthorizationException(CustomException):
    """Exception for authorization errors."""
    
    title = "Insufficient Permissions"
    
    def __init__(self, message: str):
        super().__init__(message, 403, "insufficient-permissions")


class NotFoundException(CustomException):
    """Exception for resource not found errors."""
    
    title = "Resource Not Found"
    
    def __init__(self, message: str):
        super().__init__(message, 404, "resource-not-found")


class ConflictException(CustomException):
    """Exception for resource conflict errors."""
    
    title = "Resource Conflict"
    
    def __init__(self, message: str):
        super().__init__(message, 409, "resource-conflict")


class ServiceUnavailableException(CustomException):
    """Exception for service unavailable errors."""
    
    title = "Service Unavailable"
    
    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message, 503, "service-unavailable")
        self.retryable = retryable


class NotLinkedError(ConflictException):
    """The requesting parent is not connected with the intended co-parent."""
    
    title = "Not Linked"
    
    def __init__(self, message: str = "You must be connected with a co-parent to send requests"):
        super().__init__(message)
        self.error_type = "not-linked"


class NotAuthorizedError(AuthorizationException):
    """The caller is not the recipient of the change request."""
    
    def __init__(self, message: str = "Only the recipient can respond to this request"):
        super().__init__(message)


class AlreadyResolvedError(ConflictException):
    """The change request left the pending state before this response."""
    
    title = "Already Resolved"
    
    def __init__(self, request_id: str, status: str = None):
        message = f"Schedule request {request_id} has already been resolved"
        if status:
            message = f"{message} ({status})"
        super().__init__(message)
        self.error_type = "already-resolved"
        self.request_id = request_id
        self.status = status


class PersistenceError(ServiceUnavailableException):
    """The schedule store could not complete an operation."""
    
    title = "Persistence Error"
    
    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message, retryable)
        self.error_type = "persistence-error"


class NotificationDeliveryError(ServiceUnavailableException):
    """The notification broker did not accept a message."""
    
    title = "Notification Delivery Error"
    
    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message, retryable)
        self.error_type = "notification-delivery-error"


class ErrorHandlerMiddleware:
    """Centralized error handling middleware with HAL response formatting."""
    
    def __init__(self, app: Flask, base_url: str):
        self.app = app
        self.hal_formatter = HalFormatter(base_url)
        self.register_error_handlers()
    
    def register_error_handlers(self):
        """Register error handlers with Flask application."""
        
        @self.app.errorhandler(CustomException)
        def handle_custom_exception(error: CustomException):
            return self.handle_custom_exception(error)
        
        @self.app.errorhandler(HTTPException)
        def handle_http_exception(error: HTTPException):
            return self.handle_http_error(error)
        
        @self.app.errorhandler(ValidationError)
        def handle_validation_error(error: ValidationError):
            return self.handle_pydantic_validation_error(error)
        
        # Handle generic exceptions
        @self.app.errorhandler(Exception)
        def handle_generic_exception(error):
            return self.handle_unexpected_error(error)
    
    def handle_custom_exception(self, error: CustomException) -> Tuple[Any, int]:
        """
        Render an application exception as a problem document.
        
        Args:
            error: Application exception
            
        Returns:
            Tuple of (JSON response, status code)
        """
        with tracer.start_as_current_span("error_handler.custom_exception") as span:
            span.set_attributes({
                "error.type": error.error_type,
                "error.status": error.status_code,
                "http.method": request.method,
                "http.path": request.path
            })
            
            log = logger.error if error.status_code >= 500 else logger.warning
            log(
                f"Custom exception: {error.error_type}",
                extra={"extra_fields": {
                    "error_type": error.error_type,
                    "status_code": error.status_code,
                    "error_message": error.message,
                    "path": request.path,
                    "method": request.method
                }}
            )
            
            validation_errors = getattr(error, "validation_errors", None)
            error_response = self.hal_formatter.format_error(
                error.error_type,
                error.title,
                error.status_code,
                error.message,
                request.path,
                [{"message": item} if isinstance(item, str) else item for item in validation_errors]
                if validation_errors else None
            )
            
            response = jsonify(error_response)
            response.status_code = error.status_code
            response.mimetype = "application/problem+json"
            if getattr(error, "retryable", False):
                response.headers["Retry-After"] = "5"
            return response, error.status_code
    
    def handle_http_error(self, error: HTTPException) -> Tuple[Any, int]:
        """
        Handle werkzeug HTTP errors (404 routes, 405 methods and the like).
        
        Args:
            error: HTTP exception
            
        Returns:
            Tuple of (JSON response, status code)
        """
        status = error.code or 500
        error_type, title = HTTP_ERROR_TYPES.get(status, ("http-error", error.name))
        detail = str(error.description) if error.description else title
        
        with tracer.start_as_current_span("error_handler.http_error") as span:
            span.set_attributes({
                "error.type": error_type,
                "error.status": status,
                "http.method": request.method,
                "http.path": request.path
            })
            
            logger.warning(
                f"Client error: {title}",
                extra={"extra_fields": {
                    "error_type": error_type,
                    "status_code": status,
                    "detail": detail,
                    "path": request.path,
                    "method": request.method,
                    "user_agent": request.headers.get('User-Agent')
                }}
            )
            
            error_response = self.hal_formatter.format_error(
                error_type, title, status, detail, request.path
            )
            return jsonify(error_response), status
    
    def handle_pydantic_validation_error(self, error: ValidationError) -> Tuple[Any, int]:
        """
        Render a model validation failure raised inside a view.
        
        Request bodies are validated by flask-openapi3 before the view runs;
        this covers models built from stored documents or derived values.
        """
        validation_errors = [
            {
                "field": ".".join(str(part) for part in item["loc"]),
                "message": item["msg"],
                "type": item["type"]
            }
            for item in error.errors()
        ]
        
        logger.warning(
            "Model validation failed",
            extra={"extra_fields": {
                "path": request.path,
                "method": request.method,
                "error_count": len(validation_errors)
            }}
        )
        
        error_response = self.hal_formatter.format_validation_error(
            "Request data failed validation",
            request.path,
            validation_errors
        )
        response = jsonify(error_response)
        response.status_code = 400
        response.mimetype = "application/problem+json"
        return response, 400
    
    def handle_unexpected_error(self, error: Exception) -> Tuple[Dict[str, Any], int]:
        """
        Handle unexpected exceptions not caught by specific handlers.
        
        Args:
            error: Unexpected exception
            
        Returns:
            Tuple of (error response dict, status code)
        """
        with tracer.start_as_current_span("error_handler.unexpected_error") as span:
            span.set_attributes({
                "error.type": "unexpected-error",
                "error.class": error.__class__.__name__,
                "http.method": request.method,
                "http.path": request.path
            })
            
            # Record exception in span
            span.record_exception(error)
            
            logger.error(
                f"Unexpected error: {error.__class__.__name__}",
                extra={"extra_fields": {
                    "error_type": "unexpected-error",
                    "error_class": error.__class__.__name__,
                    "error_message": str(error),
                    "path": request.path,
                    "method": request.method
                }},
                exc_info=True
            )
            
            # Don't expose internal error details
            detail = "An unexpected error occurred"
            if self.app.config.get('ENVIRONMENT') != 'production':
                detail = f"{error.__class__.__name__}: {str(error)}"
            
            error_response = self.hal_formatter.format_server_error(detail, request.path)
            
            return jsonify(error_response), 500
