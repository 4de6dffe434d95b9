# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for error handling middleware.
"""

import pytest
from flask import Flask, abort

from coparent_api.middleware.error_handler import (
    AlreadyResolvedError,
    ErrorHandlerMiddleware,
    NotLinkedError,
    PersistenceError,
)
from coparent_api.models.entities import ScheduleConfig


@pytest.fixture
def error_app():
    app = Flask(__name__)
    app.config['ENVIRONMENT'] = 'test'
    ErrorHandlerMiddleware(app, "https://api.example.com")
    
    @app.route('/not-linked')
    def not_linked():
        raise NotLinkedError()
    
    @app.route('/resolved')
    def resolved():
        raise AlreadyResolvedError("abc", "declined")
    
    @app.route('/storage')
    def storage():
        raise PersistenceError("Storage unavailable during load_schedule")
    
    @app.route('/bad-document')
    def bad_document():
        ScheduleConfig.model_validate({"pattern": "alternating-weeks"})
    
    @app.route('/missing')
    def missing():
        abort(404)
    
    @app.route('/boom')
    def boom():
        raise RuntimeError("unexpected state")
    
    return app


class TestErrorHandlerMiddleware:
    """Test problem document rendering."""
    
    def test_domain_conflict(self, error_app):
        response = error_app.test_client().get('/not-linked')
        
        assert response.status_code == 409
        assert response.mimetype == 'application/problem+json'
        data = response.get_json()
        assert data['type'] == 'https://api.coparent.app/problems/not-linked'
        assert data['title'] == 'Not Linked'
        assert data['detail'] == 'You must be connected with a co-parent to send requests'
        assert data['instance'] == '/not-linked'
    
    def test_already_resolved_mentions_status(self, error_app):
        data = error_app.test_client().get('/resolved').get_json()
        
        assert data['status'] == 409
        assert data['detail'] == 'Schedule request abc has already been resolved (declined)'
    
    def test_retryable_storage_error(self, error_app):
        response = error_app.test_client().get('/storage')
        
        assert response.status_code == 503
        assert response.headers['Retry-After'] == '5'
        assert response.get_json()['type'].endswith('/persistence-error')
    
    def test_pydantic_validation_error(self, error_app):
        response = error_app.test_client().get('/bad-document')
        
        assert response.status_code == 400
        data = response.get_json()
        assert data['type'].endswith('/validation-error')
        assert data['errors'][0]['field'] == 'startDate'
        assert 'schema' in data['_links']
    
    def test_http_error(self, error_app):
        response = error_app.test_client().get('/missing')
        
        assert response.status_code == 404
        assert response.get_json()['type'].endswith('/resource-not-found')
    
    def test_unexpected_error_outside_production(self, error_app):
        response = error_app.test_client().get('/boom')
        
        assert response.status_code == 500
        assert response.get_json()['detail'] == 'RuntimeError: unexpected state'
    
    def test_unexpected_error_hidden_in_production(self, error_app):
        error_app.config['ENVIRONMENT'] = 'production'
        
        response = error_app.test_client().get('/boom')
        
        assert response.get_json()['detail'] == 'An unexpected error occurred'
