# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request utilities for extracting caller identity and building responses.
"""

from flask import request
from typing import Dict
import logging

from ..middleware.error_handler import AuthenticationException

logger = logging.getLogger(__name__)

# Set by the authenticating gateway in front of this service
PROFILE_HEADER = 'X-Profile-Id'


class HeaderUtils:
    """Utilities for working with HTTP headers."""
    
    @staticmethod
    def get_profile_id() -> str:
        """
        Extract the caller's profile id.
        
        Returns:
            Profile id string
            
        Raises:
            AuthenticationException: header missing or blank
        """
        profile_id = request.headers.get(PROFILE_HEADER, '').strip()
        if not profile_id:
            logger.warning(f"Request without {PROFILE_HEADER} header: {request.path}")
            raise AuthenticationException(f"Missing {PROFILE_HEADER} header")
        return profile_id
    
    @staticmethod
    def build_cache_headers(
        max_age: int = 0,
        private: bool = True,
        no_store: bool = False
    ) -> Dict[str, str]:
        """
        Build cache control headers.
        
        Args:
            max_age: Cache max age in seconds
            private: Whether cache is private
            no_store: Whether to disable storage
            
        Returns:
            Dictionary with cache headers
        """
        if no_store:
            return {'Cache-Control': 'no-store'}
        
        scope = 'private' if private else 'public'
        return {'Cache-Control': f'{scope}, max-age={max_age}'}


def get_profile_id() -> str:
    """Shortcut for ``HeaderUtils.get_profile_id``."""
    return HeaderUtils.get_profile_id()
