# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
HAL (Hypertext Application Language) response formatting utilities.
Implements HATEOAS Level-3 API responses with conditional affordance links.
"""

from typing import Any, Dict, List, Optional

from ..models.responses import HalLink

PROBLEM_BASE_URI = "https://api.coparent.app/problems"


class HalLinkBuilder:
    """Builder for HAL links with proper URL construction."""
    
    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/')
    
    def build_link(
        self, 
        path: str, 
        method: str = "GET", 
        content_type: Optional[str] = None,
        title: Optional[str] = None,
        templated: bool = False
    ) -> HalLink:
        """Build a HAL link with proper URL construction."""
        href = f"{self.base_url}/{path.lstrip('/')}"
        
        return HalLink(
            href=href,
            method=method,
            type=content_type,
            title=title,
            templated=templated or None
        )
    
    def build_self_link(self, resource_path: str) -> HalLink:
        """Build self link for a resource."""
        return self.build_link(resource_path, title="Self")
    
    def build_collection_link(self, collection_path: str) -> HalLink:
        """Build link to parent collection."""
        return self.build_link(collection_path, title="Collection")
    
    def build_action_link(
        self, 
        resource_path: str, 
        action: str, 
        method: str = "POST",
        title: Optional[str] = None
    ) -> HalLink:
        """Build action link for a resource."""
        action_path = f"{resource_path}/{action}"
        return self.build_link(
            action_path, 
            method=method, 
            content_type="application/json",
            title=title or action.title()
        )


class AffordanceLinkBuilder:
    """Builder for conditional affordance links based on viewer and state."""
    
    def __init__(self, base_url: str):
        self.link_builder = HalLinkBuilder(base_url)
    
    def build_change_request_affordances(
        self,
        request_id: str,
        request_status: str,
        recipient_id: str,
        viewer_id: str
    ) -> Dict[str, HalLink]:
        """Build conditional affordance links for a schedule change request."""
        links = {}
        base_path = f"/api/schedule-requests/{request_id}"
        
        # Self link (always present)
        links['self'] = self.link_builder.build_self_link(base_path)
        
        # Collection link (always present)
        links['collection'] = self.link_builder.build_collection_link("/api/schedule-requests")
        
        # Only the recipient may answer, and only once
        if request_status == "pending" and viewer_id == recipient_id:
            links['respond'] = self.link_builder.build_action_link(
                base_path, "respond", title="Accept or decline request"
            )
        
        return links
    
    def build_schedule_affordances(self) -> Dict[str, HalLink]:
        """Build links for the caller's schedule resource."""
        base_path = "/api/schedule"
        
        return {
            'self': self.link_builder.build_self_link(base_path),
            'edit': self.link_builder.build_link(
                base_path,
                method="PUT",
                content_type="application/json",
                title="Replace schedule"
            ),
            'calendar': self.link_builder.build_link(
                f"{base_path}/calendar{{?year,month}}",
                title="Month calendar",
                templated=True
            ),
            'summary': self.link_builder.build_link(f"{base_path}/summary", title="Court summary"),
            'export': self.link_builder.build_link(
                f"{base_path}/export.ics",
                content_type="text/calendar",
                title="iCalendar export"
            ),
            'requests': self.link_builder.build_link(
                "/api/schedule-requests",
                title="Schedule change requests"
            ),
        }


class HalResponseBuilder:
    """Main HAL response builder."""
    
    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/')
        self.link_builder = HalLinkBuilder(base_url)
        self.affordance_builder = AffordanceLinkBuilder(base_url)
    
    @staticmethod
    def _dump_links(links: Dict[str, HalLink]) -> Dict[str, Dict[str, Any]]:
        return {rel: link.model_dump(exclude_none=True) for rel, link in links.items()}
    
    def build_resource_response(
        self,
        data: Dict[str, Any],
        links: Dict[str, HalLink]
    ) -> Dict[str, Any]:
        """Attach HAL links to a resource representation."""
        response = dict(data)
        response['_links'] = self._dump_links(links)
        return response
    
    def build_collection_response(
        self,
        items: List[Dict[str, Any]],
        collection_path: str,
        embedded_name: str = "items",
        extra: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Build an unpaginated HAL collection response."""
        response = {
            'total': len(items),
            '_links': self._dump_links({
                'self': self.link_builder.build_self_link(collection_path)
            }),
            '_embedded': {
                embedded_name: items
            }
        }
        if extra:
            response.update(extra)
        return response
    
    def build_error_response(
        self,
        error_type: str,
        title: str,
        status: int,
        detail: str,
        instance: str,
        validation_errors: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        """Build RFC 7807 compliant error response with HAL links."""
        error_response = {
            'type': f"{PROBLEM_BASE_URI}/{error_type}",
            'title': title,
            'status': status,
            'detail': detail,
            'instance': instance
        }
        
        if validation_errors:
            error_response['errors'] = validation_errors
        
        # Add helpful links
        links = {
            'help': self.link_builder.build_link(
                f"/docs/errors#{error_type}",
                title="Error documentation"
            )
        }
        
        if error_type == "validation-error":
            links['schema'] = self.link_builder.build_link(
                "/openapi/openapi.json",
                title="API schema"
            )
        elif error_type == "not-linked":
            links['profile'] = self.link_builder.build_link(
                "/dashboard/settings",
                title="Connect with your co-parent"
            )
        
        error_response['_links'] = self._dump_links(links)
        return error_response


class HalFormatter:
    """High-level HAL formatter with convenience methods."""
    
    def __init__(self, base_url: str):
        self.builder = HalResponseBuilder(base_url)
    
    def format_change_request(
        self,
        change_request: Dict[str, Any],
        viewer_id: str
    ) -> Dict[str, Any]:
        """Format a change request with HAL links for the viewing parent."""
        links = self.builder.affordance_builder.build_change_request_affordances(
            change_request['id'],
            change_request.get('status', ''),
            change_request.get('recipient_id', ''),
            viewer_id
        )
        return self.builder.build_resource_response(change_request, links)
    
    def format_change_request_collection(
        self,
        change_requests: List[Dict[str, Any]],
        viewer_id: str,
        extra: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Format a collection of change requests with HAL links."""
        formatted = [
            self.format_change_request(change_request, viewer_id)
            for change_request in change_requests
        ]
        return self.builder.build_collection_response(
            formatted,
            "/api/schedule-requests",
            embedded_name="requests",
            extra=extra
        )
    
    def format_schedule(self, schedule: Dict[str, Any]) -> Dict[str, Any]:
        """Format a schedule config with HAL links."""
        links = self.builder.affordance_builder.build_schedule_affordances()
        return self.builder.build_resource_response(schedule, links)
    
    def format_error(
        self,
        error_type: str,
        title: str,
        status: int,
        detail: str,
        instance: str,
        validation_errors: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        """Format an arbitrary problem document."""
        return self.builder.build_error_response(
            error_type, title, status, detail, instance, validation_errors
        )
    
    def format_validation_error(
        self,
        detail: str,
        instance: str,
        validation_errors: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Format a validation error response."""
        return self.builder.build_error_response(
            "validation-error",
            "Validation Error",
            400,
            detail,
            instance,
            validation_errors
        )
    
    def format_server_error(
        self,
        detail: str,
        instance: str
    ) -> Dict[str, Any]:
        """Format a server error response."""
        return self.builder.build_error_response(
            "internal-server-error",
            "Internal Server Error",
            500,
            detail,
            instance
        )


# Convenience function for creating HAL formatter
def create_hal_formatter(base_url: str) -> HalFormatter:
    """Create a HAL formatter instance."""
    return HalFormatter(base_url)
