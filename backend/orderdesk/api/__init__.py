"""HTTP API package."""

from orderdesk.api.app import HTTP_STATUS_BY_CODE, create_app

__all__ = ["HTTP_STATUS_BY_CODE", "create_app"]
