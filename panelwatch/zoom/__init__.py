"""Zoom admin API access."""

from panelwatch.zoom.client import ZoomAdminClient, ZoomAPIError, ZoomAuthError

__all__ = [
    "ZoomAdminClient",
    "ZoomAPIError",
    "ZoomAuthError",
]
