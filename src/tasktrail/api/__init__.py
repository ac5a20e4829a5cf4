"""TaskTrail REST API."""

from tasktrail.api.router import router

__all__ = ["router"]
