"""
API package for the Trench academic administration backend.

FastAPI application with:
- Separate routers per resource
- Dependency injection through app.state
- Uniform error envelopes
"""

from .app import app, create_app

__all__ = ["app", "create_app"]
