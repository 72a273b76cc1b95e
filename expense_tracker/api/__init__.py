"""
REST API package.

`create_app()` builds the FastAPI application. Run it with
`uvicorn expense_tracker.api.app:create_app --factory`.
"""

from expense_tracker.api.app import create_app

__all__ = ["create_app"]
