"""FastAPI HTTP layer package.

Usage::

    uvicorn portable_content.api:create_app --factory --reload
"""

from portable_content.api.app import create_app

__all__ = ["create_app"]
