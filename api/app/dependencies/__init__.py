"""FastAPI dependencies for the feed API."""

from app.dependencies.auth import optional_user_id, require_user_id, verify_api_key

__all__ = ["optional_user_id", "require_user_id", "verify_api_key"]
