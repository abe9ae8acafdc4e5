"""Activity logging package."""

from kubera.activity.logger import ActivityLogger, create_session_id

__all__ = ["ActivityLogger", "create_session_id"]
