"""
Repository for the comments table shown on the diagnostic landing page.
"""

from typing import Any

from ..gateway import DatabaseGateway


class CommentRepository:
    """Read-only access to the comments table."""

    def __init__(self, gateway: DatabaseGateway) -> None:
        self._gateway = gateway

    def sample(self, limit: int = 3) -> list[dict[str, Any]]:
        """First rows of the table, in storage order."""
        return self._gateway.prepare("SELECT * FROM comments LIMIT ?").bind(limit).all().results
