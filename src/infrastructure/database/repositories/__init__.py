"""
Repository pattern implementations over the database gateway.

Repositories translate between domain models and database representations.
"""

from .comments import CommentRepository
from .sessions import SessionScheduleRepository

__all__ = ["CommentRepository", "SessionScheduleRepository"]
