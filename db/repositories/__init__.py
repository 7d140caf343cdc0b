"""
Repository layer exports.
"""

from db.repositories.import_session_repository import ImportSessionRepository

__all__ = ["ImportSessionRepository"]
