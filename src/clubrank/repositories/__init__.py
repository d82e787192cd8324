"""
Repository layer: the storage collaborators of the finalization workflow.

Each repository wraps one SQLAlchemy session and never commits; the unit
of work belongs to the caller.
"""

from clubrank.repositories.matches import MatchRepository
from clubrank.repositories.users import UserRepository, default_initials

__all__ = [
    "MatchRepository",
    "UserRepository",
    "default_initials",
]
