"""Protocol repository (implemented with SQLAlchemy in sql_repository.py)"""

from typing import Protocol

from src.core.models import UserModel


class UserRepository(Protocol):
    """Persistence layer orchestration"""

    def get_user(self, username: str) -> UserModel | None:
        """Get user by username, if record exists."""
        ...

    def create_user(self, user: UserModel) -> UserModel:
        """Store a new user and return the stored data."""
        ...
