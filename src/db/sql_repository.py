"""Implementation of (User)Repository using SQLAlchemy"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import FlushError

from src.core.exceptions import RepositoryError
from src.core.models import UserModel
from src.db.schema import DBUser


class SQLUserRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_user(self, username: str) -> UserModel | None:
        """Get user by username, if record exists."""
        user_db = self._fetch_user(username)
        if user_db:
            return self._to_model(user_db)
        return None

    def create_user(self, user: UserModel) -> UserModel:
        """Store a new user and return the stored data."""
        user_db = DBUser(username=user.username, user_id=user.user_id)
        self.db.add(user_db)
        try:
            self.db.commit()
        except (IntegrityError, FlushError) as exc:
            self.db.rollback()
            raise RepositoryError(f"Could not store user {user.username!r}: {exc}") from exc
        self.db.refresh(user_db)
        return self._to_model(user_db)

    def _fetch_user(self, username: str) -> DBUser | None:
        query = select(DBUser).where(DBUser.username == username)
        return self.db.scalar(query)

    def _to_model(self, user_db: DBUser) -> UserModel:
        """Convert SQLAlchemy model to data transfer model."""
        return UserModel(username=user_db.username, user_id=user_db.user_id)
