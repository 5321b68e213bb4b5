import logging
from typing import List

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .errors import RepositoryError
from .models import User
from .schemas import UserIn, UserOut

logger = logging.getLogger(__name__)


def _repository_error(action: str, exc: SQLAlchemyError) -> RepositoryError:
    # Keep the driver's own message; the API layer hands it to the client.
    message = str(getattr(exc, "orig", None) or exc)
    logger.error("Failed to %s: %s", action, message)
    return RepositoryError(message)


class UserRepository:
    """Data access for the ``users`` table.

    Each method runs exactly one statement in its own short transaction, so a
    pooled connection is held only for the duration of that statement.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def list_users(self) -> List[UserOut]:
        """Return every user in storage order (no ORDER BY)."""
        stmt = select(User.id, User.name, User.department, User.email)
        try:
            with self._session_factory.begin() as db:
                rows = db.execute(stmt).all()
        except SQLAlchemyError as exc:
            raise _repository_error("list users", exc) from exc
        return [UserOut.model_validate(row) for row in rows]

    def create_user(self, user_in: UserIn) -> int:
        """Insert a user and return the id generated by the database."""
        stmt = (
            insert(User)
            .values(
                name=user_in.name,
                department=user_in.department,
                email=user_in.email,
            )
            .returning(User.id)
        )
        try:
            with self._session_factory.begin() as db:
                user_id = db.execute(stmt).scalar_one()
        except SQLAlchemyError as exc:
            raise _repository_error("insert user", exc) from exc
        return user_id

    def update_user(self, user_id: int, user_in: UserIn) -> int:
        """Overwrite name, department and email of one user.

        Returns:
            Number of rows affected; 0 if no user has ``user_id``.
        """
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(
                name=user_in.name,
                department=user_in.department,
                email=user_in.email,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            with self._session_factory.begin() as db:
                affected = db.execute(stmt).rowcount
        except SQLAlchemyError as exc:
            raise _repository_error(f"update user {user_id}", exc) from exc
        return affected

    def delete_user(self, user_id: int) -> int:
        """Delete one user. Returns the number of rows affected."""
        stmt = (
            delete(User)
            .where(User.id == user_id)
            .execution_options(synchronize_session=False)
        )
        try:
            with self._session_factory.begin() as db:
                affected = db.execute(stmt).rowcount
        except SQLAlchemyError as exc:
            raise _repository_error(f"delete user {user_id}", exc) from exc
        return affected
