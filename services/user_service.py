"""
User service: sign-in and user management.

The session is shared with the API client, so logging in here makes
every later request carry the bearer token.
"""

from typing import Optional
import structlog

from config import settings
from config.session import Session
from exceptions import (
    ApiError,
    InvalidPasswordError,
    NotAuthenticatedError,
    SelfDeleteError,
    UserNotFoundError,
)
from integrations.pos_api import PosApiClient, get_pos_client
from models.user import User, UserCreate, UserRole, UserUpdate

logger = structlog.get_logger(__name__)


class UserService:
    """Authentication and user CRUD."""

    def __init__(self, client: Optional[PosApiClient] = None):
        self.client = client or get_pos_client()
        self.min_password_length = settings.min_password_length

    @property
    def session(self) -> Session:
        return self.client.session

    # ===================
    # AUTHENTICATION
    # ===================

    def login(self, username: str, password: str) -> User:
        """
        Sign in and keep the token on the session.

        Raises:
            AuthenticationError: If the credentials are rejected
        """
        logger.info("login_attempt", username=username)
        return self.client.authenticate(username, password)

    def restore_session(self) -> Optional[User]:
        """
        Check a stored token against the backend.

        Returns the current user, or None after clearing a session whose
        token is missing, expired or rejected.
        """
        if not self.session.is_authenticated:
            return None

        try:
            user = self.client.fetch_current_user()
        except ApiError as e:
            logger.warning("session_restore_failed", status_code=e.status_code, error=e.message)
            user = None

        if user is None:
            self.session.clear()
            return None

        self.session.user = user
        logger.info("session_restored", user_id=user.id, role=user.role)
        return user

    def logout(self) -> None:
        user_id = self.session.user.id if self.session.user else None
        self.session.clear()
        logger.info("logged_out", user_id=user_id)

    def require_user(self) -> User:
        """
        Raises:
            NotAuthenticatedError: If nobody is signed in
        """
        if not self.session.is_authenticated or self.session.user is None:
            raise NotAuthenticatedError()
        return self.session.user

    # ===================
    # USER MANAGEMENT
    # ===================

    def list_users(self) -> list[User]:
        users = self.client.fetch_users()
        logger.info("users_retrieved", count=len(users))
        return users

    def create_user(self, username: str, password: str, role: UserRole = "employee") -> User:
        """
        Raises:
            InvalidPasswordError: If the password is missing or too short
        """
        self._check_password(password)
        logger.info("creating_user", username=username, role=role)
        user = self.client.add_user(UserCreate(username=username, password=password, role=role))
        logger.info("user_created", user_id=user.id)
        return user

    def update_user(
        self,
        user_id: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        role: Optional[UserRole] = None,
    ) -> User:
        """
        Change username, role and/or password. An empty password keeps the current one.

        Raises:
            InvalidPasswordError: If a new password is too short
            UserNotFoundError: If the backend has no such user
        """
        if password:
            self._check_password(password)

        logger.info("updating_user", user_id=user_id, password_changed=bool(password))
        data = UserUpdate(username=username, password=password or None, role=role)

        try:
            user = self.client.update_user(user_id, data)
        except ApiError as e:
            if e.status_code == 404:
                raise UserNotFoundError(user_id) from e
            raise
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def delete_user(self, user_id: str) -> None:
        """
        Raises:
            SelfDeleteError: If the signed-in user targets their own account
            UserNotFoundError: If the backend did not delete anything
        """
        current = self.session.user
        if current is not None and current.id == user_id:
            raise SelfDeleteError(user_id)

        logger.info("deleting_user", user_id=user_id)
        if not self.client.delete_user(user_id):
            raise UserNotFoundError(user_id)
        logger.info("user_deleted", user_id=user_id)

    def _check_password(self, password: Optional[str]) -> None:
        if not password or len(password) < self.min_password_length:
            raise InvalidPasswordError(self.min_password_length)


# Singleton instance for convenience
_user_service: Optional[UserService] = None

def get_user_service() -> UserService:
    """Get or create UserService instance."""
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service
