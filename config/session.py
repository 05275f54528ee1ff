"""
Session state for the signed-in user.

Holds the bearer token and the current user. The data-access layer reads
the token from the session it was constructed with; the CLI loads and
saves the session file at process start and exit.
"""

import json
from pathlib import Path
from typing import Optional, Union
import structlog

from models.user import User

logger = structlog.get_logger(__name__)


class Session:
    """
    Bearer token plus the user it belongs to.

    Usage:
        session = Session.load(settings.session_file)
        client = PosApiClient(session=session)
        ...
        session.save(settings.session_file)
    """

    def __init__(self, token: Optional[str] = None, user: Optional[User] = None):
        self.token = token
        self.user = user

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.role == "admin"

    def auth_headers(self) -> dict[str, str]:
        """Authorization header for the remote service, empty when signed out."""
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def start(self, token: str, user: User) -> None:
        self.token = token
        self.user = user

    def clear(self) -> None:
        self.token = None
        self.user = None

    # ===================
    # PERSISTENCE HOOKS
    # ===================

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Session":
        """
        Load a session from disk.

        A missing or corrupt file yields an empty session.
        """
        path = Path(path)
        if not path.exists():
            return cls()

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError(f"expected an object, got {type(data).__name__}")
            token = data.get("token")
            user_data = data.get("user")
            user = User(**user_data) if user_data else None
        except (OSError, ValueError, TypeError) as e:
            # pydantic's ValidationError is a ValueError
            logger.warning("session_load_failed", path=str(path), error=str(e))
            return cls()

        logger.debug("session_loaded", path=str(path), has_token=bool(token))
        return cls(token=token, user=user)

    def save(self, path: Union[str, Path]) -> None:
        """Write the session to disk, or remove the file when signed out."""
        path = Path(path)
        if not self.token:
            path.unlink(missing_ok=True)
            logger.debug("session_file_removed", path=str(path))
            return

        # Only the minimal user fields are stored
        payload = {
            "token": self.token,
            "user": self.user.model_dump(include={"id", "username", "role"}) if self.user else None,
        }
        path.write_text(json.dumps(payload), encoding="utf-8")
        logger.debug("session_saved", path=str(path))
