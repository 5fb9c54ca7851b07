"""
In-memory login session for the picking client.

Tokens and the logged-in user live only in this object; persisting them
between application runs is the platform's business, not ours.
"""

from typing import Dict, Optional

from api_client import PICKER_ROLE
from logger import get_logger, set_user_context, clear_logging_context
from models import User

logger = get_logger(__name__)

COORDINATOR_ROLES = ("superadmin", "coordinator")


class AuthSession:
    """
    Holds the current user and hands the access token to the API client.

    Args:
        client: PickingApiClient used for login and authenticated calls
    """

    def __init__(self, client):
        self.client = client
        self.current_user: Optional[User] = None
        self._tokens: Dict[str, Optional[str]] = {}

    @property
    def is_logged_in(self) -> bool:
        return self.current_user is not None

    async def login(self, username: str, password: str) -> User:
        """
        Log in with primary credentials.

        Raises:
            RemoteServiceError: Login refused or server unreachable
        """
        user, tokens = await self.client.login(username, password)
        self._tokens = tokens
        self.current_user = user
        self.client.set_token(tokens.get("access_token"))

        set_user_context(str(user.id))
        logger.info(f"User {user.username} logged in with roles "
                    f"{[role.name for role in user.roles]}")
        return user

    def logout(self):
        if self.current_user is not None:
            logger.info(f"User {self.current_user.username} logged out")
        self.current_user = None
        self._tokens = {}
        self.client.set_token(None)
        clear_logging_context()

    @staticmethod
    def home_for(user: User) -> Optional[str]:
        """
        Which workspace a user lands on after login.

        Returns:
            "coordinator", "picker", or None for users with neither role
        """
        if any(user.has_role(role) for role in COORDINATOR_ROLES):
            return "coordinator"
        if user.has_role(PICKER_ROLE):
            return "picker"
        return None
