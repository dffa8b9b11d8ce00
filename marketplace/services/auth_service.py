import hmac
import logging
from typing import Tuple

from marketplace.models.user import User, Role
from marketplace.services.exceptions import InvalidAdminCodeError, UnauthenticatedError
from marketplace.services.token_service import TokenService
from marketplace.services.user_service import UserService

logger = logging.getLogger(__name__)


class AuthService:
    """
    Registration and login flows.

    Every flow returns the user together with a freshly issued token that
    embeds the user's current role.
    """

    def __init__(self, users: UserService, tokens: TokenService, admin_registration_code: str = ""):
        self.users = users
        self.tokens = tokens
        self.admin_registration_code = admin_registration_code

    def register(self, full_name: str, email: str, password: str) -> Tuple[User, str]:
        user = self.users.create(full_name, email, password)
        return user, self.tokens.issue(user.id, user.role)

    def login(self, email: str, password: str) -> Tuple[User, str]:
        """
        Authenticate with email and password.

        Raises:
            UnauthenticatedError: If the email is unknown or the password is wrong
        """
        user = self.users.find_by_email(email)
        if not user or not self.users.verify_secret(user, password):
            logger.warning("Failed login attempt")
            raise UnauthenticatedError("Invalid credentials")
        return user, self.tokens.issue(user.id, user.role)

    def register_admin(self, full_name: str, email: str, password: str, admin_code: str) -> Tuple[User, str]:
        """
        Register an admin account, gated by the server-held registration code.

        Raises:
            InvalidAdminCodeError: If the code is wrong or admin registration is disabled
            DuplicateEmailError: If the email is already registered
        """
        expected = self.admin_registration_code
        if not expected or not hmac.compare_digest(admin_code.encode("utf-8"), expected.encode("utf-8")):
            logger.warning("Admin registration rejected: invalid code")
            raise InvalidAdminCodeError()

        user = self.users.create(full_name, email, password, role=Role.ADMIN)
        return user, self.tokens.issue(user.id, user.role)

    def login_admin(self, email: str, password: str) -> Tuple[User, str]:
        """Authenticate an account that currently holds the admin role."""
        admin = self.users.find_by_email_and_role(email, Role.ADMIN)
        if not admin or not self.users.verify_secret(admin, password):
            logger.warning("Failed admin login attempt")
            raise UnauthenticatedError("Invalid admin credentials")
        return admin, self.tokens.issue(admin.id, admin.role)
