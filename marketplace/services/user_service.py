from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional
import logging

import bcrypt

from marketplace.models.user import User, Role
from marketplace.services.exceptions import (
    DuplicateEmailError,
    NotFoundError,
    UnauthenticatedError,
)

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plain-text password against a bcrypt hash."""
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or over-long password
        return False


class UserService:
    """
    Credential store for user accounts.

    Passwords are only ever stored as bcrypt hashes and are never logged.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def find_by_email_and_role(self, email: str, role: Role) -> Optional[User]:
        """
        Look up a user by email, restricted to one role.

        Used by the admin login so that a regular account cannot authenticate
        through it even with correct credentials.
        """
        return (
            self.db.query(User)
            .filter(User.email == email.strip().lower(), User.role == role)
            .first()
        )

    def create(self, full_name: str, email: str, password: str, role: Role = Role.USER) -> User:
        """
        Create a new user account.

        Raises:
            DuplicateEmailError: If the email is already registered
        """
        email = email.strip().lower()
        if self.find_by_email(email):
            raise DuplicateEmailError("User already exists")

        user = User(
            full_name=full_name,
            email=email,
            password_hash=hash_password(password),
            role=role,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration
            self.db.rollback()
            raise DuplicateEmailError("User already exists")
        self.db.refresh(user)

        logger.info(f"Registered user {user.id} with role {user.role.value}")
        return user

    def verify_secret(self, user: User, plaintext: str) -> bool:
        return verify_password(plaintext, user.password_hash)

    def update_profile(
        self,
        user: User,
        full_name: Optional[str] = None,
        email: Optional[str] = None,
        current_password: Optional[str] = None,
        new_password: Optional[str] = None,
    ) -> User:
        """
        Update the caller's own profile.

        Raises:
            DuplicateEmailError: If the new email belongs to another account
            UnauthenticatedError: If a new password is set without the correct current one
        """
        if email is not None and email != user.email:
            if self.find_by_email(email):
                raise DuplicateEmailError("Email already exists")
            user.email = email

        if new_password is not None:
            if not current_password or not self.verify_secret(user, current_password):
                raise UnauthenticatedError("Current password is incorrect")
            user.password_hash = hash_password(new_password)

        if full_name is not None:
            user.full_name = full_name

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateEmailError("Email already exists")
        self.db.refresh(user)
        return user

    def set_role(self, email: str, role: Role) -> User:
        """
        Explicitly promote (or demote) a user.

        Raises:
            NotFoundError: If no user has this email
        """
        user = self.find_by_email(email)
        if not user:
            raise NotFoundError("User not found")

        user.role = role
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User {user.id} is now {role.value}")
        return user
