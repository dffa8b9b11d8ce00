from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from marketplace.config import Settings
from marketplace.models.user import Role


class InvalidTokenError(Exception):
    """Raised when a session token fails verification."""
    pass


@dataclass(frozen=True)
class TokenClaims:
    """Verified contents of a session token."""
    subject_id: str
    role: Optional[Role] = None


class TokenService:
    """
    Issues and verifies signed, time-limited bearer tokens.

    Tokens always embed the role at issuance, but callers must treat it as
    a hint: the live role is re-read from the user record on every request.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expires_in: timedelta = timedelta(days=30)):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expires_in = expires_in

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            secret_key=settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
            expires_in=timedelta(days=settings.JWT_EXPIRE_DAYS),
        )

    def issue(self, subject_id: str, role: Role) -> str:
        """
        Create a signed token for a user.

        Args:
            subject_id: User identifier
            role: Role of the user at issuance

        Returns:
            Encoded JWT string
        """
        issued_at = int(datetime.now(timezone.utc).timestamp())
        payload = {
            "sub": str(subject_id),
            "role": Role(role).value,
            "iat": issued_at,
            "exp": issued_at + int(self.expires_in.total_seconds()),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Decode and validate a token.

        Raises:
            InvalidTokenError: If the signature is invalid, the payload is
                malformed or the token has expired
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidTokenError("Token has expired") from None
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from None

        subject_id = payload.get("sub")
        if not isinstance(subject_id, str) or not subject_id:
            raise InvalidTokenError("Invalid token: missing subject")

        role = payload.get("role")
        if role is None:
            return TokenClaims(subject_id=subject_id)
        try:
            return TokenClaims(subject_id=subject_id, role=Role(role))
        except ValueError:
            raise InvalidTokenError(f"Invalid token: unknown role {role!r}") from None
