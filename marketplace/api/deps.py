from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from typing import Callable, Optional
import logging

from marketplace.config import Settings, get_settings
from marketplace.database import get_db
from marketplace.models.user import User, Role
from marketplace.services.auth_service import AuthService
from marketplace.services.exceptions import ForbiddenError, UnauthenticatedError
from marketplace.services.moderation_service import ModerationService
from marketplace.services.product_service import ProductService
from marketplace.services.token_service import InvalidTokenError, TokenService
from marketplace.services.user_service import UserService
from marketplace.utils.storage import ImageStorage

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_token_service(settings: Settings = Depends(get_settings)) -> TokenService:
    return TokenService.from_settings(settings)


def get_image_storage(settings: Settings = Depends(get_settings)) -> ImageStorage:
    return ImageStorage(settings.UPLOAD_DIR, settings.MAX_UPLOAD_SIZE)


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


def get_auth_service(
    users: UserService = Depends(get_user_service),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(users, tokens, settings.ADMIN_REGISTRATION_CODE)


def get_product_service(
    db: Session = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
    settings: Settings = Depends(get_settings),
) -> ProductService:
    return ProductService(
        db,
        storage,
        require_image=settings.PRODUCT_REQUIRE_IMAGE,
        require_condition=settings.PRODUCT_REQUIRE_CONDITION,
    )


def get_moderation_service(db: Session = Depends(get_db)) -> ModerationService:
    return ModerationService(db)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    users: UserService = Depends(get_user_service),
    tokens: TokenService = Depends(get_token_service),
) -> User:
    """
    Resolve the caller from the bearer token.

    The user record is always re-read so that a role change or a removed
    account takes effect immediately, whatever role the token carries.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError("Not authorized, no token")

    try:
        claims = tokens.verify(credentials.credentials)
    except InvalidTokenError as e:
        logger.warning(f"Token verification failed: {e}")
        raise UnauthenticatedError("Not authorized, token failed") from None

    user = users.get_by_id(claims.subject_id)
    if not user:
        logger.warning(f"Token subject {claims.subject_id} no longer exists")
        raise UnauthenticatedError("User not found")

    request.state.user_id = user.id
    request.state.role = user.role
    return user


def require_roles(*roles: Role) -> Callable[..., User]:
    """
    Dependency factory restricting an endpoint to the given roles.

    Usage:
        @router.get("/pending")
        def list_pending(moderator: User = Depends(require_roles(Role.ADMIN, Role.SUBADMIN))):
            ...
    """
    allowed = frozenset(roles)

    def role_checker(user: User = Depends(get_current_user)) -> User:
        if not user.role:
            raise ForbiddenError("No role specified")
        if user.role not in allowed:
            raise ForbiddenError(f"User role {user.role.value} is not authorized to access this route")
        return user

    return role_checker


require_moderator = require_roles(Role.ADMIN, Role.SUBADMIN)
