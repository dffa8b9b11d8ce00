from fastapi import APIRouter, Depends, status

from marketplace.api.deps import get_auth_service, get_current_user, get_user_service
from marketplace.models.user import User
from marketplace.services.auth_service import AuthService
from marketplace.services.user_service import UserService
from marketplace.schemas.common import Envelope
from marketplace.schemas.user import (
    AdminRegisterRequest,
    AuthData,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    UserSummary,
)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _auth_envelope(user: User, token: str) -> Envelope[AuthData]:
    return Envelope[AuthData](data=AuthData(token=token, user=UserSummary.model_validate(user)))


@router.post(
    "/register",
    response_model=Envelope[AuthData],
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
def register(body: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    """
    Register a user account and return a session token.

    - **fullName**: Display name (required)
    - **email**: Unique login email (required)
    - **password**: At least 6 characters (required)
    """
    user, token = service.register(body.full_name, body.email, body.password)
    return _auth_envelope(user, token)


@router.post("/login", response_model=Envelope[AuthData], summary="Log in")
def login(body: LoginRequest, service: AuthService = Depends(get_auth_service)):
    """Exchange email and password for a session token valid for 30 days."""
    user, token = service.login(body.email, body.password)
    return _auth_envelope(user, token)


@router.get("/me", response_model=Envelope[UserSummary], summary="Get current user")
def get_me(current_user: User = Depends(get_current_user)):
    return Envelope[UserSummary](data=UserSummary.model_validate(current_user))


@router.put("/profile", response_model=Envelope[UserSummary], summary="Update current user")
def update_profile(
    body: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    """
    Update name, email or password of the current user.

    Changing the password requires **currentPassword**.
    """
    user = users.update_profile(
        current_user,
        full_name=body.full_name,
        email=body.email,
        current_password=body.current_password,
        new_password=body.new_password,
    )
    return Envelope[UserSummary](data=UserSummary.model_validate(user))


@router.post(
    "/admin/register",
    response_model=Envelope[AuthData],
    status_code=status.HTTP_201_CREATED,
    summary="Register an admin",
)
def register_admin(body: AdminRegisterRequest, service: AuthService = Depends(get_auth_service)):
    """Register an admin account. Requires the server's admin registration code."""
    user, token = service.register_admin(body.full_name, body.email, body.password, body.admin_code)
    return _auth_envelope(user, token)


@router.post("/admin/login", response_model=Envelope[AuthData], summary="Admin login")
def login_admin(body: LoginRequest, service: AuthService = Depends(get_auth_service)):
    """Log in with an account that holds the admin role."""
    user, token = service.login_admin(body.email, body.password)
    return _auth_envelope(user, token)
