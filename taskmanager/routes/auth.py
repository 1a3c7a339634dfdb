from fastapi import APIRouter, Depends, status

from .. import schemas
from ..dependencies import get_auth_service, get_current_user_id
from ..services import AuthService

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=schemas.UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
def register(payload: schemas.UserCreate, auth: AuthService = Depends(get_auth_service)):
    return auth.register(payload.email, payload.name, payload.password)


@router.post("/login", response_model=schemas.TokenPair, summary="Login and get JWTs")
def login(payload: schemas.LoginRequest, auth: AuthService = Depends(get_auth_service)):
    return auth.login(payload.email, payload.password)


# A protected endpoint so Swagger shows the "Authorize" button,
# and to quickly verify your token works.
@router.get(
    "/me",
    response_model=schemas.UserOut,
    summary="Get current user (requires Bearer token)",
    description="Returns the authenticated user's profile. Use the Authorize button to sign in.",
)
def me(
    user_id: int = Depends(get_current_user_id),
    auth: AuthService = Depends(get_auth_service),
):
    return auth.get_profile(user_id)


@router.patch("/me", response_model=schemas.UserOut, summary="Edit current user's profile")
def update_me(
    payload: schemas.UserUpdate,
    user_id: int = Depends(get_current_user_id),
    auth: AuthService = Depends(get_auth_service),
):
    return auth.update_profile(user_id, payload.name)
