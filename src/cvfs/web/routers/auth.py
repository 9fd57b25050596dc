from fastapi import APIRouter
from pydantic import BaseModel, Field

from cvfs.web.deps import AppDep, AuthTokenDep
from cvfs.web.openapi import ErrorResponse, MessageResponse

router = APIRouter(tags=["auth"])


class CredentialsRequest(BaseModel):
    """Username and password."""

    username: str = Field(..., min_length=1, description="Username")
    password: str = Field(..., min_length=1, description="Password")


class LoginResponse(BaseModel):
    """Authentication response."""

    token: str = Field(..., description="Authentication token for subsequent requests")
    user_id: str = Field(..., serialization_alias="userId", description="ID of the authenticated user")
    expires_in: int = Field(..., serialization_alias="expiresIn", description="Seconds of inactivity before the token expires")


class RefreshResponse(BaseModel):
    """New token issued in exchange for the old one."""

    new_token: str = Field(..., serialization_alias="newToken", description="Replacement authentication token")
    expires_in: int = Field(..., serialization_alias="expiresIn", description="Seconds of inactivity before the token expires")


@router.post(
    "/signup",
    summary="Register user",
    description="Create a user account together with an empty root folder.",
    operation_id="signup",
    status_code=201,
    responses={
        201: {"description": "User registered"},
        400: {"model": ErrorResponse, "description": "Invalid username or password"},
        409: {"model": ErrorResponse, "description": "Username already taken"},
    },
)
async def signup(request: CredentialsRequest, app: AppDep) -> MessageResponse:
    await app.signup(request.username, request.password)
    return MessageResponse(message="User registered successfully.")


@router.post(
    "/login",
    summary="Authenticate user",
    description="Authenticate with username and password to receive a session token.",
    operation_id="login",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(request: CredentialsRequest, app: AppDep) -> LoginResponse:
    session = await app.login(request.username, request.password)
    return LoginResponse(token=session.token, user_id=str(session.user_id), expires_in=app.session_ttl_seconds())


@router.post(
    "/logout",
    summary="End session",
    description="Invalidate the current session. Succeeds even if the session already ended.",
    operation_id="logout",
    responses={
        200: {"description": "Successfully logged out"},
        401: {"model": ErrorResponse, "description": "No token supplied"},
    },
)
async def logout(app: AppDep, auth_token: AuthTokenDep) -> MessageResponse:
    await app.logout(auth_token)
    return MessageResponse(message="Logged out successfully.")


@router.post(
    "/refresh",
    summary="Rotate session token",
    description="Exchange the current token for a new one. The old token stops working immediately.",
    operation_id="refreshSession",
    responses={
        200: {"description": "New token issued"},
        401: {"model": ErrorResponse, "description": "No token supplied"},
        403: {"model": ErrorResponse, "description": "Session invalid or expired"},
    },
)
async def refresh(app: AppDep, auth_token: AuthTokenDep) -> RefreshResponse:
    session = await app.refresh_session(auth_token)
    return RefreshResponse(new_token=session.token, expires_in=app.session_ttl_seconds())
