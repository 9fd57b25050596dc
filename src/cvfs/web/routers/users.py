from fastapi import APIRouter

from cvfs.core.modules.user.models import UserView
from cvfs.web.deps import AppDep, AuthTokenDep
from cvfs.web.openapi import ErrorResponse

router = APIRouter(tags=["users"])


@router.get(
    "/users",
    summary="List users",
    description="Get all registered users, e.g. to pick the target of a share.",
    operation_id="listUsers",
    responses={
        200: {"description": "List of users"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Session invalid or expired"},
    },
)
async def list_users(app: AppDep, auth_token: AuthTokenDep) -> list[UserView]:
    return await app.get_all_users(auth_token)


@router.get(
    "/users/me",
    summary="Get current user",
    description="Get the account of the currently authenticated user.",
    operation_id="getCurrentUser",
    responses={
        200: {"description": "Current user"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Session invalid or expired"},
    },
)
async def get_current_user(app: AppDep, auth_token: AuthTokenDep) -> UserView:
    return await app.get_current_user(auth_token)
