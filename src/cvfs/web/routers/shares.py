from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from cvfs.core.modules.share.models import ShareView
from cvfs.web.deps import AppDep, AuthTokenDep
from cvfs.web.openapi import ErrorResponse, MessageResponse

router = APIRouter(tags=["sharing"])


class ShareRequest(BaseModel):
    """Request to share an item with another user."""

    path: str = Field(..., min_length=1, description="Virtual path of the item to share")
    target_user_id: UUID = Field(..., alias="targetUserId", description="User who will receive the item")

    model_config = ConfigDict(populate_by_name=True)


class ShareNameRequest(BaseModel):
    """Request naming a pending share."""

    name: str = Field(..., min_length=1, description="Display name of the pending share")


@router.post(
    "/share",
    summary="Share item",
    description="Propose an item to another user. Nothing is copied until the user accepts.",
    operation_id="shareItem",
    status_code=201,
    responses={
        201: {"description": "Share created"},
        400: {"model": ErrorResponse, "description": "Sharing with yourself or sharing the root folder"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Session expired or path outside the root folder"},
        404: {"model": ErrorResponse, "description": "Item or target user not found"},
    },
)
async def share_item(request: ShareRequest, app: AppDep, auth_token: AuthTokenDep) -> MessageResponse:
    await app.share_item(auth_token, request.path, request.target_user_id)
    return MessageResponse(message="Item shared successfully.")


@router.get(
    "/pending-shares",
    summary="List pending shares",
    description="Shares offered to the current user that were neither accepted nor denied.",
    operation_id="listPendingShares",
    responses={
        200: {"description": "Pending shares"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Session invalid or expired"},
    },
)
async def list_pending_shares(app: AppDep, auth_token: AuthTokenDep) -> list[ShareView]:
    return await app.get_pending_shares(auth_token)


@router.post(
    "/accept-share",
    summary="Accept share",
    description="Copy a pending shared item into the root folder of the current user.",
    operation_id="acceptShare",
    responses={
        200: {"description": "Share accepted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Session invalid or expired"},
        404: {"model": ErrorResponse, "description": "No such pending share, or its source was deleted"},
        409: {"model": ErrorResponse, "description": "An item with that name already exists"},
    },
)
async def accept_share(request: ShareNameRequest, app: AppDep, auth_token: AuthTokenDep) -> MessageResponse:
    await app.accept_share(auth_token, request.name)
    return MessageResponse(message=f"Share '{request.name}' accepted.")


@router.post(
    "/deny-share",
    summary="Deny share",
    description="Reject a pending share. Nothing is copied.",
    operation_id="denyShare",
    responses={
        200: {"description": "Share denied"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Session invalid or expired"},
        404: {"model": ErrorResponse, "description": "No such pending share"},
    },
)
async def deny_share(request: ShareNameRequest, app: AppDep, auth_token: AuthTokenDep) -> MessageResponse:
    await app.deny_share(auth_token, request.name)
    return MessageResponse(message=f"Share '{request.name}' denied.")
