from typing import Annotated

from fastapi import APIRouter, Form, Query, UploadFile
from fastapi.responses import FileResponse
from pydantic import BaseModel, ConfigDict, Field

from cvfs.core.modules.vfs.models import ItemMetadata, ItemType, VfsItem
from cvfs.core.modules.vfs.utils import is_text_name
from cvfs.web.deps import AppDep, AuthTokenDep
from cvfs.web.openapi import ErrorResponse, MessageResponse

router = APIRouter(tags=["files"])

PathQuery = Annotated[str, Query(description="Virtual path, '/'-rooted")]

AUTH_RESPONSES: dict[int | str, dict[str, object]] = {
    401: {"model": ErrorResponse, "description": "Not authenticated"},
    403: {"model": ErrorResponse, "description": "Session expired or path outside the root folder"},
}


class PathRequest(BaseModel):
    """Request naming a single item."""

    path: str = Field(..., min_length=1, description="Virtual path of the item")


class CreateItemRequest(BaseModel):
    """Request to create a file or folder."""

    path: str = Field(..., min_length=1, description="Virtual path of the parent folder")
    name: str = Field(..., description="Name of the new item")
    type: ItemType = Field(..., description="Kind of item to create")


class WriteFileRequest(BaseModel):
    """Request to replace a file's content."""

    path: str = Field(..., min_length=1, description="Virtual path of the file")
    content: str = Field(..., description="New UTF-8 text content")


class TransferRequest(BaseModel):
    """Source and destination of a move or copy."""

    source_path: str = Field(..., alias="sourcePath", min_length=1, description="Virtual path of the item")
    destination_path: str = Field(..., alias="destinationPath", min_length=1, description="Full virtual path of the result")

    model_config = ConfigDict(populate_by_name=True)


class FileContentResponse(BaseModel):
    """Text content of a file."""

    content: str = Field(..., description="UTF-8 text content")


@router.get(
    "/list",
    summary="List folder",
    description="List the entries of a folder. A file path yields a single-entry listing.",
    operation_id="listItems",
    response_model_exclude_none=True,
    responses={
        200: {"description": "Folder entries"},
        **AUTH_RESPONSES,
        404: {"model": ErrorResponse, "description": "Path not found"},
    },
)
async def list_items(app: AppDep, auth_token: AuthTokenDep, path: PathQuery = "/") -> list[VfsItem]:
    return await app.list_items(auth_token, path)


@router.post(
    "/create",
    summary="Create file or folder",
    description="Create an empty file or a folder. Missing parent folders are created.",
    operation_id="createItem",
    status_code=201,
    responses={
        201: {"description": "Item created"},
        400: {"model": ErrorResponse, "description": "Invalid name or type"},
        **AUTH_RESPONSES,
        409: {"model": ErrorResponse, "description": "Item already exists"},
    },
)
async def create_item(request: CreateItemRequest, app: AppDep, auth_token: AuthTokenDep) -> MessageResponse:
    path = await app.create_item(auth_token, request.path, request.name, request.type)
    return MessageResponse(message=f"{request.type.capitalize()} '{path}' created successfully.")


@router.get(
    "/file",
    summary="Read file",
    description="Return `{content}` for text files, or the raw bytes for binary files (decided by extension).",
    operation_id="readFile",
    response_model=None,
    responses={
        200: {"description": "File content"},
        400: {"model": ErrorResponse, "description": "Path is a folder or not UTF-8 text"},
        **AUTH_RESPONSES,
        404: {"model": ErrorResponse, "description": "File not found"},
    },
)
async def read_file(app: AppDep, auth_token: AuthTokenDep, path: PathQuery) -> FileContentResponse | FileResponse:
    if is_text_name(path):
        return FileContentResponse(content=await app.read_file(auth_token, path))
    download = await app.get_file_download(auth_token, path)
    return FileResponse(path=download.file_path, media_type=download.media_type, filename=download.filename)


@router.get(
    "/serve-file",
    summary="Download file",
    description="Return the raw bytes of any file with a media type guessed from its extension.",
    operation_id="serveFile",
    response_model=None,
    responses={
        200: {"description": "Raw file content"},
        400: {"model": ErrorResponse, "description": "Path is a folder"},
        **AUTH_RESPONSES,
        404: {"model": ErrorResponse, "description": "File not found"},
    },
)
async def serve_file(app: AppDep, auth_token: AuthTokenDep, path: PathQuery) -> FileResponse:
    download = await app.get_file_download(auth_token, path)
    return FileResponse(path=download.file_path, media_type=download.media_type, filename=download.filename)


@router.put(
    "/file",
    summary="Write file",
    description="Replace the whole content of a file. Readers never see a partially written file.",
    operation_id="writeFile",
    responses={
        200: {"description": "File written"},
        400: {"model": ErrorResponse, "description": "Path is a folder"},
        **AUTH_RESPONSES,
        404: {"model": ErrorResponse, "description": "Parent folder not found"},
    },
)
async def write_file(request: WriteFileRequest, app: AppDep, auth_token: AuthTokenDep) -> MessageResponse:
    await app.write_file(auth_token, request.path, request.content)
    return MessageResponse(message="File content updated successfully.")


@router.delete(
    "/delete",
    summary="Delete item",
    description="Delete a file or an empty folder.",
    operation_id="deleteItem",
    responses={
        200: {"description": "Item deleted"},
        **AUTH_RESPONSES,
        404: {"model": ErrorResponse, "description": "Item not found"},
        409: {"model": ErrorResponse, "description": "Folder is not empty"},
    },
)
async def delete_item(request: PathRequest, app: AppDep, auth_token: AuthTokenDep) -> MessageResponse:
    await app.delete_item(auth_token, request.path)
    return MessageResponse(message="Item deleted successfully.")


@router.delete(
    "/delete-recursive",
    summary="Delete item recursively",
    description="Delete a file, or a folder with everything inside it.",
    operation_id="deleteItemRecursive",
    responses={
        200: {"description": "Item deleted"},
        **AUTH_RESPONSES,
        404: {"model": ErrorResponse, "description": "Item not found"},
    },
)
async def delete_item_recursive(request: PathRequest, app: AppDep, auth_token: AuthTokenDep) -> MessageResponse:
    await app.delete_item(auth_token, request.path, recursive=True)
    return MessageResponse(message="Item and its contents deleted successfully.")


@router.post(
    "/move",
    summary="Move item",
    description="Move or rename an item. The destination must not exist.",
    operation_id="moveItem",
    responses={
        200: {"description": "Item moved"},
        400: {"model": ErrorResponse, "description": "Destination inside source"},
        **AUTH_RESPONSES,
        404: {"model": ErrorResponse, "description": "Source not found"},
        409: {"model": ErrorResponse, "description": "Destination exists"},
    },
)
async def move_item(request: TransferRequest, app: AppDep, auth_token: AuthTokenDep) -> MessageResponse:
    await app.move_item(auth_token, request.source_path, request.destination_path)
    return MessageResponse(message="Item moved successfully.")


@router.post(
    "/copy",
    summary="Copy item",
    description="Copy a file or folder tree. The destination must not exist.",
    operation_id="copyItem",
    responses={
        200: {"description": "Item copied"},
        400: {"model": ErrorResponse, "description": "Destination inside source"},
        **AUTH_RESPONSES,
        404: {"model": ErrorResponse, "description": "Source not found"},
        409: {"model": ErrorResponse, "description": "Destination exists"},
    },
)
async def copy_item(request: TransferRequest, app: AppDep, auth_token: AuthTokenDep) -> MessageResponse:
    await app.copy_item(auth_token, request.source_path, request.destination_path)
    return MessageResponse(message="Item copied successfully.")


@router.get(
    "/metadata",
    summary="Get item metadata",
    description="Get name, kind, size and timestamps of an item.",
    operation_id="getItemMetadata",
    responses={
        200: {"description": "Item metadata"},
        **AUTH_RESPONSES,
        404: {"model": ErrorResponse, "description": "Item not found"},
    },
)
async def get_metadata(app: AppDep, auth_token: AuthTokenDep, path: PathQuery) -> ItemMetadata:
    return await app.get_metadata(auth_token, path)


@router.post(
    "/upload",
    summary="Upload file",
    description="Store an uploaded file in a folder, creating the folder if needed. A file of the same name is replaced.",
    operation_id="uploadFile",
    status_code=201,
    responses={
        201: {"description": "File uploaded"},
        400: {"model": ErrorResponse, "description": "Invalid file name"},
        **AUTH_RESPONSES,
    },
)
async def upload_file(
    file: UploadFile, app: AppDep, auth_token: AuthTokenDep, path: Annotated[str, Form(description="Target folder")] = "/"
) -> MessageResponse:
    content = await file.read()
    stored_path = await app.upload_file(auth_token, path, file.filename or "unnamed", content)
    return MessageResponse(message=f"File '{stored_path}' uploaded successfully.")
