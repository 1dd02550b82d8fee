from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from loguru import logger

from gallery.api.v1.deps.auth import get_current_identity, get_reader_identity
from gallery.api.v1.deps.rate_limit import rate_limit_delete, rate_limit_list, rate_limit_upload
from gallery.api.v1.deps.services import get_media_service
from gallery.core import responses
from gallery.core.exceptions import http_exceptions
from gallery.core.exceptions.domain import (
    InvalidPathError,
    InvalidUploadError,
    StorageQuotaExceededError,
)
from gallery.core.exceptions.storage import StorageError
from gallery.schemas import DeleteRequest, DeleteResponse, StoredObject, UploadResponse
from gallery.services.media_service import MediaService

router = APIRouter()

STORAGE_FAILURE_DETAIL = "Storage operation failed"


def storage_failure(error: StorageError) -> http_exceptions.InternalServerErrorException:
    logger.error(f"Object store failure: {error}")

    return http_exceptions.InternalServerErrorException(detail=STORAGE_FAILURE_DETAIL)


@router.get(
    "/list",
    response_model=list[StoredObject],
    dependencies=[Depends(rate_limit_list), Depends(get_reader_identity)],
    responses={
        status.HTTP_401_UNAUTHORIZED: {"model": responses.UnauthorizedResponse},
        status.HTTP_429_TOO_MANY_REQUESTS: responses.THROTTLED_RESPONSE,
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": responses.InternalServerErrorResponse},
    },
    summary="List media",
    description="List every object under the upload prefix. Open to guests in guest mode.",
)
async def list_media(media_service: Annotated[MediaService, Depends(get_media_service)]):
    try:
        return await media_service.list_media()
    except StorageError as e:
        raise storage_failure(e)


@router.post(
    "/upload",
    response_model=UploadResponse,
    dependencies=[Depends(rate_limit_upload), Depends(get_current_identity)],
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": responses.BadRequestResponse},
        status.HTTP_401_UNAUTHORIZED: {"model": responses.UnauthorizedResponse},
        status.HTTP_429_TOO_MANY_REQUESTS: responses.THROTTLED_RESPONSE,
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": responses.InternalServerErrorResponse},
    },
    summary="Upload media",
    description="Store one image or video under an optional folder path.",
)
async def upload_media(
    file: Annotated[UploadFile, File()],
    media_service: Annotated[MediaService, Depends(get_media_service)],
    path: Annotated[str, Form()] = "",
):
    try:
        # Reject on the declared size before the body is loaded into memory
        media_service.check_upload(file.content_type, file.size)
        data = await file.read()

        return await media_service.upload(
            file_name=file.filename or "",
            content_type=file.content_type,
            data=data,
            path=path,
        )
    except (InvalidUploadError, InvalidPathError, StorageQuotaExceededError) as e:
        raise http_exceptions.BadRequestException(detail=e.message)
    except StorageError as e:
        raise storage_failure(e)
    finally:
        await file.close()


@router.delete(
    "/upload",
    response_model=DeleteResponse,
    dependencies=[Depends(rate_limit_delete), Depends(get_current_identity)],
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": responses.BadRequestResponse},
        status.HTTP_401_UNAUTHORIZED: {"model": responses.UnauthorizedResponse},
        status.HTTP_429_TOO_MANY_REQUESTS: responses.THROTTLED_RESPONSE,
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": responses.InternalServerErrorResponse},
    },
    summary="Delete media",
    description='Delete one object with {"key": ...} or several with {"keys": [...]}.',
)
async def delete_media(
    payload: DeleteRequest,
    media_service: Annotated[MediaService, Depends(get_media_service)],
):
    try:
        deleted = await media_service.delete(payload.target_keys)
    except InvalidPathError as e:
        raise http_exceptions.BadRequestException(detail=e.message)
    except StorageError as e:
        raise storage_failure(e)

    return DeleteResponse(success=True, deleted=deleted)
