from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from gallery.api.v1.deps.auth import get_reader_identity
from gallery.api.v1.deps.rate_limit import rate_limit_object
from gallery.api.v1.deps.services import get_media_service
from gallery.api.v1.endpoints.media import storage_failure
from gallery.core import responses
from gallery.core.constants import OBJECT_CACHE_CONTROL
from gallery.core.exceptions import http_exceptions
from gallery.core.exceptions.domain import InvalidPathError, ObjectNotFoundError
from gallery.core.exceptions.storage import StorageError
from gallery.services.media_service import MediaService

router = APIRouter()


@router.get(
    "/{key}",
    response_class=Response,
    dependencies=[Depends(rate_limit_object), Depends(get_reader_identity)],
    responses={
        status.HTTP_200_OK: {"content": {"application/octet-stream": {}}},
        status.HTTP_400_BAD_REQUEST: {"model": responses.BadRequestResponse},
        status.HTTP_404_NOT_FOUND: {"model": responses.NotFoundResponse},
        status.HTTP_429_TOO_MANY_REQUESTS: responses.THROTTLED_RESPONSE,
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": responses.InternalServerErrorResponse},
    },
    summary="Fetch an object",
    description='Key segments are URL-encoded and joined with "___".',
)
async def get_object(
    key: str,
    media_service: Annotated[MediaService, Depends(get_media_service)],
):
    try:
        obj = await media_service.fetch(key)
    except InvalidPathError as e:
        raise http_exceptions.BadRequestException(detail=e.message)
    except ObjectNotFoundError:
        raise http_exceptions.NotFoundException(detail="Not found")
    except StorageError as e:
        raise storage_failure(e)

    return Response(
        content=obj.body,
        media_type=obj.content_type or "application/octet-stream",
        headers={"Cache-Control": OBJECT_CACHE_CONTROL},
    )
