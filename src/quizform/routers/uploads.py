"""Image upload and download endpoints."""

from fastapi import APIRouter, Depends, UploadFile, status
from fastapi.responses import FileResponse
from loguru import logger

from quizform.auth import get_current_identity
from quizform.schemas.common import error_responses
from quizform.schemas.response import UploadResponse
from quizform.services.identity import Identity
from quizform.services.storage import ImageStorageService

router = APIRouter(prefix="/uploads", tags=["Uploads"])


@router.post(
    "/images",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload an image",
    description="Store a question or header image and return its URL.",
    responses=error_responses(400, 401),
)
async def upload_image(
    file: UploadFile,
    identity: Identity = Depends(get_current_identity),
) -> UploadResponse:
    """Upload an image for use in a form."""
    storage_service = ImageStorageService()
    url = await storage_service.save_image(file)

    logger.info(
        "Image uploaded",
        filename=file.filename,
        owner_id=identity.subject_id,
        url=url,
    )
    return UploadResponse(url=url)


@router.get(
    "/images/{filename}",
    response_class=FileResponse,
    summary="Download an image",
    description="Serve a stored image. No sign-in required, as forms embed these URLs.",
    responses={
        **error_responses(404),
        status.HTTP_200_OK: {"content": {"image/*": {}}, "description": "Image bytes"},
    },
)
async def get_image(filename: str) -> FileResponse:
    """Serve an uploaded image."""
    file_path = ImageStorageService().resolve(filename)
    return FileResponse(file_path)
