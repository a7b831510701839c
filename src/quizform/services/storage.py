"""File storage service for question and header images."""

import uuid
from pathlib import Path

import aiofiles
from fastapi import UploadFile

from quizform.config import settings
from quizform.exceptions import DomainValidationError, NotFoundError

ALLOWED_CONTENT_TYPES = {"image/png", "image/jpeg", "image/gif", "image/webp"}
ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}
CHUNK_SIZE = 1024 * 1024


class ImageStorageService:
    """Store uploaded images and hand back a retrievable URL."""

    def __init__(
        self,
        upload_dir: str | None = None,
        base_url: str | None = None,
        max_size_bytes: int | None = None,
    ) -> None:
        self.upload_dir = Path(upload_dir or settings.upload_dir)
        self.base_url = (base_url or settings.upload_base_url).rstrip("/")
        self.max_size_bytes = max_size_bytes or settings.max_upload_size_bytes

    async def save_image(self, file: UploadFile) -> str:
        """
        Save an uploaded image to storage.

        Returns:
            Public URL of the stored image

        Raises:
            DomainValidationError: If file type or size is invalid
        """
        extension = self._validate_file_type(file)

        self.upload_dir.mkdir(parents=True, exist_ok=True)
        filename = f"{uuid.uuid4()}{extension}"
        file_path = self.upload_dir / filename

        written = await self._write_file(file, file_path)
        if written is None:
            file_path.unlink(missing_ok=True)
            raise DomainValidationError(
                message=f"File size exceeds maximum of {self.max_size_bytes} bytes",
                field="file",
                details={"max_bytes": self.max_size_bytes},
            )

        return f"{self.base_url}/{filename}"

    def _validate_file_type(self, file: UploadFile) -> str:
        """Validate that the upload is an image and return its extension."""
        content_type = file.content_type or ""
        extension = Path(file.filename or "").suffix.lower()

        if content_type not in ALLOWED_CONTENT_TYPES or extension not in ALLOWED_EXTENSIONS:
            raise DomainValidationError(
                message="Only PNG, JPEG, GIF or WebP images are allowed",
                field="file",
                details={"content_type": content_type, "extension": extension},
            )
        return ".jpg" if extension == ".jpeg" else extension

    async def _write_file(self, file: UploadFile, file_path: Path) -> int | None:
        """Stream the upload to disk; None if it outgrew the size limit."""
        total_size = 0
        async with aiofiles.open(file_path, "wb") as out_file:
            while chunk := await file.read(CHUNK_SIZE):
                total_size += len(chunk)
                if total_size > self.max_size_bytes:
                    return None
                await out_file.write(chunk)
        return total_size

    def resolve(self, filename: str) -> Path:
        """
        Locate a stored image by the filename in its URL.

        Raises:
            NotFoundError: If the name is not a stored image in the upload directory
        """
        if (
            Path(filename).name != filename
            or Path(filename).suffix.lower() not in ALLOWED_EXTENSIONS
        ):
            raise NotFoundError(resource="Image", resource_id=filename)

        file_path = self.upload_dir / filename
        if not file_path.is_file():
            raise NotFoundError(resource="Image", resource_id=filename)
        return file_path
