"""
Local-disk storage for uploaded lecture documents
"""
import logging
import uuid
from pathlib import Path
from typing import Dict, Optional, Union

import aiofiles

from quizportal.config import settings
from quizportal.exceptions import InvalidUploadError
from quizportal.services.text_extractor import SUPPORTED_EXTENSIONS, file_extension

logger = logging.getLogger(__name__)

QUIZ_UPLOAD_PREFIX = "uploads/quiz"


class StorageService:
    """
    Files are addressed by URL-style paths (/uploads/quiz/<uuid>.<ext>)
    resolved under the configured upload root.
    """

    def __init__(self, root: Optional[Union[str, Path]] = None, max_upload_mb: Optional[int] = None):
        self.root = Path(root or settings.UPLOAD_DIR).resolve()
        self.max_bytes = (max_upload_mb or settings.MAX_UPLOAD_MB) * 1024 * 1024

    def validate_upload(self, content: bytes, file_name: str) -> str:
        """Check extension and size, returning the extension"""
        if not file_name:
            raise InvalidUploadError("No file selected")

        ext = file_extension(file_name)
        if ext not in SUPPORTED_EXTENSIONS:
            raise InvalidUploadError("Only PDF, PPTX, DOCX files are accepted")

        if len(content) == 0:
            raise InvalidUploadError("Uploaded file is empty")

        if len(content) > self.max_bytes:
            raise InvalidUploadError(
                f"File size must not exceed {self.max_bytes // (1024 * 1024)}MB"
            )

        return ext

    async def save_upload(self, content: bytes, file_name: str) -> Dict[str, Union[str, int]]:
        """
        Validate and persist an uploaded document under a random name

        Returns:
            {"file_url", "file_name", "file_size"}
        """
        ext = self.validate_upload(content, file_name)

        unique_name = f"{uuid.uuid4()}.{ext}"
        target_dir = self.root / "quiz"
        target_dir.mkdir(parents=True, exist_ok=True)

        async with aiofiles.open(target_dir / unique_name, "wb") as f:
            await f.write(content)

        logger.info(f"Stored upload {file_name} as {unique_name} ({len(content)} bytes)")

        return {
            "file_url": f"/{QUIZ_UPLOAD_PREFIX}/{unique_name}",
            "file_name": file_name,
            "file_size": len(content),
        }

    def resolve(self, file_url: str) -> Path:
        """Map a stored file URL to a path, refusing anything outside the root"""
        relative = file_url.lstrip("/")
        if relative.startswith("uploads/"):
            relative = relative[len("uploads/"):]

        path = (self.root / relative).resolve()
        if path != self.root and self.root not in path.parents:
            raise FileNotFoundError(f"File URL outside upload root: {file_url}")
        return path

    def read_bytes(self, file_url: str) -> bytes:
        return self.resolve(file_url).read_bytes()

    def delete(self, file_url: str) -> bool:
        """Remove a stored file. A file that is already gone is not an error."""
        try:
            self.resolve(file_url).unlink()
        except FileNotFoundError:
            logger.info(f"Stored file already absent: {file_url}")
            return False
        except OSError as e:
            logger.warning(f"Could not delete stored file {file_url}: {str(e)}")
            return False

        logger.info(f"Deleted stored file {file_url}")
        return True


# Global instance
storage_service = StorageService()
