# Supabase Storage wrapper for procurement documents
# eproc_portal/services/storage_service.py

import logging
import re
from typing import Any, List, Optional

from supabase import Client

from eproc_portal.core.config import settings
from eproc_portal.models.storage import UploadResult
from eproc_portal.utils.helpers import timestamped_object_key

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
_KEY_PREFIX_RE = re.compile(r"^[a-z0-9][a-z0-9_-]*(/[a-z0-9][a-z0-9_-]*)*$")


class StorageServiceError(Exception):
    """Custom exception for Storage service errors."""
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def _check_object_path(path: str) -> str:
    path = (path or "").strip()
    if not path or path.startswith("/") or ".." in path or "\\" in path:
        raise StorageServiceError("Invalid file path.", 400)
    return path


def _signed_url_from(result: Any) -> Optional[str]:
    # storage3 returns a dict carrying both spellings of the key
    if isinstance(result, dict):
        return result.get("signedUrl") or result.get("signedURL")
    return getattr(result, "signed_url", None)


class StorageService:
    """Upload bytes under a key, hand out time-limited signed retrieval URLs."""

    def __init__(self, client: Client, bucket: Optional[str] = None):
        self.client = client
        self.bucket = bucket or settings.STORAGE_BUCKET

    def _bucket(self):
        return self.client.storage.from_(self.bucket)

    def validate_pdf(self, content: bytes, content_type: Optional[str]) -> None:
        """
        Raises:
            StorageServiceError: 400 if the file is not a PDF, is empty or too large.
        """
        if content_type != PDF_CONTENT_TYPE:
            raise StorageServiceError("The file must be a valid PDF.", 400)
        if len(content) == 0:
            raise StorageServiceError("The file must not be empty.", 400)
        if len(content) > settings.STORAGE_MAX_FILE_SIZE:
            limit_mb = settings.STORAGE_MAX_FILE_SIZE // (1024 * 1024)
            raise StorageServiceError(f"The file must not exceed {limit_mb}MB.", 400)

    async def upload_pdf(self, content: bytes, filename: str, content_type: Optional[str], key_prefix: str) -> UploadResult:
        """
        Uploads a PDF under `<key_prefix>/<timestamp>-<slug>.pdf` and returns a signed URL.

        Args:
            content: Raw file bytes.
            filename: Original file name, used for the slug.
            content_type: MIME type reported by the client.
            key_prefix: Folder for the object (e.g. "rfps", "proposals", "invoices").

        Returns:
            UploadResult with the stored path and a signed URL.

        Raises:
            StorageServiceError: 400 on validation failures, 500 on storage errors.
        """
        key_prefix = (key_prefix or "").strip("/")
        if not _KEY_PREFIX_RE.match(key_prefix):
            raise StorageServiceError("Invalid key prefix.", 400)
        self.validate_pdf(content, content_type)

        object_key = timestamped_object_key(key_prefix, filename)
        try:
            logger.info(f"Uploading {len(content)} bytes to {self.bucket}/{object_key}...")
            self._bucket().upload(
                object_key,
                content,
                file_options={"content-type": PDF_CONTENT_TYPE, "cache-control": "3600", "upsert": "false"},
            )
        except Exception as e:
            logger.error(f"Storage error uploading {object_key}: {e}", exc_info=True)
            raise StorageServiceError(f"Error uploading the file: {e}")

        signed_url = await self.get_signed_url(object_key)
        logger.info(f"Successfully uploaded {self.bucket}/{object_key}")
        return UploadResult(path=object_key, signed_url=signed_url)

    async def get_signed_url(self, path: str, expires_in: Optional[int] = None) -> str:
        path = _check_object_path(path)
        expires_in = expires_in or settings.STORAGE_SIGNED_URL_EXPIRY
        try:
            result = self._bucket().create_signed_url(path, expires_in)
        except Exception as e:
            logger.error(f"Storage error signing {path}: {e}", exc_info=True)
            raise StorageServiceError(f"Error generating the signed URL: {e}")
        signed_url = _signed_url_from(result)
        if not signed_url:
            raise StorageServiceError("Could not generate an access URL.")
        return signed_url

    async def delete_file(self, path: str) -> None:
        path = _check_object_path(path)
        try:
            self._bucket().remove([path])
            logger.info(f"Deleted {self.bucket}/{path}")
        except Exception as e:
            logger.error(f"Storage error deleting {path}: {e}", exc_info=True)
            raise StorageServiceError(f"Error deleting the file: {e}")

    async def list_files(self, folder: str) -> List[str]:
        """Lists object keys directly under `folder`."""
        folder = (folder or "").strip("/")
        if not _KEY_PREFIX_RE.match(folder):
            raise StorageServiceError("Invalid folder.", 400)
        try:
            entries = self._bucket().list(folder)
        except Exception as e:
            logger.error(f"Storage error listing {folder}: {e}", exc_info=True)
            raise StorageServiceError(f"Error listing files: {e}")
        return [f"{folder}/{entry['name']}" for entry in (entries or [])]
