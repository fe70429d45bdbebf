# walcard/services/media_service.py
import secrets
import time

from walcard.domain import messages
from walcard.domain.errors import RemoteError
from walcard.domain.schemas import ActionResult, UploadResult
from walcard.services.remote_client import RemoteDataClient
from walcard.utils.settings import MEDIA_BUCKET
from walcard.utils.logging import get_logger

logger = get_logger(__name__)


class MediaService:
    """Zdjecia sklepow i dokumentow w buckecie storage."""

    def __init__(self, client: RemoteDataClient, bucket: str | None = None):
        self.client = client
        self.bucket = bucket or MEDIA_BUCKET

    def upload_image(
        self,
        content: bytes,
        folder: str,
        file_name: str | None = None,
        content_type: str = "image/jpeg",
    ) -> UploadResult:
        name = file_name or f"image_{int(time.time() * 1000)}_{secrets.token_hex(3)}.jpg"
        path = f"{folder}/{name}"
        logger.info(f"Uploading {len(content)} bytes to {self.bucket}/{path}")

        try:
            self.client.upload(self.bucket, path, content, content_type=content_type)
        except RemoteError as e:
            logger.error(f"Storage upload error for {path}: {e}")
            return UploadResult(success=False, message=messages.UPLOAD_FAILED)

        return UploadResult(
            success=True,
            message=messages.UPLOAD_SUCCESS,
            url=self.client.get_public_url(self.bucket, path),
            path=path,
        )

    def _upload_for_user(self, content: bytes, folder: str, prefix: str, user_id: str) -> UploadResult:
        return self.upload_image(
            content,
            f"{folder}/{user_id}",
            f"{prefix}_{int(time.time() * 1000)}.jpg",
        )

    def upload_store_image(self, content: bytes, user_id: str) -> UploadResult:
        return self._upload_for_user(content, "store-images", "store", user_id)

    def upload_identity_image(self, content: bytes, user_id: str) -> UploadResult:
        return self._upload_for_user(content, "identity-images", "identity", user_id)

    def upload_business_image(self, content: bytes, user_id: str) -> UploadResult:
        return self._upload_for_user(content, "business-images", "business", user_id)

    def upload_merchant_store_image(self, content: bytes, user_id: str) -> UploadResult:
        return self._upload_for_user(content, "merchant-store-images", "merchant_store", user_id)

    def delete_image(self, path: str) -> ActionResult:
        try:
            self.client.remove(self.bucket, [path])
        except RemoteError as e:
            logger.error(f"Error deleting {path} from storage: {e}")
            return ActionResult(success=False, message=messages.DELETE_FAILED)
        return ActionResult(success=True, message=messages.DELETE_SUCCESS)

    def get_image_url(self, path: str) -> str:
        return self.client.get_public_url(self.bucket, path)
