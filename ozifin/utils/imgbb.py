import base64
import logging
from typing import Optional

import requests

from ozifin.config import settings

logger = logging.getLogger(__name__)

class ImageUploadError(Exception):
    """The image host rejected the upload or could not be reached."""

class ImgBBClient:
    def __init__(self, api_key: Optional[str] = None, upload_url: Optional[str] = None, timeout: Optional[int] = None):
        """Client for the ImgBB upload API, configured from settings by default"""
        self.api_key = api_key if api_key is not None else settings.IMGBB_API_KEY
        self.upload_url = upload_url or settings.IMGBB_UPLOAD_URL
        self.timeout = timeout or settings.IMGBB_TIMEOUT

    @staticmethod
    def strip_data_url(image: str) -> str:
        """'data:image/png;base64,AAAA' -> 'AAAA'"""
        if image.startswith("data:") and "," in image:
            return image.split(",", 1)[1]
        return image

    def upload_base64(self, image: str) -> str:
        """Upload a base64 image and return its public URL"""
        if not self.api_key:
            raise ImageUploadError("ImgBB API key not configured")

        payload = {"image": self.strip_data_url(image)}
        try:
            response = requests.post(
                self.upload_url,
                params={"key": self.api_key},
                data=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"ImgBB request failed: {e}")
            raise ImageUploadError("Failed to upload image to ImgBB") from e

        if not response.ok:
            logger.error(f"ImgBB upload rejected with status {response.status_code}")
            raise ImageUploadError("Failed to upload image to ImgBB")

        url = response.json().get("data", {}).get("url")
        if not url:
            raise ImageUploadError("ImgBB response did not contain an image URL")
        logger.info(f"Uploaded image to {url}")
        return url

    def upload_bytes(self, content: bytes) -> str:
        return self.upload_base64(base64.b64encode(content).decode("ascii"))


def get_image_client() -> ImgBBClient:
    """FastAPI dependency so the host can be swapped per app"""
    return ImgBBClient()
