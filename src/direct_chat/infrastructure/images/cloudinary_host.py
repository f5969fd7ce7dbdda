from __future__ import annotations

import asyncio
import logging

import cloudinary
import cloudinary.uploader
import cloudinary.utils

from direct_chat.application.dto.upload import UploadSignature

logger = logging.getLogger(__name__)


class CloudinaryImageHost:
    """Implements application.ports.images.ImageHost on top of the Cloudinary SDK."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        *,
        upload_preset: str = "chat_app",
        folder: str = "chat_images",
    ) -> None:
        self._cloud_name = cloud_name
        self._api_key = api_key
        self._api_secret = api_secret
        self._upload_preset = upload_preset
        self._folder = folder
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )

    async def upload(self, data_uri: str) -> str:
        # The SDK is blocking; keep it off the event loop
        result = await asyncio.to_thread(
            cloudinary.uploader.upload, data_uri, folder=self._folder,
        )
        logger.debug("Uploaded image %s", result.get("public_id"))
        return result["secure_url"]

    def sign_upload(self, timestamp: int) -> UploadSignature:
        params = {
            "timestamp": timestamp,
            "upload_preset": self._upload_preset,
            "folder": self._folder,
        }
        signature = cloudinary.utils.api_sign_request(params, self._api_secret)
        return UploadSignature(
            signature=signature,
            timestamp=timestamp,
            cloud_name=self._cloud_name,
            api_key=self._api_key,
            upload_preset=self._upload_preset,
            folder=self._folder,
        )
