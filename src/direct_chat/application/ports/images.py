from __future__ import annotations

from typing import Protocol

from direct_chat.application.dto.upload import UploadSignature


class ImageHost(Protocol):
    async def upload(self, data_uri: str) -> str:
        """Upload a base64 data URI and return its stable URL."""
        ...

    def sign_upload(self, timestamp: int) -> UploadSignature: ...
