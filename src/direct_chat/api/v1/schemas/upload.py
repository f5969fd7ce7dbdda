from __future__ import annotations

from direct_chat.api.v1.schemas.common import CamelModel


class UploadSignatureResponse(CamelModel):
    signature: str
    timestamp: int
    cloud_name: str
    api_key: str
    upload_preset: str
    folder: str
