from __future__ import annotations

import time

from direct_chat.application.dto.upload import UploadSignature
from direct_chat.application.exceptions import ValidationError
from direct_chat.application.ports.images import ImageHost


async def resolve_image(image: str, images: ImageHost) -> str:
    """Return a hosted URL for an image given as URL or base64 data URI.

    URLs coming from a signed direct upload are stored as-is; data URIs are
    uploaded server-side.
    """
    if image.startswith(("http://", "https://")):
        return image
    if image.startswith("data:"):
        return await images.upload(image)
    raise ValidationError("Invalid image format. Expected URL or base64 data.")


def get_upload_signature(images: ImageHost) -> UploadSignature:
    return images.sign_upload(int(time.time()))
