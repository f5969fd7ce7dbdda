from __future__ import annotations

from fastapi import APIRouter

from direct_chat.api.deps import CurrentPrincipal, ImageHostDep
from direct_chat.api.v1.schemas.common import Envelope
from direct_chat.api.v1.schemas.upload import UploadSignatureResponse
from direct_chat.services import upload_service

router = APIRouter(prefix="/api/upload", tags=["upload"])


@router.get("/signature", response_model=Envelope[UploadSignatureResponse])
async def get_upload_signature(
    principal: CurrentPrincipal,
    images: ImageHostDep,
) -> Envelope[UploadSignatureResponse]:
    signature = upload_service.get_upload_signature(images)
    return Envelope(data=UploadSignatureResponse.model_validate(signature))
