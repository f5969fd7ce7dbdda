from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class UploadSignature:
    """Parameters a client needs for a signed direct upload."""

    signature: str
    timestamp: int
    cloud_name: str
    api_key: str
    upload_preset: str
    folder: str
