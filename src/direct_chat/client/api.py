"""Async HTTP client for the REST surface."""
from __future__ import annotations

from typing import Any
from uuid import UUID

import httpx

from direct_chat.api.v1.schemas.message import MessagePageResponse, MessageResponse
from direct_chat.api.v1.schemas.upload import UploadSignatureResponse
from direct_chat.api.v1.schemas.user import UserResponse

AUTH_COOKIE = "jwt"


class ChatApiError(Exception):
    def __init__(
        self,
        status_code: int,
        error: str,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        self.status_code = status_code
        self.error = error
        self.details = details or []
        super().__init__(f"{status_code}: {error}")


class ChatApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._token = token
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            transport=transport,
            timeout=timeout,
        )

    @property
    def token(self) -> str | None:
        """Credential for the push connection handshake."""
        return self._token or self._http.cookies.get(AUTH_COOKIE)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> ChatApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        resp = await self._http.request(method, path, **kwargs)
        if resp.is_error:
            try:
                body = resp.json()
            except ValueError:
                body = {}
            raise ChatApiError(
                resp.status_code,
                body.get("error") or resp.reason_phrase,
                body.get("details"),
            )
        return resp.json()

    # auth

    async def signup(self, full_name: str, email: str, password: str) -> UserResponse:
        data = await self._request(
            "POST",
            "/api/auth/signup",
            json={"fullName": full_name, "email": email, "password": password},
        )
        return UserResponse.model_validate(data)

    async def login(self, email: str, password: str) -> UserResponse:
        data = await self._request(
            "POST", "/api/auth/login", json={"email": email, "password": password},
        )
        return UserResponse.model_validate(data)

    async def logout(self) -> None:
        await self._request("POST", "/api/auth/logout")
        self._http.cookies.clear()

    async def check(self) -> UserResponse:
        return UserResponse.model_validate(await self._request("GET", "/api/auth/check"))

    async def update_profile(self, profile_pic: str) -> UserResponse:
        data = await self._request(
            "PUT", "/api/auth/update-profile", json={"profilePic": profile_pic},
        )
        return UserResponse.model_validate(data)

    # messages

    async def list_users(self) -> list[UserResponse]:
        data = await self._request("GET", "/api/messages/users")
        return [UserResponse.model_validate(u) for u in data]

    async def get_messages(
        self, user_id: UUID, *, page: int = 1, limit: int = 20,
    ) -> MessagePageResponse:
        data = await self._request(
            "GET", f"/api/messages/{user_id}", params={"page": page, "limit": limit},
        )
        return MessagePageResponse.model_validate(data["data"])

    async def send_message(
        self,
        receiver_id: UUID,
        *,
        text: str | None = None,
        image: str | None = None,
        client_msg_id: UUID | None = None,
    ) -> MessageResponse:
        body: dict[str, Any] = {}
        if text is not None:
            body["text"] = text
        if image is not None:
            body["image"] = image
        if client_msg_id is not None:
            body["clientMsgId"] = str(client_msg_id)
        data = await self._request("POST", f"/api/messages/send/{receiver_id}", json=body)
        return MessageResponse.model_validate(data)

    async def mark_read(self, sender_id: UUID) -> int:
        data = await self._request("PUT", f"/api/messages/read/{sender_id}")
        return data["data"]["markedCount"]

    async def edit_message(self, message_id: UUID, text: str) -> MessageResponse:
        data = await self._request(
            "PUT", f"/api/messages/edit/{message_id}", json={"text": text},
        )
        return MessageResponse.model_validate(data["data"])

    async def delete_message(self, message_id: UUID) -> MessageResponse:
        data = await self._request("DELETE", f"/api/messages/{message_id}")
        return MessageResponse.model_validate(data["data"])

    async def unread_counts(self) -> dict[str, int]:
        data = await self._request("GET", "/api/messages/unread/all")
        return data["data"]

    async def upload_signature(self) -> UploadSignatureResponse:
        data = await self._request("GET", "/api/upload/signature")
        return UploadSignatureResponse.model_validate(data["data"])
