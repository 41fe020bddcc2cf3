"""
client.py
---------
Async Python client for the DevSnippet API.

DevSnippetClient owns the client-side session (token + current user).
Callers read it through properties and change it only through
register / login / logout / refresh; interested parties subscribe to
be told when it changes.

Every mutating call waits for the server and returns what the server
sent back. Nothing is applied locally ahead of the response.

Usage:
    async with httpx.AsyncClient(base_url="http://localhost:8000") as http:
        client = DevSnippetClient(http)
        await client.login("a@x.com", "secret1")
        post = await client.create_post(title="Hi", content="World")
"""

from typing import Any, Callable, Optional

import httpx

from devsnippet.core import policy
from devsnippet.schemas.post import PostRead
from devsnippet.schemas.user import UserPublic, UserRead

SessionListener = Callable[[Optional[UserRead]], None]


class ApiError(Exception):
    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class DevSnippetClient:

    def __init__(self, http: httpx.AsyncClient, api_prefix: str = "/api") -> None:
        self._http = http
        self._prefix = api_prefix.rstrip("/")
        self._token: Optional[str] = None
        self._user: Optional[UserRead] = None
        self._listeners: list[SessionListener] = []

    # ── Read-only session state ──────────────────────────────────────────────

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def user(self) -> Optional[UserRead]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None and self._user is not None

    @property
    def can_moderate(self) -> bool:
        return policy.can_moderate(self._user)

    def can_edit_post(self, post: PostRead) -> bool:
        return policy.can_edit_post(self._user, post)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ── Session mutations ────────────────────────────────────────────────────

    async def register(self, username: str, email: str, password: str) -> UserRead:
        body = await self._request(
            "POST",
            "/auth/register",
            json={"username": username, "email": email, "password": password},
        )
        self._set_session(body["token"], UserRead.model_validate(body["user"]))
        return self._user

    async def login(self, email: str, password: str) -> UserRead:
        body = await self._request(
            "POST", "/auth/login", json={"email": email, "password": password}
        )
        self._set_session(body["token"], UserRead.model_validate(body["user"]))
        return self._user

    async def logout(self) -> None:
        try:
            await self._request("POST", "/auth/logout")
        finally:
            self._http.cookies.clear()
            self._set_session(None, None)

    async def refresh(self) -> Optional[UserRead]:
        """Re-read the current user from the server; drops the session on 401."""
        if self._token is None:
            return None
        try:
            body = await self._request("GET", "/auth/me")
        except ApiError as exc:
            if exc.status_code == 401:
                self._http.cookies.clear()
                self._set_session(None, None)
                return None
            raise
        self._set_session(self._token, UserRead.model_validate(body))
        return self._user

    # ── Profile ──────────────────────────────────────────────────────────────

    async def update_profile(
        self, username: Optional[str] = None, bio: Optional[str] = None
    ) -> UserRead:
        payload: dict[str, Any] = {}
        if username is not None:
            payload["username"] = username
        if bio is not None:
            payload["bio"] = bio
        body = await self._request("PUT", "/auth/profile", json=payload)
        self._set_session(self._token, UserRead.model_validate(body))
        return self._user

    async def get_profile(self, username: str) -> UserPublic:
        body = await self._request("GET", f"/auth/user/{username}")
        return UserPublic.model_validate(body)

    # ── Posts ────────────────────────────────────────────────────────────────

    async def list_posts(self) -> list[PostRead]:
        body = await self._request("GET", "/posts")
        return [PostRead.model_validate(item) for item in body]

    async def get_post(self, post_id: str) -> PostRead:
        return PostRead.model_validate(await self._request("GET", f"/posts/{post_id}"))

    async def create_post(self, **fields: Any) -> PostRead:
        return PostRead.model_validate(await self._request("POST", "/posts", json=fields))

    async def update_post(self, post_id: str, **fields: Any) -> PostRead:
        body = await self._request("PUT", f"/posts/{post_id}", json=fields)
        return PostRead.model_validate(body)

    async def delete_post(self, post_id: str) -> str:
        body = await self._request("DELETE", f"/posts/{post_id}")
        return body["message"]

    async def toggle_like(self, post_id: str) -> PostRead:
        body = await self._request("PUT", f"/posts/{post_id}/like")
        return PostRead.model_validate(body)

    # ── Internals ────────────────────────────────────────────────────────────

    def _set_session(self, token: Optional[str], user: Optional[UserRead]) -> None:
        self._token = token
        self._user = user
        for listener in list(self._listeners):
            listener(user)

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers = kwargs.pop("headers", {})
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        response = await self._http.request(
            method, f"{self._prefix}{path}", headers=headers, **kwargs
        )
        if response.is_error:
            try:
                message = response.json().get("message", response.reason_phrase)
            except ValueError:
                message = response.reason_phrase
            raise ApiError(response.status_code, message)
        return response.json()
