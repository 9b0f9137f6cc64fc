"""
NoteShelf — Async API Client
==============================

What:  Python client for the NoteShelf HTTP API.
How:   httpx.AsyncClient underneath; an explicit ClientSession carries the
       bearer token and current user instead of process-wide state.

Caching:
    GET list results (notes, categories, a note's categories) are cached by
    (path, params). Every mutation, login and logout clears the whole cache,
    so a read after a write always goes to the server. Each call returns a
    deep copy, so editing a result never changes what is cached.

Errors:
    Any non-2xx response raises ApiError(status_code, message), where the
    message is the server's `message` field when the body is JSON.

Usage:
    async with NotesClient("http://localhost:8000") as client:
        await client.login("alice", "s3cret")
        work = await client.create_category("Work")
        note = await client.create_note("Plan", "Q3 goals")
        await client.add_category_to_note(note["id"], work["id"])
"""

import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, Tuple[Tuple[str, Any], ...]]


class ApiError(Exception):
    """Raised for any non-2xx API response."""

    def __init__(self, status_code: int, message: str, body: Any = None):
        self.status_code = status_code
        self.message = message
        self.body = body
        super().__init__(f"{status_code}: {message}")


@dataclass
class ClientSession:
    """
    Holder of the caller's identity.

    login() and logout() are the only writers; auth_headers() is what
    every request reads.
    """

    token: Optional[str] = None
    user: Optional[Dict[str, Any]] = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def login(self, token: str, user: Dict[str, Any]) -> None:
        self.token = token
        self.user = user

    def logout(self) -> None:
        self.token = None
        self.user = None

    def auth_headers(self) -> Dict[str, str]:
        if self.token is None:
            return {}
        return {"Authorization": f"Bearer {self.token}"}


class NotesClient:
    """Async client for the NoteShelf API. Use as an async context manager."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        session: Optional[ClientSession] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.session = session or ClientSession()
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)
        self._cache: Dict[CacheKey, Any] = {}

    async def __aenter__(self) -> "NotesClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ── Transport ─────────────────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        response = await self._http.request(
            method,
            path,
            params=params,
            json=json,
            headers=self.session.auth_headers(),
        )
        if response.is_error:
            raise self._to_error(response)
        if not response.content:
            return None
        return response.json()

    @staticmethod
    def _to_error(response: httpx.Response) -> ApiError:
        body: Any = None
        message = response.reason_phrase or "Request failed"
        try:
            body = response.json()
        except ValueError:
            if response.text:
                message = response.text
        else:
            if isinstance(body, dict) and body.get("message"):
                message = body["message"]
        logger.debug("API error %d on %s: %s", response.status_code, response.url.path, message)
        return ApiError(response.status_code, message, body)

    async def _get_list(self, path: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        clean = {k: v for k, v in (params or {}).items() if v is not None}
        key: CacheKey = (path, tuple(sorted(clean.items())))
        if key not in self._cache:
            self._cache[key] = await self._request("GET", path, params=clean or None)
        # Callers get their own copy; editing a result never edits the cache
        return copy.deepcopy(self._cache[key])

    async def _mutate(self, method: str, path: str, json: Any = None) -> Any:
        try:
            return await self._request(method, path, json=json)
        finally:
            # A failed write may still have changed server state.
            self.invalidate_cache()

    def invalidate_cache(self) -> None:
        self._cache.clear()

    # ── Auth ──────────────────────────────────────────────────────────────

    async def register(
        self,
        username: str,
        password: str,
        email: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"username": username, "password": password}
        if email is not None:
            payload["email"] = email
        if name is not None:
            payload["name"] = name
        result = await self._request("POST", "/api/auth/register", json=payload)
        return result["user"]

    async def login(self, username: str, password: str) -> Dict[str, Any]:
        result = await self._request(
            "POST", "/api/auth/login", json={"username": username, "password": password}
        )
        self.session.login(result["token"], result["user"])
        self.invalidate_cache()
        return result["user"]

    def logout(self) -> None:
        self.session.logout()
        self.invalidate_cache()

    async def me(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/auth/me")

    # ── Notes ─────────────────────────────────────────────────────────────

    async def list_notes(
        self,
        archived: bool = False,
        search: Optional[str] = None,
        category_id: Optional[int] = None,
        include_categories: bool = False,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"archived": archived}
        if search is not None:
            params["search"] = search
        if category_id is not None:
            params["categoryId"] = category_id
        if include_categories:
            params["includeCategories"] = True
        return await self._get_list("/api/notes", params)

    async def search_notes(self, query: str, archived: bool = False) -> List[Dict[str, Any]]:
        return await self.list_notes(archived=archived, search=query)

    async def get_note(self, note_id: int) -> Dict[str, Any]:
        return await self._request("GET", f"/api/notes/{note_id}")

    async def create_note(self, title: str, content: str, archived: bool = False) -> Dict[str, Any]:
        return await self._mutate(
            "POST", "/api/notes", json={"title": title, "content": content, "archived": archived}
        )

    async def update_note(self, note_id: int, **changes: Any) -> Dict[str, Any]:
        """Partial update; pass only the fields to change (title, content, archived)."""
        return await self._mutate("PUT", f"/api/notes/{note_id}", json=changes)

    async def toggle_archive(self, note_id: int) -> Dict[str, Any]:
        return await self._mutate("PATCH", f"/api/notes/{note_id}/archive")

    async def delete_note(self, note_id: int) -> Dict[str, Any]:
        return await self._mutate("DELETE", f"/api/notes/{note_id}")

    # ── Categories ────────────────────────────────────────────────────────

    async def list_categories(self) -> List[Dict[str, Any]]:
        return await self._get_list("/api/categories")

    async def get_category(self, category_id: int) -> Dict[str, Any]:
        return await self._request("GET", f"/api/categories/{category_id}")

    async def create_category(self, name: str) -> Dict[str, Any]:
        return await self._mutate("POST", "/api/categories", json={"name": name})

    async def delete_category(self, category_id: int) -> Dict[str, Any]:
        return await self._mutate("DELETE", f"/api/categories/{category_id}")

    async def get_note_categories(self, note_id: int) -> List[Dict[str, Any]]:
        return await self._get_list(f"/api/notes/{note_id}/categories")

    async def add_category_to_note(self, note_id: int, category_id: int) -> Dict[str, Any]:
        return await self._mutate("POST", f"/api/notes/{note_id}/categories/{category_id}")

    async def remove_category_from_note(self, note_id: int, category_id: int) -> Dict[str, Any]:
        return await self._mutate("DELETE", f"/api/notes/{note_id}/categories/{category_id}")
