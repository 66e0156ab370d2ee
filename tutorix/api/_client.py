"""
HTTP client — bearer auth, JSON handling, request logging.

Every service delegates its HTTP calls here so that auth headers, error
mapping and observability live in one place.
"""

from __future__ import annotations

import asyncio
import json
import mimetypes
import time
from contextlib import ExitStack
from pathlib import Path
from typing import Any

import aiohttp

from tutorix.api._endpoints import Endpoints
from tutorix.api._types import ApiError, ApiErrorKind, TokenProvider
from tutorix.config import Settings
from tutorix.log import get_logger

logger = get_logger("tutorix.api")

_JSON_HEADERS = {"Content-Type": "application/json"}


class ApiClient:
    """
    Thin aiohttp wrapper.

    Note: the session is owned by the caller (see tutorix.app), the client
    never closes it.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        settings: Settings,
        token: TokenProvider,
    ) -> None:
        self._session = session
        self._token = token
        self._timeout = aiohttp.ClientTimeout(total=settings.HTTP_TIMEOUT_SECONDS)
        self.endpoints = Endpoints(settings.API_BASE_URL)

    # ───────────────────────────────────────────────────────────────────────────
    # Headers
    # ───────────────────────────────────────────────────────────────────────────

    async def _bearer(self) -> dict[str, str]:
        token = await self._token()
        if not token:
            raise ApiError("Not authenticated", kind=ApiErrorKind.UNAUTHENTICATED)
        return {"Authorization": f"Bearer {token}"}

    async def _auth_headers(self) -> dict[str, str]:
        return {**_JSON_HEADERS, **await self._bearer()}

    # ───────────────────────────────────────────────────────────────────────────
    # Instrumented request
    # ───────────────────────────────────────────────────────────────────────────

    async def _send(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str],
        body: Any = None,
        form: aiohttp.FormData | None = None,
        label: str | None = None,
    ) -> tuple[int, str]:
        label = label or method
        logger.debug("api request", method=label, url=url)
        started = time.perf_counter()
        try:
            async with self._session.request(
                method,
                url,
                headers=headers,
                data=form if form is not None else (json.dumps(body) if body is not None else None),
                timeout=self._timeout,
            ) as response:
                text = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.warning(
                "api error",
                method=label,
                url=url,
                error=repr(exc),
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
            raise ApiError(
                f"{label} {url} failed: {exc.__class__.__name__}",
                kind=ApiErrorKind.TRANSPORT,
            ) from exc

        logger.info(
            "api response",
            method=label,
            url=url,
            status=response.status,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response.status, text

    # ───────────────────────────────────────────────────────────────────────────
    # Response handling
    # ───────────────────────────────────────────────────────────────────────────

    @staticmethod
    def _handle_raw(status: int, text: str) -> Any:
        ok = 200 <= status < 300
        try:
            data = json.loads(text) if text else None
        except ValueError as exc:
            if ok:
                raise ApiError(
                    f"Invalid JSON in response ({status})",
                    kind=ApiErrorKind.DECODE,
                    status=status,
                ) from exc
            data = None

        if ok:
            return data

        message = None
        if isinstance(data, dict):
            message = data.get("message") or data.get("error")
        raise ApiError(
            str(message) if message else f"Request failed ({status})",
            kind=ApiErrorKind.HTTP,
            status=status,
        )

    @classmethod
    def _handle(cls, status: int, text: str) -> dict[str, Any]:
        data = cls._handle_raw(status, text)
        if not isinstance(data, dict):
            raise ApiError(
                f"Expected a JSON object, got {type(data).__name__}",
                kind=ApiErrorKind.DECODE,
                status=status,
            )
        return data

    # ───────────────────────────────────────────────────────────────────────────
    # Convenience verbs
    # ───────────────────────────────────────────────────────────────────────────

    async def get(self, url: str) -> dict[str, Any]:
        """Authenticated GET → decoded JSON object."""
        status, text = await self._send("GET", url, headers=await self._auth_headers())
        return self._handle(status, text)

    async def get_raw(self, url: str) -> Any:
        """Authenticated GET → decoded JSON of any shape."""
        status, text = await self._send("GET", url, headers=await self._auth_headers())
        return self._handle_raw(status, text)

    async def get_public(self, url: str) -> dict[str, Any]:
        """Public GET (no token) → decoded JSON object."""
        status, text = await self._send("GET", url, headers=dict(_JSON_HEADERS))
        return self._handle(status, text)

    async def post(self, url: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        """Authenticated POST → decoded JSON object."""
        status, text = await self._send(
            "POST", url, headers=await self._auth_headers(), body=body
        )
        return self._handle(status, text)

    async def post_public(
        self,
        url: str,
        body: dict[str, Any] | None = None,
        extra_headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Public POST → decoded JSON object."""
        headers = {**_JSON_HEADERS, **(extra_headers or {})}
        status, text = await self._send("POST", url, headers=headers, body=body)
        return self._handle(status, text)

    async def patch(self, url: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        """Authenticated PATCH → decoded JSON object."""
        status, text = await self._send(
            "PATCH", url, headers=await self._auth_headers(), body=body
        )
        return self._handle(status, text)

    async def delete(self, url: str) -> bool:
        """Authenticated DELETE → True iff the server answered 200."""
        status, _ = await self._send("DELETE", url, headers=await self._auth_headers())
        return status == 200

    async def upload_file(self, url: str, *, field_name: str, file_path: str | Path) -> dict[str, Any]:
        """Authenticated multipart POST with one file."""
        return await self._upload("UPLOAD", url, field_name, [file_path])

    async def upload_files(
        self,
        url: str,
        *,
        field_name: str,
        file_paths: list[str] | list[Path],
    ) -> dict[str, Any]:
        """Authenticated multipart POST with several files under one field."""
        return await self._upload("UPLOAD_MULTI", url, field_name, list(file_paths))

    async def _upload(
        self,
        label: str,
        url: str,
        field_name: str,
        file_paths: list[str | Path],
    ) -> dict[str, Any]:
        headers = await self._bearer()
        with ExitStack() as stack:
            form = aiohttp.FormData()
            for file_path in file_paths:
                path = Path(file_path)
                form.add_field(
                    field_name,
                    stack.enter_context(path.open("rb")),
                    filename=path.name,
                    content_type=mimetypes.guess_type(path.name)[0] or "application/octet-stream",
                )
            status, text = await self._send("POST", url, headers=headers, form=form, label=label)
        return self._handle(status, text)


__all__ = ("ApiClient",)
