"""Async client for the d-drive REST API."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Optional
from urllib.parse import urlencode

import httpx

from ddrive.config import ClientConfig
from ddrive.errors import (
    ApiError,
    DDriveError,
    HttpErrorInfo,
    InvalidArgumentError,
    NetworkError,
    RateLimitError,
    map_http_error,
)
from ddrive.models import EntryKind, LocalFile, RemoteEntry
from ddrive.util.time import parse_timestamp_or_none

from . import routes

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
"""Called with (cumulative_bytes_sent, total_body_bytes)."""


@dataclass(frozen=True)
class _RetryPolicy:
    max_retries: int = 3
    initial_delay_sec: float = 1.0


class RemoteServiceClient:
    """
    Typed contract over the remote drive API.

    Notes:
        - Only idempotent reads are retried (429/5xx/network). Writes are
          never retried because the server may have applied them partially.
        - The httpx client is owned by this object; close it with aclose()
          or use the client as an async context manager.
    """

    def __init__(self, config: ClientConfig) -> None:
        self._config = config
        self._retry_policy = _RetryPolicy(
            max_retries=config.max_retries,
            initial_delay_sec=config.retry_initial_delay_sec,
        )
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            headers=_auth_headers(config.token),
            timeout=httpx.Timeout(config.request_timeout_sec),
        )

    @classmethod
    def from_http_client(
        cls,
        http: httpx.AsyncClient,
        config: Optional[ClientConfig] = None,
    ) -> "RemoteServiceClient":
        """Create a client around a pre-built httpx client (useful for tests)."""
        obj = cls.__new__(cls)
        obj._config = config or ClientConfig()
        obj._retry_policy = _RetryPolicy(
            max_retries=obj._config.max_retries,
            initial_delay_sec=obj._config.retry_initial_delay_sec,
        )
        obj._http = http
        return obj

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "RemoteServiceClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ----------------------------
    # Public API
    # ----------------------------
    async def list_children(self, parent_id: Optional[str] = None) -> list[RemoteEntry]:
        params = {"parentId": parent_id} if parent_id else None
        data = await self._execute(
            lambda: self._http.get(routes.FILES, params=params),
            idempotent=True,
        )
        return [_entry_dict_to_remote_entry(item) for item in _as_list(data)]

    async def get_entry(self, entry_id: str) -> RemoteEntry:
        _require_id(entry_id)
        data = await self._execute(
            lambda: self._http.get(routes.entry_path(routes.ENTRY, entry_id)),
            idempotent=True,
        )
        return _entry_dict_to_remote_entry(_as_dict(data))

    async def list_all_directories(self) -> list[RemoteEntry]:
        data = await self._execute(
            lambda: self._http.get(routes.ALL_FOLDERS),
            idempotent=True,
        )
        return [_entry_dict_to_remote_entry(item) for item in _as_list(data)]

    async def create_directory(
        self,
        name: str,
        parent_id: Optional[str] = None,
    ) -> RemoteEntry:
        if not name or not name.strip():
            raise InvalidArgumentError("Directory name is required")
        body = {"name": name, "parentId": parent_id}
        data = await self._execute(
            lambda: self._http.post(routes.DIRECTORY, json=body),
            idempotent=False,
        )
        return _entry_dict_to_remote_entry(_as_dict(data))

    async def upload_file(
        self,
        local_file: LocalFile,
        parent_id: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        *,
        encrypt: Optional[bool] = None,
    ) -> RemoteEntry:
        """
        Stream one file to the server as multipart/form-data.

        Metadata fields precede the file part so the server-side stream
        parser can read them before the content arrives.
        """
        use_encrypt = self._config.encrypt_uploads if encrypt is None else encrypt
        fields: dict[str, str] = {}
        if parent_id:
            fields["parentId"] = parent_id
        fields["encrypt"] = "true" if use_encrypt else "false"

        with local_file.open() as fh:
            template = self._http.build_request(
                "POST",
                routes.UPLOAD_STREAM,
                data=fields,
                files={
                    "file": (
                        local_file.name,
                        fh,
                        local_file.mime_type or "application/octet-stream",
                    )
                },
            )
            total = int(template.headers.get("Content-Length", "0"))
            headers = {
                "Content-Type": template.headers["Content-Type"],
                "Content-Length": str(total),
            }
            body = _iter_with_progress(template.stream, total, on_progress)
            data = await self._execute(
                lambda: self._http.post(routes.UPLOAD_STREAM, content=body, headers=headers),
                idempotent=False,
            )

        return _entry_dict_to_remote_entry(_as_dict(data))

    async def copy_entry(
        self,
        entry_id: str,
        *,
        encrypt: Optional[bool] = None,
    ) -> Optional[RemoteEntry]:
        """
        Start a server-side copy.

        Returns the new entry, or None if the server did not report an id.
        Chunk duplication continues asynchronously after this returns.
        """
        _require_id(entry_id)
        use_encrypt = self._config.encrypt_uploads if encrypt is None else encrypt
        data = await self._execute(
            lambda: self._http.post(
                routes.entry_path(routes.COPY, entry_id),
                json={"encrypt": use_encrypt},
            ),
            idempotent=False,
        )
        payload = data if isinstance(data, dict) else {}
        if not isinstance(payload.get("id"), str) or not payload["id"]:
            return None
        return _entry_dict_to_remote_entry(payload)

    async def move_entry(self, entry_id: str, new_parent_id: Optional[str]) -> RemoteEntry:
        _require_id(entry_id)
        data = await self._execute(
            lambda: self._http.patch(
                routes.entry_path(routes.MOVE, entry_id),
                json={"parentId": new_parent_id},
            ),
            idempotent=False,
        )
        return _entry_dict_to_remote_entry(_as_dict(data))

    async def rename_entry(self, entry_id: str, new_name: str) -> RemoteEntry:
        _require_id(entry_id)
        if not new_name or not new_name.strip():
            raise InvalidArgumentError("Name is required")
        data = await self._execute(
            lambda: self._http.patch(
                routes.entry_path(routes.ENTRY, entry_id),
                json={"name": new_name},
            ),
            idempotent=False,
        )
        return _entry_dict_to_remote_entry(_as_dict(data))

    async def delete_entry(self, entry_id: str, recursive: bool) -> None:
        _require_id(entry_id)
        await self._execute(
            lambda: self._http.request(
                "DELETE",
                routes.entry_path(routes.ENTRY, entry_id),
                json={"recursive": recursive},
            ),
            idempotent=False,
        )

    async def iter_download(
        self,
        entry_id: str,
        *,
        inline: bool = False,
        extra_params: Optional[dict[str, str]] = None,
    ) -> AsyncIterator[bytes]:
        """Stream the content of a file chunk by chunk."""
        _require_id(entry_id)
        params: dict[str, str] = {}
        if inline:
            params["inline"] = "1"
        if extra_params:
            params.update(extra_params)

        try:
            async with self._http.stream(
                "GET",
                routes.entry_path(routes.DOWNLOAD, entry_id),
                params=params or None,
            ) as response:
                if not response.is_success:
                    await response.aread()
                    raise _response_to_error(response)
                async for chunk in response.aiter_bytes():
                    yield chunk
        except DDriveError:
            raise
        except (httpx.HTTPError, OSError) as exc:
            raise self._map_exception(exc) from exc

    def direct_download_url(self, entry_id: str, *, inline: bool = True) -> str:
        """
        Authenticated URL that a media player can fetch directly.

        The token travels in the query string because range-requesting
        players cannot attach an Authorization header.
        """
        _require_id(entry_id)
        params: dict[str, str] = {}
        if inline:
            params["inline"] = "1"
        if self._config.token:
            params["token"] = self._config.token
        url = self._config.base_url + routes.entry_path(routes.DOWNLOAD, entry_id)
        if params:
            url = f"{url}?{urlencode(params)}"
        return url

    # ----------------------------
    # Internals
    # ----------------------------
    async def _execute(
        self,
        func: Callable[[], Awaitable[httpx.Response]],
        *,
        idempotent: bool,
    ) -> Any:
        delay = self._retry_policy.initial_delay_sec
        for attempt in range(self._retry_policy.max_retries + 1):
            try:
                response = await func()
            except (httpx.HTTPError, OSError) as exc:
                mapped: DDriveError = self._map_exception(exc)
                cause: Optional[BaseException] = exc
            else:
                if response.is_success:
                    return _decode_body(response)
                mapped = _response_to_error(response)
                cause = None

            if (
                idempotent
                and self._should_retry(mapped)
                and attempt < self._retry_policy.max_retries
            ):
                logger.debug("Retrying request after %s (attempt %d)", type(mapped).__name__, attempt + 1)
                await asyncio.sleep(delay)
                delay *= 2
                continue
            raise mapped from cause

        raise ApiError("Unexpected retry loop termination")

    def _should_retry(self, exc: DDriveError) -> bool:
        if isinstance(exc, RateLimitError):
            return True
        if isinstance(exc, NetworkError):
            return True
        if isinstance(exc, ApiError):
            status_code = exc.details.get("status_code")
            return isinstance(status_code, int) and 500 <= status_code <= 599
        return False

    def _map_exception(self, exc: BaseException) -> DDriveError:
        if isinstance(exc, (httpx.TransportError, OSError)):
            return NetworkError("Network error", details={"error": str(exc)}, cause=exc)
        return ApiError("Drive API error", details={"error": str(exc)}, cause=exc)


async def _iter_with_progress(
    stream: Any,
    total: int,
    on_progress: Optional[ProgressCallback],
) -> AsyncIterator[bytes]:
    sent = 0
    async for chunk in stream:
        sent += len(chunk)
        yield chunk
        if on_progress is not None:
            on_progress(sent, total)


def _auth_headers(token: Optional[str]) -> dict[str, str]:
    if not token:
        return {}
    return {"Authorization": f"Bearer {token}"}


def _require_id(entry_id: str) -> None:
    if not entry_id or not isinstance(entry_id, str):
        raise InvalidArgumentError("entry_id must be a non-empty string")


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _as_dict(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ApiError("Unexpected response payload", details={"payload": data})
    return data


def _as_list(data: Any) -> list[dict[str, Any]]:
    if not isinstance(data, list):
        raise ApiError("Unexpected response payload", details={"payload": data})
    return [item for item in data if isinstance(item, dict)]


def _response_to_error(response: httpx.Response) -> DDriveError:
    message = None
    details: dict[str, Any] = {"url": str(response.request.url)}
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("error"), str):
        message = payload["error"]
        details["server_message"] = True

    info = HttpErrorInfo(
        status_code=response.status_code,
        reason=response.reason_phrase or None,
        message=message,
        details=details,
    )
    return map_http_error(info)


def _chunk_count(data: dict[str, Any]) -> Optional[int]:
    chunks = data.get("chunks")
    if isinstance(chunks, list):
        return len(chunks)
    for key in ("chunkCount", "chunksCount"):
        value = data.get(key)
        if isinstance(value, int):
            return value
    counts = data.get("_count")
    if isinstance(counts, dict) and isinstance(counts.get("chunks"), int):
        return counts["chunks"]
    return None


def _entry_dict_to_remote_entry(data: dict[str, Any]) -> RemoteEntry:
    entry_id = data.get("id")
    name = data.get("name", "")
    kind_raw = data.get("type")
    kind = EntryKind.DIRECTORY if kind_raw == EntryKind.DIRECTORY.value else EntryKind.FILE

    size = 0
    raw_size = data.get("size")
    if isinstance(raw_size, str) and raw_size.isdigit():
        size = int(raw_size)
    elif isinstance(raw_size, int):
        size = raw_size

    mime = data.get("mimeType")
    parent_id = data.get("parentId")
    path = data.get("path")

    return RemoteEntry(
        entry_id=entry_id if isinstance(entry_id, str) else "",
        name=name if isinstance(name, str) else "",
        kind=kind,
        size_bytes=size,
        mime_type=mime if isinstance(mime, str) else None,
        parent_id=parent_id if isinstance(parent_id, str) and parent_id else None,
        path=path if isinstance(path, str) else None,
        starred=bool(data.get("starred", False)),
        created_at=parse_timestamp_or_none(data.get("createdAt")),
        updated_at=parse_timestamp_or_none(data.get("updatedAt")),
        chunk_count=_chunk_count(data),
    )
