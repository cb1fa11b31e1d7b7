"""Client configuration for ddrive."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_API_URL = "http://localhost:5000/api"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(slots=True, frozen=True)
class ClientConfig:
    """
    Settings shared by the remote client and the engine components.

    Grace periods are how long a terminal transfer/job stays visible before
    it is removed from the observable state.
    """

    api_url: str = DEFAULT_API_URL
    token: Optional[str] = None
    encrypt_uploads: bool = True

    request_timeout_sec: float = 60.0
    max_retries: int = 3
    retry_initial_delay_sec: float = 1.0

    poll_interval_sec: float = 0.5
    copy_polls_per_chunk: int = 20
    breadcrumb_max_depth: int = 50

    single_upload_grace_sec: float = 3.0
    folder_upload_grace_sec: float = 1.5
    copy_grace_sec: float = 2.0
    bulk_job_grace_sec: float = 1.5

    def __post_init__(self) -> None:
        if not isinstance(self.api_url, str) or not self.api_url.strip():
            raise ValueError("ClientConfig.api_url must be a non-empty string")
        if not self.api_url.startswith(("http://", "https://")):
            raise ValueError("ClientConfig.api_url must be an http(s) URL")
        if self.token is not None and (not isinstance(self.token, str) or not self.token.strip()):
            raise ValueError("ClientConfig.token must be a non-empty string when set")

        for name in (
            "request_timeout_sec",
            "poll_interval_sec",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"ClientConfig.{name} must be positive")

        for name in (
            "retry_initial_delay_sec",
            "single_upload_grace_sec",
            "folder_upload_grace_sec",
            "copy_grace_sec",
            "bulk_job_grace_sec",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"ClientConfig.{name} must not be negative")

        for name in ("copy_polls_per_chunk", "breadcrumb_max_depth"):
            if getattr(self, name) < 1:
                raise ValueError(f"ClientConfig.{name} must be at least 1")

        if self.max_retries < 0:
            raise ValueError("ClientConfig.max_retries must not be negative")

    @property
    def base_url(self) -> str:
        """API URL without a trailing slash."""
        return self.api_url.rstrip("/")

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: object,
    ) -> "ClientConfig":
        """
        Build a config from DDRIVE_* environment variables.

        Recognized:
            DDRIVE_API_URL, DDRIVE_API_KEY, DDRIVE_ENCRYPT
        """
        env = os.environ if environ is None else environ
        kwargs: dict[str, object] = {}

        api_url = env.get("DDRIVE_API_URL")
        if api_url:
            kwargs["api_url"] = api_url

        token = env.get("DDRIVE_API_KEY")
        if token:
            kwargs["token"] = token

        encrypt = env.get("DDRIVE_ENCRYPT")
        if encrypt is not None:
            kwargs["encrypt_uploads"] = _parse_bool(encrypt, "DDRIVE_ENCRYPT")

        kwargs.update(overrides)
        return cls(**kwargs)  # type: ignore[arg-type]


def _parse_bool(value: str, name: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (got {value!r})")
