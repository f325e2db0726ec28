"""Cloudinary upload and Admin API client using per-organization credentials."""

from __future__ import annotations

import hashlib
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from app.config import settings
from app.core.exceptions import ExternalAPIError, IntegrationNotConfiguredError
from app.core.field_encryption import decrypt_value, encrypt_value

logger = logging.getLogger(__name__)

API_NAME = "Cloudinary"

NOT_CONFIGURED = "Cloudinary not configured for this organization"
INCOMPLETE_CREDENTIALS = (
    "Incomplete Cloudinary credentials. Missing cloud_name, api_key, or api_secret"
)


@dataclass(frozen=True)
class CloudinaryCredentials:
    cloud_name: str
    api_key: str
    api_secret: str


def credentials_from_settings(org_settings: Mapping[str, Any] | None) -> CloudinaryCredentials:
    """Read ``settings.cloudinary`` of an organization or raise a 400 error.

    The secret is read from ``api_secret_encrypted`` when present (written by
    ``PUT /media/cloudinary/credentials``), else from a plain ``api_secret``.
    """
    raw = (org_settings or {}).get("cloudinary")
    if not isinstance(raw, Mapping) or not raw:
        raise IntegrationNotConfiguredError(NOT_CONFIGURED)

    cloud_name = str(raw.get("cloud_name") or "").strip()
    api_key = str(raw.get("api_key") or "").strip()
    if raw.get("api_secret_encrypted"):
        api_secret = decrypt_value(raw["api_secret_encrypted"])
    else:
        api_secret = str(raw.get("api_secret") or "").strip()
    if not (cloud_name and api_key and api_secret):
        raise IntegrationNotConfiguredError(INCOMPLETE_CREDENTIALS)
    return CloudinaryCredentials(cloud_name=cloud_name, api_key=api_key, api_secret=api_secret)


def credentials_to_settings(credentials: CloudinaryCredentials) -> dict[str, str]:
    """Settings entry for ``organizations.settings.cloudinary`` with the secret encrypted."""
    return {
        "cloud_name": credentials.cloud_name,
        "api_key": credentials.api_key,
        "api_secret_encrypted": encrypt_value(credentials.api_secret),
    }


def sign_params(params: Mapping[str, Any], api_secret: str) -> str:
    """Cloudinary request signature.

    Parameters are sorted by name, joined as ``k=v`` with ``&`` (values are not
    URL-encoded, empty values skipped), the API secret is appended and the
    result hashed with SHA-1.
    """
    to_sign = "&".join(
        f"{key}={value}"
        for key, value in sorted(params.items())
        if value is not None and value != ""
    )
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


def org_folder(org_id: str) -> str:
    return f"{settings.cloudinary_default_folder_prefix}/{org_id}"


class CloudinaryClient:
    """Minimal async Cloudinary client (upload, list, ping)."""

    def __init__(
        self,
        credentials: CloudinaryCredentials,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.credentials = credentials
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return f"{settings.cloudinary_api_base_url.rstrip('/')}/{self.credentials.cloud_name}"

    async def __aenter__(self) -> "CloudinaryClient":
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Client must be used as async context manager")
        return self._client

    @property
    def _admin_auth(self) -> httpx.BasicAuth:
        return httpx.BasicAuth(self.credentials.api_key, self.credentials.api_secret)

    def signed_form(self, params: Mapping[str, Any], timestamp: int | None = None) -> dict[str, Any]:
        form = {key: value for key, value in params.items() if value is not None}
        form["timestamp"] = timestamp if timestamp is not None else int(time.time())
        form["signature"] = sign_params(form, self.credentials.api_secret)
        form["api_key"] = self.credentials.api_key
        return form

    @staticmethod
    def _raise_for_status(response: httpx.Response, operation: str) -> None:
        if response.is_success:
            return
        try:
            message = response.json().get("error", {}).get("message") or response.text
        except ValueError:
            message = response.text
        logger.warning(
            "Cloudinary request failed",
            extra={"operation": operation, "status": response.status_code, "error": message},
        )
        raise ExternalAPIError(API_NAME, message, upstream_status=response.status_code)

    async def upload(
        self,
        *,
        folder: str,
        file_bytes: bytes | None = None,
        file_name: str | None = None,
        content_type: str | None = None,
        remote_url: str | None = None,
        public_id: str | None = None,
    ) -> dict[str, Any]:
        """Upload an image from bytes or a remote URL; returns Cloudinary's resource JSON."""
        if file_bytes is None and not remote_url:
            raise ValueError("file_bytes or remote_url is required")

        form = self.signed_form({"folder": folder, "public_id": public_id})
        files = None
        if file_bytes is not None:
            files = {
                "file": (file_name or "upload", file_bytes, content_type or "application/octet-stream")
            }
        else:
            form["file"] = remote_url

        logger.info("Uploading image to Cloudinary", extra={"folder": folder, "file_name": file_name})
        response = await self.client.post(
            "/image/upload",
            data={key: str(value) for key, value in form.items()},
            files=files,
        )
        self._raise_for_status(response, "upload")
        return response.json()

    async def list_images(
        self,
        prefix: str,
        max_results: int | None = None,
        next_cursor: str | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "type": "upload",
            "prefix": prefix,
            "max_results": max_results or settings.cloudinary_sync_max_results,
        }
        if next_cursor:
            params["next_cursor"] = next_cursor
        response = await self.client.get("/resources/image", params=params, auth=self._admin_auth)
        self._raise_for_status(response, "list_images")
        return response.json()

    async def iter_all_images(self, prefix: str) -> list[dict[str, Any]]:
        """Follow ``next_cursor`` until every resource under ``prefix`` is listed."""
        resources: list[dict[str, Any]] = []
        cursor: str | None = None
        while True:
            page = await self.list_images(prefix, next_cursor=cursor)
            resources.extend(page.get("resources") or [])
            cursor = page.get("next_cursor")
            if not cursor:
                return resources

    async def ping(self) -> dict[str, Any]:
        response = await self.client.get("/ping", auth=self._admin_auth)
        self._raise_for_status(response, "ping")
        return response.json()
