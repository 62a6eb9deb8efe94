"""Cloudinary DAM client: folder and resource listing, metadata, deletion and upload signing."""

import hashlib
import logging
import os
import time
from collections import deque
from typing import Any, Awaitable, Callable, NamedTuple
from urllib.parse import quote

import httpx

from .classifier import normalize_folder

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.cloudinary.com"
DELIVERY_BASE = "https://res.cloudinary.com"

# Cloudinary's hard cap for a single listing page
MAX_PAGE_SIZE = 500
DEFAULT_MAX_FOLDERS = 500

# Failures of a single provider call: transport/status errors and malformed bodies
DAM_ERRORS = (httpx.HTTPError, ValueError, KeyError)

# Sent with signed uploads but excluded from the signature
UNSIGNED_PARAMS = frozenset({"file", "cloud_name", "resource_type", "api_key"})


class ResourcePage(NamedTuple):
    """One page of a resource listing."""

    resources: list[dict]
    next_cursor: str | None


class CloudinaryClient:
    """
    Async client for the Cloudinary Admin API.

    Use as an async context manager; the underlying HTTP client is only open
    inside the ``async with`` block.
    """

    def __init__(
        self,
        cloud_name: str | None = None,
        api_key: str | None = None,
        api_secret: str | None = None,
        api_base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            cloud_name: Cloudinary cloud name (default: CLOUDINARY_CLOUD_NAME)
            api_key: Admin API key (default: CLOUDINARY_API_KEY)
            api_secret: Admin API secret (default: CLOUDINARY_API_SECRET)
            api_base_url: API host override (default: CLOUDINARY_API_BASE)
            transport: Optional httpx transport, used by tests
        """
        self.cloud_name = cloud_name or os.getenv("CLOUDINARY_CLOUD_NAME")
        self.api_key = api_key or os.getenv("CLOUDINARY_API_KEY")
        self.api_secret = api_secret or os.getenv("CLOUDINARY_API_SECRET")

        if not all([self.cloud_name, self.api_key, self.api_secret]):
            raise ValueError(
                "Missing Cloudinary configuration. Set CLOUDINARY_* environment variables."
            )

        base = api_base_url or os.getenv("CLOUDINARY_API_BASE") or DEFAULT_API_BASE
        self.api_url = f"{base.rstrip('/')}/v1_1/{self.cloud_name}"
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self):
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            timeout=60.0,
            auth=httpx.BasicAuth(self.api_key, self.api_secret),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client."""
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")
        return self._client

    async def _request(self, method: str, endpoint: str, **kwargs) -> dict:
        """Make a request to the Admin API and return the decoded JSON body."""
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        response = await self.client.request(method, url, **kwargs)
        response.raise_for_status()
        return response.json()

    async def list_resources(
        self,
        folder: str,
        resource_type: str,
        max_results: int = MAX_PAGE_SIZE,
        next_cursor: str | None = None,
    ) -> ResourcePage:
        """
        List the resources directly inside a folder.

        Args:
            folder: Asset folder path
            resource_type: 'image' or 'video'
            max_results: Page size, clamped to 1..500
            next_cursor: Continuation token from the previous page

        Returns:
            ResourcePage with the resource descriptors and the next token
        """
        body: dict[str, Any] = {
            "expression": f'asset_folder="{normalize_folder(folder)}" AND resource_type:{resource_type}',
            "max_results": max(1, min(MAX_PAGE_SIZE, max_results)),
            "sort_by": [{"created_at": "asc"}],
        }
        if next_cursor:
            body["next_cursor"] = next_cursor

        result = await self._request("POST", "/resources/search", json=body)
        return ResourcePage(result.get("resources", []), result.get("next_cursor") or None)

    async def list_subfolders(self, folder: str) -> list[str]:
        """
        List the immediate child folders of a folder.

        Args:
            folder: Folder path; empty string lists the root folders

        Returns:
            Child folder paths
        """
        folder = normalize_folder(folder)
        endpoint = f"/folders/{quote(folder)}" if folder else "/folders"

        paths: list[str] = []
        next_cursor = None
        while True:
            params: dict[str, Any] = {"max_results": MAX_PAGE_SIZE}
            if next_cursor:
                params["next_cursor"] = next_cursor
            result = await self._request("GET", endpoint, params=params)
            paths.extend(item["path"] for item in result.get("folders", []) if item.get("path"))
            next_cursor = result.get("next_cursor")
            if not next_cursor:
                return paths

    async def get_resource_metadata(self, public_id: str, resource_type: str) -> dict:
        """Fetch a resource's details including embedded media metadata."""
        return await self._request(
            "GET",
            f"/resources/{resource_type}/upload/{quote(public_id)}",
            params={"media_metadata": "true"},
        )

    async def delete_resource(self, public_id: str, resource_type: str) -> dict:
        """Delete an uploaded resource."""
        return await self._request(
            "DELETE",
            f"/resources/{resource_type}/upload",
            params={"public_ids[]": [public_id]},
        )

    def delivery_url(
        self, public_id: str, resource_type: str, file_format: str | None = None
    ) -> str:
        """
        Build the delivery URL for a resource without calling the API.

        Args:
            public_id: Resource public id
            resource_type: 'image' or 'video'
            file_format: Optional extension to append

        Returns:
            https delivery URL
        """
        url = f"{DELIVERY_BASE}/{self.cloud_name}/{resource_type}/upload/{quote(public_id)}"
        if file_format:
            url = f"{url}.{file_format}"
        return url

    def client_config(self) -> dict[str, str]:
        """Public settings an upload widget needs; never includes the secret."""
        return {"cloud_name": self.cloud_name, "api_key": self.api_key}

    def sign_upload(
        self, params: dict[str, Any] | None = None, timestamp: int | None = None
    ) -> dict[str, Any]:
        """
        Sign upload parameters for a direct browser upload.

        A timestamp is added when the caller did not send one.

        Returns:
            Dict with the hex signature and the signed timestamp
        """
        to_sign = dict(params or {})
        if not to_sign.get("timestamp"):
            to_sign["timestamp"] = timestamp if timestamp is not None else int(time.time())
        return {
            "signature": sign_params(to_sign, self.api_secret),
            "timestamp": int(to_sign["timestamp"]),
        }


def _signature_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_signature_value(v) for v in value)
    return str(value)


def sign_params(params: dict[str, Any], api_secret: str) -> str:
    """
    Compute a Cloudinary request signature.

    Empty values and the parameters Cloudinary never signs are dropped; the
    rest are sorted by name, joined as ``k=v`` pairs with ``&`` and hashed
    with SHA-1 together with the API secret.
    """
    pairs = sorted(
        (key, _signature_value(value))
        for key, value in params.items()
        if key not in UNSIGNED_PARAMS and value is not None and value != "" and value != []
    )
    payload = "&".join(f"{key}={value}" for key, value in pairs)
    return hashlib.sha1(f"{payload}{api_secret}".encode()).hexdigest()


async def discover_folders(
    list_children: Callable[[str], Awaitable[list[str]]],
    root: str,
    max_folders: int = DEFAULT_MAX_FOLDERS,
    on_error: Callable[[str, Exception], None] | None = None,
) -> list[str]:
    """
    Breadth-first discovery of a folder tree.

    Args:
        list_children: Coroutine returning a folder's immediate child paths
        root: Root folder path
        max_folders: Maximum number of folders to return
        on_error: Called with (folder, exception) when a child listing fails

    Returns:
        Normalized folder paths in BFS order, root first
    """
    root = normalize_folder(root)
    queue = deque([root])
    seen = {root}
    folders: list[str] = []

    while queue and len(folders) < max_folders:
        folder = queue.popleft()
        folders.append(folder)
        if len(folders) >= max_folders:
            break

        try:
            children = await list_children(folder)
        except DAM_ERRORS as e:
            logger.warning("Listing subfolders of %r failed: %s", folder, e)
            if on_error:
                on_error(folder, e)
            continue

        for child in children:
            child = normalize_folder(child)
            if child and child not in seen:
                seen.add(child)
                queue.append(child)

    return folders


def get_max_folders() -> int:
    """Folder cap for discovery, from CATALOG_MAX_FOLDERS."""
    try:
        return max(1, int(os.getenv("CATALOG_MAX_FOLDERS", DEFAULT_MAX_FOLDERS)))
    except ValueError:
        return DEFAULT_MAX_FOLDERS


def get_cloudinary_client() -> CloudinaryClient | None:
    """Get a Cloudinary client if configured, None otherwise."""
    try:
        return CloudinaryClient()
    except ValueError:
        return None
