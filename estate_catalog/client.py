"""Catalog API client - read and write boundary to the property server."""

import logging
from pathlib import Path
from typing import Any, Literal

import httpx

from estate_catalog.config import settings
from estate_catalog.models import LookupItem, MediaAttachment, PropertyRecord, SubmitResult
from estate_catalog.normalizer import normalize, normalize_many
from estate_catalog.utils import clean_text, parse_int

logger = logging.getLogger(__name__)

LookupKind = Literal["province", "district", "area"]


class CatalogClientError(Exception):
    """Request to the catalog server failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SubmissionError(CatalogClientError):
    """
    The server rejected a submitted draft.

    property_id is set when the record itself was saved but a later step
    (the media upload) failed, so a retry can update instead of create.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        field_errors: dict | None = None,
        property_id: int | None = None,
    ):
        super().__init__(message, status_code)
        self.field_errors = field_errors or {}
        self.property_id = property_id


def _error_message(response: httpx.Response, default: str) -> tuple[str, dict]:
    """Pull the server's error text (and per-field errors, if any) out of a response."""
    try:
        body = response.json()
    except ValueError:
        return (response.text.strip() or default), {}

    if not isinstance(body, dict):
        return default, {}

    message = body.get("error") or body.get("message") or default
    if isinstance(message, list):
        message = ", ".join(str(item) for item in message)

    field_errors = body.get("errors") if isinstance(body.get("errors"), dict) else {}
    return str(message), field_errors


class CatalogClient:
    """
    Client for the catalog REST API.

    Reads come back as raw dicts (normalize them with normalizer.normalize)
    or, through get_record/children_of, as normalized records. Every
    request is a single attempt: retries and de-duplication are the
    caller's business.
    """

    # Lookup cascade: kind -> (path template, needs parent id)
    LOOKUP_PATHS = {
        "province": ("/locations/provinces", False),
        "district": ("/locations/provinces/{parent_id}/districts", True),
        "area": ("/locations/districts/{parent_id}/areas", True),
    }

    def __init__(
        self,
        base_url: str | None = None,
        access_token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize API client.

        Args:
            base_url: API root (defaults to settings.api_base_url)
            access_token: Bearer token for protected endpoints (optional)
            timeout: Request timeout in seconds
            transport: Custom httpx transport (tests)
        """
        self.base_url = base_url or settings.api_base_url
        self.access_token = access_token or settings.access_token
        self.timeout = timeout or settings.request_timeout
        self.transport = transport
        self.client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self.client is None:
            headers = {"Accept": "application/json"}
            if self.access_token:
                headers["Authorization"] = f"Bearer {self.access_token}"

            self.client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
                transport=self.transport,
            )
        return self.client

    async def close(self) -> None:
        """Close HTTP client."""
        if self.client:
            await self.client.aclose()
            self.client = None

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _get(self, path: str) -> Any:
        client = await self._get_client()
        logger.debug("GET %s", path)
        try:
            response = await client.get(path)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            message, _ = _error_message(e.response, f"GET {path} failed")
            raise CatalogClientError(message, e.response.status_code) from e
        except httpx.HTTPError as e:
            raise CatalogClientError(f"GET {path} failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise CatalogClientError(f"GET {path} returned invalid JSON", response.status_code) from e

    async def _send(self, method: str, path: str, **kwargs) -> Any:
        client = await self._get_client()
        logger.debug("%s %s", method, path)
        try:
            response = await client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            message, field_errors = _error_message(
                e.response, "Failed to save property. Please check required fields."
            )
            raise SubmissionError(message, e.response.status_code, field_errors) from e
        except httpx.HTTPError as e:
            raise SubmissionError(f"{method} {path} failed: {e}") from e

        try:
            return response.json()
        except ValueError:
            return {}

    # --- Read ---

    async def fetch_property_by_id(self, property_id: int) -> dict:
        """Raw record of a single property."""
        data = await self._get(f"/properties/{property_id}")
        return data if isinstance(data, dict) else {}

    async def fetch_children(self, parent_id: int) -> list[dict]:
        """Raw records of the units of a container."""
        data = await self._get(f"/parents/{parent_id}/children")
        if isinstance(data, dict):
            data = data.get("children") or data.get("data") or []
        return [item for item in data if isinstance(item, dict)] if isinstance(data, list) else []

    async def fetch_lookups(self, kind: LookupKind, parent_id: int | None = None) -> list[LookupItem]:
        """
        Entries of a province/district/area picker.

        Args:
            kind: "province", "district" or "area"
            parent_id: Province id for districts, district id for areas

        Returns:
            List of LookupItem; malformed entries are skipped
        """
        if kind not in self.LOOKUP_PATHS:
            raise ValueError(f"Unknown lookup kind: {kind}")
        template, needs_parent = self.LOOKUP_PATHS[kind]
        if needs_parent and parent_id is None:
            raise ValueError(f"Lookup of {kind} requires a parent id")

        data = await self._get(template.format(parent_id=parent_id))
        if not isinstance(data, list):
            return []

        items = []
        for entry in data:
            if not isinstance(entry, dict):
                continue
            item_id = parse_int(entry.get("id") or entry.get(f"{kind}_id"))
            name = clean_text(entry.get("name"))
            if item_id is not None and name:
                items.append(LookupItem(id=item_id, name=name))
        return items

    async def get_record(self, property_id: int) -> PropertyRecord:
        """Normalized record of a single property."""
        return normalize(await self.fetch_property_by_id(property_id))

    async def children_of(self, parent_id: int) -> list[PropertyRecord]:
        """Normalized units of a container."""
        return normalize_many(await self.fetch_children(parent_id))

    # --- Write ---

    def _submit_route(self, payload: dict) -> tuple[str, str]:
        property_id = payload.get("property_id")
        parent_id = payload.get("parent_id")
        is_parent = bool(payload.get("is_parent"))

        if property_id is not None:
            if is_parent:
                return "PUT", f"/parents/{property_id}"
            return "PUT", f"/properties/{property_id}"
        if parent_id is not None:
            return "POST", f"/parents/{parent_id}/children"
        if is_parent:
            return "POST", "/parents"
        return "POST", "/properties"

    async def submit_property(
        self,
        payload: dict,
        attachments: list[MediaAttachment] | None = None,
    ) -> SubmitResult:
        """
        Create or update a property, then upload its new files.

        Args:
            payload: Body built by wizard.to_submission_payload
            attachments: Files to upload once the record exists

        Returns:
            SubmitResult with the server-assigned id

        Raises:
            SubmissionError: The server rejected the draft or the upload
        """
        method, path = self._submit_route(payload)
        body = {key: value for key, value in payload.items() if key != "property_id"}
        data = await self._send(method, path, json=body)

        property_id = payload.get("property_id")
        if isinstance(data, dict):
            property_id = parse_int(data.get("property_id") or data.get("id")) or property_id
        if property_id is None:
            raise SubmissionError("Server response did not include a property id")

        if attachments:
            try:
                await self.upload_media(property_id, attachments)
            except SubmissionError as e:
                logger.warning("Property %s saved but media upload failed: %s", property_id, e)
                e.property_id = property_id
                raise

        logger.info("Saved property %s (%s %s)", property_id, method, path)
        return SubmitResult(property_id=property_id)

    async def upload_media(self, property_id: int, attachments: list[MediaAttachment]) -> None:
        """Upload picked files as multipart field "files"."""
        files = []
        for item in attachments:
            try:
                content = item.content if item.content is not None else Path(item.uri).read_bytes()
            except OSError as e:
                raise SubmissionError(f"Could not read {item.name}: {e}") from e
            files.append(("files", (item.name, content, item.mime_type or "application/octet-stream")))
        await self._send("POST", f"/properties/{property_id}/upload", files=files)
