"""Async HTTP client for the Camb.ai API.

WHY: Every capability (speech synthesis, translation, transcription, voice
creation...) talks to the same API with the same auth header and the same
error semantics. This module is the single place where HTTP happens, so the
operations never deal with httpx, credentials, or status codes directly.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. CambClient is an async
context manager: enter it to open the connection pool, exit to close it.
Each call is described by a frozen RequestDescriptor and sent with issue().
Non-2xx responses and transport failures are converted to the typed
ApiError hierarchy from errors.py.

RULES:
- Always use the async context manager (async with CambClient(...) as client:)
- The x-api-key header is attached to base-endpoint calls only; skip_auth
  targets are absolute URLs sent verbatim and without credentials
- The API key is never logged
- No retries here: errors surface to the caller immediately
- binary_response returns bytes; otherwise parsed JSON (None for empty body)
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

import httpx

from camb_connector.api.errors import GenericApiError, classify_status
from camb_connector.api.models import (
    FilePart,
    Language,
    RequestDescriptor,
    RequestOptions,
    Voice,
)
from camb_connector.config import (
    API_KEY_HEADER,
    CAMB_BASE_URL,
    DEFAULT_TIMEOUT_S,
    load_api_key,
)

logger = logging.getLogger(__name__)


class CambClient:
    """Async client for the Camb.ai REST API.

    RULES:
    - Use as: async with CambClient() as client: ...
    - api_key defaults to load_api_key() from .env
    - base_url defaults to CAMB_BASE_URL from config
    - transport is for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key or load_api_key()
        self._base_url = (base_url or CAMB_BASE_URL).rstrip("/")
        self._timeout_s = timeout_s
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> CambClient:
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout_s, connect=30.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "CambClient must be used as an async context manager: "
                "async with CambClient() as client: ..."
            )
        return self._client

    def resolve_url(self, target: str, options: RequestOptions) -> str:
        """Return the URL a target points at.

        skip_auth targets are absolute result URLs handed out by the API;
        everything else is a path under the base endpoint.
        """
        if options.skip_auth:
            return target
        return "{}/{}".format(self._base_url, target.lstrip("/"))

    # ------------------------------------------------------------------
    # Core dispatch
    # ------------------------------------------------------------------

    async def issue(self, descriptor: RequestDescriptor) -> Any:
        """Send one request and return the decoded response body.

        Args:
            descriptor: The call to make.

        Returns:
            bytes when options.binary_response is set, otherwise the parsed
            JSON body (None when the body is empty).

        Raises:
            AuthError, RateLimitError, BadRequestError, NotFoundError,
            GenericApiError: see errors.classify_status. Transport failures
            (connect errors, timeouts) become GenericApiError.
        """
        client = self._ensure_client()
        options = descriptor.options
        url = self.resolve_url(descriptor.target, options)

        headers = {}
        if not options.skip_auth:
            headers[API_KEY_HEADER] = self._api_key

        kwargs: dict = {
            "headers": headers,
            "timeout": httpx.Timeout(options.timeout_s, connect=30.0),
        }
        if descriptor.query:
            kwargs["params"] = dict(descriptor.query)
        if options.as_form:
            kwargs["data"] = _form_fields(descriptor.body)
            if descriptor.files:
                kwargs["files"] = dict(descriptor.files)
        elif descriptor.body is not None:
            kwargs["json"] = dict(descriptor.body)

        logger.debug("%s %s", descriptor.method, url if not options.skip_auth else "<external url>")
        try:
            resp = await client.request(descriptor.method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise GenericApiError(
                "Request to Camb.ai failed: {}".format(str(exc) or type(exc).__name__)
            ) from exc

        if resp.is_error:
            logger.debug("%s %s -> %d", descriptor.method, descriptor.target, resp.status_code)
            raise classify_status(resp.status_code, _upstream_message(resp))

        if options.binary_response:
            return resp.content
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise GenericApiError(
                "Camb.ai returned a non-JSON response for {}".format(descriptor.target),
                resp.status_code,
            ) from exc

    async def request(
        self,
        method: str,
        target: str,
        body: Optional[Mapping[str, Any]] = None,
        query: Optional[Mapping[str, Any]] = None,
        files: Optional[Mapping[str, FilePart]] = None,
        options: Optional[RequestOptions] = None,
    ) -> Any:
        """Build a RequestDescriptor from arguments and issue it."""
        return await self.issue(
            RequestDescriptor(
                method=method,
                target=target,
                body=body,
                query=query,
                files=files,
                options=options or RequestOptions(timeout_s=self._timeout_s),
            )
        )

    async def download(self, url: str, timeout_s: Optional[float] = None) -> bytes:
        """Fetch an externally hosted, pre-authorized artifact URL."""
        return await self.request(
            "GET",
            url,
            options=RequestOptions(
                timeout_s=timeout_s or self._timeout_s,
                binary_response=True,
                skip_auth=True,
            ),
        )

    # ------------------------------------------------------------------
    # Listing endpoints
    # ------------------------------------------------------------------

    async def list_voices(self) -> List[Voice]:
        data = await self.request("GET", "/list-voices")
        return [Voice.from_dict(v) for v in data or []]

    async def list_source_languages(self) -> List[Language]:
        data = await self.request("GET", "/source-languages")
        return [Language.from_dict(lang) for lang in data or []]

    async def list_target_languages(self) -> List[Language]:
        data = await self.request("GET", "/target-languages")
        return [Language.from_dict(lang) for lang in data or []]


# ---------------------------------------------------------------------------
# Helpers (module-private)
# ---------------------------------------------------------------------------


def _form_fields(body: Optional[Mapping[str, Any]]) -> dict:
    """Stringify form fields for multipart encoding, dropping None values."""
    fields = {}
    for key, value in (body or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        fields[key] = str(value)
    return fields


def _upstream_message(resp: httpx.Response) -> str:
    """Extract the most useful error text from a failed response."""
    try:
        data = resp.json()
    except ValueError:
        return resp.text.strip()
    if isinstance(data, dict):
        for key in ("detail", "message", "error"):
            value = data.get(key)
            if value:
                return value if isinstance(value, str) else str(value)
    return resp.text.strip()
