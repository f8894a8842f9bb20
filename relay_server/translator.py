"""Translate relay requests into outbound HTTP calls and summarize the result."""

import asyncio
import re
from collections.abc import Mapping
from uuid import uuid4

import aiohttp
import pydantic
from multidict import CIMultiDict
from pydantic_core import PydanticSerializationError
from yarl import URL

from .errors import (
    BodyReadError,
    DecodeError,
    EncodingError,
    RelayExecutionError,
    RequestConstructionError,
    ValidationError,
)
from .logging import get_logger
from .models import RelayRequest, RelayResponse
from .registry import ResponseRegistry

logger = get_logger(__name__)

# RFC 9110 token characters
_METHOD_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")

# Only the caller may ask for a compressed body; the session never decodes one
_SKIP_AUTO_HEADERS = ("Accept-Encoding",)


def parse_relay_request(raw: bytes | str) -> RelayRequest:
    """
    Decode and validate an inbound relay request document.

    Raises:
        DecodeError: If the document is not JSON or a field has the wrong type
        ValidationError: If method or url is empty
    """
    try:
        relay_request = RelayRequest.model_validate_json(raw)
    except pydantic.ValidationError as exc:
        logger.warning(f"Failed to decode request: {exc}")
        raise DecodeError(_describe_decode_error(exc)) from exc

    if not relay_request.method or not relay_request.url:
        logger.warning("Method and URL are required")
        raise ValidationError("Method and URL are required")

    return relay_request


def _describe_decode_error(exc: pydantic.ValidationError) -> str:
    parts = []
    for error in exc.errors(include_url=False):
        location = ".".join(str(item) for item in error["loc"])
        parts.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "; ".join(parts)


def collapse_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Keep the first value seen for every header name, in wire order.

    Values carrying raw non-UTF-8 bytes come back from aiohttp surrogate-escaped;
    they are re-decoded with replacement characters so the summary stays encodable.
    """
    collapsed: dict[str, str] = {}
    seen: set[str] = set()
    for name, value in headers.items():
        if name.lower() not in seen:
            seen.add(name.lower())
            collapsed[str(name)] = value.encode("utf-8", "surrogateescape").decode(
                "utf-8", "replace"
            )
    return collapsed


def _fold_headers(headers: Mapping[str, str]) -> CIMultiDict[str]:
    """Later names replace earlier ones that differ only in case."""
    folded: CIMultiDict[str] = CIMultiDict()
    for name, value in headers.items():
        folded[name] = value
    return folded


def encode_relay_response(summary: RelayResponse) -> str:
    """Serialize a relay summary to JSON text."""
    try:
        return summary.model_dump_json()
    except PydanticSerializationError as exc:
        logger.error(f"Failed to encode response: {exc}")
        raise EncodingError(str(exc)) from exc


class RelayExecutor:
    """Performs relay calls over a shared aiohttp client session."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        registry: ResponseRegistry,
        timeout: float | None = None,
    ) -> None:
        """
        Initialize the executor.

        Args:
            session: Client session shared by every relay call
            registry: Store receiving the captured response bodies
            timeout: Total deadline for one outbound call in seconds, None for no deadline
        """
        self._session = session
        self._registry = registry
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def relay(self, relay_request: RelayRequest) -> RelayResponse:
        """Execute one relay call and store its body.

        Args:
            relay_request: Validated relay request

        Returns:
            Summary of the upstream response

        Raises:
            RequestConstructionError: If the method or URL cannot form a request
            RelayExecutionError: If the upstream cannot be reached
            BodyReadError: If the upstream body cannot be read in full
            EncodingError: If the summary cannot be serialized, before anything is stored
        """
        request_id = str(uuid4())
        logger.info(f"Generated request ID: {request_id}")

        method, url = self._build_target(relay_request)

        try:
            response = await self._session.request(
                method,
                url,
                headers=_fold_headers(relay_request.headers),
                skip_auto_headers=_SKIP_AUTO_HEADERS,
                data=None,
                timeout=self._timeout,
            )
        except (aiohttp.InvalidURL, ValueError) as exc:
            logger.error(f"Failed to create request: {exc}")
            raise RequestConstructionError(str(exc) or "invalid request") from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.error(f"Failed to do request: {exc!r}")
            raise RelayExecutionError(str(exc) or "upstream request failed") from exc

        async with response:
            try:
                body = await response.read()
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                logger.error(f"Failed to read response body: {exc!r}")
                raise BodyReadError(str(exc) or "failed to read response body") from exc

            summary = RelayResponse(
                id=request_id,
                status=response.status,
                headers=collapse_headers(response.headers),
                length=len(body),
            )

        encode_relay_response(summary)

        self._registry.put(request_id, body.decode("utf-8", errors="replace"))
        logger.info(f"Stored request ID: {request_id}")

        return summary

    def _build_target(self, relay_request: RelayRequest) -> tuple[str, URL]:
        """Check the method and parse the URL before any network activity."""
        if not _METHOD_RE.match(relay_request.method):
            message = f"invalid method {relay_request.method!r}"
            logger.error(f"Failed to create request: {message}")
            raise RequestConstructionError(message)

        try:
            url = URL(relay_request.url)
        except (ValueError, TypeError) as exc:
            logger.error(f"Failed to create request: {exc}")
            raise RequestConstructionError(f"invalid url {relay_request.url!r}: {exc}") from exc

        if not url.is_absolute():
            message = f"invalid url {relay_request.url!r}: not an absolute URL"
            logger.error(f"Failed to create request: {message}")
            raise RequestConstructionError(message)

        return relay_request.method, url
