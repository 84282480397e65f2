"""Default fetch function for schema documents hosted at URLs or in files."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional
from urllib.parse import urlparse

import httpx

from .data_classes import REMOTE_SCHEMES, ResolverConfig
from .errors import ResolutionError
from .parser import SchemaDocumentParser

logger = logging.getLogger(__name__)

# Any coroutine function taking a URL or file path and returning the decoded document
FetchFunction = Callable[[str], Awaitable[Dict[str, Any]]]


class SchemaFetcher:
    """Fetches and decodes schema documents over HTTP(S) or from the local filesystem."""

    def __init__(
        self,
        config: Optional[ResolverConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the fetcher.

        Args:
            config: Resolver configuration (timeout)
            transport: Optional httpx transport, e.g. httpx.MockTransport in tests
        """
        self.config = config or ResolverConfig()
        self.transport = transport
        self.parser = SchemaDocumentParser()

    async def __call__(self, location: str) -> Dict[str, Any]:
        return await self.fetch(location)

    async def fetch(self, location: str) -> Dict[str, Any]:
        """
        Fetch a schema document.

        Args:
            location: An http(s) URL or an absolute file path

        Returns:
            The decoded schema document

        Raises:
            ResolutionError: On non-2xx responses, transport errors, missing files
                or undecodable content
        """
        if urlparse(location).scheme in REMOTE_SCHEMES:
            return await self._fetch_url(location)
        return await self._read_file(location)

    async def _fetch_url(self, url: str) -> Dict[str, Any]:
        """Fetch a document over HTTP(S)."""
        logger.debug(f"Fetching schema document: {url}")
        try:
            async with httpx.AsyncClient(
                timeout=self.config.fetch_timeout,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            raise ResolutionError(f"Error fetching {url}: {e}", ref=url, cause=e) from e

        if not response.is_success:
            raise ResolutionError(
                f"HTTP ERROR {response.status_code} fetching {url}", ref=url
            )

        result = self.parser.parse_content(
            response.text, source=url, content_type=response.headers.get("content-type", "")
        )
        if not result.success:
            raise ResolutionError(f"Unable to decode {url}: {result.error}", ref=url)
        return result.data

    async def _read_file(self, path: str) -> Dict[str, Any]:
        """Read and decode a local schema file in a worker thread."""
        logger.debug(f"Reading schema document: {path}")
        result = await asyncio.to_thread(self.parser.parse_file, path)
        if not result.success:
            raise ResolutionError(f"Unable to load {path}: {result.error}", ref=path)
        return result.data
