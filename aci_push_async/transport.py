#!/usr/bin/env python

"""Single HTTP request executor shared by every step of a push."""

import asyncio
import logging
import os

from contextlib import asynccontextmanager
from http import HTTPStatus
from ssl import create_default_context, SSLContext
from typing import AsyncIterator, Dict, Union
from urllib.parse import urlparse

from aiohttp import (
    AsyncResolver,
    ClientError,
    ClientResponse,
    ClientSession,
    TCPConnector,
)
from aiohttp.typedefs import LooseHeaders
from multidict import CIMultiDict
from yarl import URL

from .credentials import HeaderProvider
from .errors import TooManyRedirectsError, TransportError, UnexpectedStatusError

LOGGER = logging.getLogger(__name__)

# Statuses that carry a body for the caller to interpret; this protocol uses 400 for structured errors.
READABLE_STATUSES = (HTTPStatus.OK, HTTPStatus.BAD_REQUEST)

# Statuses after which a non-GET request is repeated as a GET without a body.
REDIRECT_STATUSES_GET = (
    HTTPStatus.MOVED_PERMANENTLY,
    HTTPStatus.FOUND,
    HTTPStatus.SEE_OTHER,
)
REDIRECT_STATUSES_REPLAY = (
    HTTPStatus.TEMPORARY_REDIRECT,
    HTTPStatus.PERMANENT_REDIRECT,
)


class Transport:
    # pylint: disable=too-many-instance-attributes
    """
    Executes HTTP requests with a consistent TLS, authentication and redirect policy.
    """

    DEBUG = os.environ.get("ACIPUSH_DEBUG", "")
    MAX_REQUESTS = 10

    def __init__(
        self,
        *,
        client_session: ClientSession = None,
        client_session_kwargs: Dict = None,
        header_provider: HeaderProvider = None,
        insecure: bool = False,
        resolver_kwargs: Dict = None,
        ssl: Union[None, bool, SSLContext] = None,
        tcp_connector_kwargs: Dict = None,
    ):
        """
        Args:
            client_session: The underlying client session to use when making connections.
            client_session_kwargs: Arguments to be passed to the client session.
            header_provider: Provides the headers added to every request, including redirected requests.
            insecure: If True, certificate verification is disabled.
            resolver_kwargs: Arguments to be passed to the resolver.
            ssl: SSL context.
            tcp_connector_kwargs: Arguments to be passed to the TCP connector.
        """
        if not client_session_kwargs:
            client_session_kwargs = {}
        if not resolver_kwargs:
            resolver_kwargs = {}
        if insecure:
            ssl = False
        elif not ssl:
            cacerts = os.environ.get("ACIPUSH_CACERTS", None)
            if cacerts:
                if Transport.DEBUG:
                    LOGGER.debug("Using cacerts: %s", cacerts)
                ssl = create_default_context(cafile=str(cacerts))
            else:
                ssl = True
        if isinstance(ssl, SSLContext) and Transport.DEBUG:
            LOGGER.debug("SSL Context: %s", ssl.cert_store_stats())
        if not tcp_connector_kwargs:
            tcp_connector_kwargs = {}

        self.client_session = client_session
        self.client_session_kwargs = client_session_kwargs
        self.header_provider = header_provider
        self.insecure = insecure
        self.resolver_kwargs = resolver_kwargs
        self.ssl = ssl
        self.tcp_connector_kwargs = tcp_connector_kwargs

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self):
        """Gracefully closes this instance."""
        if self.client_session:
            await self.client_session.close()
        self.client_session = None

    async def _get_client_session(self) -> ClientSession:
        """
        Initializes and / or retrieves an AIOHTTP client session.

        Returns:
            The AIOHTTP client session.
        """
        if not self.client_session:
            if "resolver" not in self.tcp_connector_kwargs:
                self.tcp_connector_kwargs["resolver"] = AsyncResolver(
                    **self.resolver_kwargs
                )
            if "ssl" not in self.tcp_connector_kwargs:
                self.tcp_connector_kwargs["ssl"] = self.ssl
            if "connector" not in self.client_session_kwargs:
                self.client_session_kwargs["connector"] = TCPConnector(
                    **self.tcp_connector_kwargs
                )
            self.client_session = ClientSession(**self.client_session_kwargs)

        return self.client_session

    @staticmethod
    def get_host(url: URL) -> str:
        """
        Retrieves the host of a given URL as <hostname>[:<port>], the port only when explicit.

        Args:
            url: The URL of an outgoing request.

        Returns:
            The host of the URL.
        """
        return urlparse(str(url)).netloc.rpartition("@")[2]

    def _get_request_headers(
        self, *, url: URL, headers: LooseHeaders = None
    ) -> CIMultiDict:
        """
        Generates the request headers for a given URL, adding the headers of the header provider for its host.

        Args:
            url: The URL of the outgoing request.
            headers: Optional supplemental request headers.

        Returns:
            The generated request headers.
        """
        result = CIMultiDict(headers or {})

        if "User-Agent" not in result:
            # Note: This cannot be imported above, as it causes a circular import!
            from . import __version__  # pylint: disable=import-outside-toplevel

            result["User-Agent"] = f"aci-push-client-async/{__version__}"

        if self.header_provider is None:
            return result

        host = Transport.get_host(url)
        extra = self.header_provider.headers_for(host)
        if extra is None:
            LOGGER.debug("No auth present in config for domain %s.", host)
            return result
        for key, values in extra.items():
            for value in values:
                result.add(key, value)
        return result

    async def _request(
        self,
        method: str,
        url: Union[str, URL],
        *,
        data=None,
        headers: LooseHeaders = None,
    ) -> ClientResponse:
        """
        Performs a request, following redirects, without classifying the final status.

        Args:
            method: The HTTP method.
            url: The URL of the request.
            data: Optional request body; bytes are replayed on 307 / 308 redirects, streams are not.
            headers: Optional supplemental request headers.

        Returns:
            The underlying client response.
        """
        client_session = await self._get_client_session()
        url = URL(url)
        for count in range(1, Transport.MAX_REQUESTS + 1):
            request_headers = self._get_request_headers(url=url, headers=headers)
            try:
                client_response = await client_session.request(
                    method,
                    url,
                    allow_redirects=False,
                    data=data,
                    headers=request_headers,
                    ssl=self.ssl,
                )
            except (ClientError, asyncio.TimeoutError) as exception:
                raise TransportError(
                    f"error performing {method} {url}: {exception!r}", cause=exception
                ) from exception

            status = client_response.status
            location = client_response.headers.get("Location")
            if not location:
                return client_response
            if status in REDIRECT_STATUSES_GET:
                if method not in ("GET", "HEAD"):
                    method = "GET"
                    data = None
                    if headers:
                        headers = CIMultiDict(headers)
                        headers.popall("Content-Type", None)
            elif status in REDIRECT_STATUSES_REPLAY:
                if data is not None and not isinstance(data, bytes):
                    return client_response
            else:
                return client_response

            client_response.release()
            if count == Transport.MAX_REQUESTS:
                raise TooManyRedirectsError(str(url), count)
            url = client_response.url.join(URL(location))
            LOGGER.debug("Following redirect (%d) to: %s", status, url)

        # Unreachable; the loop either returns or raises.
        raise TooManyRedirectsError(str(url), Transport.MAX_REQUESTS)

    @asynccontextmanager
    async def request(
        self,
        method: str,
        url: Union[str, URL],
        *,
        data=None,
        headers: LooseHeaders = None,
    ) -> AsyncIterator[ClientResponse]:
        """
        Performs a request and yields a response with a body for the caller to interpret; the response is released
        when the context exits.

        Args:
            method: The HTTP method.
            url: The URL of the request.
            data: Optional request body (bytes, file, or asynchronous iterable).
            headers: Optional supplemental request headers.

        Returns:
            The underlying client response; its status is either 200 or 400.
        """
        client_response = await self._request(method, url, data=data, headers=headers)
        try:
            if client_response.status not in READABLE_STATUSES:
                raise UnexpectedStatusError(client_response.status)
            yield client_response
        finally:
            client_response.release()
