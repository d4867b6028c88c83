#!/usr/bin/env python

"""
Push endpoint meta discovery, as described in:

* https://github.com/appc/spec/blob/master/spec/discovery.md
"""

import logging
import re

from html.parser import HTMLParser
from typing import List, Optional, Protocol, Tuple

from .appname import AppName
from .errors import ACIPushError, DecodeError, DiscoveryError
from .specs import Discovery, MediaTypes
from .transport import Transport
from .typing import DiscoveryAttempt, DiscoveryResult

LOGGER = logging.getLogger(__name__)

TEMPLATE_VARIABLE_PATTERN = re.compile(r"{[^{}]*}")


class NameResolver(Protocol):
    # pylint: disable=too-few-public-methods
    """Resolves a target name to its push endpoints."""

    async def discover(self, app_name: AppName, *, insecure: bool) -> DiscoveryResult:
        """
        Args:
            app_name: The label resolved target name.
            insecure: If True, plain HTTP may be used and certificates are not verified.

        Returns:
            The push endpoints, and the failed attempts that preceded them.
        """


class MetaTagParser(HTMLParser):
    """Collects the content of <meta> tags with a given name."""

    def __init__(self, name: str):
        super().__init__()
        self.contents = []  # type: List[str]
        self.name = name

    def handle_starttag(self, tag, attrs):
        if tag != "meta":
            return
        attributes = dict(attrs)
        if attributes.get("name") == self.name and attributes.get("content"):
            self.contents.append(attributes["content"])


def render_template(template: str, app_name: AppName) -> Optional[str]:
    """
    Substitutes {name} and {<label>} variables in a given endpoint template.

    Args:
        template: The endpoint template.
        app_name: The target name providing the values.

    Returns:
        The rendered endpoint, or None if a variable could not be substituted.
    """
    result = template.replace("{name}", app_name.name)
    for key, value in app_name.labels.items():
        result = result.replace(f"{{{key}}}", value)
    if TEMPLATE_VARIABLE_PATTERN.search(result):
        return None
    return result


def get_prefixes(name: str) -> List[str]:
    """Retrieves a name and each of its parents, longest first."""
    segments = name.split("/")
    return ["/".join(segments[:i]) for i in range(len(segments), 0, -1)]


class MetaDiscovery:
    """
    Discovers push endpoints from "ac-push-discovery" meta tags.
    """

    def __init__(self, *, transport: Transport):
        """
        Args:
            transport: The transport used to retrieve discovery documents.
        """
        self.transport = transport

    async def _get_document(self, url: str) -> str:
        async with self.transport.request(
            "GET", url, headers={"Accept": MediaTypes.TEXT_HTML}
        ) as client_response:
            try:
                return await client_response.text()
            except (UnicodeDecodeError, ValueError) as exception:
                raise DecodeError(f"error decoding {url}: {exception}") from exception

    async def _discover_prefix(
        self, app_name: AppName, prefix: str, *, insecure: bool
    ) -> Tuple[List[str], List[DiscoveryAttempt]]:
        attempts = []
        protocols = ["https", "http"] if insecure else ["https"]
        for protocol in protocols:
            url = f"{protocol}://{prefix}?{Discovery.QUERY}"
            try:
                document = await self._get_document(url)
            except ACIPushError as exception:
                attempts.append(DiscoveryAttempt(prefix=url, error=exception))
                continue

            parser = MetaTagParser(Discovery.META_PUSH)
            parser.feed(document)
            endpoints = []
            for content in parser.contents:
                fields = content.split()
                if len(fields) != 2:
                    continue
                if not app_name.name.startswith(fields[0]):
                    continue
                endpoint = render_template(fields[1], app_name)
                if endpoint:
                    endpoints.append(endpoint)
            if endpoints:
                return endpoints, attempts
            attempts.append(
                DiscoveryAttempt(
                    prefix=url,
                    error=DiscoveryError(f"no matching {Discovery.META_PUSH} meta tag"),
                )
            )
        return [], attempts

    async def discover(self, app_name: AppName, *, insecure: bool) -> DiscoveryResult:
        """
        Discovers the push endpoints of a given target name, walking up its name until endpoints are found.

        Args:
            app_name: The label resolved target name.
            insecure: If True, plain HTTP is attempted after HTTPS.

        Returns:
            The push endpoints, and the failed attempts that preceded them.
        """
        if not app_name.name:
            raise DiscoveryError("cannot discover endpoints for an empty name")

        attempts = []
        for prefix in get_prefixes(app_name.name):
            endpoints, _attempts = await self._discover_prefix(
                app_name, prefix, insecure=insecure
            )
            attempts.extend(_attempts)
            if endpoints:
                return DiscoveryResult(endpoints=endpoints, attempts=attempts)
        return DiscoveryResult(endpoints=[], attempts=attempts)
