#!/usr/bin/env python

"""Per-host authentication headers loaded from layered configuration directories."""

import json
import logging
import os

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

import aiofiles

from aiohttp.helpers import BasicAuth

from .errors import ConfigurationError
from .specs import AuthConfig

LOGGER = logging.getLogger(__name__)

Headers = Dict[str, List[str]]


class HeaderProvider(Protocol):
    # pylint: disable=too-few-public-methods
    """Provides the HTTP headers to be added to requests for a given host."""

    def headers_for(self, host: str) -> Optional[Headers]:
        """
        Args:
            host: The host (<hostname>[:<port>]) of the outgoing request.

        Returns:
            Header name to header values, or None if there is no mapping for the host.
        """


class BasicAuthHeaderer:
    # pylint: disable=too-few-public-methods
    """Basic HTTP authentication."""

    def __init__(self, user: str, password: str):
        self.auth = BasicAuth(user, password)

    def header(self) -> Headers:
        """Retrieves the authentication headers."""
        return {"Authorization": [self.auth.encode()]}


class OAuthBearerHeaderer:
    # pylint: disable=too-few-public-methods
    """OAuth bearer token authentication."""

    def __init__(self, token: str):
        self.token = token

    def header(self) -> Headers:
        """Retrieves the authentication headers."""
        return {"Authorization": [f"Bearer {self.token}"]}


def _get_credential(credentials: Dict, key: str, _type: str) -> str:
    value = credentials.get(key)
    if not value:
        raise ConfigurationError(f"no {key} specified for {_type} credentials")
    return value


def parse_auth_v1(config: Dict[str, Any], raw: Dict[str, Any]):
    """
    Parses an "auth" kind configuration, version "v1", into the given host table.

    Args:
        config: Host to headerer mapping to be updated.
        raw: The decoded configuration file.
    """
    domains = raw.get("domains")
    if not domains:
        raise ConfigurationError("no domains specified")
    _type = raw.get("type")
    credentials = raw.get("credentials") or {}
    if _type == AuthConfig.TYPE_BASIC:
        headerer = BasicAuthHeaderer(
            _get_credential(credentials, "user", _type),
            _get_credential(credentials, "password", _type),
        )
    elif _type == AuthConfig.TYPE_OAUTH:
        headerer = OAuthBearerHeaderer(_get_credential(credentials, "token", _type))
    else:
        raise ConfigurationError(f"unknown credentials type: {_type!r}")
    for domain in domains:
        if domain in config:
            raise ConfigurationError(f"auth for domain {domain!r} is already specified")
        config[domain] = headerer


ConfigParser = Callable[[Dict[str, Any], Dict[str, Any]], None]

DEFAULT_PARSERS = {
    (AuthConfig.KIND_AUTH, AuthConfig.VERSION_V1): parse_auth_v1,
}  # type: Dict[Tuple[str, str], ConfigParser]

DEFAULT_SUBDIRS = {
    AuthConfig.SUBDIR_AUTH: [AuthConfig.KIND_AUTH],
}  # type: Dict[str, List[str]]


class CredentialStore:
    """
    Authentication headers per host, merged from configuration directories (later directories win).
    """

    DEBUG = os.environ.get("ACIPUSH_DEBUG", "")
    DEFAULT_LOCAL_CONFIG_DIR = os.environ.get("ACIPUSH_LOCAL_CONFIG_DIR", "/etc/rkt")
    DEFAULT_SYSTEM_CONFIG_DIR = os.environ.get(
        "ACIPUSH_SYSTEM_CONFIG_DIR", "/usr/lib/rkt"
    )

    def __init__(
        self,
        *,
        auth_per_host: Dict[str, Any] = None,
        parsers: Dict[Tuple[str, str], ConfigParser] = None,
        subdirs: Dict[str, List[str]] = None,
    ):
        """
        Args:
            auth_per_host: Initial host to headerer mapping.
            parsers: Mapping of (kind, version) to configuration parser.
            subdirs: Mapping of configuration subdirectory to the kinds it may contain.
        """
        self.auth_per_host = dict(auth_per_host) if auth_per_host else {}
        self.parsers = parsers if parsers is not None else dict(DEFAULT_PARSERS)
        self.subdirs = subdirs if subdirs is not None else dict(DEFAULT_SUBDIRS)

    @staticmethod
    async def from_dirs(*dirs: Path, **kwargs) -> "CredentialStore":
        """
        Initializes a CredentialStore from the given directories, in increasing order of precedence.

        Args:
            dirs: The configuration directories; defaults to the system and then the local directory.

        Returns:
            The newly initialized object.
        """
        if not dirs:
            dirs = (
                Path(CredentialStore.DEFAULT_SYSTEM_CONFIG_DIR),
                Path(CredentialStore.DEFAULT_LOCAL_CONFIG_DIR),
            )
        credential_store = CredentialStore(**kwargs)
        for directory in dirs:
            await credential_store.load_dir(Path(directory))
        return credential_store

    async def load_dir(self, directory: Path):
        """
        Loads a configuration directory, overriding hosts already known.

        Args:
            directory: The configuration directory; ignored if it does not exist.
        """
        if not directory.exists():
            return
        if not directory.is_dir():
            raise ConfigurationError(f"expected {str(directory)!r} to be a directory")

        auth_per_host = {}
        for subdir, kinds in self.subdirs.items():
            path = directory.joinpath(subdir)
            if not path.exists():
                continue
            if not path.is_dir():
                raise ConfigurationError(f"expected {str(path)!r} to be a directory")
            for file in sorted(path.iterdir()):
                if file.is_symlink() or not file.is_file() or file.suffix != ".json":
                    continue
                await self._load_file(auth_per_host, file, kinds)
        self.auth_per_host.update(auth_per_host)

    async def _load_file(self, config: Dict[str, Any], path: Path, kinds: List[str]):
        if CredentialStore.DEBUG:
            LOGGER.debug("Loading configuration from: %s", path)
        async with aiofiles.open(path, mode="rb") as file:
            content = await file.read()
        try:
            raw = json.loads(content)
        except ValueError as exception:
            raise ConfigurationError(
                f"failed to parse {str(path)!r}: {exception}"
            ) from exception
        if not isinstance(raw, dict):
            raise ConfigurationError(f"failed to parse {str(path)!r}: not an object")

        kind = raw.get("rktKind")
        version = raw.get("rktVersion")
        if not kind:
            raise ConfigurationError(f"no rktKind specified in {str(path)!r}")
        if not version:
            raise ConfigurationError(f"no rktVersion specified in {str(path)!r}")
        if kind not in kinds:
            raise ConfigurationError(
                f"the configuration directory {str(path.parent)!r} expects to have configuration files of kinds "
                f"{kinds}, but {path.name!r} has kind of {kind!r}"
            )
        parser = self.parsers.get((kind, version))
        if parser is None:
            raise ConfigurationError(
                f"no parser available for configuration of kind {kind!r} and version {version!r}"
            )
        try:
            parser(config, raw)
        except ConfigurationError as exception:
            raise ConfigurationError(
                f"failed to parse {str(path)!r}: {exception}"
            ) from exception

    def headers_for(self, host: str) -> Optional[Headers]:
        """
        Retrieves the authentication headers for a given host.

        Args:
            host: The host (<hostname>[:<port>]) of the outgoing request.

        Returns:
            Header name to header values, or None.
        """
        headerer = self.auth_per_host.get(host)
        if headerer is None:
            return None
        return headerer.header()
