#!/usr/bin/env python

"""An AIOHTTP based Python client for the ACI push protocol."""

from .acipushclientasync import ACIPushClientAsync
from .appname import AppName
from .credentials import CredentialStore
from .discovery import MetaDiscovery
from .errors import (
    ACIPushError,
    CombinedError,
    ConfigurationError,
    DecodeError,
    DiscoveryError,
    ManifestExtractError,
    MissingLabelError,
    NoEndpointError,
    PartUploadError,
    ReportRejectedError,
    ReportTransportError,
    SourceOpenError,
    TooManyRedirectsError,
    TransportError,
    UnexpectedStatusError,
)
from .imagereader import ImageReader
from .manifest import ImageManifest
from .specs import ACILabels, PartLabels, PushState
from .transport import Transport

__version__ = "0.1.0"
