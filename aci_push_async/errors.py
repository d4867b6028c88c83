#!/usr/bin/env python

"""
Exceptions raised while pushing an ACI.

Every failure of a push session surfaces as exactly one of these, carrying the
stage and, where there is one, the underlying cause.
"""

from typing import Optional


class ACIPushError(Exception):
    """Base class for all push errors."""


class ConfigurationError(ACIPushError):
    """A credentials configuration file could not be loaded."""


class SourceOpenError(ACIPushError):
    """The image or signature file could not be opened."""


class ManifestExtractError(ACIPushError):
    """The image manifest could not be extracted from the image file."""


class MissingLabelError(ACIPushError):
    """Neither the target name nor the image manifest carries a required label."""

    def __init__(self, key: str):
        super().__init__(f"manifest is missing label: {key!r}")
        self.key = key


class DiscoveryError(ACIPushError):
    """The push endpoint lookup failed."""


class NoEndpointError(DiscoveryError):
    """Discovery completed but returned no push endpoints."""

    def __init__(self, message: str = "no endpoints discovered"):
        super().__init__(message)


class TransportError(ACIPushError):
    """An HTTP request could not be completed."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class TooManyRedirectsError(TransportError):
    """The redirect ceiling was exceeded."""

    def __init__(self, url: str, requests: int):
        super().__init__(f"too many redirects: {requests} requests, last to {url}")
        self.url = url


class UnexpectedStatusError(TransportError):
    """The server answered with a status other than 200 or 400."""

    def __init__(self, code: int):
        super().__init__(f"bad HTTP status code: {code}")
        self.code = code


class DecodeError(ACIPushError):
    """A server response could not be decoded."""


class PartUploadError(ACIPushError):
    """A single part (manifest, signature or ACI) failed to upload."""

    def __init__(self, label: str, cause: BaseException):
        super().__init__(f"error uploading {label}: {cause}")
        self.label = label
        self.cause = cause


class ReportTransportError(ACIPushError):
    """The completion report could not be delivered or its reply decoded."""

    def __init__(self, cause: BaseException):
        super().__init__(f"error reporting completion: {cause}")
        self.cause = cause


class ReportRejectedError(ACIPushError):
    """The server acknowledged the completion report with success=false."""

    def __init__(self, server_reason: Optional[str]):
        super().__init__(server_reason or "server rejected the upload")
        self.server_reason = server_reason


class CombinedError(ACIPushError):
    """A part upload failed, and so did reporting that failure."""

    def __init__(self, part_error: PartUploadError, report_error: ACIPushError):
        super().__init__(
            f"error uploading {part_error.label} and error reporting failure: "
            f"{part_error.cause}, {report_error}"
        )
        self.part_error = part_error
        self.report_error = report_error
