#!/usr/bin/env python

# pylint: disable=too-few-public-methods

"""Reusable string literals."""

from enum import Enum

ACI_EXTENSION = ".aci"


class ACILabels:
    """https://github.com/appc/spec/blob/master/spec/aci.md#image-manifest-schema"""

    ARCH = "arch"
    EXT = "ext"
    OS = "os"
    VERSION = "version"

    REQUIRED = (ARCH, OS)


class ACIPushKeys:
    """JSON keys of the ACI push protocol messages."""

    ACI_PUSH_VERSION = "aci_push_version"
    COMPLETED_URL = "completed_url"
    MULTIPART = "multipart"
    UPLOAD_ACI_URL = "upload_aci_url"
    UPLOAD_MANIFEST_URL = "upload_manifest_url"
    UPLOAD_SIGNATURE_URL = "upload_signature_url"

    REASON = "reason"
    SERVER_REASON = "server_reason"
    SUCCESS = "success"


class AuthConfig:
    """https://github.com/coreos/rkt/blob/master/Documentation/configuration.md"""

    KIND_AUTH = "auth"
    SUBDIR_AUTH = "auth.d"
    TYPE_BASIC = "basic"
    TYPE_OAUTH = "oauth"
    VERSION_V1 = "v1"


class Discovery:
    """https://github.com/appc/spec/blob/master/spec/discovery.md"""

    META_PUSH = "ac-push-discovery"
    QUERY = "ac-discovery=1"


class MediaTypes:
    """Generic mime types."""

    APPLICATION_JSON = "application/json"
    APPLICATION_OCTET_STREAM = "application/octet-stream"
    TEXT_HTML = "text/html"


class PartLabels:
    """Human readable labels of the uploaded parts, in upload order."""

    MANIFEST = "manifest"
    SIGNATURE = "signature"
    ACI = "ACI"


class PushState(Enum):
    """States of a push session."""

    INIT = "init"
    LABEL_RESOLVING = "label-resolving"
    DISCOVERING = "discovering"
    INITIATING = "initiating"
    UPLOADING_MANIFEST = "uploading-manifest"
    UPLOADING_SIGNATURE = "uploading-signature"
    UPLOADING_IMAGE = "uploading-image"
    REPORTING_COMPLETION = "reporting-completion"
    DONE = "done"
    FAILED = "failed"
