#!/usr/bin/env python

# pylint: disable=missing-class-docstring,too-few-public-methods

"""Typing classes."""

from typing import Any, Dict, List, NamedTuple, Optional

from .specs import PushState


class InitiationDetails(NamedTuple):
    aci_push_version: str
    multipart: bool
    upload_manifest_url: str
    upload_signature_url: str
    upload_aci_url: str
    completed_url: str


class CompletionMessage(NamedTuple):
    success: bool
    reason: Optional[str] = None
    server_reason: Optional[str] = None


class DiscoveryAttempt(NamedTuple):
    prefix: str
    error: BaseException


class DiscoveryResult(NamedTuple):
    endpoints: List[str]
    attempts: List[DiscoveryAttempt]


class PushPart(NamedTuple):
    label: str
    state: PushState
    url: str
    data: Any
    draw: bool


class PushSession(NamedTuple):
    app_name: Any
    manifest: Any
    state: PushState = PushState.INIT
    initiation: Optional[InitiationDetails] = None


class AppNameParseString(NamedTuple):
    name: str
    labels: Dict[str, str]
