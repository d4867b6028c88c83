#!/usr/bin/env python

"""Asynchronous ACI Push Client."""

import asyncio
import io
import json
import logging

from contextlib import ExitStack
from pathlib import Path
from ssl import SSLContext
from typing import Any, Dict, Union

from aiohttp import ClientError, ClientSession

from .appname import AppName
from .credentials import HeaderProvider
from .discovery import MetaDiscovery, NameResolver
from .errors import (
    ACIPushError,
    CombinedError,
    DecodeError,
    DiscoveryError,
    NoEndpointError,
    PartUploadError,
    ReportRejectedError,
    ReportTransportError,
    SourceOpenError,
    TransportError,
)
from .imagereader import ImageReader
from .progressgenerator import ProgressGenerator
from .specs import ACIPushKeys, MediaTypes, PartLabels, PushState
from .transport import Transport
from .typing import (
    CompletionMessage,
    InitiationDetails,
    PushPart,
    PushSession,
)
from .utils import be_kind_rewind, resolve_labels

LOGGER = logging.getLogger(__name__)

INITIATION_FIELD_TYPES = {
    ACIPushKeys.ACI_PUSH_VERSION: str,
    ACIPushKeys.MULTIPART: bool,
    ACIPushKeys.UPLOAD_MANIFEST_URL: str,
    ACIPushKeys.UPLOAD_SIGNATURE_URL: str,
    ACIPushKeys.UPLOAD_ACI_URL: str,
    ACIPushKeys.COMPLETED_URL: str,
}


class ACIPushClientAsync:
    # pylint: disable=too-many-instance-attributes
    """
    AIOHTTP based Python client for the ACI push protocol.
    """

    def __init__(
        self,
        *,
        client_session: ClientSession = None,
        client_session_kwargs: Dict = None,
        debug: bool = False,
        header_provider: HeaderProvider = None,
        image_reader: ImageReader = None,
        insecure: bool = False,
        name_resolver: NameResolver = None,
        resolver_kwargs: Dict = None,
        ssl: Union[None, bool, SSLContext] = None,
        tcp_connector_kwargs: Dict = None,
        transport: Transport = None,
    ):
        # pylint: disable=too-many-arguments
        """
        Args:
            client_session: The underlying client session to use when making connections.
            client_session_kwargs: Arguments to be passed to the client session.
            debug: If True, the progress of the signature and ACI uploads is rendered.
            header_provider: Provides the (authentication) headers added to every request.
            image_reader: Extracts the image manifest from the ACI.
            insecure: If True, certificate verification is disabled and discovery may use plain HTTP.
            name_resolver: Resolves target names to push endpoints.
            resolver_kwargs: Arguments to be passed to the resolver.
            ssl: SSL context.
            tcp_connector_kwargs: Arguments to be passed to the TCP connector.
            transport: The transport to use; all other connection arguments are ignored when given.
        """
        if not transport:
            transport = Transport(
                client_session=client_session,
                client_session_kwargs=client_session_kwargs,
                header_provider=header_provider,
                insecure=insecure,
                resolver_kwargs=resolver_kwargs,
                ssl=ssl,
                tcp_connector_kwargs=tcp_connector_kwargs,
            )
        if not image_reader:
            image_reader = ImageReader()
        if not name_resolver:
            name_resolver = MetaDiscovery(transport=transport)

        self.debug = debug
        self.image_reader = image_reader
        self.insecure = insecure
        self.name_resolver = name_resolver
        self.transport = transport

    async def __aenter__(self) -> "ACIPushClientAsync":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self):
        """Gracefully closes this instance."""
        await self.transport.close()

    @staticmethod
    async def _get_json(client_response) -> Dict[str, Any]:
        """
        Decodes the body of a given response as a JSON object.

        Args:
            client_response: The client response to decode.

        Returns:
            The decoded JSON object.
        """
        try:
            body = await client_response.read()
        except (ClientError, asyncio.TimeoutError) as exception:
            raise TransportError(
                f"error reading response from {client_response.url}: {exception!r}",
                cause=exception,
            ) from exception
        try:
            result = json.loads(body)
        except ValueError as exception:
            raise DecodeError(
                f"error decoding response from {client_response.url}: {exception}"
            ) from exception
        if not isinstance(result, dict):
            raise DecodeError(
                f"error decoding response from {client_response.url}: not an object"
            )
        return result

    # Endpoint discovery

    async def get_push_endpoint(self, app_name: AppName) -> str:
        """
        Discovers the push endpoint for a given target name.

        Args:
            app_name: The label resolved target name.

        Returns:
            The first push endpoint discovered.
        """
        LOGGER.debug("Searching for push endpoint via meta discovery")
        result = await self.name_resolver.discover(app_name, insecure=self.insecure)
        for attempt in result.attempts:
            LOGGER.debug(
                "Meta tag 'ac-push-discovery' not found on %s: %s",
                attempt.prefix,
                attempt.error,
            )
        if not result.endpoints:
            raise NoEndpointError()

        LOGGER.debug("Push endpoint found: %s", result.endpoints[0])
        return result.endpoints[0]

    # ACI Push API methods

    async def post_initiate(self, url: str) -> InitiationDetails:
        """
        Initiates an upload.

        Args:
            url: The push endpoint.

        Returns:
            aci_push_version: Version of the push protocol spoken by the server.
            multipart: Advisory; whether the server accepts multipart uploads.
            upload_manifest_url: Where to upload the image manifest.
            upload_signature_url: Where to upload the signature.
            upload_aci_url: Where to upload the ACI.
            completed_url: Where to report the outcome of the upload.
        """
        LOGGER.debug("Initiating upload")
        async with self.transport.request("POST", url) as client_response:
            payload = await ACIPushClientAsync._get_json(client_response)

        for key, _type in INITIATION_FIELD_TYPES.items():
            value = payload.get(key)
            if value is not None and not isinstance(value, _type):
                raise DecodeError(
                    f"error decoding response from {url}: {key!r} must be of type {_type.__name__}"
                )

        result = InitiationDetails(
            aci_push_version=payload.get(ACIPushKeys.ACI_PUSH_VERSION) or "",
            multipart=payload.get(ACIPushKeys.MULTIPART) or False,
            upload_manifest_url=payload.get(ACIPushKeys.UPLOAD_MANIFEST_URL) or "",
            upload_signature_url=payload.get(ACIPushKeys.UPLOAD_SIGNATURE_URL) or "",
            upload_aci_url=payload.get(ACIPushKeys.UPLOAD_ACI_URL) or "",
            completed_url=payload.get(ACIPushKeys.COMPLETED_URL) or "",
        )
        LOGGER.debug("Upload initiated")
        LOGGER.debug(" - manifest endpoint: %s", result.upload_manifest_url)
        LOGGER.debug(" - signature endpoint: %s", result.upload_signature_url)
        LOGGER.debug(" - aci endpoint: %s", result.upload_aci_url)
        return result

    async def put_part(self, url: str, data, *, label: str, draw: bool = False):
        """
        Uploads a single part.

        Args:
            url: The upload URL of the part.
            data: The part; bytes or a (synchronous) file.
            label: Human readable label of the part.
            draw: If True and the part is a file, the progress of the upload is rendered.
        """
        if draw and isinstance(data, (io.BufferedReader, io.FileIO)):
            data = ProgressGenerator(data, label=label)
        try:
            async with self.transport.request(
                "PUT",
                url,
                data=data,
                headers={"Content-Type": MediaTypes.APPLICATION_OCTET_STREAM},
            ):
                pass
        except TransportError as exception:
            raise PartUploadError(label, exception) from exception

    async def post_complete(
        self, url: str, message: CompletionMessage
    ) -> CompletionMessage:
        """
        Reports the outcome of an upload.

        Args:
            url: The completion URL.
            message: The outcome as known to the client.

        Returns:
            The acknowledgment of the server.
        """
        body = {ACIPushKeys.SUCCESS: message.success}
        if message.reason:
            body[ACIPushKeys.REASON] = message.reason
        if message.server_reason:
            body[ACIPushKeys.SERVER_REASON] = message.server_reason

        try:
            async with self.transport.request(
                "POST",
                url,
                data=json.dumps(body).encode("utf-8"),
                headers={"Content-Type": MediaTypes.APPLICATION_JSON},
            ) as client_response:
                payload = await ACIPushClientAsync._get_json(client_response)
        except (DecodeError, TransportError) as exception:
            raise ReportTransportError(exception) from exception

        result = CompletionMessage(
            success=payload.get(ACIPushKeys.SUCCESS) is True,
            reason=payload.get(ACIPushKeys.REASON),
            server_reason=payload.get(ACIPushKeys.SERVER_REASON),
        )
        if not result.success:
            raise ReportRejectedError(result.server_reason)
        return result

    async def report_failure(self, url: str, reason: str) -> CompletionMessage:
        """
        Reports a failed upload.

        Args:
            url: The completion URL.
            reason: Why the upload failed.

        Returns:
            The acknowledgment of the server.
        """
        return await self.post_complete(
            url, CompletionMessage(success=False, reason=reason)
        )

    async def report_success(self, url: str) -> CompletionMessage:
        """
        Reports a successful upload.

        Args:
            url: The completion URL.

        Returns:
            The acknowledgment of the server.
        """
        return await self.post_complete(url, CompletionMessage(success=True))

    # Orchestration

    @staticmethod
    def _transition(session: PushSession, state: PushState, **kwargs) -> PushSession:
        LOGGER.debug("Push session: %s -> %s", session.state.value, state.value)
        return session._replace(state=state, **kwargs)

    @staticmethod
    def _open(stack: ExitStack, path: Path, label: str):
        try:
            return stack.enter_context(Path(path).open("rb"))
        except OSError as exception:
            raise SourceOpenError(
                f"error opening {label} {str(path)!r}: {exception}"
            ) from exception

    async def _upload_parts(self, session: PushSession, signature, image) -> PushSession:
        """
        Uploads the manifest, signature and ACI, in that order, reporting the first failure.

        Args:
            session: The initiated push session.
            signature: The signature file.
            image: The ACI file.

        Returns:
            The push session, in the state of the last uploaded part.
        """
        initiation = session.initiation
        parts = [
            PushPart(
                label=PartLabels.MANIFEST,
                state=PushState.UPLOADING_MANIFEST,
                url=initiation.upload_manifest_url,
                data=session.manifest.get_canonical_bytes(),
                draw=False,
            ),
            PushPart(
                label=PartLabels.SIGNATURE,
                state=PushState.UPLOADING_SIGNATURE,
                url=initiation.upload_signature_url,
                data=signature,
                draw=True,
            ),
            PushPart(
                label=PartLabels.ACI,
                state=PushState.UPLOADING_IMAGE,
                url=initiation.upload_aci_url,
                data=image,
                draw=True,
            ),
        ]
        for part in parts:
            session = ACIPushClientAsync._transition(session, part.state)
            try:
                await self.put_part(
                    part.url, part.data, label=part.label, draw=self.debug and part.draw
                )
            except PartUploadError as exception:
                session = ACIPushClientAsync._transition(
                    session, PushState.REPORTING_COMPLETION
                )
                try:
                    await self.report_failure(initiation.completed_url, str(exception))
                except ACIPushError as report_exception:
                    raise CombinedError(exception, report_exception) from exception
                raise
        return session

    async def push(
        self,
        image_path: Union[Path, str],
        signature_path: Union[Path, str],
        name: Union[AppName, str],
    ) -> PushSession:
        """
        Pushes an ACI and its signature.

        Args:
            image_path: Path to the ACI.
            signature_path: Path to the detached signature of the ACI.
            name: The target name; labels missing from it are taken from the image manifest.

        Returns:
            The completed push session.
        """
        if isinstance(name, AppName):
            app_name = name.clone()
        else:
            try:
                app_name = AppName.parse(name)
            except ValueError as exception:
                raise DiscoveryError(str(exception)) from exception

        session = PushSession(app_name=app_name, manifest=None)
        try:
            with ExitStack() as stack:
                image = ACIPushClientAsync._open(stack, image_path, "image")
                signature = ACIPushClientAsync._open(stack, signature_path, "signature")
                manifest = await self.image_reader.get_manifest(image)
                # The manifest read may have moved the cursor into the file
                await be_kind_rewind(image)

                session = ACIPushClientAsync._transition(
                    session, PushState.LABEL_RESOLVING, manifest=manifest
                )
                resolve_labels(session.app_name, manifest.get_labels())

                session = ACIPushClientAsync._transition(session, PushState.DISCOVERING)
                endpoint = await self.get_push_endpoint(session.app_name)

                session = ACIPushClientAsync._transition(session, PushState.INITIATING)
                initiation = await self.post_initiate(endpoint)
                session = session._replace(initiation=initiation)

                session = await self._upload_parts(session, signature, image)

                session = ACIPushClientAsync._transition(
                    session, PushState.REPORTING_COMPLETION
                )
                await self.report_success(initiation.completed_url)
        except ACIPushError:
            LOGGER.debug(
                "Push session: %s -> %s", session.state.value, PushState.FAILED.value
            )
            raise

        return ACIPushClientAsync._transition(session, PushState.DONE)

