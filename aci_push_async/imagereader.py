#!/usr/bin/env python

"""Extraction of the image manifest from an ACI file."""

import logging
import tarfile

from .errors import ManifestExtractError
from .manifest import ImageManifest
from .utils import async_wrap

LOGGER = logging.getLogger(__name__)


class ImageReader:
    """
    Reads the "manifest" member of an ACI, a (optionally gzip, bzip2 or xz compressed) tarball.
    """

    MANIFEST_MEMBER = "manifest"

    def _get_manifest(self, file) -> ImageManifest:
        try:
            with tarfile.open(fileobj=file, mode="r:*") as tar:
                for member in tar:
                    if member.name.lstrip("./") != ImageReader.MANIFEST_MEMBER:
                        continue
                    if not member.isfile():
                        raise ManifestExtractError(
                            f"{ImageReader.MANIFEST_MEMBER} is not a regular file"
                        )
                    return ImageManifest(tar.extractfile(member).read())
        except (tarfile.TarError, EOFError, OSError) as exception:
            raise ManifestExtractError(
                f"error reading image: {exception}"
            ) from exception
        except ValueError as exception:
            raise ManifestExtractError(
                f"error decoding image manifest: {exception}"
            ) from exception

        raise ManifestExtractError("missing manifest in image")

    async def get_manifest(self, file) -> ImageManifest:
        """
        Extracts the image manifest from a given ACI. The file position is left undefined.

        Args:
            file: The (synchronous, seekable) ACI file.

        Returns:
            The image manifest.
        """
        manifest = await async_wrap(self._get_manifest)(file)
        LOGGER.debug("Extracted manifest for image: %s", manifest.get_name())
        return manifest
