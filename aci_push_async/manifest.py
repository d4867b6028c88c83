#!/usr/bin/env python

"""
Abstraction of an ACI image manifest, as defined in:

* https://github.com/appc/spec/blob/master/spec/aci.md#image-manifest-schema
"""

import json

from copy import deepcopy
from typing import Dict, Optional

import canonicaljson


class ImageManifest:
    """
    Class to retrieve the labels of an image manifest and track its bytes representation.
    """

    def __init__(self, manifest: bytes):
        """
        Args:
            manifest: The raw image manifest value.
        """
        self.bytes = self.json = None
        self._set_bytes(manifest)

    def __bytes__(self):
        return self.get_bytes()

    def __str__(self):
        return self.get_bytes().decode("utf-8")

    def _set_bytes(self, _bytes: bytes):
        """
        Assigns the raw bytes and updates the internal JSON object.

        Args:
            _bytes: The raw bytes value.
        """
        _json = json.loads(_bytes)
        if not isinstance(_json, dict):
            raise ValueError("Image manifest is not a JSON object")
        self.bytes = _bytes
        self.json = _json

    def clone(self) -> "ImageManifest":
        """
        Initializes an returns a copy of this instance.

        Returns: A copy of this instance.
        """
        return deepcopy(self)

    def get_bytes(self) -> bytes:
        """
        Retrieves the raw manifest bytes, as read from the image.

        Returns:
            The raw manifest bytes.
        """
        return self.bytes

    def get_canonical_bytes(self) -> bytes:
        """
        Retrieves the canonical JSON encoding of the manifest; this is what gets uploaded.

        Returns:
            The canonicalized manifest bytes.
        """
        return canonicaljson.encode_canonical_json(self.json)

    def get_json(self):
        """
        Retrieves the manifest in JSON form.

        Returns:
            The manifest in JSON form.
        """
        return deepcopy(self.json)

    def get_labels(self) -> Dict[str, str]:
        """
        Retrieves the manifest labels.

        Returns:
            Mapping of label name to label value.
        """
        result = {}
        for label in self.json.get("labels") or []:
            if isinstance(label, dict) and "name" in label:
                result[label["name"]] = label.get("value", "")
        return result

    def get_name(self) -> Optional[str]:
        """Retrieves the name of the image, if any."""
        return self.json.get("name")

