#!/usr/bin/env python

"""Class that provides parsing and formatting of ACI target names."""

import re

from copy import deepcopy
from typing import Dict, Optional

from .specs import ACILabels
from .typing import AppNameParseString

# https://github.com/appc/spec/blob/master/spec/types.md#ac-identifier-type
AC_IDENTIFIER_PATTERN = re.compile(r"^[a-z0-9]+([-._~/][a-z0-9]+)*$")


class AppName:
    """
    ACI target name abstraction; a name plus the labels used during discovery.
    """

    def __init__(self, name: str, *, labels: Optional[Dict[str, str]] = None):
        """
        Args:
            name: Name of the application, e.g. example.com/app.
        Keyword Args:
            labels: Optional labels (version, os, arch, ...).
        """
        self.name = name
        if self.name.startswith("/"):
            self.name = self.name[1:]
        self.labels = dict(labels) if labels else {}

    def __eq__(self, other):
        """
        Args:
            other: The instance to which "self" is compared.
        """
        return str(self) == str(other)

    def __hash__(self):
        """Hash according to our string value"""
        return hash(str(self))

    def __str__(self):
        """Formats as name[:version][,label=value...], labels sorted."""
        result = self.name
        version = self.labels.get(ACILabels.VERSION)
        if version:
            result = f"{result}:{version}"
        for key in sorted(self.labels):
            if key == ACILabels.VERSION:
                continue
            result = f"{result},{key}={self.labels[key]}"
        return result

    def clone(self) -> "AppName":
        """
        Initializes an returns a copy of this instance.

        Returns: A copy of this instance.
        """
        return deepcopy(self)

    @staticmethod
    def _parse_string(string: str) -> AppNameParseString:
        """
        Parses the name and labels from a given string.

        Args:
            string: The string to be parsed.

        Returns:
            dict:
                name: The name of the application.
                labels: The labels, including "version" when one was given after a colon.
        """
        labels = {}
        parts = string.split(",")

        name_version = parts[0].split(":")
        if len(name_version) > 2:
            raise ValueError(f"Unable to parse string: {string}")
        name = name_version[0]
        if name.startswith("/"):
            name = name[1:]
        if not AC_IDENTIFIER_PATTERN.match(name):
            raise ValueError(f"Invalid application name: {name!r}")
        if len(name_version) == 2:
            labels[ACILabels.VERSION] = name_version[1]

        for part in parts[1:]:
            pieces = part.split("=")
            if len(pieces) != 2 or not pieces[0]:
                raise ValueError(f"Unable to parse label: {part!r}")
            key, value = pieces
            if key in labels:
                raise ValueError(f"Duplicate label: {key!r}")
            labels[key] = value

        return AppNameParseString(name=name, labels=labels)

    @staticmethod
    def parse(app_name: str) -> "AppName":
        """
        Initializes an AppName from a given target name string.

        Args:
            app_name: String containing the target name to be parsed.

        Returns:
            The newly initialized object.
        """
        parsed = AppName._parse_string(app_name)
        return AppName(parsed.name, labels=parsed.labels)

    def resolve_label(self, key: str) -> Optional[str]:
        """
        Resolves a label value.

        Args:
            key: Name of the label.

        Returns:
            The label value, or None.
        """
        return self.labels.get(key)

    def set_label(self, key: str, value: str) -> "AppName":
        """
        Assigns a label value.
        """
        self.labels[key] = value
        return self
