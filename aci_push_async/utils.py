#!/usr/bin/env python

"""Utility classes."""

import os

from functools import wraps, partial
from typing import Dict

import asyncio

from .appname import AppName
from .errors import MissingLabelError
from .specs import ACI_EXTENSION, ACILabels

CHUNK_SIZE = int(os.environ.get("ACIPUSH_CHUNK_SIZE", 2097152))


def async_wrap(func):
    """Decorates a given function for execution via an executor."""
    # https://dev.to/0xbf/turn-sync-function-to-async-python-tips-58nn
    @wraps(func)
    async def run_in_executor(*args, loop=None, executor=None, **kwargs):
        if loop is None:
            loop = asyncio.get_running_loop()
        partial_func = partial(func, *args, **kwargs)
        return await loop.run_in_executor(executor, partial_func)

    return run_in_executor


async def be_kind_rewind(file, *, file_is_async: bool = False):
    """
    Reset the file position (offset) to the absolute beginning.
    Args:
        file: The file for which to reset the offset.
        file_is_async: If True, all file IO operations will be awaited.
    """
    if file_is_async:
        coroutine = file.seek(0)
    else:
        coroutine = async_wrap(file.seek)(0)
    await coroutine


def resolve_labels(app_name: AppName, manifest_labels: Dict[str, str]) -> AppName:
    """
    Completes the labels of a target name from the labels of an image manifest.

    Labels already present on the target name take precedence. The "arch" and "os" labels are required; the "ext"
    label defaults to the ACI file extension.

    Args:
        app_name: The target name; its labels are updated in place.
        manifest_labels: The labels of the image manifest.

    Returns:
        The given target name.
    """
    for key in ACILabels.REQUIRED:
        if app_name.resolve_label(key) is not None:
            continue
        if key not in manifest_labels:
            raise MissingLabelError(key)
        app_name.set_label(key, manifest_labels[key])

    if app_name.resolve_label(ACILabels.EXT) is None:
        app_name.set_label(ACILabels.EXT, ACI_EXTENSION.strip("."))

    return app_name
