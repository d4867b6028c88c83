#!/usr/bin/env python

"""Generators that render the progress of the data they retrieve."""

import os
import sys
import time

from typing import Optional, TextIO

from .utils import async_wrap, CHUNK_SIZE

BAR_WIDTH = 80
FORMATTED_BYTES_WIDTH = 18


def format_bytes(size: int) -> str:
    """Formats a byte count using binary unit prefixes."""
    value = float(size)
    for unit in ["B", "KiB", "MiB", "GiB", "TiB"]:
        if value < 1024 or unit == "TiB":
            break
        value /= 1024
    if unit == "B":
        return f"{size} B"
    return f"{value:.1f} {unit}"


class ProgressGenerator:
    """
    Generator that periodically renders the progress of the data it retrieves.
    """

    def __init__(
        self,
        file,
        *,
        file_is_async: bool = False,
        interval: float = 1.0,
        label: str = None,
        size: Optional[int] = None,
        stream: TextIO = None,
    ):
        """
        Args:
            file: The file from which to retrieve the file chunks.
            file_is_async: If True, all file IO operations will be awaited.
            interval: Minimum number of seconds between two renderings.
            label: Human readable label of the data, e.g. "ACI".
            size: Total size of the data in bytes; derived from the file when omitted, -1 when unknown.
            stream: Stream to which progress is rendered; defaults to stderr.
        """
        self.file = file
        self.file_is_async = file_is_async
        self.interval = interval
        self.last_draw = None
        self.prefix = f"Uploading {label}" if label else "Uploading"
        self.progress = 0
        self.size = size if size is not None else ProgressGenerator._get_file_size(file)
        self.stream = stream if stream else sys.stderr

    async def __aiter__(self):
        # https://docs.aiohttp.org/en/stable/client_quickstart.html#streaming-uploads
        coroutine = self.file.read if self.file_is_async else async_wrap(self.file.read)
        while True:
            chunk = await coroutine(CHUNK_SIZE)
            if not chunk:
                break
            self.progress += len(chunk)
            self._maybe_draw()
            yield chunk

        self.draw()
        self.stream.write("\n")
        self.stream.flush()

    @staticmethod
    def _get_file_size(file) -> int:
        try:
            return os.fstat(file.fileno()).st_size
        except (AttributeError, OSError, ValueError):
            return -1

    def _maybe_draw(self):
        now = time.monotonic()
        if self.last_draw is None or now - self.last_draw >= self.interval:
            self.last_draw = now
            self.draw()

    def format(self) -> str:
        """Formats a single progress line."""
        # Size is -1 when unknown
        if self.size < 0:
            return f"{self.prefix}: {format_bytes(self.progress)} of an unknown total size"

        width = max(BAR_WIDTH - len(self.prefix) - FORMATTED_BYTES_WIDTH - 4, 10)
        ratio = min(self.progress / self.size, 1.0) if self.size else 1.0
        filled = int(width * ratio)
        progress_bar = f"[{'=' * filled}{' ' * (width - filled)}]"
        return (
            f"{self.prefix}: {progress_bar} "
            f"{format_bytes(self.progress)} / {format_bytes(self.size)}"
        )

    def draw(self):
        """Renders the current progress, overwriting the previous rendering."""
        self.stream.write(f"\r{self.format()}")
        self.stream.flush()

    def get_progress(self) -> int:
        """Retrieves the number of bytes read so far."""
        return self.progress
