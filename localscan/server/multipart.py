# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

"""Encode PDF files as one ``multipart/form-data`` HTTP response.

The layout is fixed byte-for-byte, for each part::

    --<boundary>\\r\\n
    Content-Disposition: form-data; name="files"; filename="<name>"\\r\\n
    Content-Type: application/pdf\\r\\n
    \\r\\n
    <content>\\r\\n

and finally ``--<boundary>--\\r\\n``.  The total length is known before
anything is written, so the response carries a ``Content-Length`` and
is never chunked.
"""

from collections import namedtuple
import threading
import time

from aiohttp import web


PdfPart = namedtuple("PdfPart", ["filename", "data"])

CRLF = b"\r\n"

_counter_lock = threading.Lock()
_last_tick = 0


def _next_tick():
    """A time-based counter that strictly increases on every call."""
    global _last_tick
    with _counter_lock:
        # 100ns ticks, bumped if the clock has not moved (or went backwards)
        tick = max(time.time_ns() // 100, _last_tick + 1)
        _last_tick = tick
        return tick


def new_boundary():
    return "-" * 26 + format(_next_tick(), "x")


class MultipartPdfWriter:
    """Stream PDF parts to an aiohttp response with an exact ``Content-Length``.

    Args:
        parts (list): of :py:class:`PdfPart`, written in order.  Must
            not be empty: answer 204 instead.

    Keyword Args:
        boundary (str/None): defaults to a fresh, unique token.

    Raises:
        ValueError: no parts.
    """

    def __init__(self, parts, *, boundary=None):
        self.parts = list(parts)
        if not self.parts:
            raise ValueError("Cannot encode a multipart response with no parts")
        self.boundary = boundary if boundary else new_boundary()
        self._headers = [self.part_header(p.filename) for p in self.parts]
        self._closing = f"--{self.boundary}--".encode("utf-8") + CRLF

    @property
    def content_type(self):
        return f"multipart/form-data; boundary={self.boundary}"

    def part_header(self, filename):
        return (
            f"--{self.boundary}\r\n"
            f'Content-Disposition: form-data; name="files"; filename="{filename}"\r\n'
            "Content-Type: application/pdf\r\n\r\n"
        ).encode("utf-8")

    @property
    def size(self):
        """Total bytes in the body: headers, content, separators and closing line."""
        total = sum(
            len(h) + len(p.data) + len(CRLF) for h, p in zip(self._headers, self.parts)
        )
        return total + len(self._closing)

    def chunks(self):
        """The body as a sequence of byte strings, without joining them."""
        for header, part in zip(self._headers, self.parts):
            yield header
            yield part.data
            yield CRLF
        yield self._closing

    async def write(self, request, *, status=200):
        """Send the whole response for a request.

        Returns:
            aiohttp.web.StreamResponse: the prepared and finished response.
        """
        response = web.StreamResponse(status=status)
        response.headers["Content-Type"] = self.content_type
        response.content_length = self.size
        await response.prepare(request)
        for chunk in self.chunks():
            await response.write(chunk)
        await response.write_eof()
        return response


def encode(parts, *, boundary=None):
    """The whole body as one bytes object, mostly useful for testing."""
    writer = MultipartPdfWriter(parts, boundary=boundary)
    return writer.content_type, b"".join(writer.chunks())
