# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

"""Scanned page images and the application's shared list of them."""

from __future__ import annotations

import io
import threading
from typing import Iterable

import PIL.Image


class CapturedImage:
    """One scanned page, held in memory as encoded image bytes.

    An image must be released with :py:meth:`close` once it has been
    encoded into a PDF; it can also be used as a context manager.
    :py:meth:`copy` gives an independent image: closing either one does
    not affect the other.

    Args:
        data: the encoded image, e.g., PNG or JPEG bytes.

    Keyword Args:
        mimetype: media type of ``data``.
        width: pixel width, or None if not known.
        height: pixel height, or None if not known.
        scan_id: identifies the scan session that produced the page;
            pages from one press of the scan button share a ``scan_id``.
    """

    def __init__(
        self,
        data: bytes,
        *,
        mimetype: str = "image/png",
        width: int | None = None,
        height: int | None = None,
        scan_id: int = 0,
    ):
        self._data: bytes | None = bytes(data)
        self.mimetype = mimetype
        self.width = width
        self.height = height
        self.scan_id = scan_id

    @classmethod
    def from_pil(cls, im: PIL.Image.Image, *, scan_id: int = 0, format: str = "PNG"):
        """Encode a Pillow image and wrap it."""
        buf = io.BytesIO()
        im.save(buf, format=format)
        return cls(
            buf.getvalue(),
            mimetype=PIL.Image.MIME.get(format.upper(), "image/png"),
            width=im.width,
            height=im.height,
            scan_id=scan_id,
        )

    @property
    def closed(self) -> bool:
        return self._data is None

    @property
    def data(self) -> bytes:
        if self._data is None:
            raise ValueError("image has already been released")
        return self._data

    def size(self) -> tuple[int, int]:
        """Pixel size (width, height), decoding the header if we must."""
        if self.width is None or self.height is None:
            with PIL.Image.open(io.BytesIO(self.data)) as im:
                self.width, self.height = im.size
        return (self.width, self.height)

    def copy(self) -> CapturedImage:
        return CapturedImage(
            self.data,
            mimetype=self.mimetype,
            width=self.width,
            height=self.height,
            scan_id=self.scan_id,
        )

    def close(self) -> None:
        self._data = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __repr__(self):
        state = "released" if self.closed else f"{len(self._data)} bytes"
        return f"<CapturedImage scan={self.scan_id} {self.mimetype} {state}>"


class ImageList:
    """The application's list of scanned pages, shared with the server.

    The application appends pages as they come off the scanner (and may
    remove them again from its UI).  Every appended page gets a sequence
    number that only ever increases; the server records a watermark
    before starting a scan and afterwards asks for copies of whatever
    was appended since.  This stays correct even if pages are deleted
    in between, which counting the list would not.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: list[tuple[int, CapturedImage]] = []
        self._seq = 0

    def __len__(self):
        with self._lock:
            return len(self._entries)

    @property
    def images(self) -> list[CapturedImage]:
        """A snapshot of the current images (not copies)."""
        with self._lock:
            return [img for _, img in self._entries]

    def append(self, image: CapturedImage) -> int:
        """Add a page at the end, returning its sequence number."""
        with self._lock:
            self._seq += 1
            self._entries.append((self._seq, image))
            return self._seq

    def extend(self, images: Iterable[CapturedImage]) -> None:
        for img in images:
            self.append(img)

    def remove(self, image: CapturedImage) -> None:
        """Remove a page from the list and release it."""
        with self._lock:
            self._entries = [(s, i) for s, i in self._entries if i is not image]
        image.close()

    def clear(self) -> None:
        with self._lock:
            entries = self._entries
            self._entries = []
        for _, img in entries:
            img.close()

    def watermark(self) -> int:
        """The sequence number of the most recent append (0 if none yet)."""
        with self._lock:
            return self._seq

    def copies_since(self, watermark: int) -> list[CapturedImage]:
        """Independent copies of the pages appended after ``watermark``, in order."""
        with self._lock:
            return [img.copy() for seq, img in self._entries if seq > watermark]
