# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

"""A pretend scanning application for demos and testing.

It has the same methods a real desktop application must provide to be
served by :py:class:`localscan.server.LocalScanServer`:

  - ``images``: the shared :py:class:`localscan.ImageList`.
  - ``settings``: has ``default_profile()`` and ``batch_settings()``.
  - ``scan_default()``: scan with the default profile, appending pages
    to ``images``; raise :py:class:`localscan.ScanCancelled` if the
    user cancels.
  - ``show_batch_scan()``: run the batch scan dialog to completion;
    return the list of files written, or None.
  - ``activate()``: bring the main window to the front.

All of these but ``images`` are called on the UI thread.
"""

import logging
from pathlib import Path

from PIL import Image, ImageDraw

from localscan.config import BATCH_OUTPUT_FILE, StaticSettings
from localscan.images import CapturedImage, ImageList
from localscan.misc_utils import substitute_placeholders
from localscan.pdf_export import PdfExporter, make_pdf_filename
from localscan.separator import separate_scans


log = logging.getLogger("scan")


def make_page(text, *, size=(850, 1100)):
    """A white page with some text on it, like a scanned blank form."""
    im = Image.new("RGB", size, "white")
    draw = ImageDraw.Draw(im)
    draw.rectangle((40, 40, size[0] - 40, size[1] - 40), outline="black", width=4)
    draw.text((80, 80), text, fill="black")
    return im


class DemoScanApplication:
    """Makes up pages instead of talking to a scanner.

    Keyword Args:
        settings: scan settings, by default a :py:class:`StaticSettings`.
        pages_per_scan (int): pages produced by each scan.
        scans_per_batch (int): how many scans a batch scan performs.
    """

    def __init__(self, *, settings=None, pages_per_scan=3, scans_per_batch=2):
        self.images = ImageList()
        self.settings = settings if settings else StaticSettings()
        self.pages_per_scan = pages_per_scan
        self.scans_per_batch = scans_per_batch
        self.exporter = PdfExporter()
        self._scan_count = 0

    def activate(self):
        log.info("Demo application: window to front")

    def _scan(self):
        self._scan_count += 1
        n = self._scan_count
        return [
            CapturedImage.from_pil(make_page(f"Demo scan {n}, page {p + 1}"), scan_id=n)
            for p in range(self.pages_per_scan)
        ]

    def scan_default(self):
        pages = self._scan()
        log.info("Demo application: scanned %d pages", len(pages))
        self.images.extend(pages)

    def show_batch_scan(self):
        bs = self.settings.batch_settings()
        pages = []
        for _ in range(self.scans_per_batch):
            pages.extend(self._scan())
        if bs.output_type != BATCH_OUTPUT_FILE:
            self.images.extend(pages)
            return None
        target = Path(substitute_placeholders(bs.save_path or "batch.pdf")).expanduser()
        target.parent.mkdir(parents=True, exist_ok=True)
        groups = separate_scans(pages, bs.separator)
        written = []
        for i, group in enumerate(groups):
            f = target.parent / make_pdf_filename(target.stem, i, len(groups))
            with open(f, "wb") as fh:
                if not self.exporter.export(group, fh):
                    raise RuntimeError(f"Could not write {f}")
            written.append(f)
        for img in pages:
            img.close()
        log.info("Demo application: batch wrote %d files", len(written))
        return written
