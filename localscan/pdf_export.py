# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

"""Export scanned pages to PDF."""

import logging

import fitz


log = logging.getLogger("scan")

# hardcoded for letter
papersize_portrait = (612, 792)
papersize_landscape = (792, 612)


def make_pdf_filename(base, index, count):
    """Name for the index-th (0-based) of count PDF files.

    A suffix ``_1``, ``_2``, ... is added only when there are several
    files.  The extension is always ``.pdf``.
    """
    suffix = f"_{index + 1}" if count > 1 else ""
    return f"{base}{suffix}.pdf"


class PdfExporter:
    """Writes pages into a PDF, one image per page.

    Each page is letter-sized, landscape if the image is wider than
    tall, with the image scaled to fit.
    """

    def __init__(self, *, margin=0):
        self.margin = margin

    def export(self, images, fileobj):
        """Write a PDF of the images to a binary file object.

        Args:
            images (list): of :py:class:`localscan.CapturedImage`.
            fileobj: where to write, e.g., an ``io.BytesIO``.

        Returns:
            bool: True on success, False if the PDF could not be made.
        """
        if not images:
            log.warning("Refusing to export an empty PDF")
            return False
        try:
            doc = fitz.open()
            try:
                for img in images:
                    self._add_page(doc, img)
                fileobj.write(doc.tobytes(garbage=3, deflate=True))
            finally:
                doc.close()
        except Exception as e:
            # pymupdf raises various types for unreadable images
            log.error("PDF export of %d page(s) failed: %s", len(images), e)
            return False
        log.debug("Exported %d page(s) to PDF", len(images))
        return True

    def _add_page(self, doc, img):
        width, height = img.size()
        if width > height:
            w, h = papersize_landscape
        else:
            w, h = papersize_portrait
        pg = doc.new_page(width=w, height=h)
        m = self.margin
        rect = fitz.Rect(m, m, w - m, h - m)
        pg.insert_image(rect, stream=img.data, keep_proportion=True)
