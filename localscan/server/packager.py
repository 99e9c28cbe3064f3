# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

import asyncio
import io
import logging

from localscan.exceptions import PdfExportError
from localscan.pdf_export import make_pdf_filename
from .multipart import PdfPart


log = logging.getLogger("scan")


async def package_groups(groups, base_name, exporter):
    """Export each group of images as a PDF file.

    All or nothing: if any group fails, no parts are returned.  The
    images themselves are not released here; that is up to the caller.

    Args:
        groups (list): of lists of :py:class:`localscan.CapturedImage`.
        base_name (str): file name without extension.
        exporter: has ``export(images, fileobj) -> bool``.

    Returns:
        list: of :py:class:`PdfPart`, in group order.

    Raises:
        PdfExportError: the exporter reported failure on some group.
    """
    loop = asyncio.get_running_loop()
    parts = []
    for i, group in enumerate(groups):
        buf = io.BytesIO()
        ok = await loop.run_in_executor(None, exporter.export, group, buf)
        if not ok:
            raise PdfExportError(
                f"Export of file {i + 1} of {len(groups)} ({len(group)} pages) failed"
            )
        name = make_pdf_filename(base_name, i, len(groups))
        parts.append(PdfPart(name, buf.getvalue()))
        log.debug("Packaged %s: %d pages", name, len(group))
    return parts
