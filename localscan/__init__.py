# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

"""Localscan lets local scripts drive a desktop scanning application.

A loopback-only HTTP endpoint triggers a scan (or a batch scan) in the
running application and returns the pages as PDF files, packed into
one multipart response.
"""

__copyright__ = "Copyright (C) 2026 The Localscan Project Developers"
__credits__ = "The Localscan Project Developers"
__license__ = "AGPL-3.0-or-later"

__version__ = "0.3.0.dev0"

Default_Port = 8765

from .exceptions import (
    LocalScanException,
    ScanBusy,
    ScanCancelled,
    PdfExportError,
    ScanTimeout,
)
from .images import CapturedImage, ImageList
from .separator import SaveSeparator, separate_scans

__all__ = [
    "CapturedImage",
    "ImageList",
    "LocalScanException",
    "PdfExportError",
    "SaveSeparator",
    "ScanBusy",
    "ScanCancelled",
    "ScanTimeout",
    "separate_scans",
]
