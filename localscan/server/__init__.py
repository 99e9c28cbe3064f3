# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

"""The loopback HTTP server and the pieces it is built from."""

__copyright__ = "Copyright (C) 2026 The Localscan Project Developers"
__credits__ = "The Localscan Project Developers"
__license__ = "AGPL-3.0-or-later"

from .guard import SingleFlightGuard
from .invoker import UiInvoker
from .multipart import MultipartPdfWriter, PdfPart
from .orchestrator import ScanOrchestrator, ScanSession
from .routes import ScanHandler
from .theServer import LocalScanServer, launch
from .background import BackgroundScanServer

__all__ = [
    "BackgroundScanServer",
    "LocalScanServer",
    "MultipartPdfWriter",
    "PdfPart",
    "ScanHandler",
    "ScanOrchestrator",
    "ScanSession",
    "SingleFlightGuard",
    "UiInvoker",
    "launch",
]
