# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

"""Exceptions for Localscan.

Serious exceptions are for unexpected things that we cannot sanely
finish a request after.  Benign are for signaling expected (or at least
not unexpected) situations, such as the user cancelling a scan.
"""


class LocalScanException(Exception):
    """Catch-all parent of all Localscan-related exceptions."""

    pass


class LocalScanSeriousException(LocalScanException):
    """Serious or unexpected problems that are generally not recoverable."""

    pass


class LocalScanBenignException(LocalScanException):
    """A not-unexpected situation, often signaling an error condition."""

    pass


class ScanBusy(LocalScanBenignException):
    """Another scan already holds the scanner."""

    pass


class ScanCancelled(LocalScanBenignException):
    """The user cancelled the scan from within the application."""

    pass


class PdfExportError(LocalScanSeriousException):
    """One of the output groups could not be exported to PDF."""

    pass


class ScanTimeout(LocalScanSeriousException):
    """The scan did not finish within the configured time limit.

    The scan itself may still be running: ``pending`` is then a
    future that completes when it stops.
    """

    def __init__(self, *args, pending=None):
        super().__init__(*args)
        self.pending = pending


class ConfigError(LocalScanSeriousException):
    pass
