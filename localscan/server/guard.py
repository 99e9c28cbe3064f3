# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

from contextlib import contextmanager
import threading

from localscan.exceptions import ScanBusy


class SingleFlightGuard:
    """At most one scan at a time: later callers are turned away, not queued.

    There is one scanner, so one guard per server; nothing here is
    process-global so tests can make as many as they like.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._in_progress = False

    @property
    def busy(self):
        with self._lock:
            return self._in_progress

    def try_acquire(self):
        """Claim the scanner, returning False immediately if it is taken."""
        with self._lock:
            if self._in_progress:
                return False
            self._in_progress = True
            return True

    def acquire(self):
        """Claim the scanner.

        Raises:
            ScanBusy: another scan holds it.
        """
        if not self.try_acquire():
            raise ScanBusy("Scan already in progress")

    def release(self):
        with self._lock:
            self._in_progress = False

    @contextmanager
    def hold(self):
        """Context manager yielding whether we got the guard.

        If we did, it is released on the way out, however we leave.
        """
        acquired = self.try_acquire()
        try:
            yield acquired
        finally:
            if acquired:
                self.release()
