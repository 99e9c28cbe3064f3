# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

"""A background Localscan server.

Desktop applications run their own (UI) event loop, so the server
cannot simply take over the main thread.  This wrapper runs it in a
daemon thread with its own asyncio event loop and returns control to
the caller.
"""

import asyncio
import logging
import threading


log = logging.getLogger("server")


class BackgroundScanServer:
    """Run a :py:class:`LocalScanServer` in a separate thread.

    Args:
        server (LocalScanServer): not yet started.

    Example::

        bg = BackgroundScanServer(LocalScanServer(app))
        bg.start()
        ...
        bg.stop()
    """

    def __init__(self, server):
        self.server = server
        self._loop = None
        self._thread = None
        self._started = threading.Event()
        self._start_error = None

    def is_running(self):
        return self._thread is not None and self._thread.is_alive()

    def _run(self):
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        try:
            try:
                loop.run_until_complete(self.server.start())
            except Exception as e:
                self._start_error = e
                return
            finally:
                self._started.set()
            loop.run_forever()
            loop.run_until_complete(self.server.stop())
        finally:
            loop.close()

    def start(self, timeout=10):
        """Start the server, returning once it is listening.

        Raises:
            OSError: e.g., the port is in use; whatever stopped the
                server from starting is re-raised here.
            RuntimeError: already started, or did not start in time.
        """
        if self.is_running():
            raise RuntimeError("Background server is already running")
        self._started.clear()
        self._start_error = None
        self._thread = threading.Thread(
            target=self._run, name="localscan-server", daemon=True
        )
        self._thread.start()
        if not self._started.wait(timeout):
            raise RuntimeError("Server did not start in time")
        if self._start_error:
            self._thread.join()
            raise self._start_error
        log.debug("Background server running")

    def stop(self):
        """Stop accepting connections, release the port and end the thread."""
        if not self.is_running():
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join()
        self._thread = None
        log.debug("Background server stopped")
