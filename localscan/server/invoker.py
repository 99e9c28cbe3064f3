# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

"""Run calls on the thread that owns the application's windows.

Scanning and dialogs must happen on the UI thread; the HTTP handlers
never touch UI state themselves.  They hand the work over with
:py:meth:`UiInvoker.invoke` and await the result.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
import functools
import logging


log = logging.getLogger("server")


class UiInvoker:
    """Hand calls to a single dedicated worker thread, one after another.

    Desktop applications with their own event loop (Qt, etc) can
    subclass this and override :py:meth:`submit` to post the call into
    that loop instead, returning a :py:class:`concurrent.futures.Future`.
    """

    def __init__(self, *, name="ui"):
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)

    def submit(self, fn, *args, **kwargs):
        """Queue a call on the UI thread.

        Returns:
            concurrent.futures.Future: completes with the result of the call.
        """
        return self._executor.submit(fn, *args, **kwargs)

    async def invoke(self, fn, *args, **kwargs):
        """Run a call on the UI thread and wait for it without blocking the event loop."""
        fut = self.submit(functools.partial(fn, *args, **kwargs))
        return await asyncio.wrap_future(fut)

    def shutdown(self, wait=True):
        log.debug("Shutting down UI invoker")
        self._executor.shutdown(wait=wait)
