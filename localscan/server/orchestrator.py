# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

"""Drive a scan in the application and collect what it produced."""

import asyncio
import logging
from pathlib import Path

import arrow

from localscan.config import BATCH_OUTPUT_FILE
from localscan.exceptions import ScanCancelled, ScanTimeout
from localscan.misc_utils import is_at_or_after, substitute_placeholders
from localscan.separator import SaveSeparator
from .multipart import PdfPart


log = logging.getLogger("scan")

SINGLE_SCAN = "scan"
BATCH_SCAN = "batch-scan"


class ScanSession:
    """What one request has gathered so far; thrown away at the end.

    Exactly one of ``images`` (pages still to be made into PDFs) and
    ``parts`` (finished files) ends up non-empty, unless nothing was
    scanned at all.
    """

    def __init__(self, mode):
        self.mode = mode
        self.started = arrow.utcnow()
        self.watermark = None
        self.images = []
        self.parts = []
        self.separator = SaveSeparator.NONE
        self.base_name = "scan"

    @property
    def empty(self):
        return not self.images and not self.parts

    def release(self):
        """Release all captured images; safe to call more than once."""
        for img in self.images:
            img.close()
        self.images = []


class ScanOrchestrator:
    """Runs the scan operations of a scanning application.

    Args:
        app: the application, see :py:class:`localscan.demo.DemoScanApplication`
            for the methods it must provide.
        invoker (UiInvoker): runs calls on the application's UI thread.

    Keyword Args:
        timeout (float/None): seconds to wait for the scan, None or 0
            to wait as long as it takes.
        lookback (float): batch files written this many seconds before
            the request started still count.
    """

    def __init__(self, app, invoker, *, timeout=None, lookback=1.0):
        self.app = app
        self.invoker = invoker
        self.timeout = timeout if timeout else None
        self.lookback = lookback

    async def activate(self):
        """Bring the application window to the front."""
        await self.invoker.invoke(self.app.activate)

    async def _wait_on_ui(self, session, fn):
        fut = self.invoker.submit(fn, session)
        try:
            return await asyncio.wait_for(
                asyncio.shield(asyncio.wrap_future(fut)), self.timeout
            )
        except asyncio.TimeoutError:
            fut.add_done_callback(_release_late_result)
            raise ScanTimeout(
                f"{session.mode} did not finish within {self.timeout} seconds",
                pending=fut,
            ) from None
        except asyncio.CancelledError as e:
            # a call still queued is dropped, one already running cannot be
            fut.cancel()
            if not fut.done():
                fut.add_done_callback(_release_late_result)
                e.pending = fut
            raise

    async def run(self, mode):
        """Perform a scan, returning the session holding its output.

        Args:
            mode (str): ``"scan"`` or ``"batch-scan"``.

        Returns:
            ScanSession: check ``.empty`` for nothing scanned.  The
            caller must call its ``release()`` when finished.

        Raises:
            ScanTimeout: if a timeout is configured and passes.
            Exception: anything the application raises, except
                cancellation which gives an empty session.
        """
        session = ScanSession(mode)
        try:
            if mode == SINGLE_SCAN:
                await self._single_scan(session)
            elif mode == BATCH_SCAN:
                await self._batch_scan(session)
            else:
                raise ValueError(f'Unknown scan mode "{mode}"')
        except BaseException:
            session.release()
            raise
        return session

    def _scan_default_on_ui(self, session):
        images = self.app.images
        session.watermark = images.watermark()
        try:
            self.app.scan_default()
        except ScanCancelled:
            log.info("Scan cancelled by the user")
            return []
        return images.copies_since(session.watermark)

    async def _single_scan(self, session):
        session.images = await self._wait_on_ui(session, self._scan_default_on_ui)
        log.info("Scan produced %d new image(s)", len(session.images))
        # read now, not earlier: the user may have changed the profile
        profile = self.app.settings.default_profile()
        session.separator = profile.effective_separator()
        session.base_name = profile.base_name("scan")

    def _batch_scan_on_ui(self, session):
        session.watermark = self.app.images.watermark()
        try:
            return (True, self.app.show_batch_scan())
        except ScanCancelled:
            log.info("Batch scan cancelled by the user")
            return (False, None)

    async def _batch_scan(self, session):
        completed, written = await self._wait_on_ui(session, self._batch_scan_on_ui)
        if not completed:
            return
        bs = self.app.settings.batch_settings()
        if bs.output_type == BATCH_OUTPUT_FILE:
            since = session.started.shift(seconds=-self.lookback)
            loop = asyncio.get_running_loop()
            session.parts = await loop.run_in_executor(
                None, collect_batch_files, bs.save_path, since, written
            )
            log.info("Batch scan wrote %d file(s)", len(session.parts))
            return
        session.images = self.app.images.copies_since(session.watermark)
        session.separator = bs.separator
        session.base_name = bs.base_name("batch")
        log.info("Batch scan loaded %d new image(s)", len(session.images))


def _release_late_result(fut):
    """Tidy up after a UI call whose request has already gone."""
    if fut.cancelled():
        return
    e = fut.exception()
    if e:
        log.warning("Abandoned scan eventually failed: %s", e)
        return
    result = fut.result()
    if isinstance(result, list):
        for img in result:
            img.close()
    log.info("Abandoned scan has now finished")


def collect_batch_files(save_path, since, written=None):
    """Read the files a batch scan saved to disk.

    Args:
        save_path (str): the batch save path, possibly with placeholders.
        since (arrow.Arrow): files modified before this are ignored.
        written (list/None): the paths the batch scan reports it wrote.
            If given, we use exactly those and skip the directory search.

    Returns:
        list: of :py:class:`PdfPart`, sorted by file name.
    """
    if written is not None:
        paths = [Path(p) for p in written]
    else:
        paths = find_batch_files(save_path, since)
    paths.sort(key=lambda p: (p.name.lower(), p.name))
    return [PdfPart(p.name, p.read_bytes()) for p in paths]


def find_batch_files(save_path, since):
    """Files in the save directory that look like recent batch output.

    That is, same extension, name starting with the save path's stem
    (ignoring case), and modified at or after ``since``.
    """
    if not save_path:
        log.warning("Batch save path is not set: cannot look for files")
        return []
    expanded = Path(substitute_placeholders(save_path)).expanduser()
    d = expanded.parent
    if str(d) == ".":
        d = Path.cwd()
    if not d.is_dir():
        log.warning('Batch output directory "%s" does not exist', d)
        return []
    stem = expanded.stem.lower()
    found = []
    for f in d.glob("*" + expanded.suffix):
        if not f.is_file() or not f.name.lower().startswith(stem):
            continue
        if is_at_or_after(f.stat().st_mtime, since):
            found.append(f)
    log.debug("Found %d batch file(s) in %s", len(found), d)
    return found
