# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

import logging
from pathlib import Path

from aiohttp import web

from localscan import __version__
from localscan import Default_Port
from localscan.config import TomlSettings, get_server_info
from localscan.config import confdir, config_filename
from localscan.misc_utils import utc_now_to_string
from localscan.pdf_export import PdfExporter

from .guard import SingleFlightGuard
from .invoker import UiInvoker
from .orchestrator import ScanOrchestrator
from .routes import ScanHandler


loopback = "127.0.0.1"


class LocalScanServer:
    """The loopback HTTP endpoint for one scanning application.

    Construct it with the application, then ``await start()`` inside a
    running event loop and ``await stop()`` to close the socket again.
    To run it from a synchronous program see
    :py:class:`localscan.server.BackgroundScanServer`.

    Args:
        app: the scanning application.

    Keyword Args:
        port (int): listen on ``127.0.0.1`` at this port.
        exporter: PDF exporter, defaults to :py:class:`PdfExporter`.
        invoker (UiInvoker/None): runs UI calls; by default a fresh
            dedicated thread.
        timeout (float/None): give up waiting for a scan after this
            many seconds; None waits forever.
        lookback (float): tolerance in seconds when finding files
            written by a batch scan.
    """

    def __init__(
        self,
        app,
        *,
        port=Default_Port,
        exporter=None,
        invoker=None,
        timeout=None,
        lookback=1.0,
    ):
        log = logging.getLogger("server")
        log.debug("Initialising server")
        self.port = port
        self.guard = SingleFlightGuard()
        self._own_invoker = invoker is None
        self.invoker = invoker if invoker else UiInvoker()
        self.orchestrator = ScanOrchestrator(
            app, self.invoker, timeout=timeout, lookback=lookback
        )
        self.handler = ScanHandler(
            self.orchestrator, exporter if exporter else PdfExporter(), self.guard
        )
        self._runner = None

    @property
    def state(self):
        return "listening" if self._runner else "idle"

    def make_app(self):
        """Construct the aiohttp application with our routes."""
        app = web.Application()
        self.handler.setUpRoutes(app.router)
        return app

    async def start(self):
        """Bind the loopback socket and begin accepting connections.

        Raises:
            OSError: e.g., address already in use.
        """
        log = logging.getLogger("server")
        if self._runner:
            raise RuntimeError("Server already started")
        runner = web.AppRunner(self.make_app())
        await runner.setup()
        site = web.TCPSite(runner, loopback, self.port)
        try:
            await site.start()
        except BaseException:
            await runner.cleanup()
            raise
        self._runner = runner
        log.info("Listening on http://%s:%s/", loopback, self.port)

    async def stop(self):
        """Stop accepting connections and release the socket.

        Requests already being answered get aiohttp's shutdown grace
        period to finish; a scan still in progress is not interrupted.
        """
        log = logging.getLogger("server")
        if not self._runner:
            return
        runner = self._runner
        self._runner = None
        await runner.cleanup()
        if self._own_invoker:
            self.invoker.shutdown(wait=False)
        log.info("Server stopped")


def setup_logging(basedir=Path("."), *, logfile=None, logconsole=True, level="info"):
    """Log to a file and, optionally, to stderr.

    args:
        basedir (pathlib.Path/str): where to put the log file.
        logfile (pathlib.Path/str/None): name-only then relative to basedir.
            If omitted, use a default name with date and time included.
        logconsole (bool): if True (default) then log to the stderr.
        level (str): e.g., "info" or "debug".
    """
    basedir = Path(basedir)
    if not logfile:
        logfile = f"localscan-{utc_now_to_string()}.log"
    logfile = Path(logfile)
    if logfile.parent == Path("."):
        logfile = basedir / logfile
    # 5 is to keep debug/info lined up
    fmtstr = "%(asctime)s %(levelname)5s:%(name)s\t%(message)s"
    logging.basicConfig(format=fmtstr, datefmt="%b%d %H:%M:%S %Z", filename=logfile)
    if logconsole:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter(fmtstr, datefmt="%b%d %H:%M:%S %Z"))
        logging.getLogger().addHandler(h)
    logging.getLogger().setLevel(level.upper())
    # Special treatment for chatty modules
    if level.upper() == "INFO":
        logging.getLogger("aiohttp.access").setLevel("WARNING")
    return logfile


def launch(app=None, *, config=None, basedir=Path("."), logfile=None, logconsole=True):
    """Launches the Localscan server and blocks until interrupted.

    args:
        app: the scanning application.  If None, a demo application
            is used which makes up pages.
        config (pathlib.Path/str/None): the config file, or None for
            the default location.
        basedir (pathlib.Path/str): where to write the log file.
        logfile (pathlib.Path/str/None): see :py:func:`setup_logging`.
        logconsole (bool): if True (default) then log to the stderr.
    """
    server_info = get_server_info(config)
    logfile = setup_logging(
        basedir, logfile=logfile, logconsole=logconsole, level=server_info["LogLevel"]
    )
    log = logging.getLogger("server")
    log.info("Localscan Server {}, logging to {}".format(__version__, logfile))
    if app is None:
        from localscan.demo import DemoScanApplication

        if not config:
            config = confdir / config_filename
        app = DemoScanApplication(settings=TomlSettings(config))
        log.warning("No application given: serving made-up demo pages")
    server = LocalScanServer(
        app,
        port=server_info["port"],
        timeout=server_info["scan_timeout"],
        lookback=server_info["batch_lookback_seconds"],
    )
    log.info("Start the server!")
    web.run_app(server.make_app(), host=loopback, port=server.port, print=None)
    server.invoker.shutdown(wait=False)
