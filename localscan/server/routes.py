# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

import asyncio

from aiohttp import web

from localscan.exceptions import PdfExportError, ScanBusy, ScanTimeout
from localscan.separator import separate_scans
from .guard import SingleFlightGuard
from .multipart import MultipartPdfWriter
from .orchestrator import SINGLE_SCAN, BATCH_SCAN
from .packager import package_groups
from .routeutils import log_request, normalize_path, log


known_routes = {
    "/scan": SINGLE_SCAN,
    "/batch-scan": BATCH_SCAN,
}


class ScanHandler:
    """The Scan Handler interfaces between the HTTP API and the scanning application.

    There are only two routes, ``GET /scan`` and ``GET /batch-scan``;
    the path is matched ignoring case and trailing slashes.  One scan
    runs at a time: other requests meanwhile get 409.

    Args:
        orchestrator (ScanOrchestrator): runs the scans.
        exporter: makes PDFs, has ``export(images, fileobj) -> bool``.
        guard (SingleFlightGuard/None): a new one if omitted.
    """

    def __init__(self, orchestrator, exporter, guard=None):
        self.orchestrator = orchestrator
        self.exporter = exporter
        self.guard = guard if guard else SingleFlightGuard()

    async def dispatch(self, request):
        """Validate the request and, if the scanner is free, scan.

        Responds with status 200/204/404/405/409/500/504.

        Returns:
            aiohttp.web.StreamResponse: a multipart body with one
            ``files`` part per PDF, or an empty 204.
        """
        log_request("dispatch", request)
        if request.method != "GET":
            raise web.HTTPMethodNotAllowed(request.method, ["GET"])
        mode = known_routes.get(normalize_path(request.path))
        if mode is None:
            raise web.HTTPNotFound()
        try:
            self.guard.acquire()
        except ScanBusy as e:
            log.warning("%s refused: %s", mode, e)
            raise web.HTTPConflict(reason=str(e))
        pending = None
        try:
            return await self._scan_and_respond(request, mode)
        except ScanTimeout as e:
            pending = e.pending
            log.error("%s: %s", mode, e)
            raise web.HTTPGatewayTimeout(reason=str(e))
        except asyncio.CancelledError as e:
            pending = getattr(e, "pending", None)
            log.warning("%s: request cancelled", mode)
            raise
        except PdfExportError as e:
            log.error("%s: %s", mode, e)
            raise web.HTTPInternalServerError(reason="PDF export failed")
        except web.HTTPException:
            raise
        except ConnectionError as e:
            log.warning("%s: lost the client while sending: %s", mode, e)
            raise
        except Exception as e:
            log.exception("%s: unexpected failure", mode)
            raise web.HTTPInternalServerError(reason=f"Scan failed: {type(e).__name__}")
        finally:
            if pending is not None:
                # the scan is still running: keep the scanner claimed until it stops
                pending.add_done_callback(lambda _: self.guard.release())
            else:
                self.guard.release()

    async def _scan_and_respond(self, request, mode):
        await self.orchestrator.activate()
        session = await self.orchestrator.run(mode)
        try:
            if session.empty:
                log.info("%s: nothing scanned", mode)
                return web.Response(status=204)
            if session.images:
                groups = separate_scans(session.images, session.separator)
                parts = await package_groups(groups, session.base_name, self.exporter)
            else:
                parts = session.parts
        finally:
            session.release()
        writer = MultipartPdfWriter(parts)
        log.info(
            "%s: sending %d file(s), %d bytes: %s",
            mode,
            len(parts),
            writer.size,
            ", ".join(p.filename for p in parts),
        )
        return await writer.write(request)

    def setUpRoutes(self, router):
        """Adds the response functions to the router object.

        Every method and path lands in :py:meth:`dispatch`, which gives
        405 and 404 itself.

        Args:
            router (aiohttp.web_urldispatcher.UrlDispatcher): Router object.
        """
        router.add_route("*", "/{tail:.*}", self.dispatch)
