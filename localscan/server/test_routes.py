# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

import asyncio
import os
import threading
import time

from aiohttp import web, MultipartReader
from aiohttp.test_utils import TestClient, TestServer, make_mocked_request
from pytest import raises

from localscan import CapturedImage, ImageList, ScanCancelled
from localscan.config import BatchSettings, Profile, StaticSettings
from localscan.server import ScanHandler, ScanOrchestrator, UiInvoker


class FakeApp:
    """Stands in for the desktop application."""

    def __init__(self, pages=0, *, settings=None):
        self.images = ImageList()
        self.settings = settings if settings else StaticSettings()
        self.pages = pages
        self.activated = 0
        self.scans = 0
        self.gate = None
        self.started = threading.Event()
        self.fail = None
        self.batch = None

    def activate(self):
        self.activated += 1

    def scan_default(self):
        self.started.set()
        if self.gate:
            self.gate.wait(10)
        if self.fail:
            raise self.fail
        self.scans += 1
        for p in range(self.pages):
            self.images.append(
                CapturedImage(
                    b"page%d-%d" % (self.scans, p), width=8, height=11, scan_id=self.scans
                )
            )

    def show_batch_scan(self):
        if self.fail:
            raise self.fail
        return self.batch() if self.batch else None


class FakeExporter:
    """Pretends to make PDFs by concatenating the image bytes."""

    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.seen = []

    def export(self, images, fileobj):
        self.seen.append(list(images))
        if self.fail_on == len(self.seen):
            return False
        fileobj.write(b"%PDF-" + b"|".join(img.data for img in images))
        return True


def make_handler(app, exporter=None, **kwargs):
    orch = ScanOrchestrator(app, UiInvoker(), **kwargs)
    return ScanHandler(orch, exporter if exporter else FakeExporter())


def make_web_app(handler):
    webapp = web.Application()
    handler.setUpRoutes(webapp.router)
    return webapp


async def read_parts(resp):
    reader = MultipartReader.from_response(resp)
    parts = []
    while True:
        part = await reader.next()
        if part is None:
            break
        assert part.name == "files"
        assert part.headers["Content-Type"] == "application/pdf"
        parts.append((part.filename, bytes(await part.read())))
    return parts


def fetch(handler, path, *, method="GET", parse=True):
    async def go():
        async with TestClient(TestServer(make_web_app(handler))) as client:
            resp = await client.request(method, path)
            if parse and resp.status == 200:
                body = await read_parts(resp)
            else:
                body = await resp.read()
            return resp.status, resp.headers, body

    return asyncio.run(go())


def test_nothing_scanned_gives_no_content() -> None:
    app = FakeApp(pages=0)
    status, _, body = fetch(make_handler(app), "/scan")
    assert status == 204
    assert body == b""
    assert app.activated == 1


def test_single_scan_one_file() -> None:
    app = FakeApp(pages=3)
    status, headers, parts = fetch(make_handler(app), "/scan")
    assert status == 200
    assert headers["Content-Type"].startswith("multipart/form-data; boundary=")
    assert [name for name, _ in parts] == ["scan.pdf"]
    assert parts[0][1] == b"%PDF-page1-0|page1-1|page1-2"


def test_single_scan_per_page() -> None:
    profile = Profile(auto_save=True, separator="per_page")
    app = FakeApp(pages=3, settings=StaticSettings(profile=profile))
    status, _, parts = fetch(make_handler(app), "/scan")
    assert status == 200
    assert [name for name, _ in parts] == ["scan_1.pdf", "scan_2.pdf", "scan_3.pdf"]
    assert [data for _, data in parts] == [
        b"%PDF-page1-0",
        b"%PDF-page1-1",
        b"%PDF-page1-2",
    ]


def test_separator_ignored_without_auto_save() -> None:
    profile = Profile(auto_save=False, save_path="/x/report.pdf", separator="per_page")
    app = FakeApp(pages=2, settings=StaticSettings(profile=profile))
    status, _, parts = fetch(make_handler(app), "/scan")
    assert status == 200
    assert [name for name, _ in parts] == ["report.pdf"]


def test_profile_save_path_names_files() -> None:
    profile = Profile(auto_save=True, save_path="/docs/invoice.tiff", separator="per_page")
    app = FakeApp(pages=2, settings=StaticSettings(profile=profile))
    _, _, parts = fetch(make_handler(app), "/scan")
    assert [name for name, _ in parts] == ["invoice_1.pdf", "invoice_2.pdf"]


def test_only_new_images_are_returned() -> None:
    app = FakeApp(pages=2)
    app.images.append(CapturedImage(b"older", scan_id=0))
    _, _, parts = fetch(make_handler(app), "/scan")
    assert parts[0][1] == b"%PDF-page1-0|page1-1"


def test_declared_length_matches_body() -> None:
    app = FakeApp(pages=2)
    status, headers, body = fetch(make_handler(app), "/scan", parse=False)
    assert status == 200
    assert int(headers["Content-Length"]) == len(body)
    assert "Transfer-Encoding" not in headers
    assert body.endswith(b"--\r\n")


def test_export_failure_sends_nothing_partial() -> None:
    profile = Profile(auto_save=True, separator="per_page")
    app = FakeApp(pages=2, settings=StaticSettings(profile=profile))
    exporter = FakeExporter(fail_on=2)
    handler = make_handler(app, exporter)
    status, headers, body = fetch(handler, "/scan")
    assert status == 500
    assert not headers["Content-Type"].startswith("multipart")
    assert b"%PDF-" not in body
    assert len(exporter.seen) == 2
    # every copy handed to the exporter was released
    assert all(img.closed for group in exporter.seen for img in group)
    assert not handler.guard.busy
    # the application's own images are untouched
    assert not any(img.closed for img in app.images.images)


def test_images_released_after_success() -> None:
    app = FakeApp(pages=2)
    exporter = FakeExporter()
    fetch(make_handler(app, exporter), "/scan")
    assert all(img.closed for group in exporter.seen for img in group)


def test_unknown_path() -> None:
    status, _, _ = fetch(make_handler(FakeApp()), "/unknown")
    assert status == 404
    status, _, _ = fetch(make_handler(FakeApp()), "/")
    assert status == 404


def test_wrong_method() -> None:
    app = FakeApp(pages=1)
    status, _, _ = fetch(make_handler(app), "/scan", method="POST")
    assert status == 405
    assert app.activated == 0
    assert app.scans == 0


def test_wrong_method_checked_before_path() -> None:
    status, _, _ = fetch(make_handler(FakeApp()), "/unknown", method="DELETE")
    assert status == 405


def test_path_case_and_trailing_slash() -> None:
    app = FakeApp(pages=1)
    status, _, parts = fetch(make_handler(app), "/SCAN/")
    assert status == 200
    assert len(parts) == 1


def test_scan_error_gives_500_and_frees_guard() -> None:
    app = FakeApp(pages=1)
    app.fail = RuntimeError("scanner on fire")
    handler = make_handler(app)
    status, _, _ = fetch(handler, "/scan")
    assert status == 500
    assert not handler.guard.busy
    app.fail = None
    status, _, _ = fetch(handler, "/scan")
    assert status == 200


def test_user_cancel_is_no_content() -> None:
    app = FakeApp(pages=1)
    app.fail = ScanCancelled()
    handler = make_handler(app)
    status, _, body = fetch(handler, "/scan")
    assert status == 204
    assert body == b""
    assert not handler.guard.busy


def test_concurrent_request_is_rejected() -> None:
    app = FakeApp(pages=1)
    app.gate = threading.Event()
    handler = make_handler(app)

    async def go():
        async with TestClient(TestServer(make_web_app(handler))) as client:
            first = asyncio.ensure_future(client.get("/scan"))
            for _ in range(500):
                if handler.guard.busy:
                    break
                await asyncio.sleep(0.01)
            assert handler.guard.busy
            for path in ("/scan", "/batch-scan"):
                resp = await client.get(path)
                assert resp.status == 409
            app.gate.set()
            resp = await first
            assert resp.status == 200
            parts = await read_parts(resp)
            assert parts == [("scan.pdf", b"%PDF-page1-0")]

    asyncio.run(go())
    assert app.scans == 1
    assert not handler.guard.busy


def test_timeout_keeps_scanner_claimed_until_scan_ends() -> None:
    app = FakeApp(pages=1)
    app.gate = threading.Event()
    handler = make_handler(app, timeout=0.2)
    status, _, _ = fetch(handler, "/scan")
    assert status == 504
    assert handler.guard.busy
    app.gate.set()
    for _ in range(500):
        if not handler.guard.busy:
            break
        time.sleep(0.01)
    assert not handler.guard.busy


def test_cancelled_request_keeps_scanner_claimed() -> None:
    app = FakeApp(pages=1)
    app.gate = threading.Event()
    handler = make_handler(app)

    async def go():
        loop = asyncio.get_running_loop()
        task = asyncio.ensure_future(handler.dispatch(make_mocked_request("GET", "/scan")))
        assert await loop.run_in_executor(None, app.started.wait, 5)
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        # the UI thread is still scanning: nobody else may start
        assert handler.guard.busy
        with raises(web.HTTPConflict):
            await handler.dispatch(make_mocked_request("GET", "/batch-scan"))
        app.gate.set()
        for _ in range(500):
            if not handler.guard.busy:
                break
            await asyncio.sleep(0.01)

    asyncio.run(go())
    assert app.scans == 1
    assert not handler.guard.busy
    # and the scanner is usable again
    status, _, parts = fetch(handler, "/scan")
    assert status == 200
    assert len(parts) == 1


def test_batch_load_mode() -> None:
    bs = BatchSettings(output_type="load", save_path="/tmp/job.pdf", separator="per_scan")
    app = FakeApp(settings=StaticSettings(batch=bs))

    def batch():
        for scan_id in (7, 7, 8):
            app.images.append(CapturedImage(b"b%d" % scan_id, scan_id=scan_id))

    app.batch = batch
    status, _, parts = fetch(make_handler(app), "/batch-scan")
    assert status == 200
    assert parts == [("job_1.pdf", b"%PDF-b7|b7"), ("job_2.pdf", b"%PDF-b8")]


def test_batch_load_mode_default_name() -> None:
    app = FakeApp()

    def batch():
        app.images.append(CapturedImage(b"x", scan_id=1))

    app.batch = batch
    _, _, parts = fetch(make_handler(app), "/batch-scan")
    assert [name for name, _ in parts] == ["batch.pdf"]


def test_batch_load_mode_nothing() -> None:
    status, _, _ = fetch(make_handler(FakeApp()), "/batch-scan")
    assert status == 204


def test_batch_file_mode(tmp_path) -> None:
    bs = BatchSettings(output_type="file", save_path=str(tmp_path / "doc.pdf"))
    app = FakeApp(settings=StaticSettings(batch=bs))
    old = tmp_path / "doc_old.pdf"
    old.write_bytes(b"stale")
    long_ago = time.time() - 3600
    os.utime(old, (long_ago, long_ago))
    (tmp_path / "other.pdf").write_bytes(b"not ours")

    def batch():
        (tmp_path / "doc_2.pdf").write_bytes(b"%PDF-second")
        (tmp_path / "DOC_1.pdf").write_bytes(b"%PDF-first")
        return None

    app.batch = batch
    exporter = FakeExporter()
    status, _, parts = fetch(make_handler(app, exporter), "/batch-scan")
    assert status == 200
    assert parts == [("DOC_1.pdf", b"%PDF-first"), ("doc_2.pdf", b"%PDF-second")]
    # raw files are sent as they are
    assert exporter.seen == []


def test_batch_file_mode_reported_paths(tmp_path) -> None:
    bs = BatchSettings(output_type="file", save_path=str(tmp_path / "doc.pdf"))
    app = FakeApp(settings=StaticSettings(batch=bs))

    def batch():
        f = tmp_path / "elsewhere.pdf"
        f.write_bytes(b"%PDF-reported")
        (tmp_path / "doc_1.pdf").write_bytes(b"%PDF-unreported")
        return [f]

    app.batch = batch
    _, _, parts = fetch(make_handler(app), "/batch-scan")
    assert parts == [("elsewhere.pdf", b"%PDF-reported")]


def test_batch_file_mode_missing_dir(tmp_path) -> None:
    bs = BatchSettings(output_type="file", save_path=str(tmp_path / "nope" / "doc.pdf"))
    app = FakeApp(settings=StaticSettings(batch=bs))
    status, _, _ = fetch(make_handler(app), "/batch-scan")
    assert status == 204
