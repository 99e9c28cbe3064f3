# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

import io

import fitz
from PIL import Image

from localscan import CapturedImage
from localscan.pdf_export import PdfExporter, make_pdf_filename


def test_filenames() -> None:
    assert make_pdf_filename("scan", 0, 1) == "scan.pdf"
    assert make_pdf_filename("scan", 0, 3) == "scan_1.pdf"
    assert make_pdf_filename("scan", 2, 3) == "scan_3.pdf"


def test_one_page_per_image() -> None:
    imgs = [
        CapturedImage.from_pil(Image.new("RGB", (85, 110), "white")),
        CapturedImage.from_pil(Image.new("RGB", (110, 85), "red"), format="JPEG"),
    ]
    buf = io.BytesIO()
    assert PdfExporter().export(imgs, buf)
    data = buf.getvalue()
    assert data.startswith(b"%PDF")
    with fitz.open(stream=data, filetype="pdf") as doc:
        assert len(doc) == 2
        assert doc[0].rect.width < doc[0].rect.height
        assert doc[1].rect.width > doc[1].rect.height


def test_garbage_image_fails_cleanly() -> None:
    buf = io.BytesIO()
    assert not PdfExporter().export([CapturedImage(b"not an image", width=5, height=5)], buf)


def test_empty_fails() -> None:
    assert not PdfExporter().export([], io.BytesIO())
