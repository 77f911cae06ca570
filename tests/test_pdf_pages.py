import sys

import pytest

from docspan.pages.pdf import ImageSurface, PageLibraryUnavailable, open_document
from docspan.pages.renderer import PageVisibilityRenderer


def _one_page_pdf(width=200, height=100) -> bytes:
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 %d %d] /Resources << >> >>" % (width, height),
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for num, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % num + body + b"\nendobj\n"
    xref_at = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for off in offsets:
        out += b"%010d 00000 n \n" % off
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_at)
    return bytes(out)


def test_open_document_and_render_first_page_on_intersection():
    with open_document(_one_page_pdf()) as doc:
        r = PageVisibilityRenderer(lambda page_no, viewport: ImageSurface(page_no))
        r.set_document(doc)

        assert doc.num_pages == 1
        assert r.on_intersection(1, 1.0) is True

        surface = r.surfaces[1]
        assert surface.image is not None
        width, height = surface.size
        assert width > height > 0


def test_viewport_scales_page_size():
    with open_document(_one_page_pdf(200, 100)) as doc:
        vp = doc.get_page(1).get_viewport(1.5)

    assert (vp.width, vp.height, vp.scale) == (300.0, 150.0, 1.5)


def test_get_page_out_of_range():
    with open_document(_one_page_pdf()) as doc:
        with pytest.raises(ValueError):
            doc.get_page(0)
        with pytest.raises(ValueError):
            doc.get_page(2)


def test_missing_page_library_is_reported(monkeypatch):
    monkeypatch.setitem(sys.modules, "pdfplumber", None)

    with pytest.raises(PageLibraryUnavailable):
        open_document(_one_page_pdf())
