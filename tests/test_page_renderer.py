from docspan.pages.pdf import fit_scale
from docspan.pages.renderer import (
    PAGE_SCALE,
    SINGLE_PAGE_SCALE,
    THUMB_SCALE,
    ObserverOptions,
    PageVisibilityRenderer,
    SinglePageViewer,
    intersection_ratio,
)


class FakePage:
    def __init__(self, doc, page_no):
        self.doc = doc
        self.page_no = page_no

    def get_viewport(self, scale=1.0):
        return {"scale": scale, "width": 100 * scale, "height": 140 * scale}

    def render(self, surface, viewport):
        self.doc.renders.append((self.page_no, viewport["scale"]))
        if self.page_no in self.doc.failing:
            self.doc.failing.discard(self.page_no)
            raise RuntimeError("canvas lost")
        surface["drawn"] = True


class FakeDoc:
    def __init__(self, pages, failing=()):
        self.num_pages = pages
        self.failing = set(failing)
        self.renders = []

    def get_page(self, page_no):
        return FakePage(self, page_no)


def _surface(page_no, viewport):
    return {"page": page_no, "drawn": False}


def test_page_renders_once_on_repeated_intersection():
    doc = FakeDoc(5)
    r = PageVisibilityRenderer(_surface)
    r.set_document(doc)

    assert r.on_intersection(2, 0.5) is True
    assert r.on_intersection(2, 1.0) is False
    assert doc.renders == [(2, PAGE_SCALE)]
    assert r.surfaces[2]["drawn"] is True


def test_below_threshold_does_not_render():
    doc = FakeDoc(3)
    r = PageVisibilityRenderer(_surface)
    r.set_document(doc)

    assert r.on_intersection(1, 0.001) is False
    assert doc.renders == []


def test_failed_render_can_be_retried():
    doc = FakeDoc(3, failing=[3])
    r = PageVisibilityRenderer(_surface, variant="thumbs")
    r.set_document(doc)

    assert r.on_intersection(3, 1.0) is False
    assert not r.is_rendered(3)
    assert r.on_intersection(3, 1.0) is True
    assert doc.renders == [(3, THUMB_SCALE), (3, THUMB_SCALE)]


def test_scroll_to_page_does_not_render():
    scrolled = []
    doc = FakeDoc(4)
    r = PageVisibilityRenderer(_surface, scroller=scrolled.append)
    r.set_document(doc)

    assert r.scroll_to_page(9) == 4
    assert scrolled == [4]
    assert doc.renders == []


def test_document_change_resets_rendered_pages():
    r = PageVisibilityRenderer(_surface)
    r.set_document(FakeDoc(2))
    r.on_intersection(1, 1.0)
    r.set_document(FakeDoc(2))

    assert not r.is_rendered(1)
    assert r.surfaces == {}


def test_intersection_ratio_uses_margin():
    opts = ObserverOptions()

    assert intersection_ratio(900, 1000, 0, 500, opts) == 1.0
    assert intersection_ratio(1200, 1400, 0, 500, opts) == 0.0
    assert intersection_ratio(900, 1000, 0, 500, ObserverOptions(margin_px=0)) == 0.0
    assert intersection_ratio(1000, 1200, 0, 500, opts) == 0.5


def test_single_page_viewer_clamps_and_uses_own_handle():
    pages_seen = []
    a = SinglePageViewer(_surface, on_page_change=pages_seen.append)
    b = SinglePageViewer(_surface)
    doc_a, doc_b = FakeDoc(3), FakeDoc(7)
    a.load(doc_a)
    b.load(doc_b)

    a.goto(10)
    b.goto(6)

    assert a.current_page == 3
    assert pages_seen == [3]
    assert doc_a.renders == [(1, SINGLE_PAGE_SCALE), (3, SINGLE_PAGE_SCALE)]
    assert doc_b.renders == [(1, SINGLE_PAGE_SCALE), (6, SINGLE_PAGE_SCALE)]
    assert a.prev_page() is True
    assert a.current_page == 2


def test_single_page_viewer_reports_failure():
    doc = FakeDoc(2, failing=[2])
    v = SinglePageViewer(_surface)
    v.load(doc)

    assert v.goto(2) is False
    assert v.message == "canvas lost"


def test_fit_scale():
    assert fit_scale(1000, 200) == 0.2
    assert fit_scale(100, 200) == 1.0
    assert fit_scale(0, 200) == 1.0
