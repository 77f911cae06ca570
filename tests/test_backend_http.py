import pytest
import requests

from docspan.backend.contracts import BackendError, CellsRequest, is_archive_missing, parse_annotations
from docspan.backend.http import HttpBackend
from docspan.config import Settings
from docspan.locators.models import AnnotationDraft, SpreadsheetLocator
from docspan.search.hits import DocxBlockHit, SearchRequest


class FakeResponse:
    def __init__(self, status_code, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.content = b"" if payload is None and not text else b"{}"

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def _backend(monkeypatch, responses):
    backend = HttpBackend("http://backend.local/", max_retries=3, backoff_base=0.01)
    calls = []

    def fake_post(url, json, timeout):
        calls.append((url, json))
        item = responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    monkeypatch.setattr(backend, "_post", fake_post)
    monkeypatch.setattr("docspan.backend.http.time.sleep", lambda s: None)
    return backend, calls


def test_invoke_posts_command_and_parses_typed_response(monkeypatch):
    backend, calls = _backend(
        monkeypatch,
        [FakeResponse(200, {"file_id": "X1", "sheets": [{"name": "S", "rows": 3, "cols": 2}], "default_sheet": "S"})],
    )

    info = backend.get_excel_sheet_info("X1")

    assert calls == [("http://backend.local/invoke/get_excel_sheet_info", {"fileId": "X1"})]
    assert info.sheet("S").rows == 3


def test_retries_on_5xx_then_succeeds(monkeypatch):
    backend, calls = _backend(
        monkeypatch,
        [FakeResponse(503, {"error": "busy"}), FakeResponse(200, [{"block_id": "b1", "text": "абзац"}])],
    )

    blocks = backend.get_docx_blocks("A1")

    assert len(calls) == 2
    assert blocks[0].block_id == "b1"


def test_error_message_is_surfaced(monkeypatch):
    backend, _ = _backend(monkeypatch, [FakeResponse(400, {"error": "Query returned no rows"})])

    with pytest.raises(BackendError) as exc_info:
        backend.get_archive_detail("A1")

    assert str(exc_info.value) == "Query returned no rows"
    assert exc_info.value.command == "get_archive_detail"
    assert is_archive_missing(str(exc_info.value))


def test_retries_exhausted_raise(monkeypatch):
    backend, calls = _backend(monkeypatch, [FakeResponse(500, text="boom")] * 3)

    with pytest.raises(BackendError):
        backend.delete_annotation("n1")
    assert len(calls) == 3


def test_network_error_becomes_backend_error(monkeypatch):
    backend, _ = _backend(monkeypatch, [requests.ConnectionError("refused")])

    with pytest.raises(BackendError, match="refused"):
        backend.list_annotations("A1")


def test_invalid_payload_becomes_backend_error(monkeypatch):
    backend, _ = _backend(monkeypatch, [FakeResponse(200, {"unexpected": True})])

    with pytest.raises(BackendError):
        backend.get_attachment_preview_path("F1")


def test_create_annotation_sends_wire_format(monkeypatch):
    backend, calls = _backend(monkeypatch, [FakeResponse(200, None)])
    draft = AnnotationDraft(
        archive_id="A1", target_ref="X1", locator=SpreadsheetLocator(sheet_name="S", row=1, col=2), content="итог"
    )

    assert backend.create_annotation(draft) is None
    assert calls[0][1] == {
        "req": {
            "archive_id": "A1",
            "target_kind": "excel",
            "target_ref": "X1",
            "locator": {"sheet_name": "S", "row": 1, "col": 2},
            "content": "итог",
        }
    }


def test_search_and_cells_requests(monkeypatch):
    backend, calls = _backend(
        monkeypatch,
        [
            FakeResponse(
                200,
                {
                    "items": [{"kind": "docx_block", "archive_id": "A", "block_id": "b1", "block_text": "x"}],
                    "has_more": True,
                    "offset": 0,
                    "limit": 60,
                },
            ),
            FakeResponse(200, {"row_start": 0, "col_start": 0, "cells": [["a"]]}),
        ],
    )

    page = backend.search_paged(SearchRequest(query="x"))
    cells = backend.get_excel_sheet_cells(
        CellsRequest(file_id="X1", sheet_name="S", row_start=0, row_end=1, col_start=0, col_end=1)
    )

    assert isinstance(page.items[0], DocxBlockHit)
    assert calls[0][1]["req"]["query"] == "x"
    assert calls[1][1]["req"]["sheet_name"] == "S"
    assert cells.cells == [["a"]]


def test_list_annotations_skips_malformed(monkeypatch):
    good = {
        "annotation_id": "n1",
        "archive_id": "A1",
        "target_kind": "pdf",
        "target_ref": "P1",
        "locator": {"page": 2},
        "content": "стр. 2",
    }
    bad = {**good, "annotation_id": "n2", "target_kind": "zip"}
    backend, _ = _backend(monkeypatch, [FakeResponse(200, [good, bad])])

    items = backend.list_annotations("A1")

    assert [a.annotation_id for a in items] == ["n1"]
    assert parse_annotations([bad]) == []


def test_from_settings_and_empty_url():
    backend = HttpBackend.from_settings(Settings(backend_url="http://h:1", backend_timeout_s=5, backend_max_retries=2))

    assert backend.base_url == "http://h:1"
    assert backend.max_retries == 2
    with pytest.raises(ValueError):
        HttpBackend("")
