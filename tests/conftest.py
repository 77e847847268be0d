import json
from unittest.mock import MagicMock

from googleapiclient.errors import HttpError
import httplib2
import pytest

from gwshelper import calendar, drive
from gwshelper.docs import ops


def paragraph(start: int, *runs: str) -> dict:
    """A body paragraph made of the given text runs, laid out from start."""
    elements = []
    idx = start
    for text in runs:
        n = len(text.encode("utf-16-le")) // 2
        elements.append({"startIndex": idx, "endIndex": idx + n, "textRun": {"content": text, "textStyle": {}}})
        idx += n
    return {"startIndex": start, "endIndex": idx, "paragraph": {"elements": elements, "paragraphStyle": {}}}


def table(start: int, rows: int, columns: int) -> dict:
    """
    An empty table the way the API lays it out: the table takes one index,
    each row one, each cell one, and each cell holds an empty paragraph.
    """
    idx = start + 1
    table_rows = []
    for _ in range(rows):
        row_start = idx
        idx += 1
        cells = []
        for _ in range(columns):
            cells.append({"startIndex": idx, "endIndex": idx + 2, "content": [paragraph(idx + 1, "\n")]})
            idx += 2
        table_rows.append({"startIndex": row_start, "endIndex": idx, "tableCells": cells})
    return {"startIndex": start, "endIndex": idx + 1,
            "table": {"rows": rows, "columns": columns, "tableRows": table_rows}}


def build_document(*paragraph_texts, tables: int = 0, doc_id: str = "doc-1") -> dict:
    """
    A documents.get() style response.  Each paragraph text is one run,
    tuples give a multi-run paragraph.  Tables go after the paragraphs,
    followed by the trailing empty paragraph every body ends with.
    """
    content = [{"endIndex": 1, "sectionBreak": {"sectionStyle": {}}}]
    idx = 1
    for p in paragraph_texts:
        runs = p if isinstance(p, tuple) else (p,)
        content.append(paragraph(idx, *runs))
        idx = content[-1]["endIndex"]
    for _ in range(tables):
        content.append(table(idx, 2, 2))
        idx = content[-1]["endIndex"]
    content.append(paragraph(idx, "\n"))
    return {"documentId": doc_id, "title": "Test Doc", "revisionId": "rev-1",
            "body": {"content": content}, "documentStyle": {}, "namedStyles": {}}


@pytest.fixture
def sample_document() -> dict:
    return build_document("Title\n", "Intro line\n", "Middle\n", "Outro line\n", tables=1)


@pytest.fixture
def docs_service(monkeypatch):
    service = MagicMock()
    monkeypatch.setattr(ops, "_get_service", lambda: service)
    return service


@pytest.fixture
def drive_service(monkeypatch):
    service = MagicMock()
    monkeypatch.setattr(drive, "_get_service", lambda: service)
    return service


@pytest.fixture
def calendar_service(monkeypatch):
    service = MagicMock()
    monkeypatch.setattr(calendar, "_get_service", lambda: service)
    return service


def batch_body(docs_service: MagicMock) -> dict:
    """Body of the single batchUpdate the helper under test sent."""
    docs_service.documents.return_value.batchUpdate.assert_called_once()
    return docs_service.documents.return_value.batchUpdate.call_args.kwargs["body"]


def http_error(status: int, message: str = "boom") -> HttpError:
    resp = httplib2.Response({"status": str(status)})
    return HttpError(resp, json.dumps({"error": {"code": status, "message": message}}).encode("utf-8"))
