"""
Docs helper operations.

Anything that needs an offset fetches the document first and works it out
with the locate functions, then sends a single batchUpdate.  Nothing is
cached between calls so an offset is only as fresh as that one fetch; a
concurrent edit between the get and the batchUpdate can shift it.

The Drive-backed operations (copy, export, rename, share) are here as
well since they're the obvious things to want to do with a document.
"""
from typing import List
import logging

from .. import drive
from ..access import gws
from ..errors import api_call
from . import locate
from .requests import (DocsRequestBase, DocsUpdateRequest, InsertTableRequest, InsertTextRequest,
                       ReplaceAllTextRequest, UpdateTableCellStyleRequest, UpdateTextStyleRequest)
from .resources import Document, OptionalColor, utf16_len

logger = logging.getLogger(__name__)

DOCUMENT_URL = "https://docs.google.com/document/d/{id}/edit"


def _get_service():
    gws.append_scopes("docs")
    return gws.get_service("docs", "v1")


@api_call("unable to create document")
def create(title: str) -> Document:
    """
    https://developers.google.com/docs/api/reference/rest/v1/documents/create
    Only the title is honoured on create, content has to be added afterwards.
    """
    response = _get_service().documents().create(body={"title": title}).execute()
    doc = Document.from_base(response)
    logger.info("created document %s", doc)
    return doc


@api_call("unable to retrieve document")
def get(document_id: str) -> Document:
    """https://developers.google.com/docs/api/reference/rest/v1/documents/get"""
    response = _get_service().documents().get(documentId=document_id).execute()
    return Document.from_base(response)


@api_call("unable to update document")
def batchUpdate(document_id: str, request: DocsUpdateRequest|List[DocsRequestBase]|dict) -> dict:
    """
    https://developers.google.com/docs/api/reference/rest/v1/documents/batchUpdate
    Accepts our request wrapper, a list of request objects or a raw body.
    """
    if isinstance(request, list):
        request = DocsUpdateRequest(request)
    body = request.to_base() if isinstance(request, DocsUpdateRequest) else dict(request)
    logger.debug("batchUpdate %s: %s", document_id, body)
    return _get_service().documents().batchUpdate(documentId=document_id, body=body).execute()


def add_text(document_id: str, text: str) -> dict:
    """Append text to the end of the document body."""
    doc = get(document_id)
    return batchUpdate(document_id, [InsertTextRequest(text, locate.append_index(doc))])


def replace_text(document_id: str, old_text: str, new_text: str) -> int:
    """
    Replace every case sensitive occurrence of old_text.
    Returns how many were changed.
    """
    response = batchUpdate(document_id, [ReplaceAllTextRequest(old_text, new_text)])
    return _occurrences_changed(response)


def replace_texts(document_id: str, replacements: dict[str, str]) -> int:
    """
    Several replacements in one batch, applied in dict order so a later key
    can match text produced by an earlier replacement.
    """
    if not replacements:
        return 0
    response = batchUpdate(document_id, [ReplaceAllTextRequest(old, new)
                                         for old, new in replacements.items()])
    return _occurrences_changed(response)


def _occurrences_changed(response: dict) -> int:
    return sum(r.get("replaceAllText", {}).get("occurrencesChanged", 0)
               for r in (response or {}).get("replies", []))


def add_text_between_lines(document_id: str, start_line: str, end_line: str, text: str) -> dict:
    """
    Insert text as a new line directly after start_line, which must come
    before end_line in the document.
    """
    doc = get(document_id)
    start, _ = locate.find_lines(doc, start_line, end_line)
    index = start + utf16_len(start_line) + 1
    return batchUpdate(document_id, [InsertTextRequest(text + "\n", index)])


def add_text_after_line(document_id: str, line: str, text: str) -> dict:
    """Insert text as a new line after the first line matching line."""
    doc = get(document_id)
    elem = locate.find_line(doc, line)
    return batchUpdate(document_id, [InsertTextRequest(text + "\n", elem.endIndex)])


def add_text_after_pattern(document_id: str, pattern: str, text: str) -> dict:
    """Insert text inline, directly after the first occurrence of pattern."""
    doc = get(document_id)
    _, index = locate.find_pattern(doc, pattern)
    return batchUpdate(document_id, [InsertTextRequest(text, index)])


def add_table(document_id: str, rows: int, columns: int) -> dict:
    """Empty table at the end of the document."""
    doc = get(document_id)
    return batchUpdate(document_id, [InsertTableRequest(rows, columns, locate.append_index(doc))])


def add_text_to_table_cell(document_id: str, table_index: int, row: int, column: int, text: str) -> dict:
    """
    Insert text at the start of a cell.  Tables are counted from 0 in body
    order, as are rows and columns.
    """
    doc = get(document_id)
    table = locate.find_table(doc, table_index)
    cell = locate.table_cell(table.table, row, column)
    # cell.startIndex is the cell itself, its first paragraph starts one after
    return batchUpdate(document_id, [InsertTextRequest(text, cell.startIndex + 1)])


def set_table_cell_color(document_id: str, table_index: int, row: int, column: int,
                         color: OptionalColor|tuple|dict) -> dict:
    """Set the background colour of a single cell."""
    doc = get(document_id)
    table = locate.find_table(doc, table_index)
    locate.table_cell(table.table, row, column)
    return batchUpdate(document_id, [UpdateTableCellStyleRequest(table.startIndex, row, column,
                                                                 OptionalColor.make(color))])


def add_link_to_text(document_id: str, search_text: str, url: str) -> dict:
    """Turn the first occurrence of search_text into a hyperlink."""
    doc = get(document_id)
    start, end = locate.find_pattern(doc, search_text)
    return batchUpdate(document_id, [UpdateTextStyleRequest(start, end, url)])


def insert_text_with_link(document_id: str, text: str, url: str, index: int) -> dict:
    """
    Insert text at index and make it a link in the same batch, so the link
    range is exactly the inserted text.
    """
    if not text:
        raise ValueError("Link text must not be empty")
    return batchUpdate(document_id, [InsertTextRequest(text, index),
                                     UpdateTextStyleRequest(index, index + utf16_len(text), url)])


def get_end_index(document_id: str) -> int:
    """End index of the body, one past the final newline."""
    return locate.end_of_body(get(document_id))


def document_url(document_id: str) -> str:
    return DOCUMENT_URL.format(id=document_id)


def copy(document_id: str, title: str) -> drive.File:
    return drive.copy_file(document_id, name=title)


def export_text(document_id: str) -> str:
    return drive.export_text(document_id)


def rename(document_id: str, title: str) -> drive.File:
    return drive.rename(document_id, title)


def add_permission(document_id: str, email: str, role: str = "reader") -> drive.Permission:
    """Share the document without sending the notification email."""
    return drive.add_permission(document_id, email, role, notify=False)
