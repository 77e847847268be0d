"""
Finding character offsets in a fetched document.

Everything here is a pure function of a Document so it can be tested
without the API.  The scans walk body content in order and only look at
text runs of top level paragraphs; the first match always wins.

A "line" here is a single text run compared with surrounding whitespace
stripped, which matches a plain paragraph with no mixed styling.  A
paragraph with a bold word in it is several runs and won't match as a
whole line.

Offsets are in UTF-16 code units like the API's own indexes.
"""
from typing import Tuple

from ..errors import InvalidRangeError, TableNotFoundError, TextNotFoundError
from .resources import Document, ParagraphElement, StructuralElement, Table, TableCell, utf16_len


def end_of_body(doc: Document) -> int:
    """End index of the last structural element in the body."""
    if not doc.content:
        raise InvalidRangeError("document body has no content", doc.documentId)
    return doc.content[-1].endIndex


def append_index(doc: Document) -> int:
    """
    Where appended content goes: just before the body's final newline,
    which can never be deleted or inserted after.
    """
    return end_of_body(doc) - 1


def find_line(doc: Document, line: str) -> ParagraphElement:
    for elem in doc.text_runs():
        if elem.text.strip() == line:
            return elem
    raise TextNotFoundError("line", line, doc.documentId)


def find_lines(doc: Document, start_line: str, end_line: str) -> Tuple[int, int]:
    """
    Start indexes of the first run matching start_line and the first
    (other) run matching end_line.  A run equal to both only counts as the
    start, so identical start and end lines need two occurrences.
    """
    start = end = -1
    for elem in doc.text_runs():
        content = elem.text.strip()
        if content == start_line and start == -1:
            start = elem.startIndex
        elif content == end_line and end == -1:
            end = elem.startIndex
        if start != -1 and end != -1:
            break
    if start == -1:
        raise TextNotFoundError("start line", start_line, doc.documentId)
    if end == -1:
        raise TextNotFoundError("end line", end_line, doc.documentId)
    if start >= end:
        raise InvalidRangeError("start line occurs after end line", doc.documentId)
    return start, end


def find_pattern(doc: Document, pattern: str) -> Tuple[int, int]:
    """
    Document offsets (start, end) of the first occurrence of pattern
    within a single text run.
    """
    if not pattern:
        raise ValueError("search pattern must not be empty")
    for elem in doc.text_runs():
        idx = elem.text.find(pattern)
        if idx != -1:
            start = elem.startIndex + utf16_len(elem.text[:idx])
            return start, start + utf16_len(pattern)
    raise TextNotFoundError("text", pattern, doc.documentId)


def find_table(doc: Document, table_index: int) -> StructuralElement:
    """The table_index'th (0 based) table in the body."""
    tables = doc.tables()
    if table_index < 0 or table_index >= len(tables):
        raise TableNotFoundError(f"table at index {table_index} not found, document has {len(tables)}",
                                 doc.documentId)
    return tables[table_index]


def table_cell(table: Table, row: int, column: int) -> TableCell:
    if row < 0 or row >= len(table.tableRows):
        raise TableNotFoundError(f"row {row} out of range, table has {len(table.tableRows)} rows")
    cells = table.tableRows[row].tableCells
    if column < 0 or column >= len(cells):
        raise TableNotFoundError(f"column {column} out of range, row {row} has {len(cells)} cells")
    return cells[column]
