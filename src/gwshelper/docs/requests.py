"""
Docs batchUpdate requests.
https://developers.google.com/docs/api/reference/rest/v1/documents/request

Each request class renders as {"<requestName>": {...}} where the key is
derived from the class name, so the class names must match the API.  The
fields are flattened here for convenience (an index rather than a Location,
a url rather than a TextStyle) and nested back out in to_base().
"""
from dataclasses import dataclass, field
from typing import List
import re

from ..resources import GoogleWorkSpaceResourceBase
from .resources import OptionalColor


class DocsRequestBase(GoogleWorkSpaceResourceBase):
    """
    Base class for batchUpdate requests to get the request dict
    into the right format.
    """
    _name_re = re.compile(r"^([A-Z])([a-zA-Z]+)Request$")

    def to_request(self) -> dict[str, dict]:
        # strip the trailing 'Request' and lower case the first letter
        m = self._name_re.match(self.__class__.__name__)
        if not m:
            raise RuntimeError("Invalid Google Docs request format for class name")
        return {m.group(1).lower() + m.group(2): self.to_base()}


def _location(index: int) -> dict:
    if index < 1:
        raise ValueError(f"Invalid document index: {index}, body indexes start at 1")
    return {"index": index}


@dataclass
class InsertTextRequest(DocsRequestBase):
    """https://developers.google.com/docs/api/reference/rest/v1/documents/request#inserttextrequest"""
    text: str
    index: int

    def to_base(self) -> dict:
        return {"text": self.text, "location": _location(self.index)}


@dataclass
class ReplaceAllTextRequest(DocsRequestBase):
    """https://developers.google.com/docs/api/reference/rest/v1/documents/request#replacealltextrequest"""
    text: str
    replaceText: str
    matchCase: bool = field(default=True)

    def to_base(self) -> dict:
        if not self.text:
            raise ValueError("ReplaceAllTextRequest needs non-empty text to match")
        return {"containsText": {"text": self.text, "matchCase": self.matchCase},
                "replaceText": self.replaceText}


@dataclass
class InsertTableRequest(DocsRequestBase):
    """https://developers.google.com/docs/api/reference/rest/v1/documents/request#inserttablerequest"""
    rows: int
    columns: int
    index: int

    def to_base(self) -> dict:
        if self.rows < 1 or self.columns < 1:
            raise ValueError(f"Invalid table dimensions: {self.rows}x{self.columns}")
        return {"rows": self.rows, "columns": self.columns, "location": _location(self.index)}


@dataclass
class UpdateTextStyleRequest(DocsRequestBase):
    """
    https://developers.google.com/docs/api/reference/rest/v1/documents/request#updatetextstylerequest
    Only the link style is supported, the field mask is always 'link'.
    """
    startIndex: int
    endIndex: int
    url: str

    def to_base(self) -> dict:
        if self.startIndex >= self.endIndex:
            raise ValueError(f"Invalid text range: {self.startIndex}-{self.endIndex}")
        return {"range": {"startIndex": self.startIndex, "endIndex": self.endIndex},
                "textStyle": {"link": {"url": self.url}},
                "fields": "link"}


@dataclass
class UpdateTableCellStyleRequest(DocsRequestBase):
    """
    https://developers.google.com/docs/api/reference/rest/v1/documents/request#updatetablecellstylerequest
    Background colour only.  The table is addressed by its start index, the
    cell by row/column within it.
    """
    tableStartIndex: int
    rowIndex: int
    columnIndex: int
    backgroundColor: OptionalColor = field(default_factory=OptionalColor)
    rowSpan: int = field(default=1)
    columnSpan: int = field(default=1)

    def fixup(self) -> None:
        self.backgroundColor = OptionalColor.make(self.backgroundColor)

    def to_base(self) -> dict:
        self.fixup()
        return {
            "tableCellStyle": {"backgroundColor": self.backgroundColor.to_base()},
            "fields": "backgroundColor",
            "tableRange": {
                "tableCellLocation": {
                    "tableStartLocation": {"index": self.tableStartIndex},
                    "rowIndex": self.rowIndex,
                    "columnIndex": self.columnIndex,
                },
                "rowSpan": self.rowSpan,
                "columnSpan": self.columnSpan,
            },
        }


@dataclass
class DocsUpdateRequest(GoogleWorkSpaceResourceBase):
    """
    https://developers.google.com/docs/api/reference/rest/v1/documents/batchUpdate#request-body
    The body of a batchUpdate, requests are applied in order and atomically.
    """
    requests: List[DocsRequestBase|dict] = field(default_factory=list)

    def __bool__(self) -> bool:
        return len(self.requests) > 0

    def __len__(self) -> int:
        return len(self.requests)

    def append(self, request: DocsRequestBase|dict) -> None:
        self.requests.append(request)

    def to_base(self) -> dict:
        return {"requests": [r.to_request() if isinstance(r, DocsRequestBase) else dict(r)
                             for r in self.requests]}
