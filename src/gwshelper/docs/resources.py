"""
Class implementations of the Docs resources we need to read.
Only the body structure is modelled: paragraphs made of text runs, and
tables made of rows and cells which themselves hold structural elements.
Everything else in a document response (styles, lists, headers, tabs...)
is dropped by from_base().
Nested fields arrive as dicts and are converted in fixup() so that
asdict() still works on the way back out.
"""
from dataclasses import dataclass, field
from typing import List

from ..resources import GoogleWorkSpaceResourceBase


def utf16_len(text: str) -> int:
    """
    Docs indexes count UTF-16 code units, so anything outside the BMP
    (emoji mostly) counts as 2.
    """
    return len(text.encode("utf-16-le")) // 2


@dataclass
class TextRun(GoogleWorkSpaceResourceBase):
    """https://developers.google.com/docs/api/reference/rest/v1/documents#textrun"""
    content: str = field(default="")
    textStyle: dict|None = field(default=None)


@dataclass
class ParagraphElement(GoogleWorkSpaceResourceBase):
    """
    https://developers.google.com/docs/api/reference/rest/v1/documents#paragraphelement
    Only textRun is modelled, other element kinds (inline objects, page breaks...)
    still carry their indexes.
    """
    startIndex: int = field(default=0)
    endIndex: int = field(default=0)
    textRun: TextRun|dict|None = field(default=None)

    def __post_init__(self) -> None:
        self.fixup()

    def fixup(self) -> None:
        if self.textRun is not None and not isinstance(self.textRun, TextRun):
            self.textRun = TextRun.from_base(self.textRun)

    @property
    def text(self) -> str:
        return self.textRun.content if self.textRun else ""


@dataclass
class Paragraph(GoogleWorkSpaceResourceBase):
    """https://developers.google.com/docs/api/reference/rest/v1/documents#paragraph"""
    elements: List[ParagraphElement|dict] = field(default_factory=list)
    paragraphStyle: dict|None = field(default=None)

    def __post_init__(self) -> None:
        self.fixup()

    def fixup(self) -> None:
        self.elements = [e if isinstance(e, ParagraphElement) else ParagraphElement.from_base(e)
                         for e in self.elements or []]


@dataclass
class TableCell(GoogleWorkSpaceResourceBase):
    """https://developers.google.com/docs/api/reference/rest/v1/documents#tablecell"""
    startIndex: int = field(default=0)
    endIndex: int = field(default=0)
    content: List["StructuralElement"] = field(default_factory=list)
    tableCellStyle: dict|None = field(default=None)

    def __post_init__(self) -> None:
        self.fixup()

    def fixup(self) -> None:
        self.content = [c if isinstance(c, StructuralElement) else StructuralElement.from_base(c)
                        for c in self.content or []]


@dataclass
class TableRow(GoogleWorkSpaceResourceBase):
    """https://developers.google.com/docs/api/reference/rest/v1/documents#tablerow"""
    startIndex: int = field(default=0)
    endIndex: int = field(default=0)
    tableCells: List[TableCell|dict] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.fixup()

    def fixup(self) -> None:
        self.tableCells = [c if isinstance(c, TableCell) else TableCell.from_base(c)
                           for c in self.tableCells or []]


@dataclass
class Table(GoogleWorkSpaceResourceBase):
    """https://developers.google.com/docs/api/reference/rest/v1/documents#table"""
    rows: int = field(default=0)
    columns: int = field(default=0)
    tableRows: List[TableRow|dict] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.fixup()

    def fixup(self) -> None:
        self.tableRows = [r if isinstance(r, TableRow) else TableRow.from_base(r)
                          for r in self.tableRows or []]


@dataclass
class StructuralElement(GoogleWorkSpaceResourceBase):
    """
    https://developers.google.com/docs/api/reference/rest/v1/documents#structuralelement
    A union, at most one of paragraph/table/sectionBreak is set.  The first
    section break of a body has no startIndex so that defaults to 0.
    """
    startIndex: int = field(default=0)
    endIndex: int = field(default=0)
    paragraph: Paragraph|dict|None = field(default=None)
    table: Table|dict|None = field(default=None)
    sectionBreak: dict|None = field(default=None)

    def __post_init__(self) -> None:
        self.fixup()

    def fixup(self) -> None:
        if self.paragraph is not None and not isinstance(self.paragraph, Paragraph):
            self.paragraph = Paragraph.from_base(self.paragraph)
        if self.table is not None and not isinstance(self.table, Table):
            self.table = Table.from_base(self.table)


@dataclass
class Body(GoogleWorkSpaceResourceBase):
    """https://developers.google.com/docs/api/reference/rest/v1/documents#body"""
    content: List[StructuralElement|dict] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.fixup()

    def fixup(self) -> None:
        self.content = [c if isinstance(c, StructuralElement) else StructuralElement.from_base(c)
                        for c in self.content or []]


@dataclass
class Document(GoogleWorkSpaceResourceBase):
    """
    https://developers.google.com/docs/api/reference/rest/v1/documents#resource:-document
    """
    documentId: str|None = field(default=None)
    title: str|None = field(default=None)
    revisionId: str|None = field(default=None)
    body: Body|dict|None = field(default=None)

    def __post_init__(self) -> None:
        self.fixup()

    def fixup(self) -> None:
        if self.body is None:
            self.body = Body()
        elif not isinstance(self.body, Body):
            self.body = Body.from_base(self.body)

    def __bool__(self) -> bool:
        return bool(self.documentId)

    def __str__(self) -> str:
        if self:
            return f"{self.title}<{self.documentId}>"
        return "<empty>"

    def __repr__(self) -> str:
        return f"{str(self.__class__)}:{str(self)}"

    @property
    def content(self) -> List[StructuralElement]:
        return self.body.content

    def text_runs(self):
        """
        Yield every text run element in body order.  Only top level paragraphs,
        text inside table cells isn't searched.
        """
        for element in self.content:
            if element.paragraph is None:
                continue
            for elem in element.paragraph.elements:
                if elem.textRun is not None and elem.textRun.content:
                    yield elem

    def tables(self) -> List[StructuralElement]:
        return [e for e in self.content if e.table is not None]


@dataclass
class RgbColor(GoogleWorkSpaceResourceBase):
    """
    https://developers.google.com/docs/api/reference/rest/v1/documents#rgbcolor
    Components are 0.0-1.0
    """
    red: float = field(default=0.0)
    green: float = field(default=0.0)
    blue: float = field(default=0.0)

    def __post_init__(self) -> None:
        self.fixup()

    def fixup(self) -> None:
        for name in ("red", "green", "blue"):
            v = float(getattr(self, name))
            if not 0.0 <= v <= 1.0:
                raise ValueError(f"Invalid RgbColor {name} component: {v}")
            setattr(self, name, v)


@dataclass
class OptionalColor(GoogleWorkSpaceResourceBase):
    """
    https://developers.google.com/docs/api/reference/rest/v1/documents#optionalcolor
    An unset rgbColor means transparent.
    """
    rgbColor: RgbColor|dict|None = field(default=None)

    def __post_init__(self) -> None:
        self.fixup()

    def fixup(self) -> None:
        if self.rgbColor is not None and not isinstance(self.rgbColor, RgbColor):
            self.rgbColor = RgbColor.from_base(self.rgbColor)

    @classmethod
    def rgb(cls, red: float, green: float, blue: float) -> "OptionalColor":
        return cls(RgbColor(red, green, blue))

    @classmethod
    def make(cls, color: "OptionalColor|RgbColor|tuple|dict|None") -> "OptionalColor":
        """
        Accept whatever a caller is likely to have: one of ours, an (r,g,b)
        tuple, the API's {'color': {'rgbColor': {...}}} dict or a bare rgb dict.
        """
        if isinstance(color, OptionalColor):
            return color
        if isinstance(color, RgbColor):
            return cls(color)
        if color is None:
            return cls()
        if isinstance(color, dict):
            c = color.get("color", color)
            return cls(c.get("rgbColor", c) if c else None)
        if isinstance(color, (tuple, list)) and len(color) == 3:
            return cls.rgb(*color)
        raise ValueError(f"Invalid color: {color!r}")

    def to_base(self) -> dict:
        """The API nests one level deeper than the type name suggests."""
        self.fixup()
        if self.rgbColor is None:
            return {}
        return {"color": {"rgbColor": self.rgbColor.to_base()}}
