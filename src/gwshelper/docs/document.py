from typing import Self

from . import ops
from .resources import Document, OptionalColor


class GoogleDocument():
    """
    Object wrapper around a document ID so a series of edits doesn't need
    the ID passed each time.  Each edit still fetches the document fresh,
    self.document is only what was last pulled with get().
    """

    def __init__(self, document: Document|dict|str = "") -> None:
        self._document = (Document(documentId=document) if isinstance(document, str) else
                          document if isinstance(document, Document) else
                          Document.from_base(document))

    def __bool__(self) -> bool:
        return bool(self._document)

    def __str__(self) -> str:
        return str(self._document)

    def __repr__(self) -> str:
        return f"{self.__class__}:{str(self)}"

    @property
    def id(self) -> str:
        return self._document.documentId

    @property
    def document(self) -> Document:
        return self._document

    @property
    def title(self) -> str:
        return self._document.title or ""

    @property
    def url(self) -> str:
        return ops.document_url(self.id)

    @staticmethod
    def create(title: str) -> Self:
        return GoogleDocument(ops.create(title))

    def get(self) -> Document:
        doc = ops.get(self.id)
        if doc:
            self._document = doc
        return doc

    def add_text(self, text: str) -> dict:
        return ops.add_text(self.id, text)

    def replace_text(self, old_text: str, new_text: str) -> int:
        return ops.replace_text(self.id, old_text, new_text)

    def replace_texts(self, replacements: dict[str, str]) -> int:
        return ops.replace_texts(self.id, replacements)

    def add_text_between_lines(self, start_line: str, end_line: str, text: str) -> dict:
        return ops.add_text_between_lines(self.id, start_line, end_line, text)

    def add_text_after_line(self, line: str, text: str) -> dict:
        return ops.add_text_after_line(self.id, line, text)

    def add_text_after_pattern(self, pattern: str, text: str) -> dict:
        return ops.add_text_after_pattern(self.id, pattern, text)

    def add_table(self, rows: int, columns: int) -> dict:
        return ops.add_table(self.id, rows, columns)

    def add_text_to_table_cell(self, table_index: int, row: int, column: int, text: str) -> dict:
        return ops.add_text_to_table_cell(self.id, table_index, row, column, text)

    def set_table_cell_color(self, table_index: int, row: int, column: int,
                             color: OptionalColor|tuple|dict) -> dict:
        return ops.set_table_cell_color(self.id, table_index, row, column, color)

    def add_link_to_text(self, search_text: str, url: str) -> dict:
        return ops.add_link_to_text(self.id, search_text, url)

    def insert_text_with_link(self, text: str, url: str, index: int) -> dict:
        return ops.insert_text_with_link(self.id, text, url, index)

    def end_index(self) -> int:
        return ops.get_end_index(self.id)

    def copy(self, title: str) -> Self:
        """Copy and wrap the copy, its content isn't fetched."""
        f = ops.copy(self.id, title)
        return GoogleDocument(Document(documentId=f.id, title=f.name))

    def export_text(self) -> str:
        return ops.export_text(self.id)

    def rename(self, title: str) -> None:
        ops.rename(self.id, title)
        self._document.title = title

    def share(self, email: str, role: str = "reader") -> None:
        ops.add_permission(self.id, email, role)
