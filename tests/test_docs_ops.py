import pytest

from gwshelper.docs import ops, GoogleDocument, OptionalColor
from gwshelper.docs.requests import DocsUpdateRequest, InsertTextRequest
from gwshelper.errors import InvalidRangeError, NotFoundError, TableNotFoundError, TextNotFoundError

from conftest import batch_body, build_document, http_error

# sample_document layout:
#   Title 1-7, Intro line 7-18, Middle 18-25, Outro line 25-36,
#   2x2 table 36-48 (cell 1,1 starts at 45), trailing newline 48-49


@pytest.fixture
def with_document(docs_service, sample_document):
    docs_service.documents.return_value.get.return_value.execute.return_value = sample_document
    docs_service.documents.return_value.batchUpdate.return_value.execute.return_value = {
        "documentId": "doc-1", "replies": [{}]}
    return docs_service


def test_create(docs_service):
    docs_service.documents.return_value.create.return_value.execute.return_value = build_document(doc_id="new")
    doc = ops.create("My Doc")
    docs_service.documents.return_value.create.assert_called_once_with(body={"title": "My Doc"})
    assert(doc.documentId == "new")


def test_add_text(with_document):
    ops.add_text("doc-1", "Hello, World!")
    with_document.documents.return_value.get.assert_called_with(documentId="doc-1")
    assert(batch_body(with_document) == {
        "requests": [{"insertText": {"text": "Hello, World!", "location": {"index": 48}}}]})


def test_add_text_between_lines(with_document):
    ops.add_text_between_lines("doc-1", "Intro line", "Outro line", "Inserted")
    assert(batch_body(with_document)["requests"] == [
        {"insertText": {"text": "Inserted\n", "location": {"index": 18}}}])


def test_add_text_between_lines_wrong_order(with_document):
    with pytest.raises(InvalidRangeError):
        ops.add_text_between_lines("doc-1", "Outro line", "Intro line", "Inserted")
    with_document.documents.return_value.batchUpdate.assert_not_called()


def test_add_text_after_line(with_document):
    ops.add_text_after_line("doc-1", "Middle", "After middle")
    assert(batch_body(with_document)["requests"] == [
        {"insertText": {"text": "After middle\n", "location": {"index": 25}}}])


def test_add_text_after_line_missing(with_document):
    with pytest.raises(TextNotFoundError):
        ops.add_text_after_line("doc-1", "Not there", "x")
    with_document.documents.return_value.batchUpdate.assert_not_called()


def test_add_text_after_pattern(with_document):
    ops.add_text_after_pattern("doc-1", "Intro", " (updated)")
    assert(batch_body(with_document)["requests"] == [
        {"insertText": {"text": " (updated)", "location": {"index": 12}}}])


def test_add_link_to_text(with_document):
    ops.add_link_to_text("doc-1", "Middle", "https://example.com")
    assert(batch_body(with_document)["requests"] == [
        {"updateTextStyle": {"range": {"startIndex": 18, "endIndex": 24},
                             "textStyle": {"link": {"url": "https://example.com"}},
                             "fields": "link"}}])


def test_add_table(with_document):
    ops.add_table("doc-1", 2, 3)
    assert(batch_body(with_document)["requests"] == [
        {"insertTable": {"rows": 2, "columns": 3, "location": {"index": 48}}}])


def test_add_table_bad_dimensions(with_document):
    with pytest.raises(ValueError):
        ops.add_table("doc-1", 0, 3)


def test_add_text_to_table_cell(with_document):
    ops.add_text_to_table_cell("doc-1", 0, 1, 1, "Cell Text")
    assert(batch_body(with_document)["requests"] == [
        {"insertText": {"text": "Cell Text", "location": {"index": 46}}}])


def test_add_text_to_missing_table(with_document):
    with pytest.raises(TableNotFoundError):
        ops.add_text_to_table_cell("doc-1", 1, 0, 0, "x")
    with pytest.raises(TableNotFoundError):
        ops.add_text_to_table_cell("doc-1", 0, 3, 0, "x")


def test_set_table_cell_color(with_document):
    ops.set_table_cell_color("doc-1", 0, 1, 1, (1.0, 0, 0))
    assert(batch_body(with_document)["requests"] == [
        {"updateTableCellStyle": {
            "tableCellStyle": {"backgroundColor": {"color": {"rgbColor": {"red": 1.0, "green": 0.0, "blue": 0.0}}}},
            "fields": "backgroundColor",
            "tableRange": {"tableCellLocation": {"tableStartLocation": {"index": 36},
                                                 "rowIndex": 1, "columnIndex": 1},
                           "rowSpan": 1, "columnSpan": 1}}}])


def test_color_inputs():
    api_style = {"color": {"rgbColor": {"green": 0.5}}}
    assert(OptionalColor.make(api_style).rgbColor.green == 0.5)
    assert(OptionalColor.make({"blue": 1}).rgbColor.blue == 1.0)
    assert(OptionalColor.make(None).to_base() == {})
    with pytest.raises(ValueError):
        OptionalColor.make((2.0, 0, 0))
    with pytest.raises(ValueError):
        OptionalColor.make("red")


def test_replace_text(docs_service):
    docs_service.documents.return_value.batchUpdate.return_value.execute.return_value = {
        "replies": [{"replaceAllText": {"occurrencesChanged": 3}}]}
    assert(ops.replace_text("doc-1", "{{name}}", "Ada") == 3)
    assert(batch_body(docs_service)["requests"] == [
        {"replaceAllText": {"containsText": {"text": "{{name}}", "matchCase": True}, "replaceText": "Ada"}}])
    # no fetch needed for replacements
    docs_service.documents.return_value.get.assert_not_called()


def test_replace_texts(docs_service):
    docs_service.documents.return_value.batchUpdate.return_value.execute.return_value = {
        "replies": [{"replaceAllText": {"occurrencesChanged": 1}}, {"replaceAllText": {}}]}
    assert(ops.replace_texts("doc-1", {"a": "b", "c": "d"}) == 1)
    requests = batch_body(docs_service)["requests"]
    assert([r["replaceAllText"]["containsText"]["text"] for r in requests] == ["a", "c"])


def test_replace_texts_empty(docs_service):
    assert(ops.replace_texts("doc-1", {}) == 0)
    docs_service.documents.assert_not_called()


def test_insert_text_with_link(docs_service):
    ops.insert_text_with_link("doc-1", "link \U0001F517", "https://example.com", 10)
    requests = batch_body(docs_service)["requests"]
    assert(requests[0] == {"insertText": {"text": "link \U0001F517", "location": {"index": 10}}})
    assert(requests[1]["updateTextStyle"]["range"] == {"startIndex": 10, "endIndex": 17})


def test_get_end_index_and_url(with_document):
    assert(ops.get_end_index("doc-1") == 49)
    assert(ops.document_url("abc") == "https://docs.google.com/document/d/abc/edit")


def test_batch_update_accepts_raw_body(docs_service):
    ops.batchUpdate("doc-1", {"requests": [{"insertText": {"text": "x", "location": {"index": 1}}}]})
    ops.batchUpdate("doc-1", DocsUpdateRequest([InsertTextRequest("y", 2)]))
    calls = docs_service.documents.return_value.batchUpdate.call_args_list
    assert(calls[0].kwargs["body"]["requests"][0]["insertText"]["text"] == "x")
    assert(calls[1].kwargs["body"]["requests"][0]["insertText"]["location"] == {"index": 2})


def test_http_errors_are_translated(docs_service):
    docs_service.documents.return_value.get.return_value.execute.side_effect = http_error(404, "Requested entity was not found.")
    with pytest.raises(NotFoundError) as e:
        ops.add_text("missing", "x")
    assert(e.value.resource_id == "missing")
    assert("unable to retrieve document" in str(e.value))


def test_google_document_wrapper(with_document, drive_service):
    drive_service.files.return_value.copy.return_value.execute.return_value = {
        "id": "copy-1", "name": "Copy", "mimeType": "application/vnd.google-apps.document"}
    doc = GoogleDocument("doc-1")
    assert(doc.url == "https://docs.google.com/document/d/doc-1/edit")
    assert(doc.get().title == "Test Doc")
    assert(doc.title == "Test Doc")

    copied = doc.copy("Copy")
    assert(copied.id == "copy-1")
    drive_service.files.return_value.copy.assert_called_once_with(
        fileId="doc-1", body={"name": "Copy"}, fields="id, name, mimeType, parents, webViewLink",
        supportsAllDrives=True)

    doc.share("someone@example.com", "writer")
    kwargs = drive_service.permissions.return_value.create.call_args.kwargs
    assert(kwargs["sendNotificationEmail"] is False)
    assert(kwargs["body"] == {"type": "user", "role": "writer", "emailAddress": "someone@example.com"})


def test_transfer_ownership_notifies(drive_service):
    drive_service.permissions.return_value.create.return_value.execute.return_value = {"id": "perm-1"}
    ops.add_permission("doc-1", "a@example.com", "owner")
    kwargs = drive_service.permissions.return_value.create.call_args.kwargs
    assert(kwargs["transferOwnership"] is True)
    assert(kwargs["sendNotificationEmail"] is True)
