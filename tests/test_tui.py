"""
TUI Tests - Helpers behind the record viewer (needs the tui extra).
"""

import pytest

pytest.importorskip("textual")

from rfc822like.document import Record
from rfc822like.tui.viewer import matching_records
from rfc822like.tui.widgets import record_label, render_record


RECORDS = [
    Record.from_pairs({"Package": "hello", "Depends": "libc6"}),
    Record.from_pairs({"Package": "hello-doc", "Section": "doc"}),
    Record.from_pairs({"Source": "a-very-long-source-package-name"}),
]


class TestRecordLabel:

    def test_first_value(self):
        assert record_label(RECORDS[0], 0) == "0: hello"

    def test_truncated(self):
        assert record_label(RECORDS[2], 2) == "2: a-very-long-sou..."

    def test_multiline_uses_first_line(self):
        record = Record.from_pairs({"Description": "short\nlong text"})
        assert record_label(record, 5) == "5: short"

    def test_empty(self):
        assert record_label(Record(), 1) == "1: (empty)"


class TestRenderRecord:

    def test_folded_like_the_file(self):
        record = Record.from_pairs({"Description": "a\n\nb"})
        assert render_record(record).plain == "Description: a\n .\n b\n"

    def test_keys_styled(self):
        text = render_record(RECORDS[0])
        styles = {str(span.style) for span in text.spans}
        assert "bold cyan" in styles


class TestMatchingRecords:

    def test_empty_query_matches_all(self):
        assert matching_records(RECORDS, "  ") == [0, 1, 2]

    def test_matches_values(self):
        assert matching_records(RECORDS, "HELLO") == [0, 1]

    def test_matches_keys(self):
        assert matching_records(RECORDS, "section") == [1]

    def test_no_match(self):
        assert matching_records(RECORDS, "zzz") == []
