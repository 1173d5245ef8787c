"""rfc822like TUI Viewer - Record list plus field panel."""

from __future__ import annotations

import sys
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Footer, Header, Input

from rfc822like.document import Record
from rfc822like.errors import RFC822Error
from rfc822like.reader import RFC822Reader
from rfc822like.tui.widgets import FieldPanel, RecordList


def matching_records(records: list[Record], query: str) -> list[int]:
    """Indices of records with query in any key or value (case-insensitive)."""
    query = query.lower().strip()
    if not query:
        return list(range(len(records)))
    return [
        i for i, record in enumerate(records)
        if any(query in f.key.lower() or query in f.value.lower() for f in record)
    ]


class RecordViewerApp(App):
    """TUI viewer for RFC822-like files. 2-panel layout with keyboard navigation."""

    TITLE = "rfc822like viewer"
    CSS = """
    Screen {
        layout: vertical;
    }
    #panes {
        height: 1fr;
    }
    #search-bar {
        dock: bottom;
        display: none;
        height: 3;
        padding: 0 1;
    }
    #search-bar.visible {
        display: block;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("slash", "toggle_search", "Search", show=True),
        Binding("escape", "close_search", "Close search", show=False),
        Binding("j", "next_record", "Next", show=True),
        Binding("k", "prev_record", "Prev", show=True),
    ]

    def __init__(self, records: list[Record], file_name: str = "", **kwargs) -> None:
        super().__init__(**kwargs)
        self._records = records
        self._file_name = file_name
        self._query = ""

    def compose(self) -> ComposeResult:
        if self._file_name:
            self.title = f"rfc822like viewer - {self._file_name}"
        yield Header()
        with Horizontal(id="panes"):
            yield RecordList(self._records, list(range(len(self._records))), id="records")
            yield FieldPanel(id="fields")
        yield Input(placeholder="Search keys and values... (Escape to close)", id="search-bar")
        yield Footer()

    def on_mount(self) -> None:
        """Show the first record on mount."""
        if self._records:
            self._show(0)
        self.query_one("#records", RecordList).focus()

    def _show(self, index: int) -> None:
        self.query_one("#fields", FieldPanel).show_record(index, self._records[index], self._query)

    def on_record_list_record_selected(self, event: RecordList.RecordSelected) -> None:
        self._show(event.record_index)

    def action_next_record(self) -> None:
        self.query_one("#records", RecordList).action_cursor_down()

    def action_prev_record(self) -> None:
        self.query_one("#records", RecordList).action_cursor_up()

    def action_toggle_search(self) -> None:
        """Show/hide the search bar."""
        search = self.query_one("#search-bar", Input)
        search.toggle_class("visible")
        if search.has_class("visible"):
            search.focus()
        else:
            self.action_close_search()

    def action_close_search(self) -> None:
        search = self.query_one("#search-bar", Input)
        search.remove_class("visible")
        search.value = ""
        self._filter("")
        self.query_one("#records", RecordList).focus()

    def on_input_changed(self, event: Input.Changed) -> None:
        """Filter records as the user types."""
        if event.input.id == "search-bar":
            self._filter(event.value)

    def _filter(self, query: str) -> None:
        self._query = query.strip()
        indices = matching_records(self._records, query)
        self.query_one("#records", RecordList).set_indices(indices)
        if indices:
            self._show(indices[0])


def run_viewer(path: str | Path) -> None:
    """Launch the TUI viewer."""
    path = Path(path)
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)
    try:
        records = RFC822Reader.read(path)
    except RFC822Error as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    app = RecordViewerApp(records, file_name=path.name)
    app.run()
