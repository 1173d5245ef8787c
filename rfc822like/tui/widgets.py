"""rfc822like TUI Widgets - Panels for the record viewer."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.message import Message
from textual.reactive import reactive
from textual.widgets import Label, ListItem, ListView, Static

from rfc822like.document import Record


def record_label(record: Record, index: int) -> str:
    """List label: index plus the first field's value."""
    if not record.fields:
        return f"{index}: (empty)"
    first = record.fields[0]
    value = first.value.split("\n", 1)[0]
    if len(value) > 18:
        value = value[:15] + "..."
    return f"{index}: {value}"


def render_record(record: Record, highlight: str = "") -> Text:
    """Record as rich Text: bold keys, folded values as on the wire."""
    text = Text()
    for f in record:
        text.append(f.key, style="bold cyan")
        text.append(": ")
        lines = f.value.split("\n")
        text.append(lines[0])
        for line in lines[1:]:
            text.append("\n ")
            if line:
                text.append(line)
            else:
                text.append(".", style="dim")
        text.append("\n")
    if highlight:
        text.highlight_words([highlight], style="reverse", case_sensitive=False)
    return text


class RecordList(ListView):
    """Records of the file, one line each. Supports keyboard navigation."""

    DEFAULT_CSS = """
    RecordList {
        width: 28;
        border: solid $accent;
    }
    RecordList > ListItem {
        padding: 0 1;
    }
    RecordList > ListItem.--highlight {
        background: $accent;
    }
    """

    class RecordSelected(Message):
        """Fired when a record is selected."""

        def __init__(self, record_index: int) -> None:
            self.record_index = record_index
            super().__init__()

    def __init__(self, records: list[Record], indices: list[int], **kwargs) -> None:
        self._records = records
        self._indices = indices
        super().__init__(**kwargs)

    def compose(self) -> ComposeResult:
        for i in self._indices:
            yield ListItem(Label(record_label(self._records[i], i)))

    def set_indices(self, indices: list[int]) -> None:
        """Replace the listed records."""
        self._indices = indices
        self.clear()
        for i in indices:
            self.append(ListItem(Label(record_label(self._records[i], i))))
        self.index = 0 if indices else None

    def _post_selected(self) -> None:
        pos = self.index or 0
        if 0 <= pos < len(self._indices):
            self.post_message(self.RecordSelected(self._indices[pos]))

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        self._post_selected()

    def on_list_view_highlighted(self, event: ListView.Highlighted) -> None:
        self._post_selected()


class FieldPanel(Static):
    """Fields of the selected record."""

    DEFAULT_CSS = """
    FieldPanel {
        border: solid $accent;
        padding: 1;
        overflow: auto;
    }
    FieldPanel .record-title {
        text-style: bold;
        color: $accent;
        margin-bottom: 1;
    }
    """

    current_record = reactive(-1)

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._title_widget: Label | None = None
        self._body_widget: Static | None = None

    def compose(self) -> ComposeResult:
        self._title_widget = Label("Select a record", classes="record-title")
        self._body_widget = Static("")
        yield self._title_widget
        yield self._body_widget

    def show_record(self, index: int, record: Record, highlight: str = "") -> None:
        self.current_record = index
        if self._title_widget:
            self._title_widget.update(f"--- record {index} (line {record.line}) ---")
        if self._body_widget:
            self._body_widget.update(render_record(record, highlight))
        self.scroll_home()
