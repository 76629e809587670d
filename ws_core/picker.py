"""Interactive fuzzy picker (textual).

The picker owns the terminal until the user chooses an item or cancels.
Filtering never reorders: surviving items keep the caller's order.
"""

from typing import Iterable, Optional

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Input, Label, OptionList
from textual.widgets.option_list import Option

from ws_core.catalog import CatalogItem
from ws_core.paths import configure_logger

_log = configure_logger("ws.picker")


def matches(item: CatalogItem, terms: list[str]) -> bool:
    haystack = f"{item.label} {item.subtitle.plain} {item.key}".casefold()
    return all(t in haystack for t in terms)


def filter_items(items: Iterable[CatalogItem], query: str) -> list[CatalogItem]:
    """Items whose label, subtitle or key contain every word of *query*.

    Matching is case-insensitive.  An empty query keeps everything.
    """
    terms = query.casefold().split()
    return [item for item in items if matches(item, terms)]


def _prompt(item: CatalogItem) -> Text:
    text = Text(item.label, style="bold" if item.active else "")
    if item.subtitle.plain:
        text.append("\n  ")
        text.append_text(item.subtitle)
    return text


class PickerApp(App):
    """Single-list chooser. ``run()`` returns the chosen key or None."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
        Binding("up", "move(-1)", "Up", show=False),
        Binding("down", "move(1)", "Down", show=False),
    ]

    CSS = """
    #picker-container {
        height: 100%;
        padding: 0 1;
    }
    #picker-title {
        text-style: bold;
        margin-bottom: 1;
    }
    #picker-options {
        height: 1fr;
    }
    """

    def __init__(self, title: str, items: list[CatalogItem]):
        super().__init__()
        self._title = title
        self._items = list(items)
        self._visible: list[CatalogItem] = list(self._items)

    def compose(self) -> ComposeResult:
        with Vertical(id="picker-container"):
            yield Label(self._title, id="picker-title")
            yield Input(placeholder="Filter...", id="picker-input")
            yield OptionList(id="picker-options")
            yield Label("[dim]↑↓ navigate  Enter select  Esc cancel[/]")

    def on_mount(self) -> None:
        self._refresh_options()
        self.query_one("#picker-input", Input).focus()

    def _refresh_options(self) -> None:
        options = self.query_one("#picker-options", OptionList)
        options.clear_options()
        options.add_options([Option(_prompt(i), id=i.key) for i in self._visible])
        if self._visible:
            options.highlighted = 0

    def on_input_changed(self, event: Input.Changed) -> None:
        self._visible = filter_items(self._items, event.value)
        self._refresh_options()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        options = self.query_one("#picker-options", OptionList)
        if options.highlighted is None or not self._visible:
            return
        self.exit(self._visible[options.highlighted].key)

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.exit(event.option.id)

    def action_move(self, delta: int) -> None:
        if not self._visible:
            return
        options = self.query_one("#picker-options", OptionList)
        current = options.highlighted or 0
        options.highlighted = max(0, min(len(self._visible) - 1, current + delta))

    def action_cancel(self) -> None:
        self.exit(None)


def pick(title: str, items: list[CatalogItem]) -> Optional[str]:
    """Run the picker. Returns the chosen item's key, or None if cancelled."""
    if not items:
        _log.info("nothing to pick for %r", title)
        return None
    choice = PickerApp(title, items).run()
    _log.debug("picked %r", choice)
    return choice
