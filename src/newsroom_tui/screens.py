from __future__ import annotations

import webbrowser
from typing import List, Optional, Tuple

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen, Screen
from textual.widgets import (
    Button,
    Footer,
    Header,
    Input,
    Label,
    ListItem,
    ListView,
    Markdown,
    Select,
)

from rich.text import Text

from .datamodels import Article, Folder, SavedArticle, TopNewsCluster


# --- Dialogs ---
class ConfirmScreen(ModalScreen[bool]):
    """Yes/no question asked before anything destructive."""

    BINDINGS = [Binding("escape,n", "cancel", "Cancel"), Binding("y", "confirm", "Yes")]

    def __init__(self, message: str, confirm_label: str = "Delete"):
        super().__init__()
        self.prompt_text = message
        self.confirm_label = confirm_label

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Label(Text(self.prompt_text), classes="dialog-message")
            with Horizontal(classes="dialog-buttons"):
                yield Button("Cancel", id="cancel")
                yield Button(self.confirm_label, id="confirm", variant="error")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "confirm")

    def action_cancel(self) -> None:
        self.dismiss(False)

    def action_confirm(self) -> None:
        self.dismiss(True)


class InputScreen(ModalScreen[Optional[str]]):
    """Text prompt; dismisses with the stripped value, or None if cancelled."""

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, title: str, message: str, default: str = ""):
        super().__init__()
        self.title_text = title
        self.prompt_text = message
        self.default = default

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Label(f"[b]{self.title_text}[/b]")
            yield Label(Text(self.prompt_text))
            yield Input(value=self.default, id="dialog-input")
            with Horizontal(classes="dialog-buttons"):
                yield Button("Cancel", id="cancel")
                yield Button("OK", id="ok", variant="primary")

    def on_mount(self) -> None:
        self.query_one("#dialog-input", Input).focus()

    def _submit(self) -> None:
        value = self.query_one("#dialog-input", Input).value.strip()
        self.dismiss(value or None)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self._submit()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "ok":
            self._submit()
        else:
            self.dismiss(None)

    def action_cancel(self) -> None:
        self.dismiss(None)


NEW_FOLDER = "__new__"


class FolderPickerScreen(ModalScreen[Optional[str]]):
    """Pick a folder to save into; returns its id, NEW_FOLDER, or None."""

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, folders: List[Folder]):
        super().__init__()
        self.folders = folders

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Label("[b]Save to folder[/b]")
            items = [ListItem(Label(Text(f.name)), id=f"folder-{i}") for i, f in enumerate(self.folders)]
            items.append(ListItem(Label("+ Create folder..."), id="folder-new"))
            yield ListView(*items, id="folder-picker")

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        item_id = event.item.id or ""
        if item_id == "folder-new":
            self.dismiss(NEW_FOLDER)
        else:
            self.dismiss(self.folders[int(item_id.split("-", 1)[1])].id)

    def action_cancel(self) -> None:
        self.dismiss(None)


class SettingsScreen(ModalScreen[Optional[dict]]):
    """API key and default filters."""

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(
        self,
        api_key: str,
        default_country: str,
        default_language: str,
        country_options: List[Tuple[str, str]],
        language_options: List[Tuple[str, str]],
    ):
        super().__init__()
        self.api_key = api_key
        self.default_country = default_country
        self.default_language = default_language
        self.country_options = country_options
        self.language_options = language_options

    def compose(self) -> ComposeResult:
        codes = {code for _, code in self.country_options}
        languages = {code for _, code in self.language_options}
        with Vertical(classes="dialog"):
            yield Label("[b]Settings[/b]")
            yield Label("World News API key", classes="settings-label")
            yield Input(value=self.api_key, password=True, id="settings-api-key")
            yield Label("Default country", classes="settings-label")
            yield Select(
                self.country_options,
                value=self.default_country if self.default_country in codes else Select.BLANK,
                id="settings-country",
                prompt="Any Country",
            )
            yield Label("Default language", classes="settings-label")
            yield Select(
                self.language_options,
                value=self.default_language if self.default_language in languages else Select.BLANK,
                id="settings-language",
                prompt="Any Language",
            )
            with Horizontal(classes="dialog-buttons"):
                yield Button("Cancel", id="cancel")
                yield Button("Save", id="save", variant="primary")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id != "save":
            self.dismiss(None)
            return
        country = self.query_one("#settings-country", Select).value
        language = self.query_one("#settings-language", Select).value
        self.dismiss(
            {
                "api_key": self.query_one("#settings-api-key", Input).value,
                "default_country": "" if country is Select.BLANK else country,
                "default_language": "" if language is Select.BLANK else language,
            }
        )

    def action_cancel(self) -> None:
        self.dismiss(None)


# --- Article screen ---
class ArticleViewScreen(Screen):
    BINDINGS = [
        Binding("escape,q,left", "app.pop_screen", "Back"),
        Binding("o", "open_in_browser", "Open in browser"),
    ]

    def __init__(
        self,
        article: Article | SavedArticle,
        cluster: Optional[TopNewsCluster] = None,
    ):
        super().__init__()
        self.article = article
        self.cluster = cluster

    def compose(self) -> ComposeResult:
        yield Header()
        yield VerticalScroll(Markdown(self._article_markdown(), id="article-markdown"), id="article-scroll")
        yield Footer()

    def _article_markdown(self) -> str:
        parts = [f"# {self.article.title}\n"]
        published = getattr(self.article, "publish_date", None)
        if published:
            parts.append(f"*{published}*\n")
        parts.append(self.article.summary or "_No summary available._")
        parts.append(f"\n\n[{self.article.url}]({self.article.url})")
        if self.cluster and self.cluster.related:
            parts.append("\n\n---\n\n## Also reported\n")
            parts.extend(f"- [{a.title}]({a.url})" for a in self.cluster.related)
        return "\n".join(parts)

    def on_mount(self) -> None:
        self.title = self.article.title
        self.query_one("#article-scroll").focus()

    def action_open_in_browser(self) -> None:
        if self.article.url:
            webbrowser.open(self.article.url)


