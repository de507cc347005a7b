from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.reactive import reactive
from textual.widgets import ListItem, Static
from rich.text import Text

from .datamodels import (
    Article,
    Folder,
    FrontPage,
    SavedArticle,
    SavedSearch,
    TopNewsCluster,
)


# --- UI Widgets ---
class ArticleItem(ListItem):
    def __init__(self, article: Article, saved: bool = False):
        super().__init__()
        self.article = article
        self.saved = saved

    def compose(self) -> ComposeResult:
        with Horizontal(classes="article-container"):
            yield Static("★" if self.saved else " ", classes="article-flag")
            yield Static(Text(self.article.title), classes="article-title")
            yield Static(Text(self.article.domain), classes="article-domain")
            yield Static((self.article.publish_date or "")[:10], classes="article-date")

    def mark_saved(self) -> None:
        self.saved = True
        self.add_class("saved")
        self.query_one(".article-flag", Static).update("★")


class ClusterItem(ListItem):
    def __init__(self, cluster: TopNewsCluster):
        super().__init__()
        self.cluster = cluster

    def compose(self) -> ComposeResult:
        with Horizontal(classes="article-container"):
            yield Static(f"+{len(self.cluster.related)}", classes="article-flag")
            yield Static(Text(self.cluster.lead.title), classes="article-title")
            yield Static(Text(self.cluster.lead.domain), classes="article-domain")


class FrontPageItem(ListItem):
    def __init__(self, page: FrontPage):
        super().__init__()
        self.page = page

    def compose(self) -> ComposeResult:
        country = f" ({self.page.country.upper()})" if self.page.country else ""
        yield Static(Text(f"{self.page.source_name}{country} - {self.page.date}"))


class LoadMoreItem(ListItem):
    def compose(self) -> ComposeResult:
        yield Static("[b]+ Load more[/b]")


class SavedSearchItem(ListItem):
    def __init__(self, search: SavedSearch):
        super().__init__()
        self.search = search

    def compose(self) -> ComposeResult:
        yield Static(Text.assemble(self.search.name, "  ", (self.search.text, "dim")))


class FolderItem(ListItem):
    def __init__(self, folder: Folder, count: int):
        super().__init__()
        self.folder = folder
        self.count = count

    def compose(self) -> ComposeResult:
        yield Static(Text(f"{self.folder.name} ({self.count})"))


class SavedArticleItem(ListItem):
    def __init__(self, article: SavedArticle):
        super().__init__()
        self.article = article

    def compose(self) -> ComposeResult:
        yield Static(Text(self.article.title))


class StatusBar(Static):
    loading_status = reactive("")
    keybinding_hint = reactive("")

    def on_mount(self) -> None:
        self.update_display()

    def set_keybindings(self, hint: str) -> None:
        self.keybinding_hint = hint

    def update_display(self) -> None:
        status_items = [s for s in (self.loading_status, self.keybinding_hint) if s]
        self.update(" | ".join(status_items))

    def watch_loading_status(self, loading_status: str) -> None:
        self.update_display()

    def watch_keybinding_hint(self, keybinding_hint: str) -> None:
        self.update_display()


class ErrorMessage(Static):
    def __init__(self, message: str):
        super().__init__(Text(message, style="bold red"))
