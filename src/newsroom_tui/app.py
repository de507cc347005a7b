from __future__ import annotations

import logging
import webbrowser
from typing import Any, Callable, Container, Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import (
    Button,
    Header,
    Input,
    ListItem,
    ListView,
    Select,
    Static,
    TabbedContent,
    TabPane,
)
from textual.worker import Worker, WorkerState

from .config import (
    EARLIEST_DATE_PRESETS,
    NEWS_CATEGORIES,
    SUPPORTED_COUNTRY_CODES,
    SUPPORTED_LANGUAGES,
    UI_DEFAULTS,
)
from .context import AppContext
from .datamodels import Article, FrontPageLoad, SearchCriteria, SearchPage
from .errors import NewsroomError
from .reference import country_options, language_options
from .screens import (
    NEW_FOLDER,
    ArticleViewScreen,
    ConfirmScreen,
    FolderPickerScreen,
    InputScreen,
    SettingsScreen,
)
from .search import earliest_date_preset, suggest_search_name
from .widgets import (
    ArticleItem,
    ClusterItem,
    ErrorMessage,
    FolderItem,
    FrontPageItem,
    LoadMoreItem,
    SavedArticleItem,
    SavedSearchItem,
    StatusBar,
)

logger = logging.getLogger("newsroom")


def _select_value(select: Select) -> str:
    value = select.value
    return "" if value is Select.BLANK or value is None else str(value)


def _set_select(select: Select, value: str, valid: Container[str]) -> None:
    if value and value in valid:
        select.value = value
    else:
        select.clear()


class NewsroomApp(App):
    TITLE = "Newsroom"
    SUB_TITLE = "World News API client"

    CSS = """
    .filters { height: auto; }
    .filters Input { width: 1fr; }
    .filters Select { width: 1fr; }
    .pane { width: 1fr; }
    .pane-title { text-style: bold; padding: 0 1; }
    .article-flag { width: 4; }
    .article-date { width: 12; color: $text-muted; }
    .article-domain { width: 24; color: $text-muted; }
    .article-title { width: 1fr; }
    ArticleItem.saved .article-title { text-style: italic; }
    .dialog {
        width: 60;
        height: auto;
        padding: 1 2;
        border: thick $primary;
        background: $surface;
    }
    ModalScreen { align: center middle; }
    .dialog-buttons { height: auto; align-horizontal: right; }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("s", "show_settings", "Settings"),
        Binding("ctrl+s", "save_search", "Save Search"),
        Binding("f", "save_to_folder", "Save to Folder"),
        Binding("n", "new_folder", "New Folder"),
        Binding("d", "delete", "Delete"),
        Binding("o", "open_in_browser", "Open"),
    ]

    def __init__(
        self,
        context: AppContext,
        theme: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.ctx = context
        self._theme_name = theme
        self.current_folder_id: Optional[str] = None

    def compose(self) -> ComposeResult:
        yield Header()
        with TabbedContent(initial="search-tab"):
            with TabPane("Search", id="search-tab"):
                with Horizontal(classes="filters"):
                    yield Input(placeholder="Keywords", id="search-text")
                    yield Select(
                        language_options(SUPPORTED_LANGUAGES),
                        prompt="Any Language",
                        id="search-language",
                    )
                    yield Select(
                        country_options(SUPPORTED_COUNTRY_CODES),
                        prompt="Any Country",
                        id="search-country",
                    )
                    yield Select(
                        [(c.title(), c) for c in NEWS_CATEGORIES],
                        prompt="Any Category",
                        id="search-category",
                    )
                    yield Select(
                        EARLIEST_DATE_PRESETS, prompt="From...", id="earliest-date-preset"
                    )
                    yield Input(placeholder="From YYYY-MM-DD", id="earliest-date")
                    yield Input(placeholder="To YYYY-MM-DD", id="latest-date")
                    yield Button("Search", id="search-btn", variant="primary")
                    yield Button("Save", id="save-search-btn")
                yield ListView(id="search-results")
            with TabPane("Top News", id="top-news-tab"):
                with Horizontal(classes="filters"):
                    yield Select(
                        country_options(SUPPORTED_COUNTRY_CODES),
                        prompt="Country",
                        id="top-news-country",
                    )
                    yield Select(
                        language_options(SUPPORTED_LANGUAGES),
                        prompt="Any Language",
                        id="top-news-language",
                    )
                    yield Button("Load", id="load-top-news-btn", variant="primary")
                yield ListView(id="top-news-list")
            with TabPane("Front Pages", id="front-pages-tab"):
                with Horizontal(classes="filters"):
                    yield Select([], prompt="Any Country", id="front-pages-country")
                    yield Select(
                        [], prompt="Any Newspaper", id="front-pages-source", disabled=True
                    )
                    yield Input(placeholder="YYYY-MM-DD (today)", id="front-pages-date")
                    yield Button(
                        "Load", id="load-front-pages-btn", variant="primary", disabled=True
                    )
                yield ListView(id="front-pages-list")
            with TabPane("Library", id="library-tab"):
                with Horizontal():
                    with Vertical(classes="pane"):
                        yield Static("Saved searches", classes="pane-title")
                        yield ListView(id="saved-searches-list")
                    with Vertical(classes="pane"):
                        yield Static("Folders", classes="pane-title")
                        yield ListView(id="folders-list")
                    with Vertical(classes="pane"):
                        yield Static("Articles", classes="pane-title")
                        yield ListView(id="folder-articles-list")
        yield StatusBar()

    def on_mount(self) -> None:
        if self._theme_name and self._theme_name in self.available_themes:
            self.theme = self._theme_name

        self._apply_default_filters()
        self._render_library()
        self.query_one(StatusBar).set_keybindings(
            UI_DEFAULTS["statusbar_keybindings"].format(color="$accent")
        )
        self.run_worker(
            self.ctx.load_reference_data, name="reference_loader", thread=True
        )
        if not self.ctx.has_api_key:
            self.notify(
                "No API key configured. Press 's' to open settings.", severity="warning"
            )

    def _apply_default_filters(self) -> None:
        prefs = self.ctx.preferences
        country = prefs.get("defaultCountry", "") or ""
        language = prefs.get("defaultLanguage", "") or ""
        for select_id in ("#search-country", "#top-news-country"):
            _set_select(self.query_one(select_id, Select), country, SUPPORTED_COUNTRY_CODES)
        for select_id in ("#search-language", "#top-news-language"):
            _set_select(self.query_one(select_id, Select), language, SUPPORTED_LANGUAGES)

    # --- workers ---
    def _start(
        self,
        work: Callable[[], Any],
        name: str,
        status: str,
        group: str = "default",
        exclusive: bool = True,
    ) -> None:
        self.query_one(StatusBar).loading_status = status
        self.run_worker(work, name=name, group=group, exclusive=exclusive, thread=True)

    def _busy(self, group: str) -> bool:
        return any(w.group == group and not w.is_finished for w in self.workers)

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        name = getattr(event.worker, "name", None)
        if event.state is WorkerState.ERROR:
            self._handle_worker_error(name, event.worker.error)
            return
        if event.state is not WorkerState.SUCCESS:
            return
        self.query_one(StatusBar).loading_status = ""
        result = event.worker.result
        if name == "reference_loader":
            self._handle_reference_loaded()
        elif name in ("search_loader", "search_more_loader"):
            self._handle_search_page(result)
        elif name == "top_news_loader":
            self._handle_top_news(result)
        elif name in ("front_pages_loader", "front_pages_more_loader"):
            self._handle_front_pages(*result)

    def _handle_worker_error(self, name: Optional[str], error: Optional[BaseException]) -> None:
        self.query_one(StatusBar).loading_status = "Error"
        if isinstance(error, NewsroomError):
            message = str(error)
        else:
            logger.error("Worker %s failed: %s", name, error)
            message = f"Unexpected error: {error}"
        titles = {
            "search_loader": "Search Error",
            "search_more_loader": "Search Error",
            "top_news_loader": "Top News Error",
            "front_pages_loader": "Front Pages Error",
            "front_pages_more_loader": "Front Pages Error",
        }
        self.notify(message, title=titles.get(name, "Error"), severity="error")
        # Give a failed continuation its button back so it can be retried.
        if name == "search_more_loader" and self.ctx.search.state is not None:
            self.query_one("#search-results", ListView).append(LoadMoreItem())
        elif name == "front_pages_more_loader":
            state = self.ctx.front_page_state
            if state is not None and not state.exhausted:
                self.query_one("#front-pages-list", ListView).append(LoadMoreItem())

    # --- reference data / front page filters ---
    def _handle_reference_loaded(self) -> None:
        error = self.ctx.reference_loader.error
        if error:
            self.notify(f"{error} - no newspapers available.", severity="warning")
        filters = self.ctx.filters
        country_sel = self.query_one("#front-pages-country", Select)
        country_sel.set_options(filters.country_options)
        default_country = self.ctx.preferences.get("defaultCountry", "")
        filters.select_country(default_country)
        if filters.country:
            country_sel.value = filters.country
        self._sync_front_page_controls()

    def _sync_front_page_controls(self) -> None:
        filters = self.ctx.filters
        source_sel = self.query_one("#front-pages-source", Select)
        source_sel.set_options(filters.source_options)
        source_sel.disabled = not filters.source_enabled
        self.query_one("#load-front-pages-btn", Button).disabled = not filters.fetch_enabled

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id == "front-pages-country":
            previous = self.ctx.filters.country
            self.ctx.filters.select_country(_select_value(event.select))
            if self.ctx.filters.country != previous:
                self._sync_front_page_controls()
        elif event.select.id == "front-pages-source":
            self.ctx.filters.select_source(_select_value(event.select))
        elif event.select.id == "earliest-date-preset":
            preset = earliest_date_preset(_select_value(event.select))
            if preset is not None:
                self.query_one("#earliest-date", Input).value = preset.isoformat()

    # --- buttons ---
    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "search-btn":
            self.start_search()
        elif button_id == "save-search-btn":
            self.action_save_search()
        elif button_id == "load-top-news-btn":
            self.load_top_news()
        elif button_id == "load-front-pages-btn":
            self.load_front_pages()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id and event.input.id.startswith(("search-", "earliest-", "latest-")):
            self.start_search()

    # --- search ---
    def _read_criteria(self) -> SearchCriteria:
        def value(widget_id: str) -> str:
            return self.query_one(widget_id, Input).value.strip()

        def choice(widget_id: str) -> str:
            return _select_value(self.query_one(widget_id, Select))

        return SearchCriteria(
            text=value("#search-text"),
            language=choice("#search-language"),
            country=choice("#search-country"),
            category=choice("#search-category"),
            earliest_date=value("#earliest-date"),
            latest_date=value("#latest-date"),
        )

    def _fill_criteria(self, criteria: SearchCriteria) -> None:
        self.query_one("#search-text", Input).value = criteria.text
        _set_select(
            self.query_one("#search-language", Select), criteria.language, SUPPORTED_LANGUAGES
        )
        _set_select(
            self.query_one("#search-country", Select), criteria.country, SUPPORTED_COUNTRY_CODES
        )
        _set_select(
            self.query_one("#search-category", Select), criteria.category, NEWS_CATEGORIES
        )
        self.query_one("#earliest-date-preset", Select).clear()
        self.query_one("#earliest-date", Input).value = criteria.earliest_date
        self.query_one("#latest-date", Input).value = criteria.latest_date

    def start_search(self, criteria: Optional[SearchCriteria] = None) -> None:
        criteria = criteria or self._read_criteria()
        if criteria.is_empty():
            self.notify(
                "Enter keywords or choose at least one filter to search.", severity="error"
            )
            return
        self._start(
            lambda: self.ctx.search.start_search(criteria),
            name="search_loader",
            status="Searching...",
            group="search",
        )

    def continue_search(self) -> bool:
        state = self.ctx.search.state
        if state is None or self._busy("search"):
            return False
        self._start(
            lambda: self.ctx.search.continue_search(state),
            name="search_more_loader",
            status="Loading more...",
            group="search",
            exclusive=False,
        )
        return True

    def _handle_search_page(self, page: SearchPage) -> None:
        results = self.query_one("#search-results", ListView)
        for item in list(results.query(LoadMoreItem)):
            item.remove()
        if not page.append:
            results.clear()
            if not page.items:
                results.append(ListItem(ErrorMessage("No news found. Try adjusting your search.")))
                return
        for article in page.items:
            results.append(ArticleItem(article, saved=self.ctx.library.is_saved(article.id)))
        if page.has_more:
            results.append(LoadMoreItem())

    # --- top news ---
    def load_top_news(self) -> None:
        country = _select_value(self.query_one("#top-news-country", Select))
        language = _select_value(self.query_one("#top-news-language", Select))
        self._start(
            lambda: self.ctx.top_news.load(country, language),
            name="top_news_loader",
            status="Loading top news...",
            group="top_news",
        )

    def _handle_top_news(self, clusters) -> None:
        view = self.query_one("#top-news-list", ListView)
        view.clear()
        if not clusters:
            view.append(ListItem(ErrorMessage("No top news found for this country.")))
            return
        for cluster in clusters:
            view.append(ClusterItem(cluster))

    # --- front pages ---
    def load_front_pages(self) -> None:
        date_text = self.query_one("#front-pages-date", Input).value.strip()
        try:
            state = self.ctx.begin_front_pages(date_text or None)
        except NewsroomError as e:
            self.notify(str(e), title="Front Pages", severity="error")
            return
        self.query_one("#front-pages-date", Input).value = state.date.isoformat()
        fetcher = self.ctx.front_pages
        self._start(
            lambda: (state, fetcher.load_initial(state), False),
            name="front_pages_loader",
            status="Loading front pages...",
            group="front_pages",
        )

    def load_more_front_pages(self) -> bool:
        state = self.ctx.front_page_state
        if state is None or state.exhausted or self._busy("front_pages"):
            return False
        fetcher = self.ctx.front_pages
        self._start(
            lambda: (state, fetcher.load_more(state), True),
            name="front_pages_more_loader",
            status="Loading more front pages...",
            group="front_pages",
            exclusive=False,
        )
        return True

    def _handle_front_pages(self, state, load: FrontPageLoad, appending: bool) -> None:
        if not self.ctx.is_current(state):
            logger.debug("Ignoring front pages from a superseded session")
            return
        view = self.query_one("#front-pages-list", ListView)
        for item in list(view.query(LoadMoreItem)):
            item.remove()
        if not appending:
            view.clear()
            if not load.pages:
                view.append(
                    ListItem(
                        ErrorMessage(
                            "No front pages found. Try a different country or date."
                        )
                    )
                )
                return
        for page in load.pages:
            view.append(FrontPageItem(page))
        if load.has_more:
            view.append(LoadMoreItem())

    # --- list selection ---
    def on_list_view_selected(self, event: ListView.Selected) -> None:
        list_id = event.list_view.id
        item = event.item
        if isinstance(item, LoadMoreItem):
            started = False
            if list_id == "search-results":
                started = self.continue_search()
            elif list_id == "front-pages-list":
                started = self.load_more_front_pages()
            if started:
                # The next page brings its own button back.
                item.remove()
        elif isinstance(item, ArticleItem):
            self.push_screen(ArticleViewScreen(item.article))
        elif isinstance(item, ClusterItem):
            self.push_screen(ArticleViewScreen(item.cluster.lead, item.cluster))
        elif isinstance(item, FrontPageItem):
            webbrowser.open(item.page.url)
        elif isinstance(item, SavedSearchItem):
            self._fill_criteria(item.search.criteria)
            self.query_one(TabbedContent).active = "search-tab"
            self.start_search(item.search.criteria)
        elif isinstance(item, FolderItem):
            self.current_folder_id = item.folder.id
            self._render_folder_articles()
        elif isinstance(item, SavedArticleItem):
            self.push_screen(ArticleViewScreen(item.article))

    def _highlighted(self, list_id: str) -> Optional[ListItem]:
        view = self.query_one(list_id, ListView)
        return view.highlighted_child if view.has_focus else None

    def _highlighted_article(self) -> Optional[Article]:
        item = self._highlighted("#search-results")
        if isinstance(item, ArticleItem):
            return item.article
        item = self._highlighted("#top-news-list")
        if isinstance(item, ClusterItem):
            return item.cluster.lead
        return None

    # --- library ---
    def _library_call(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except NewsroomError as e:
            self.notify(str(e), severity="error")
            return None
        finally:
            self._render_library()

    def _render_library(self) -> None:
        library = self.ctx.library
        searches = self.query_one("#saved-searches-list", ListView)
        searches.clear()
        for saved in library.saved_searches():
            searches.append(SavedSearchItem(saved))

        folders = self.query_one("#folders-list", ListView)
        folders.clear()
        for folder in library.folders():
            folders.append(FolderItem(folder, len(library.folder_articles(folder.id))))
        if self.current_folder_id and library.get_folder(self.current_folder_id) is None:
            self.current_folder_id = None
        self._render_folder_articles()

    def _render_folder_articles(self) -> None:
        view = self.query_one("#folder-articles-list", ListView)
        view.clear()
        if not self.current_folder_id:
            return
        for article in self.ctx.library.folder_articles(self.current_folder_id):
            view.append(SavedArticleItem(article))

    def action_save_search(self) -> None:
        criteria = self._read_criteria()
        if criteria.is_empty():
            self.notify("Nothing to save - enter keywords or filters first.", severity="error")
            return

        def _on_name(name: Optional[str]) -> None:
            if not name:
                return
            saved = self._library_call(self.ctx.library.save_search, criteria, name)
            if saved:
                self.notify(f"Saved search '{saved.name}'.")

        self.push_screen(
            InputScreen(
                "Save Search",
                "Enter a name for this search:",
                suggest_search_name(criteria),
            ),
            _on_name,
        )

    def action_new_folder(self, then: Optional[Callable[[str], None]] = None) -> None:
        def _on_name(name: Optional[str]) -> None:
            if not name:
                return
            folder = self._library_call(self.ctx.library.create_folder, name)
            if folder and then:
                then(folder.id)

        self.push_screen(InputScreen("Create Folder", "Enter folder name:"), _on_name)

    def action_save_to_folder(self) -> None:
        article = self._highlighted_article()
        if article is None:
            return

        def _save(folder_id: str) -> None:
            added = self._library_call(self.ctx.library.save_article_to_folder, article, folder_id)
            if added:
                self.notify("Article saved.")
                for item in self.query(ArticleItem):
                    if item.article.id == article.id:
                        item.mark_saved()
            elif added is False:
                self.notify("Already saved in that folder.")

        def _on_pick(choice: Optional[str]) -> None:
            if choice == NEW_FOLDER:
                self.action_new_folder(then=_save)
            elif choice:
                _save(choice)

        self.push_screen(FolderPickerScreen(self.ctx.library.folders()), _on_pick)

    def action_delete(self) -> None:
        library = self.ctx.library
        item = self._highlighted("#saved-searches-list")
        if isinstance(item, SavedSearchItem):
            search_id = item.search.id
            self._confirm(
                "Are you sure you want to delete this saved search?",
                lambda: self._library_call(library.delete_saved_search, search_id),
            )
            return

        item = self._highlighted("#folders-list")
        if isinstance(item, FolderItem):
            folder = item.folder
            count = len(library.folder_articles(folder.id))
            self._confirm(
                f'Are you sure you want to delete "{folder.name}"? '
                f"This will also delete {count} saved articles.",
                lambda: self._library_call(library.delete_folder, folder.id),
            )
            return

        item = self._highlighted("#folder-articles-list")
        if isinstance(item, SavedArticleItem):
            article = item.article
            self._confirm(
                "Are you sure you want to remove this article?",
                lambda: self._library_call(library.remove_article, article.id, article.folderId),
                confirm_label="Remove",
            )

    def _confirm(
        self, message: str, on_yes: Callable[[], Any], confirm_label: str = "Delete"
    ) -> None:
        def _on_answer(confirmed: bool) -> None:
            if confirmed:
                on_yes()

        self.push_screen(ConfirmScreen(message, confirm_label), _on_answer)

    def action_open_in_browser(self) -> None:
        article = self._highlighted_article()
        if article is not None and article.url:
            webbrowser.open(article.url)

    # --- settings ---
    def action_show_settings(self) -> None:
        prefs = self.ctx.preferences
        self.push_screen(
            SettingsScreen(
                api_key=self.ctx.settings.get("apiKey", ""),
                default_country=prefs.get("defaultCountry", ""),
                default_language=prefs.get("defaultLanguage", ""),
                country_options=country_options(SUPPORTED_COUNTRY_CODES),
                language_options=language_options(SUPPORTED_LANGUAGES),
            ),
            self.on_settings_closed,
        )

    def on_settings_closed(self, values: Optional[dict]) -> None:
        if values is None:
            return
        key_changed = values["api_key"].strip() != self.ctx.settings.get("apiKey", "")
        self._library_call(self.ctx.library.update_preferences, **values)
        if key_changed:
            self.ctx.reconfigure()
        self._apply_default_filters()
        self.notify("Settings saved!")

    def watch_theme(self, old_theme: str, new_theme: str) -> None:
        """Remember the theme so the next save keeps it."""
        ctx = getattr(self, "ctx", None)
        if ctx is not None:
            ctx.preferences["theme"] = new_theme
