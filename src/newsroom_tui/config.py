from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from datetime import datetime
from typing import Any, Dict, Optional

from .errors import PersistenceError

# --- Configuration ---
API_BASE_URL = "https://api.worldnewsapi.com"
HTTP_TIMEOUT = 15

SEARCH_PAGE_SIZE = 25
TOP_NEWS_COUNT = 20
FRONT_PAGE_BATCH_TARGET = 10
FRONT_PAGE_CONCURRENCY = 6

SETTINGS_PATH = os.environ.get(
    "NEWSROOM_SETTINGS", os.path.expanduser("~/.config/newsroom/settings.json")
)

REQUEST_HEADERS = {
    "User-Agent": "newsroom-tui/0.1 (+https://worldnewsapi.com)",
    "Accept": "application/json",
}

DEFAULT_SETTINGS: Dict[str, Any] = {
    "apiKey": "",
    "savedSearches": [],
    "folders": [],
    "savedNews": {},
    "preferences": {
        "defaultCountry": "us",
        "defaultLanguage": "en",
        "theme": "textual-dark",
    },
}

# --- Logging ---
logger = logging.getLogger("newsroom")


def setup_logging(debug: bool = False) -> Optional[str]:
    """Configure logging."""
    if not debug:
        logging.basicConfig(level=logging.CRITICAL, handlers=[logging.NullHandler()])
        return None

    ts = datetime.now().strftime("%Y%m%dT%H%M%S")
    pid = os.getpid()
    debug_path = os.path.join(tempfile.gettempdir(), f"newsroom_debug_{ts}_{pid}.log")

    logging.basicConfig(
        level=logging.DEBUG,
        filename=debug_path,
        filemode="a",
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    logger.debug("Debug logging enabled to %s", debug_path)
    return debug_path


def default_settings() -> Dict[str, Any]:
    return copy.deepcopy(DEFAULT_SETTINGS)


def _with_defaults(settings: Dict[str, Any]) -> Dict[str, Any]:
    merged = default_settings()
    for key, value in settings.items():
        if key == "preferences" and isinstance(value, dict):
            merged["preferences"].update(value)
        else:
            merged[key] = value
    return merged


def ensure_settings_file_exists(path: Optional[str] = None) -> None:
    """Write the default settings document if the user's file is not found."""
    path = path or SETTINGS_PATH
    if os.path.exists(path):
        return
    logger.info("Settings file not found at %s, creating default.", path)
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w") as f:
            json.dump(default_settings(), f, indent=2)
    except OSError as e:
        logger.error("Failed to create default settings file: %s", e)


def load_settings(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the settings document, falling back to defaults when unreadable."""
    path = path or SETTINGS_PATH
    ensure_settings_file_exists(path)
    try:
        with open(path, "r") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("settings document is not an object")
        logger.info("Loaded settings from %s", path)
        return _with_defaults(data)
    except (OSError, ValueError) as e:
        logger.error("Failed to load settings from %s: %s", path, e)
        return default_settings()


def save_settings(settings: Dict[str, Any], path: Optional[str] = None) -> None:
    """Write the whole settings document."""
    path = path or SETTINGS_PATH
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w") as f:
            json.dump(settings, f, indent=2)
        logger.info("Saved settings to %s", path)
    except (OSError, TypeError) as e:
        logger.error("Failed to save settings to %s: %s", path, e)
        raise PersistenceError(f"Could not save settings: {e}") from e


NEWS_CATEGORIES = [
    "politics",
    "sports",
    "business",
    "technology",
    "entertainment",
    "health",
    "science",
    "lifestyle",
    "travel",
    "culture",
    "education",
    "environment",
    "other",
]

# ISO 3166-1 alpha-2 codes offered by the search and top news country selectors
SUPPORTED_COUNTRY_CODES = (
    "ad ae af ag ai al am ao aq ar as at au aw ax az "
    "ba bb bd be bf bg bh bi bj bl bm bn bo bq br bs bt bv bw by bz "
    "ca cc cd cf cg ch ci ck cl cm cn co cr cu cv cw cx cy cz "
    "de dj dk dm do dz "
    "ec ee eg eh er es et "
    "fi fj fk fm fo fr "
    "ga gb gd ge gf gg gh gi gl gm gn gp gq gr gs gt gu gw gy "
    "hk hm hn hr ht hu "
    "id ie il im in io iq ir is it "
    "je jm jo jp "
    "ke kg kh ki km kn kp kr kw ky kz "
    "la lb lc li lk lr ls lt lu lv ly "
    "ma mc md me mf mg mh mk ml mm mn mo mp mq mr ms mt mu mv mw mx my mz "
    "na nc ne nf ng ni nl no np nr nu nz "
    "om "
    "pa pe pf pg ph pk pl pm pn pr ps pt pw py "
    "qa "
    "re ro rs ru rw "
    "sa sb sc sd se sg sh si sj sk sl sm sn so sr ss st sv sx sy sz "
    "tc td tf tg th tj tk tl tm tn to tr tt tv tw tz "
    "ua ug um us uy uz "
    "va vc ve vg vi vn vu "
    "wf ws "
    "ye yt "
    "za zm zw"
).split()

# ISO 639-1 languages the World News API indexes
SUPPORTED_LANGUAGES = {
    "ar": "Arabic",
    "bg": "Bulgarian",
    "ca": "Catalan",
    "cs": "Czech",
    "da": "Danish",
    "de": "German",
    "el": "Greek",
    "en": "English",
    "es": "Spanish",
    "et": "Estonian",
    "fi": "Finnish",
    "fr": "French",
    "he": "Hebrew",
    "hi": "Hindi",
    "hr": "Croatian",
    "hu": "Hungarian",
    "id": "Indonesian",
    "it": "Italian",
    "ja": "Japanese",
    "ko": "Korean",
    "lt": "Lithuanian",
    "lv": "Latvian",
    "ms": "Malay",
    "nl": "Dutch",
    "no": "Norwegian",
    "pl": "Polish",
    "pt": "Portuguese",
    "ro": "Romanian",
    "ru": "Russian",
    "sk": "Slovak",
    "sl": "Slovene",
    "sv": "Swedish",
    "th": "Thai",
    "tr": "Turkish",
    "uk": "Ukrainian",
    "vi": "Vietnamese",
    "zh": "Chinese",
}

# (label, value) pairs for the "From" date shortcut selector
EARLIEST_DATE_PRESETS = [
    ("Yesterday", "yesterday"),
    ("Past week", "week"),
    ("Past month", "month"),
    ("Year to date", "year"),
]

# Default UI settings
UI_DEFAULTS = {
    "statusbar_keybindings": (
        "[b {color}]s[/] settings, [b {color}]f[/] save to folder, "
        "[b {color}]ctrl+s[/] save search, [b {color}]d[/] delete"
    ),
}
