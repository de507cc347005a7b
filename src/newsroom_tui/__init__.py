"""Terminal client for browsing and saving news from the World News API."""

__version__ = "0.1.0"
