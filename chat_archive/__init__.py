"""chat-archive: search and browse a local chat archive."""

__version__ = "0.3.0"
