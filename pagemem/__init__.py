"""Main-memory server with multi-level paging, swap and memory dumps, and its wire protocol."""

__version__ = "0.1.0"