"""Clients for the external services the summary service depends on."""

from booksummary.clients.books import GoogleBooksClient, SearchOutcome
from booksummary.clients.cache import CacheStore, CacheStoreError

__all__ = ["CacheStore", "CacheStoreError", "GoogleBooksClient", "SearchOutcome"]
