"""Place search package."""

from search.services.search_service import SearchDebouncer

__all__ = ["SearchDebouncer"]
