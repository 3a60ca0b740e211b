# app/cache.py
"""Path-scoped page cache and the redirect used after successful mutations."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, NoReturn, Optional, Protocol

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


class PathRevalidator(Protocol):
    def revalidate_path(self, path: str) -> None:
        ...


class Navigator(Protocol):
    def redirect(self, path: str) -> NoReturn:
        ...


class PageCache:
    """Rendered views keyed by logical path. Entries live until revalidated."""

    def __init__(self) -> None:
        self._entries: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, path: str) -> Optional[Any]:
        with self._lock:
            return self._entries.get(path)

    def set(self, path: str, rendered: Any) -> None:
        with self._lock:
            self._entries[path] = rendered

    def revalidate_path(self, path: str) -> None:
        with self._lock:
            dropped = self._entries.pop(path, None) is not None
        logger.debug("Revalidated %s (cached=%s)", path, dropped)


class HTTPRedirectNavigator:
    def redirect(self, path: str) -> NoReturn:
        # 303 so the browser follows a form POST with a GET
        raise HTTPException(status_code=status.HTTP_303_SEE_OTHER, headers={"Location": path})


page_cache = PageCache()

__all__ = ["HTTPRedirectNavigator", "Navigator", "PageCache", "PathRevalidator", "page_cache"]
