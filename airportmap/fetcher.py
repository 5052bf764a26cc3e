"""HTTP retrieval and HTML token selection for the scraped airport pages."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional, Sequence

import requests
from bs4 import BeautifulSoup

from .config import DEFAULT_USER_AGENT
from .errors import FetchError

logger = logging.getLogger(__name__)


def build_requests_session(user_agent: str = DEFAULT_USER_AGENT) -> requests.Session:
    session = requests.Session()
    session.headers.update(
        {
            "User-Agent": user_agent,
            "Accept": "text/html,application/xhtml+xml",
        }
    )
    return session


class Fetcher:
    """Fetches raw page text; every failure surfaces as FetchError."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        workers: int = 1,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self.session = session or build_requests_session(user_agent)
        self.timeout = timeout
        self.workers = max(1, int(workers))

    @classmethod
    def from_config(cls, config) -> "Fetcher":
        return cls(timeout=config.timeout_seconds, workers=config.workers, user_agent=config.user_agent)

    def fetch(self, url: str) -> str:
        start = time.perf_counter()
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise FetchError(url, str(exc)) from exc
        logger.debug(
            "fetched page",
            extra={"url": url, "elapsed_ms": round((time.perf_counter() - start) * 1000, 2)},
        )
        return response.text

    def fetch_pages(self, urls: Sequence[str]) -> List[str]:
        """
        Fetch every URL and return the successful pages in input order.

        A page that fails is logged and skipped. Pages may be fetched
        concurrently, but the positional extractors downstream depend on the
        original page order, so results are reassembled by index.
        """
        pages: Dict[int, str] = {}
        if self.workers == 1 or len(urls) <= 1:
            for index, url in enumerate(urls):
                text = self._fetch_or_skip(index, url)
                if text is not None:
                    pages[index] = text
        else:
            with ThreadPoolExecutor(max_workers=self.workers) as ex:
                futures = {ex.submit(self._fetch_or_skip, index, url): index for index, url in enumerate(urls)}
                for fut in as_completed(futures):
                    text = fut.result()
                    if text is not None:
                        pages[futures[fut]] = text

        skipped = len(urls) - len(pages)
        if skipped:
            logger.warning("skipped pages after fetch failures", extra={"dropped": skipped, "rows": len(pages)})
        return [pages[index] for index in sorted(pages)]

    def _fetch_or_skip(self, index: int, url: str) -> Optional[str]:
        try:
            return self.fetch(url)
        except FetchError as exc:
            logger.warning("page skipped: %s", exc.reason, extra={"url": url, "page": index + 1})
            return None


def select_tokens(html: str, selector: str) -> List[str]:
    """Return the stripped text of every element matching `selector`, in document order."""
    soup = BeautifulSoup(html, "html.parser")
    return [element.get_text(" ", strip=True) for element in soup.select(selector)]


def select_tokens_from_pages(pages: Sequence[str], selector: str) -> List[str]:
    tokens: List[str] = []
    for html in pages:
        tokens.extend(select_tokens(html, selector))
    return tokens
