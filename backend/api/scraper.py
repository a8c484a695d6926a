"""
Page retrieval for URLs pasted into the chat.

`PageScraper.fetch(url)` returns a `ScrapedPage` and never raises: failures
come back as an empty record whose ``error`` is ``"Failed to scrape URL"``.

Extraction order (joined with spaces, whitespace collapsed, cut to 40,000
characters): title, meta description, all h1, all h2, article blocks, main
blocks, "content" blocks, paragraphs, list items. script / style / noscript /
iframe elements are dropped first.
"""

import logging
import re

import requests
from bs4 import BeautifulSoup

from backend.cache.content_cache import ContentCache, PageHeadings, ScrapedPage
from backend.database.config.config import settings

logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 40000
SCRAPE_ERROR = "Failed to scrape URL"
STRIPPED_TAGS = ("script", "style", "noscript", "iframe")
USER_AGENT = "Mozilla/5.0 (compatible; PortalSupportBot/1.0)"

_WHITESPACE = re.compile(r"\s+")


def clean_text(text: str) -> str:
    """Collapse whitespace runs (including newlines) to one space and trim."""
    return _WHITESPACE.sub(" ", text or "").strip()


def _joined_text(soup: BeautifulSoup, selector: str) -> str:
    return " ".join(el.get_text() for el in soup.select(selector))


def extract_page(url: str, html: str) -> ScrapedPage:
    """
    Build a `ScrapedPage` from raw HTML.

    Parameters
    ----------
    url : str
        Source URL, copied into the record.
    html : str
        Document markup.
    """
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(list(STRIPPED_TAGS)):
        # nested matches are already gone with their parent
        if not tag.decomposed:
            tag.decompose()

    title = soup.title.get_text() if soup.title else ""
    meta = soup.find("meta", attrs={"name": "description"})
    meta_description = (meta.get("content") or "") if meta else ""
    h1 = _joined_text(soup, "h1")
    h2 = _joined_text(soup, "h2")

    combined = " ".join([
        title,
        meta_description,
        h1,
        h2,
        _joined_text(soup, "article"),
        _joined_text(soup, "main"),
        _joined_text(soup, '.content, #content, [class="content"]'),
        _joined_text(soup, "p"),
        _joined_text(soup, "li"),
    ])

    return ScrapedPage(
        url=url,
        title=clean_text(title),
        headings=PageHeadings(h1=clean_text(h1), h2=clean_text(h2)),
        meta_description=clean_text(meta_description),
        content=clean_text(combined)[:MAX_CONTENT_LENGTH],
        error=None,
    )


class PageScraper:
    """
    Cache-first page fetcher.

    Parameters
    ----------
    cache : ContentCache
        Page cache consulted before, and filled after, each network fetch.
    session : requests.Session, optional
        HTTP session; a fresh one is created if omitted.
    timeout : float, optional
        Per-request timeout in seconds (``settings.SCRAPE_TIMEOUT``).
    """

    def __init__(self, cache: ContentCache, session: requests.Session | None = None, timeout: float | None = None):
        self.cache = cache
        self.session = session or requests.Session()
        self.timeout = timeout if timeout is not None else settings.SCRAPE_TIMEOUT

    def fetch(self, url: str) -> ScrapedPage:
        logger.info("Starting scrape process for: %s", url)
        cached = self.cache.get(url)
        if cached is not None:
            logger.info("Using cached content for: %s", url)
            return cached

        logger.info("Cache miss - proceeding with fresh scrape for: %s", url)
        try:
            response = self.session.get(url, timeout=self.timeout, headers={"User-Agent": USER_AGENT})
            response.raise_for_status()
            page = extract_page(url, response.text)
        except Exception as e:
            logger.error("Error scraping %s: %s", url, e)
            return ScrapedPage.failed(url, SCRAPE_ERROR)

        self.cache.put(url, page)
        return page
