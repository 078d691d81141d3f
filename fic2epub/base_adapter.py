"""
Base Adapter for fiction sites.
"""
from abc import ABC, abstractmethod
from urllib.parse import urljoin, urlsplit

from .debug_helpers import save_failed_html
from .exceptions import MissingTitleError
from .logging import logger
from .sanitizer import RemoveStyleBlocks, sanitize_fragment


def select_first(soup, *selectors):
    """Return the first element matched by any of ``selectors``, in order."""
    for selector in selectors:
        tag = soup.select_one(selector)
        if tag is not None:
            return tag
    return None


def text_of(tag):
    """Text of ``tag`` with runs of whitespace, nested markup included, collapsed to one space."""
    return " ".join(tag.get_text().split()) if tag is not None else ""


class BaseAdapter(ABC):
    """A base class for all fiction-site adapters.

    Subclasses describe *where* things live on one site; the shared pipeline
    decides *what* to do with them.
    """

    #: Short name used in logs and book identifiers
    name = "base"
    #: Ordered sanitization rules applied to every chapter body
    sanitize_rules = (RemoveStyleBlocks(),)

    def __init__(self, url, fetcher):
        self.url = url
        self.fetcher = fetcher

    def fiction_id(self):
        """The site's id for this fiction, taken from the URL by default."""
        segments = [s for s in urlsplit(self.url).path.split('/') if s]
        return segments[-1] if segments else ""

    def identifier(self):
        return f"{self.name}-{self.fiction_id()}"

    def absolute_url(self, href):
        return urljoin(self.url, href)

    def fetch_fiction_page(self):
        """Fetch the fiction's landing page."""
        logger.info(f"Fetching fiction page: {self.url}")
        return self.fetcher.fetch(self.url)

    def require_title(self, soup, title):
        """Fail the book when the fiction page yielded no title."""
        title = (title or "").strip()
        if not title:
            save_failed_html(soup, self.url, self.name, "missing_title")
            raise MissingTitleError(f"Error communicating with {self.name}, or with the given fiction id ({self.url})")
        return title

    @abstractmethod
    def extract_metadata(self, soup):
        """Extract title, author and other credits from the fiction page.

        Returns:
            dict: At least ``title``; optionally author, translator, editor.
        """
        raise NotImplementedError

    @abstractmethod
    def extract_cover_locator(self, soup):
        """Return the cover image as a data URI or URL, or None."""
        raise NotImplementedError

    @abstractmethod
    def enumerate_chapters(self, soup):
        """Return ``[(chapter_url, title), ...]`` in reading order."""
        raise NotImplementedError

    def is_chapter_loaded(self, soup):
        """Check the page's marker element; a False result triggers a refetch."""
        return True

    def extract_chapter_body(self, soup):
        """Return the raw inner markup of the chapter content."""
        raise NotImplementedError

    def fetch_and_sanitize_chapter(self, chapter_url):
        """Fetch a chapter until it verifies, then return its cleaned body markup."""
        soup = self.fetcher.fetch_verified(chapter_url, self.is_chapter_loaded)
        body = self.extract_chapter_body(soup)
        return sanitize_fragment(body, self.sanitize_rules)
