"""Adapter for webnovel.com (Qidian International)."""
import html
import re
from urllib.parse import urlencode

from .base_adapter import BaseAdapter, text_of
from .exceptions import ChapterListError, FetchError
from .fetcher import retry_until_valid
from .logging import logger
from .sanitizer import RemoveElements, RemoveStyleBlocks, sanitize_fragment


def plain_text_to_markup(text):
    """Escape plain chapter text and turn its line breaks into <br/>."""
    return re.sub(r'\r?\n\r?', '<br/>', html.escape(text or '', quote=False))


class WebnovelAdapter(BaseAdapter):
    """Adapter for WebNovel. Chapter lists and bodies come from its JSON API."""

    name = "webnovel"

    API_ROOT = "https://www.webnovel.com/apiajax/chapter"
    COVER_URL = "https://img.webnovel.com/bookcover/{}/300/300.jpg"
    TITLE_IMAGE = ".det-hd .g_wrap .det-info .g_thumb img"
    CREDIT_LABELS = ".det-hd .g_wrap .det-info address p strong"
    CREDITS = {
        'Author:': 'author',
        'Translator:': 'translator',
        'Editor:': 'editor',
    }

    sanitize_rules = (
        RemoveElements("script"),
        RemoveStyleBlocks(),
    )

    def __init__(self, url, fetcher):
        super().__init__(url, fetcher)
        self.csrf_token = None

    def fiction_id(self):
        # Both /book/12345 and /book/some-title_12345 are in circulation
        return super().fiction_id().rsplit('_', 1)[-1]

    def fetch_fiction_page(self):
        soup = super().fetch_fiction_page()
        # The chapter API only answers with the token the fiction page set. It can
        # be set on both .webnovel.com and www.webnovel.com; take the last one
        tokens = [cookie.value for cookie in self.fetcher.session.cookies if cookie.name == '_csrfToken']
        self.csrf_token = tokens[-1] if tokens else None
        if not self.csrf_token:
            logger.warning("[WEBNOVEL] No _csrfToken cookie on the fiction page; the chapter list may be empty")
        return soup

    def extract_metadata(self, soup):
        image = soup.select_one(self.TITLE_IMAGE)
        title = self.require_title(soup, image.get('alt') if image is not None else None)

        metadata = {'title': title, 'identifier': self.identifier()}
        for label in soup.select(self.CREDIT_LABELS):
            key = self.CREDITS.get(text_of(label))
            value = text_of(label.find_next_sibling())
            if key and value:
                metadata[key] = value

        logger.debug(f"[WEBNOVEL] Metadata: {metadata}")
        return metadata

    def extract_cover_locator(self, soup):
        return self.COVER_URL.format(self.fiction_id())

    def content_url(self, chapter_id):
        query = urlencode({'_csrfToken': self.csrf_token or '', 'bookId': self.fiction_id(), 'chapterId': chapter_id})
        return f"{self.API_ROOT}/GetContent?{query}"

    def enumerate_chapters(self, soup):
        params = {'_csrfToken': self.csrf_token or '', 'bookId': self.fiction_id()}
        try:
            listing = self.fetcher.fetch_json(f"{self.API_ROOT}/GetChapterList", params=params)
        except FetchError as e:
            raise ChapterListError(f"Error retrieving chapter list: {e}") from e
        if not isinstance(listing, dict) or listing.get('msg') != 'Success':
            message = listing.get('msg') if isinstance(listing, dict) else listing
            raise ChapterListError(f"Error retrieving chapter list: {message}")

        chapters = []
        for volume in (listing.get('data') or {}).get('volumeItems') or []:
            for item in volume.get('chapterItems') or []:
                label = f"{item.get('index')}: {item.get('name')}"
                if item.get('isVip'):
                    # Locked chapters need a logged-in session
                    logger.info(f"    [SKIP] VIP chapter {label}")
                    continue
                chapters.append((self.content_url(item.get('id')), label))
        return chapters

    def fetch_and_sanitize_chapter(self, chapter_url):
        data = retry_until_valid(
            lambda: self.fetcher.fetch_json(chapter_url),
            lambda payload: isinstance(payload, dict) and payload.get('msg') == 'Success',
            chapter_url,
            self.fetcher.retry_policy,
        )
        info = (data.get('data') or {}).get('chapterInfo') or {}
        content = info.get('content') or ''
        if not info.get('isRichFormat'):
            content = plain_text_to_markup(content)
        return sanitize_fragment(content, self.sanitize_rules)
