"""Adapter for royalroad.com (formerly royalroadl.com)."""
import re
from urllib.parse import urlsplit

from .base_adapter import BaseAdapter, select_first, text_of
from .logging import logger
from .sanitizer import RemoveElements, RemoveStyleBlocks, StripAttribute, StripPattern


class RoyalRoadAdapter(BaseAdapter):
    """Adapter for scraping Royal Road fictions."""

    name = "royalroad"

    TITLE_SELECTORS = (
        "div.fic-header > .fic-title > h2[property='name']",
        "div.fic-header .fic-title h1",
        "div.fic-header h1",
    )
    AUTHOR_SELECTORS = (
        "div.fic-header > .fic-title > h4 > span[property='name']",
        "div.fic-header h4 a[href^='/profile/']",
    )
    COVER_SELECTORS = (
        "div.fic-header img[property='image']",
        "div.fic-header img",
    )
    CHAPTER_LINKS = "#chapters tr > td a[href*='/chapter/']"
    MARKER_SELECTORS = (
        ".fic-header .md-text-left h2",
        ".fic-header h1",
    )
    BODY_SELECTORS = (
        ".portlet-body .chapter-content",
        ".chapter-content",
    )

    # Royal Road still serves MyBB-era attributes and wraps chapters in
    # navigation, donation and ad widgets. Author notes are left alone.
    sanitize_rules = (
        RemoveElements("script"),
        RemoveElements("div.nav-buttons, div.chapter-nav"),
        RemoveElements("div.donate, div.donation-box, form[action*='paypal.com']"),
        RemoveElements("ins.adsbygoogle, div.ad-container, div.portlet.ad, div[id^='div-gpt-ad']"),
        RemoveElements("div.beta-reader, div.bbcode_beta"),
        StripAttribute("table[bgcolor]", "bgcolor"),
        StripAttribute("img[border]", "border"),
        RemoveStyleBlocks(),
        StripPattern(r"\s*\*Edited as of \w+ \d+, \d+\*"),
    )

    def fiction_id(self):
        segments = [s for s in urlsplit(self.url).path.split('/') if s]
        if 'fiction' in segments:
            index = segments.index('fiction')
            if index + 1 < len(segments):
                return segments[index + 1]
        return super().fiction_id()

    def extract_metadata(self, soup):
        title = self.require_title(soup, text_of(select_first(soup, *self.TITLE_SELECTORS)))
        author = text_of(select_first(soup, *self.AUTHOR_SELECTORS))
        author = re.sub(r'^by\s+', '', author, flags=re.IGNORECASE).strip()
        logger.debug(f"[ROYALROAD] Title: '{title}', author: '{author}'")

        metadata = {'title': title, 'identifier': self.identifier()}
        if author:
            metadata['author'] = author
        return metadata

    def extract_cover_locator(self, soup):
        image = select_first(soup, *self.COVER_SELECTORS)
        return image.get('src') if image is not None else None

    def enumerate_chapters(self, soup):
        chapters = []
        for link in soup.select(self.CHAPTER_LINKS):
            href = link.get('href')
            if not href:
                continue
            chapter_url = self.absolute_url(href)
            # The release-date cell links to the same chapter as the title cell
            if chapters and chapters[-1][0] == chapter_url:
                continue
            title = text_of(link) or " ".join(link.get("title", "").split())
            chapters.append((chapter_url, title))

        logger.debug(f"[ROYALROAD] Found {len(chapters)} chapter links")
        return chapters

    def is_chapter_loaded(self, soup):
        return bool(text_of(select_first(soup, *self.MARKER_SELECTORS)))

    def extract_chapter_body(self, soup):
        content = select_first(soup, *self.BODY_SELECTORS)
        return content.decode_contents() if content is not None else ""
