"""
EPUB Builder Module

Site-agnostic assembly of the output book. The builder is a small state
machine driven by the pipeline:

    CREATED -> METADATA_ATTACHED -> STYLE_WRITTEN -> [COVER_WRITTEN]
            -> CHAPTERS_WRITTEN -> NAVIGATION_WRITTEN -> TOC_WRITTEN -> CLOSED

Entries are collected in an ``ebooklib`` book and only written on
:meth:`EpubArchiveBuilder.close`, first to ``<name>.epub.part`` and then
renamed into place, so a run that fails midway never leaves a file that
looks like a finished book.
"""

import base64
import binascii
import enum
import os
import posixpath
import re
from dataclasses import dataclass
from urllib.parse import urljoin, urlsplit, urlunsplit, unquote, unquote_to_bytes

from ebooklib import epub

from .exceptions import ArchiveStateError, ArchiveWriteError, CoverError, MissingTitleError
from .logging import logger
from .templates import (
    MAIN_CSS,
    STYLESHEET_PATH,
    render_chapter,
    render_cover,
    render_nav,
    render_ncx,
)

CHAPTER_PATH_WIDTH = 4
COVER_PAGE_PATH = "text/cover.xhtml"
NAV_PATH = "nav.xhtml"
NCX_PATH = "toc.ncx"
XHTML_MEDIA_TYPE = "application/xhtml+xml"
NCX_MEDIA_TYPE = "application/x-dtbncx+xml"

# Declared media type -> file extension
IMAGE_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/gif": "gif",
}

# File extension -> media type
EXTENSION_MEDIA_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
}

_UNSAFE_FILENAME_CHARS = re.compile(r'[\s\x00-\x1f\x7f\\/:*?"<>|]')
_DATA_URI = re.compile(r'^data:(?P<media_type>[^;,]*)(?P<params>(?:;[^;,]*)*),(?P<data>.*)$', re.DOTALL | re.IGNORECASE)


class BuilderState(enum.Enum):
    CREATED = 0
    METADATA_ATTACHED = 1
    STYLE_WRITTEN = 2
    COVER_WRITTEN = 3
    CHAPTERS_WRITTEN = 4
    NAVIGATION_WRITTEN = 5
    TOC_WRITTEN = 6
    CLOSED = 7


@dataclass(frozen=True)
class ChapterRecord:
    ordinal: int
    title: str
    body: str
    path: str


@dataclass(frozen=True)
class CoverAsset:
    content: bytes
    extension: str
    media_type: str

    @property
    def file_name(self):
        return f"images/cover.{self.extension}"


def sanitize_filename(title):
    """Replace whitespace, control and reserved filesystem characters with '_'."""
    name = _UNSAFE_FILENAME_CHARS.sub("_", (title or "").strip())
    return name or "untitled"


def chapter_path(ordinal, width=CHAPTER_PATH_WIDTH):
    """Archive path of the chapter at ``ordinal``, zero-padded to ``width`` digits."""
    if ordinal < 0 or ordinal >= 10 ** width:
        raise ArchiveWriteError(f"Chapter ordinal {ordinal} does not fit in {width} digits")
    return f"text/Section-{ordinal:0{width}d}.xhtml"


def decode_data_uri(locator):
    """Decode a ``data:`` URI cover image.

    Raises:
        CoverError: The URI is malformed or not a png/jpeg/gif image.
    """
    match = _DATA_URI.match(locator.strip())
    if not match:
        raise CoverError("Malformed data URI for cover image")

    media_type = (match.group("media_type") or "text/plain").strip().lower()
    extension = IMAGE_EXTENSIONS.get(media_type)
    if not extension:
        raise CoverError(f"Unsupported cover image type: {media_type}")

    data = match.group("data")
    try:
        if ";base64" in match.group("params").lower():
            content = base64.b64decode("".join(unquote(data).split()), validate=True)
        else:
            content = unquote_to_bytes(data)
    except (binascii.Error, ValueError) as e:
        raise CoverError(f"Could not decode cover image data: {e}") from e

    if not content:
        raise CoverError("Cover image data is empty")
    return CoverAsset(content, extension, EXTENSION_MEDIA_TYPES[extension])


def download_cover(locator, base_url, downloader):
    """Resolve ``locator`` against ``base_url`` and download it over https.

    Args:
        locator (str): Absolute or relative image URL
        base_url (str): URL of the fiction page the locator came from
        downloader (callable): ``url -> (bytes, media type or None)``

    Returns:
        CoverAsset, or None when the image is not png, jpeg or gif
    """
    parts = urlsplit(urljoin(base_url or "", locator.strip()))
    if not parts.netloc:
        raise CoverError(f"Cannot resolve cover image URL: {locator}")
    url = urlunsplit(("https", parts.netloc, parts.path, parts.query, ""))

    content, media_type = downloader(url)
    if not content:
        raise CoverError(f"Cover image at {url} is empty")

    suffix = posixpath.splitext(parts.path)[1].lstrip(".").lower()
    if suffix in EXTENSION_MEDIA_TYPES:
        extension = "jpg" if suffix == "jpeg" else suffix
    else:
        extension = IMAGE_EXTENSIONS.get((media_type or "").lower())
    if not extension:
        logger.warning(f"    [COVER] Cannot tell the image type of {url} ({media_type or 'no content type'}), skipping the cover.")
        return None

    return CoverAsset(content, extension, EXTENSION_MEDIA_TYPES[extension])


class EpubArchiveBuilder:
    """Assembles one book. Operations must be called in state-machine order."""

    def __init__(self, output_dir=".", language="en", path_width=CHAPTER_PATH_WIDTH):
        self.output_dir = output_dir
        self.language = language
        self.path_width = path_width
        self.state = BuilderState.CREATED
        self.book = None
        self.metadata = None
        self.output_path = None
        self.cover_page = None
        self._chapters = []
        self._ledger = []

    @property
    def ledger(self):
        """Written chapters as ``{path, title}`` dicts, in reading order."""
        return tuple(dict(entry) for entry in self._ledger)

    @property
    def identifier(self):
        return self.metadata.get("identifier") or sanitize_filename(self.metadata["title"])

    def _require(self, operation, *allowed):
        if self.state not in allowed:
            raise ArchiveStateError(f"Cannot {operation} while the archive is {self.state.name}")

    def _transition(self, state):
        if state != self.state:
            logger.component(f"    [EPUB] {self.state.name} -> {state.name}")
        self.state = state

    def _add_entry(self, item):
        if self.book.get_item_with_href(item.file_name) is not None:
            raise ArchiveWriteError(f"Archive already has an entry at {item.file_name}")
        if self.book.get_item_with_id(item.id) is not None:
            raise ArchiveWriteError(f"Archive already has an entry with id {item.id}")
        self.book.add_item(item)
        logger.trace(f"    [EPUB] Added {item.file_name} ({item.media_type})")
        return item

    def open(self, metadata):
        """Start a book: attach metadata and write the stylesheet.

        Args:
            metadata (dict): title (required), author, translator, editor, identifier

        Returns:
            str: The path the finished EPUB will be written to.
        """
        self._require("open the archive", BuilderState.CREATED)

        title = (metadata.get("title") or "").strip()
        if not title:
            raise MissingTitleError("Cannot create an EPUB without a title")

        self.metadata = dict(metadata, title=title)
        self.output_path = os.path.join(self.output_dir, sanitize_filename(title) + ".epub")
        try:
            os.makedirs(self.output_dir or ".", exist_ok=True)
        except OSError as e:
            raise ArchiveWriteError(f"Cannot create output directory {self.output_dir}: {e}") from e
        logger.info(f"Creating EPUB: {self.output_path}")

        book = epub.EpubBook()
        book.set_identifier(self.identifier)
        book.set_title(title)
        book.set_language(self.language)
        if self.metadata.get("author"):
            book.add_author(self.metadata["author"])
        for key, role in (("translator", "trl"), ("editor", "edt")):
            if self.metadata.get(key):
                book.add_metadata("DC", "contributor", self.metadata[key], {"id": key})
                book.add_metadata(None, "meta", role, {"refines": f"#{key}", "property": "role", "scheme": "marc:relators"})
        self.book = book
        self._transition(BuilderState.METADATA_ATTACHED)

        logger.info("Adding CSS File")
        self._add_entry(epub.EpubItem(uid="style", file_name=STYLESHEET_PATH, media_type="text/css", content=MAIN_CSS))
        self._transition(BuilderState.STYLE_WRITTEN)
        return self.output_path

    def write_cover(self, locator, base_url=None, downloader=None):
        """Add the cover image and cover page. Does nothing for an empty locator.

        Args:
            locator (str): ``data:`` URI or image URL (relative to ``base_url``)
            base_url (str): Fiction page URL
            downloader (callable): ``url -> (bytes, media type)`` for non-data locators

        Returns:
            CoverAsset or None
        """
        self._require("write the cover", BuilderState.STYLE_WRITTEN)
        if not locator or not locator.strip():
            logger.info("    [COVER] No cover image, skipping.")
            return None

        logger.info("    [COVER] Downloading cover image.")
        if locator.strip().lower().startswith("data:"):
            asset = decode_data_uri(locator)
        else:
            if downloader is None:
                raise CoverError("No downloader available for the cover image URL")
            asset = download_cover(locator, base_url, downloader)
            if asset is None:
                return None

        image = epub.EpubItem(uid="cover-image", file_name=asset.file_name,
                              media_type=asset.media_type, content=asset.content)
        image.properties = ["cover-image"]
        self._add_entry(image)
        self.book.add_metadata(None, "meta", "", {"name": "cover", "content": "cover-image"})

        logger.info("Creating cover.xhtml")
        page = epub.EpubItem(uid="cover", file_name=COVER_PAGE_PATH,
                             media_type=XHTML_MEDIA_TYPE, content=render_cover(asset.file_name))
        self.cover_page = self._add_entry(page)
        self._transition(BuilderState.COVER_WRITTEN)
        return asset

    def write_chapter(self, ordinal, title, body):
        """Render and add one chapter, then record it in the ledger.

        Ordinals are dense: the next chapter must have ``ordinal == len(ledger)``.
        """
        self._require("write a chapter", BuilderState.STYLE_WRITTEN,
                      BuilderState.COVER_WRITTEN, BuilderState.CHAPTERS_WRITTEN)
        expected = len(self._ledger)
        if ordinal != expected:
            raise ArchiveWriteError(f"Chapter ordinal {ordinal} is out of order, expected {expected}")

        path = chapter_path(ordinal, self.path_width)
        item = epub.EpubItem(uid=f"section-{ordinal:0{self.path_width}d}", file_name=path,
                             media_type=XHTML_MEDIA_TYPE, content=render_chapter(title, body))
        self._add_entry(item)
        self._chapters.append(item)
        self._ledger.append({"path": path, "title": title})
        self._transition(BuilderState.CHAPTERS_WRITTEN)
        return ChapterRecord(ordinal, title, body, path)

    def render_navigation(self, title=None):
        return render_nav(title or self.metadata["title"], self._ledger)

    def render_toc(self, title=None):
        return render_ncx(title or self.metadata["title"], self.identifier, self._ledger)

    def write_navigation(self, title=None):
        """Add the EPUB 3 navigation document built from the ledger."""
        self._require("write the navigation document", BuilderState.STYLE_WRITTEN,
                      BuilderState.COVER_WRITTEN, BuilderState.CHAPTERS_WRITTEN)
        nav = epub.EpubItem(uid="nav", file_name=NAV_PATH, media_type=XHTML_MEDIA_TYPE,
                            content=self.render_navigation(title))
        nav.properties = ["nav"]
        self._add_entry(nav)
        self._transition(BuilderState.NAVIGATION_WRITTEN)

    def write_toc(self, title=None):
        """Add the NCX table of contents built from the ledger."""
        self._require("write the table of contents", BuilderState.NAVIGATION_WRITTEN)
        self._add_entry(epub.EpubItem(uid="ncx", file_name=NCX_PATH, media_type=NCX_MEDIA_TYPE,
                                      content=self.render_toc(title)))
        self._transition(BuilderState.TOC_WRITTEN)

    def close(self):
        """Write the book to disk and seal the builder.

        Returns:
            str: Path of the finished EPUB.
        """
        self._require("close the archive", BuilderState.TOC_WRITTEN)

        spine = [self.cover_page] if self.cover_page is not None else []
        self.book.spine = [item.id for item in spine + self._chapters]

        partial_path = self.output_path + ".part"
        try:
            epub.write_epub(partial_path, self.book, {})
        except Exception as e:
            raise ArchiveWriteError(f"Could not write {partial_path}: {e}") from e
        if not os.path.exists(partial_path):
            raise ArchiveWriteError(f"EPUB writer produced no file at {partial_path}")

        try:
            os.replace(partial_path, self.output_path)
        except OSError as e:
            raise ArchiveWriteError(f"Could not move {partial_path} to {self.output_path}: {e}") from e

        self._transition(BuilderState.CLOSED)
        logger.info(f"EPUB created successfully: {self.output_path}")
        return self.output_path

    def finalize(self, title=None):
        """Write navigation and table of contents from the ledger, then close."""
        logger.info("    [TOC] Generating Table of Contents.")
        self.write_navigation(title)
        self.write_toc(title)
        return self.close()
