"""
Book pipeline: one reference in, one EPUB out.

The order of operations is fixed so that chapter ordinals, the ledger and the
archive entries always agree: metadata, stylesheet, cover, then each chapter
fetched, sanitized and written before the next one is requested.
"""
from dataclasses import dataclass

from .epub_builder import EpubArchiveBuilder
from .exceptions import Fic2EpubError, ResolutionError
from .logging import logger


@dataclass
class BookResult:
    reference: str
    path: str = None
    error: str = None

    @property
    def ok(self):
        return self.error is None


def build_book(adapter, output_dir=".", builder=None):
    """Scrape one fiction with ``adapter`` and write it as an EPUB.

    Args:
        adapter (BaseAdapter): Adapter bound to the fiction URL and a fetcher
        output_dir (str): Directory for the finished book
        builder (EpubArchiveBuilder): Builder to use, a fresh one by default

    Returns:
        str: Path of the written EPUB.

    Raises:
        Fic2EpubError: Any fatal problem; nothing is written in that case.
    """
    builder = builder or EpubArchiveBuilder(output_dir)

    soup = adapter.fetch_fiction_page()
    metadata = adapter.extract_metadata(soup)
    metadata.setdefault('identifier', adapter.identifier())

    logger.info("Generating Epub.")
    builder.open(metadata)
    builder.write_cover(adapter.extract_cover_locator(soup), adapter.url, adapter.fetcher.download_verified)

    logger.info("    [CHAPTER] Downloading chapters.")
    chapters = adapter.enumerate_chapters(soup)
    logger.info(f"Found {len(chapters)} chapters")
    for ordinal, (chapter_url, title) in enumerate(chapters):
        logger.info(f"    [CHAPTER] Adding: {title}")
        body = adapter.fetch_and_sanitize_chapter(chapter_url)
        builder.write_chapter(ordinal, title, body)

    return builder.finalize(metadata['title'])


def process_references(references, registry, fetcher, output_dir="."):
    """Build a book for every reference; one failure never stops the batch.

    Returns:
        list[BookResult]: One result per reference, in input order.
    """
    results = []
    for reference in references:
        logger.info(f"🚀 Processing: {reference}")
        try:
            resolution = registry.resolve(reference)
            adapter = resolution.create_adapter(fetcher)
            logger.component(f"[ADAPTER] {adapter.__class__.__name__} for {resolution.url}")
            path = build_book(adapter, output_dir)
        except ResolutionError as e:
            logger.error(f"[RESOLVE] {e}")
            results.append(BookResult(reference, error=str(e)))
        except Fic2EpubError as e:
            logger.error(f"💥 Could not build {reference}: {e}")
            results.append(BookResult(reference, error=str(e)))
        except Exception as e:
            logger.critical(f"💥 Unexpected error while building {reference}: {e}", exc_info=True)
            results.append(BookResult(reference, error=f"{type(e).__name__}: {e}"))
        else:
            results.append(BookResult(reference, path=path))
    return results
