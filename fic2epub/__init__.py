"""
fic2epub - serialized web novels to EPUB

Modules:
    adapter_factory: reference resolution and the adapter registry
    base_adapter: the interface every site adapter implements
    royalroad_adapter, webnovel_adapter: the shipped site adapters
    fetcher: HTTP fetching with retry-until-verified
    sanitizer: per-site chapter cleanup rules
    templates: chapter, cover, navigation and NCX markup
    epub_builder: the EPUB archive state machine
    pipeline: one reference in, one book out
    config, logging: settings and the package logger

Usage:
    from fic2epub import build_default_registry, PageFetcher, process_references
"""

from .logging import logger, set_debug_level
from .exceptions import (
    Fic2EpubError,
    ResolutionError,
    FetchError,
    VerificationError,
    RetryExhaustedError,
    MetadataError,
    MissingTitleError,
    ChapterListError,
    CoverError,
    ArchiveError,
    ArchiveStateError,
    ArchiveWriteError,
)
from .fetcher import PageFetcher, RetryPolicy, retry_until_valid
from .sanitizer import RemoveElements, RemoveStyleBlocks, StripAttribute, StripPattern, sanitize_fragment
from .epub_builder import BuilderState, ChapterRecord, EpubArchiveBuilder, chapter_path, sanitize_filename
from .base_adapter import BaseAdapter
from .royalroad_adapter import RoyalRoadAdapter
from .webnovel_adapter import WebnovelAdapter
from .adapter_factory import AdapterRegistry, Resolution, build_default_registry, get_adapter
from .pipeline import BookResult, build_book, process_references

__version__ = "0.3.0"

__all__ = [
    'logger', 'set_debug_level',
    'Fic2EpubError', 'ResolutionError', 'FetchError', 'VerificationError', 'RetryExhaustedError',
    'MetadataError', 'MissingTitleError', 'ChapterListError', 'CoverError',
    'ArchiveError', 'ArchiveStateError', 'ArchiveWriteError',
    'PageFetcher', 'RetryPolicy', 'retry_until_valid',
    'RemoveElements', 'RemoveStyleBlocks', 'StripAttribute', 'StripPattern', 'sanitize_fragment',
    'BuilderState', 'ChapterRecord', 'EpubArchiveBuilder', 'chapter_path', 'sanitize_filename',
    'BaseAdapter', 'RoyalRoadAdapter', 'WebnovelAdapter',
    'AdapterRegistry', 'Resolution', 'build_default_registry', 'get_adapter',
    'BookResult', 'build_book', 'process_references',
]
